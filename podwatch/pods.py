"""Pod model: the parts of a pod definition the watcher relies on."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

POD_READY = "Ready"


class PodPhase(str, Enum):
    """Lifecycle phase of a pod."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class ConditionStatus(str, Enum):
    """Value of a pod condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass
class PodCondition:
    """A single condition reported in a pod's status."""

    type: str
    status: ConditionStatus


@dataclass
class PodStatus:
    """Observed state of a pod."""

    phase: PodPhase | None = None
    conditions: list[PodCondition] = field(default_factory=list)
    pod_ip: str = ""


@dataclass
class ObjectMeta:
    """Identifying metadata of a pod."""

    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    resource_version: str = ""
    deletion_timestamp: datetime | None = None


@dataclass
class Pod:
    """A pod definition."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    status: PodStatus = field(default_factory=PodStatus)
    kind: str = "Pod"
    api_version: str = "v1"

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def resource_version(self) -> str:
        return self.metadata.resource_version


def pod_is_ready(pod: Pod) -> bool:
    """Return True if the pod is running, not being deleted, and reports Ready."""
    if pod.status.phase != PodPhase.RUNNING or pod.metadata.deletion_timestamp is not None:
        return False
    return any(
        condition.type == POD_READY and condition.status == ConditionStatus.TRUE
        for condition in pod.status.conditions
    )