"""Events delivered to watcher callbacks."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field

from podwatch.pods import Pod, pod_is_ready

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def _parse_ip(text: str) -> IPAddress | None:
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


@dataclass(kw_only=True)
class PodEvent:
    """Base of all pod events.

    ``continues`` is True when the next event carries the same resource
    version because both belong to one initial listing or resync.
    """

    pod_name: str
    resource_version: str = ""
    continues: bool = False


@dataclass(kw_only=True)
class CreatePod(PodEvent):
    """A pod has been created."""

    definition: Pod

    @property
    def ip(self) -> IPAddress | None:
        return _parse_ip(self.definition.status.pod_ip)

    def is_ready(self) -> bool:
        """Whether the pod is ready and not shutting down."""
        return pod_is_ready(self.definition)


@dataclass(kw_only=True)
class ModPod(PodEvent):
    """A pod's status or definition changed."""

    definition: Pod

    @property
    def ip(self) -> IPAddress | None:
        return _parse_ip(self.definition.status.pod_ip)

    def is_ready(self) -> bool:
        """Whether the pod is ready and not shutting down."""
        return pod_is_ready(self.definition)


@dataclass(kw_only=True)
class DeletePod(PodEvent):
    """A pod has been destroyed and should no longer be watched."""


@dataclass(kw_only=True)
class InitialListComplete(PodEvent):
    """The initial listing of pods has been fully delivered."""

    pod_name: str = field(default="", init=False)
    continues: bool = field(default=False, init=False)