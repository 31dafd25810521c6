"""Tracks the last known state of each pod to synthesize events on resync."""

from __future__ import annotations

from dataclasses import dataclass, field

from podwatch.events import CreatePod, DeletePod, ModPod, PodEvent
from podwatch.pods import Pod


@dataclass
class PodTracker:
    """Last seen definition of every pod, and the last resource version."""

    last_status: dict[str, Pod] = field(default_factory=dict)
    last_version: str = ""

    def record_event(self, event: PodEvent) -> None:
        """Update the tracked state from an event."""
        self.last_version = event.resource_version
        if isinstance(event, (CreatePod, ModPod)):
            self.last_status[event.pod_name] = event.definition
        elif isinstance(event, DeletePod):
            self.last_status.pop(event.pod_name, None)

    def synthesize_event(self, pod: Pod) -> PodEvent | None:
        """Record the pod and return the event it implies, or None if unchanged."""
        name = pod.metadata.name
        old = self.last_status.get(name)
        self.last_status[name] = pod

        if pod.metadata.resource_version:
            self.last_version = pod.metadata.resource_version

        if old is not None:
            if old.status == pod.status and old.metadata == pod.metadata:
                return None
            return ModPod(pod_name=name, definition=pod)
        return CreatePod(pod_name=name, resource_version=self.last_version, definition=pod)

    def find_remove_dead_pods(self, existing_pod_names) -> set[str]:
        """Forget every tracked pod not in ``existing_pod_names`` and return their names."""
        dead = set(self.last_status) - set(existing_pod_names)
        for name in dead:
            del self.last_status[name]
        return dead