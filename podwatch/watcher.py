"""Watches the pods of a namespace and delivers lifecycle events to callbacks."""

from __future__ import annotations

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Protocol

from podwatch.events import (
    CreatePod,
    DeletePod,
    InitialListComplete,
    ModPod,
    PodEvent,
)
from podwatch.pods import Pod, PodPhase
from podwatch.tracker import PodTracker

HTTP_GONE = 410
BACKOFF_RESET_THRESHOLD = 3600.0

_POLL_INTERVAL = 0.05
_CLOSED = object()

EventCallback = Callable[[threading.Event, PodEvent], None]


@dataclass
class ListOptions:
    """Selection options for listing and watching pods."""

    label_selector: str = ""
    field_selector: str = ""
    resource_version: str = ""


@dataclass
class PodList:
    """Result of listing pods."""

    items: list[Pod] = field(default_factory=list)
    resource_version: str = ""


@dataclass
class Status:
    """An API status object, as carried by error responses and error events."""

    code: int = 0
    reason: str = ""
    message: str = ""


class WatchEventType(str, Enum):
    """Kind of a raw watch event."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


@dataclass
class WatchEvent:
    """A raw event from a watch stream."""

    type: WatchEventType
    object: Pod | Status | None = None


class ApiStatusError(Exception):
    """The API answered a request with an error status."""

    def __init__(self, status: Status):
        super().__init__(status.message or f"API status {status.code} {status.reason}".strip())
        self.status = status


class ResultsClosedError(Exception):
    """The watch stream closed; ``resource_version`` is the last one seen."""

    def __init__(self, resource_version: str = ""):
        super().__init__("k8s result channel closed")
        self.resource_version = resource_version


class VersionGoneError(Exception):
    """The watched resource version is gone and a resync is required."""

    def __init__(self, resource_version: str = ""):
        super().__init__("k8s GONE status; resync required")
        self.resource_version = resource_version


class _WatchStream(Protocol):
    results: queue.Queue

    def stop(self) -> None: ...


class PodClient(ABC):
    """Access to the pods API.

    ``watch`` returns a stream object with a ``results`` queue of
    :class:`WatchEvent` items, terminated by ``None`` when the stream closes,
    and a ``stop()`` method that ends the stream (eventually queuing ``None``).
    Connection failures are reported as :class:`OSError`, API errors as
    :class:`ApiStatusError`.
    """

    @abstractmethod
    def list(self, namespace: str, options: ListOptions) -> PodList:
        """List the pods in ``namespace`` matching ``options``."""

    @abstractmethod
    def watch(self, namespace: str, options: ListOptions) -> _WatchStream:
        """Start watching pods in ``namespace`` from ``options.resource_version``."""


class _Backoff:
    def __init__(self, minimum: float, maximum: float, factor: float = 2.0):
        self._min = minimum
        self._max = maximum
        self._factor = factor
        self._attempt = 0

    def next(self) -> float:
        delay = min(self._min * self._factor**self._attempt, self._max)
        if delay < self._max:
            self._attempt += 1
        return delay

    def reset(self) -> None:
        self._attempt = 0


class _Resync(Enum):
    RETURN = "return"
    CONTINUE = "continue"
    SUCCESS = "success"


class PodWatcher:
    """Lists and then watches pods, calling each callback with every event.

    Callbacks are called as ``callback(stop, event)``. During the initial
    listing they run inline; afterwards each callback runs in its own thread.
    """

    def __init__(
        self,
        client: PodClient,
        namespace: str,
        options: ListOptions | None = None,
        callbacks: Iterable[EventCallback] = (),
        logger: logging.Logger | None = None,
        *,
        min_backoff: float = 0.02,
        max_backoff: float = 5.0,
    ):
        self.client = client
        self.namespace = namespace
        self.options = options if options is not None else ListOptions()
        self.callbacks = list(callbacks)
        self.logger = logger
        self.min_backoff = min_backoff
        self.max_backoff = max_backoff
        self._tracker = PodTracker()

    def _log(self, message: str, *args) -> None:
        if self.logger is not None:
            self.logger.info(message, *args)

    def initial_pods(self, stop: threading.Event) -> tuple[int, str]:
        """Deliver a CreatePod for every live pod, then InitialListComplete.

        Returns the number of listed pods and the listing's resource version.
        """
        pod_list = self.client.list(self.namespace, self.options)
        version = pod_list.resource_version
        for pod in pod_list.items:
            if pod.status.phase in (PodPhase.FAILED, PodPhase.SUCCEEDED):
                continue
            event = CreatePod(
                pod_name=pod.name,
                resource_version=version,
                definition=pod,
                continues=True,
            )
            self._tracker.record_event(event)
            for callback in self.callbacks:
                callback(stop, event)
        for callback in self.callbacks:
            callback(stop, InitialListComplete(resource_version=version))
        return len(pod_list.items), version

    @staticmethod
    def _dispatch(queues: list[queue.Queue], event: PodEvent) -> None:
        for q in queues:
            q.put(event)

    @staticmethod
    def _run_callback(stop: threading.Event, callback: EventCallback, q: queue.Queue) -> None:
        while (event := q.get()) is not _CLOSED:
            callback(stop, event)

    def _resync(self, queues: list[queue.Queue]) -> str:
        pod_list = self.client.list(self.namespace, self.options)
        synthesized = [
            event
            for pod in pod_list.items
            if (event := self._tracker.synthesize_event(pod)) is not None
        ]
        dead = sorted(self._tracker.find_remove_dead_pods(pod.name for pod in pod_list.items))

        last = len(synthesized) - 1
        for position, event in enumerate(synthesized):
            event.continues = bool(dead) or position < last
            self._dispatch(queues, event)

        for count, name in enumerate(dead, start=1):
            self._dispatch(
                queues,
                DeletePod(
                    pod_name=name,
                    resource_version=pod_list.resource_version,
                    continues=count < len(dead),
                ),
            )
        return pod_list.resource_version

    @staticmethod
    def _drain(stream: _WatchStream) -> None:
        while stream.results.get() is not None:
            pass

    def _watch(
        self,
        stop: threading.Event,
        stream: _WatchStream,
        version: str,
        queues: list[queue.Queue],
    ) -> str:
        """Forward stream events until stopped; raises when the stream ends otherwise."""
        last = version
        while True:
            if stop.is_set():
                stream.stop()
                self._drain(stream)
                return last
            try:
                item = stream.results.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is None:
                raise ResultsClosedError(last)

            pod = item.object
            if not isinstance(pod, Pod):
                if item.type == WatchEventType.ERROR:
                    self._log("received error event: %s", item)
                    if isinstance(pod, Status) and pod.code == HTTP_GONE:
                        stream.stop()
                        self._drain(stream)
                        raise VersionGoneError(last)
                continue

            last = pod.resource_version
            if item.type == WatchEventType.ADDED:
                event: PodEvent = CreatePod(pod_name=pod.name, resource_version=last, definition=pod)
            elif item.type == WatchEventType.MODIFIED:
                event = ModPod(pod_name=pod.name, resource_version=last, definition=pod)
            elif item.type == WatchEventType.DELETED:
                event = DeletePod(pod_name=pod.name, resource_version=last)
            elif item.type == WatchEventType.BOOKMARK:
                continue
            else:
                self._log("received error event: %s", item)
                continue

            self._tracker.record_event(event)
            self._dispatch(queues, event)

    def run(self, stop: threading.Event) -> None:
        """Deliver the initial pods, then watch until ``stop`` is set.

        Reconnects with backoff after connection errors and closed streams,
        and resyncs when the resource version is gone. Other errors raise.
        """
        count, version = self.initial_pods(stop)

        queues: list[queue.Queue] = [queue.Queue(maxsize=2 * count + 32) for _ in self.callbacks]
        threads = [
            threading.Thread(target=self._run_callback, args=(stop, callback, q), daemon=True)
            for callback, q in zip(self.callbacks, queues)
        ]
        for thread in threads:
            thread.start()

        backoff = _Backoff(self.min_backoff, self.max_backoff)

        def sleep_backoff() -> bool:
            return stop.wait(backoff.next())

        def resync() -> _Resync:
            nonlocal version
            try:
                new_version = self._resync(queues)
            except Exception as exc:
                self._log("resync failed: %s", exc)
                return _Resync.RETURN if sleep_backoff() else _Resync.CONTINUE
            self._log("resync succeeded; new version: %r (old %r)", new_version, version)
            version = new_version
            return _Resync.SUCCESS

        try:
            last_watch_start = time.monotonic()
            while True:
                stream: _WatchStream | None
                try:
                    stream = self.client.watch(
                        self.namespace, replace(self.options, resource_version=version)
                    )
                except ApiStatusError as exc:
                    if exc.status.code != HTTP_GONE:
                        raise
                    action = resync()
                    if action is _Resync.RETURN:
                        return
                    if action is _Resync.CONTINUE:
                        continue
                    stream = None
                except OSError:
                    if sleep_backoff():
                        return
                    continue

                if stream is not None:
                    try:
                        self._watch(stop, stream, version, queues)
                        return
                    except ResultsClosedError as exc:
                        version = exc.resource_version
                    except VersionGoneError:
                        action = resync()
                        if action is _Resync.RETURN:
                            return
                        if action is _Resync.CONTINUE:
                            continue

                if time.monotonic() - last_watch_start > BACKOFF_RESET_THRESHOLD:
                    backoff.reset()
                if sleep_backoff():
                    return
                last_watch_start = time.monotonic()
        finally:
            for q in queues:
                q.put(_CLOSED)
            for thread in threads:
                thread.join()


def new_pod_watcher(client: PodClient, namespace: str, selector: str, *args: EventCallback) -> PodWatcher:
    """Build a watcher selecting pods by label; ``args`` are the event callbacks."""
    return PodWatcher(client, namespace, ListOptions(label_selector=selector), args)