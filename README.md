# podwatch

`podwatch` follows the pods in a Kubernetes namespace. It passes each change
to your callbacks as an event object from `podwatch.events`:

- `CreatePod`: a pod appeared. It carries `pod_name`, `resource_version`,
  `definition` (a `Pod`) and `ip`. `ip` is parsed from the pod's status and is
  `None` when the pod has no valid IP.
- `ModPod`: a pod's status or metadata changed. It has the same fields as
  `CreatePod`.
- `DeletePod`: a pod went away. It carries `pod_name` and `resource_version`.
- `InitialListComplete`: every pod that existed at start-up has been reported.

`CreatePod` and `ModPod` offer `is_ready()`. It returns true only for a pod
that is in the `Running` phase, has no deletion timestamp, and has a `Ready`
condition set to `True`. `podwatch.pods.pod_is_ready(pod)` answers the same
question for any `Pod`.

Every event has a `continues` flag. When it is set, the next event belongs to
the same initial listing or resync and shares its resource version. Once an
event arrives with the flag cleared, your view of the namespace is consistent.

The pod model lives in `podwatch.pods`: `Pod`, `ObjectMeta`, `PodStatus`,
`PodCondition`, `PodPhase` and `ConditionStatus`.

## Installing

```
pip install podwatch
```

The package has no runtime dependencies.

## Connecting to a cluster

`podwatch` does not talk to a Kubernetes API server on its own. It has no
kubeconfig loading and no in-cluster configuration. You supply a subclass of
`podwatch.watcher.PodClient` that wraps whichever client you already use. The
subclass implements two methods:

- `list(namespace, options)` returns a `PodList`, which holds `items` and the
  listing's `resource_version`.
- `watch(namespace, options)` starts watching from `options.resource_version`.
  It returns a stream object with two parts. The first is a `results`
  attribute, a `queue.Queue` of `WatchEvent` items (`type` is a
  `WatchEventType`, `object` is a `Pod` or a `Status`). The stream puts `None`
  on this queue when it closes. The second is a `stop()` method that ends the
  stream.

Report connection failures by raising `OSError`. Report API error responses by
raising `ApiStatusError(Status(code=..., reason=...))`.

## Usage

```python
import threading

from podwatch.events import CreatePod, DeletePod, InitialListComplete, ModPod
from podwatch.watcher import new_pod_watcher


def on_event(stop, event):
    if isinstance(event, CreatePod):
        print("created", event.pod_name, event.ip, event.is_ready())
    elif isinstance(event, ModPod):
        print("changed", event.pod_name, event.is_ready())
    elif isinstance(event, DeletePod):
        print("deleted", event.pod_name)
    elif isinstance(event, InitialListComplete):
        print("initial listing done at version", event.resource_version)


client = MyPodClient()  # your PodClient implementation
watcher = new_pod_watcher(client, "default", "app=web", on_event)

stop = threading.Event()
watcher.run(stop)  # blocks until stop.set() is called from another thread
```

Each callback is called as `callback(stop, event)`, where `stop` is the
`threading.Event` that was passed to `run`.

`new_pod_watcher(client, namespace, selector, *callbacks)` selects pods by
label. For a field selector or other options, build the watcher directly:

```python
from podwatch.watcher import ListOptions, PodWatcher

watcher = PodWatcher(
    client,
    "default",
    ListOptions(label_selector="app=web", field_selector="spec.nodeName=node-1"),
    callbacks=[on_event],
    logger=my_logger,      # optional logging.Logger for diagnostics
    min_backoff=0.02,      # seconds
    max_backoff=5.0,       # seconds
)
```

## What `run` does

1. It lists the pods and calls every callback in the calling thread for each
   pod. Pods that have already succeeded or failed are skipped. Every
   `CreatePod` in this phase has `continues` set. Once the listing has been
   delivered, `run` sends `InitialListComplete`. You can also call
   `initial_pods(stop)` on its own. It does only this step and returns the
   number of listed pods and the resource version.
2. It watches for changes and passes each event to every callback. From here
   on, each callback runs in its own thread and receives events in order.
   Bookmark events are ignored. Error events are logged.
3. When the watch stream closes, `run` waits for the backoff period. It then
   watches again from the last resource version it saw.
4. When the server reports that the resource version is gone (status 410),
   either as an error event or when starting the watch, `run` lists the pods
   again and compares them with what it already knew. It sends `CreatePod`
   for new pods, `ModPod` for pods whose status or metadata changed, and
   `DeletePod` for pods that have disappeared. If this listing fails, the
   failure is logged and `run` retries after the backoff period.
5. When starting the watch fails with `OSError`, it retries with exponential
   backoff. The backoff resets once a watch has run for more than an hour.

`run` returns once `stop` is set. Before returning, it waits for the callback
threads to finish the events already queued. It raises in two cases: when the
initial listing fails, and when the watch cannot be started because of an
`ApiStatusError` other than 410.

## Running the tests

```
pip install -e .[test]
pytest
```