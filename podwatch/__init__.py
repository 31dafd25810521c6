"""Watch Kubernetes pods through a supplied client and deliver lifecycle events to callbacks."""

__version__ = "0.1.0"
__all__ = ["events", "pods", "tracker", "watcher"]