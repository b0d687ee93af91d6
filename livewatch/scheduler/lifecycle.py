"""Application lifecycle events delivered to the schedulers.

The host (a UI shell, a signal handler, a test) calls
:meth:`LifecycleEventSource.emit`; schedulers subscribe and define only the
reaction.
"""

import threading
from enum import Enum
from typing import Callable, List

from livewatch.logging import get_logger

logger = get_logger(__name__, component="scheduler")

LifecycleListener = Callable[["LifecycleEvent"], None]


class LifecycleEvent(str, Enum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"
    PERMISSION_GRANTED = "permission_granted"


class LifecycleEventSource:
    """In-process fan-out of lifecycle events to subscribed listeners."""

    def __init__(self):
        self._listeners: List[LifecycleListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: LifecycleListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that detaches it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, event: LifecycleEvent) -> None:
        """Deliver ``event`` to every listener; one failing listener does not stop the rest."""
        event = LifecycleEvent(event)
        with self._lock:
            listeners = list(self._listeners)

        logger.debug(
            f"Lifecycle event: {event.value}",
            extra={"event": "lifecycle.event", "lifecycle_event": event.value, "listeners": len(listeners)},
        )
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    f"Lifecycle listener failed on {event.value}: {e}",
                    exc_info=True,
                    extra={"event": "lifecycle.listener_failed", "error_type": type(e).__name__},
                )
