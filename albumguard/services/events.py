"""In-process album event bus.

Events are fire-and-forget: a failing listener is logged and never fails
the album operation that emitted the event.
"""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

ALBUM_INVITE = "AlbumInvite"
ALBUM_UPDATE = "AlbumUpdate"

Listener = Callable[[str, dict], None]


class EventBus:
    def __init__(self):
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, name: str, payload: dict) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(name, payload)
            except Exception as e:
                logger.error("Event listener failed for %s %s: %s", name, payload, e)


# Module-level singleton
event_bus = EventBus()
