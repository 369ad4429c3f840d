import logging
import threading
from typing import Any, Callable

log = logging.getLogger("timescaleguard.event_bus")

# Host lifecycle events
MAP_START = "map_start"
MAP_END = "map_end"
CLIENT_CONNECTED = "client_connected"
CLIENT_DISCONNECTED = "client_disconnected"
CHAT_BROADCAST = "chat_broadcast"


class EventBus:
    """Synchronous publish/subscribe for host lifecycle events.

    Subscribers run in the publisher's call, in subscription order.
    The subscriber list is copied before dispatch so a handler may
    publish or (un)subscribe without deadlocking.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Callable]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, callback: Callable) -> None:
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(callback)
        log.debug("Subscribed to '%s': %s", event_type,
                  getattr(callback, "__qualname__", repr(callback)))

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        with self._lock:
            if event_type in self._subscribers:
                self._subscribers[event_type] = [
                    cb for cb in self._subscribers[event_type] if cb != callback
                ]

    def subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def publish(self, event_type: str, data: Any = None) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(event_type, []))

        log.debug("Publish '%s' to %d subscriber(s)", event_type, len(callbacks))
        for callback in callbacks:
            try:
                callback(data)
            except Exception:
                log.exception(
                    "Error in event handler for '%s': %s",
                    event_type,
                    getattr(callback, "__qualname__", repr(callback)),
                )
