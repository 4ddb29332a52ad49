"""
Event emission for engine mutations.
"""
import itertools
import logging
from threading import Lock
from typing import Callable, Dict

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class EventEmitter:
    """
    Synchronous, fire-and-forget change notifications.

    Listeners take no arguments; they read whatever they need back through the
    owning engine's query methods. A failing listener is logged and skipped.
    """

    def __init__(self, name: str = "events"):
        self.name = name
        self._listeners: Dict[int, Listener] = {}
        self._handles = itertools.count(1)
        self._lock = Lock()

    def subscribe(self, listener: Listener) -> Callable[[], bool]:
        """
        Register a listener.

        Returns:
            A callable that removes the listener and reports whether it was still registered
        """
        with self._lock:
            handle = next(self._handles)
            self._listeners[handle] = listener

        def unsubscribe() -> bool:
            with self._lock:
                return self._listeners.pop(handle, None) is not None

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self) -> None:
        """Invoke every listener registered at the time of the call."""
        with self._lock:
            listeners = list(self._listeners.values())

        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"{self.name}: listener {listener!r} failed: {e}", exc_info=True)
