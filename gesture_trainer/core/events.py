"""
Publish/subscribe bus for session notifications.

The session controller publishes lifecycle and recognition events; UI shells
subscribe to show notifications instead of the controller calling them.

Usage:
    bus = EventBus()
    unsubscribe = bus.subscribe(Events.GESTURE_RECOGNIZED, my_handler)
    bus.emit(Events.GESTURE_RECOGNIZED, label=GestureLabel.POINT, progress=2)
    unsubscribe()
"""

import time
import logging
import threading
from collections import defaultdict, deque
from typing import Callable, List, NamedTuple, Tuple

logger = logging.getLogger(__name__)


class EventRecord(NamedTuple):
    """One emitted event, kept in the bus history."""
    name: str
    time: float
    payload_keys: Tuple[str, ...]


class EventBus:
    """Thread-safe publish/subscribe event bus.

    One bus per controller; pass the same instance around to share it.
    Listeners run synchronously on the emitting thread, highest priority
    first. A listener that raises is logged and skipped.
    """

    def __init__(self, max_history: int = 100):
        self._listeners = defaultdict(list)  # event_name -> [(priority, callback)]
        self._lock = threading.Lock()
        self._history = deque(maxlen=max_history)
        self._failures = 0

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0) -> Callable[[], None]:
        """Register a listener; returns a function that removes it again.

        Args:
            event_name: Event to listen for
            callback: Called with the keyword arguments passed to emit()
            priority: Higher priority callbacks run first (default 0)
        """
        with self._lock:
            listeners = self._listeners[event_name]
            listeners.append((priority, callback))
            listeners.sort(key=lambda entry: -entry[0])
        logger.debug("Subscribed to '%s': %s (priority=%d)",
                     event_name, getattr(callback, "__name__", callback), priority)
        return lambda: self.unsubscribe(event_name, callback)

    def unsubscribe(self, event_name: str, callback: Callable) -> None:
        with self._lock:
            remaining = [(p, cb) for p, cb in self._listeners.get(event_name, []) if cb is not callback]
            if remaining:
                self._listeners[event_name] = remaining
            else:
                self._listeners.pop(event_name, None)

    def emit(self, event_name: str, **kwargs) -> int:
        """Deliver an event; returns how many listeners handled it."""
        with self._lock:
            listeners = list(self._listeners.get(event_name, ()))
            self._history.append(EventRecord(event_name, time.time(), tuple(kwargs)))

        delivered = 0
        for _, callback in listeners:
            try:
                callback(**kwargs)
                delivered += 1
            except Exception as e:
                self._failures += 1
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, getattr(callback, "__name__", callback), e)
        return delivered

    def clear(self, event_name: str = None) -> None:
        """Remove all listeners, optionally for a specific event."""
        with self._lock:
            if event_name:
                self._listeners.pop(event_name, None)
            else:
                self._listeners.clear()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(cbs) for cbs in self._listeners.values())

    @property
    def failure_count(self) -> int:
        """Listener calls that raised."""
        return self._failures

    def get_history(self, last_n: int = 10) -> List[EventRecord]:
        """Most recent events, oldest first."""
        with self._lock:
            history = list(self._history)
        return history[-last_n:] if last_n else history


# =============================================================================
# Standard Event Names (constants to avoid typos)
# =============================================================================

class Events:
    """Event names published by the session controller."""

    # Lifecycle
    STATE_CHANGED = "state_changed"        # previous, state
    DETECTOR_READY = "detector_ready"
    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"    # frames
    SESSION_RESET = "session_reset"

    # Failures
    DETECTOR_ERROR = "detector_error"      # error, message
    CAMERA_ERROR = "camera_error"          # error, message

    # Recognition
    GESTURE_RECOGNIZED = "gesture_recognized"  # label, progress
