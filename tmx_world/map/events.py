"""
Minimal synchronous event emitter

Listeners are plain callables receiving the event payload. They run in the
order they subscribed, on the emitting thread, before emit() returns.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

Listener = Callable[[Any], None]


class EventEmitter:

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, name: str, callback: Listener) -> Listener:
        """Subscribe `callback` to `name`. Returns the callback (decorator use)."""
        self._listeners[name].append(callback)
        return callback

    def off(self, name: str, callback: Optional[Listener] = None):
        """Remove one listener, or every listener of `name` if none given."""
        if callback is None:
            self._listeners.pop(name, None)
            return
        listeners = self._listeners.get(name)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def emit(self, name: str, payload: Any = None) -> int:
        """Call every listener of `name`; returns how many were called."""
        # Copy so listeners may unsubscribe while being notified
        listeners = list(self._listeners.get(name, ()))
        for callback in listeners:
            callback(payload)
        return len(listeners)

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(name, ()))

    def remove_all_listeners(self):
        self._listeners.clear()
