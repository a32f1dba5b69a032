"""Change notifications consumed by views that re-render the tree."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum


class TreeEvent(str, Enum):
    """Event names emitted by the tree engines."""

    NODE_EXPANDED = "node_expanded"
    NODE_COLLAPSED = "node_collapsed"
    TREE_UPDATED = "tree_updated"
    SEARCH_STARTED = "search_started"
    SEARCH_COMPLETED = "search_completed"
    DATA_LOADED = "data_loaded"
    EXPORTED = "exported"
    LOAD_FAILED = "load_failed"


Listener = Callable[..., object]


class EventEmitter:
    """Minimal synchronous publish/subscribe hub.

    Listeners run in registration order on the emitting call stack; an
    exception raised by a listener propagates to the caller that mutated the
    tree.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    @staticmethod
    def _key(event: TreeEvent | str) -> str:
        return event.value if isinstance(event, TreeEvent) else str(event)

    def on(self, event: TreeEvent | str, listener: Listener) -> "EventEmitter":
        self._listeners.setdefault(self._key(event), []).append(listener)
        return self

    def off(self, event: TreeEvent | str, listener: Listener) -> "EventEmitter":
        listeners = self._listeners.get(self._key(event))
        if listeners and listener in listeners:
            listeners.remove(listener)
        return self

    def once(self, event: TreeEvent | str, listener: Listener) -> "EventEmitter":
        """Register ``listener`` for the next emission of ``event`` only."""

        def wrapper(*args: object) -> object:
            self.off(event, wrapper)
            return listener(*args)

        return self.on(event, wrapper)

    def emit(self, event: TreeEvent | str, *args: object) -> bool:
        """Call every listener for ``event``; return whether any was registered."""
        listeners = self._listeners.get(self._key(event))
        if not listeners:
            return False
        for listener in list(listeners):
            listener(*args)
        return True

    def listener_count(self, event: TreeEvent | str) -> int:
        return len(self._listeners.get(self._key(event), ()))


__all__ = ["TreeEvent", "EventEmitter", "Listener"]
