"""State propagation, lazy loading, search, and change notification engines."""

from __future__ import annotations

from .events import EventEmitter, TreeEvent
from .loading import ChildrenLoader, LoadCoordinator
from .search import SearchEngine, name_matches
from .state import StateEngine

__all__ = [
    "EventEmitter",
    "TreeEvent",
    "StateEngine",
    "LoadCoordinator",
    "ChildrenLoader",
    "SearchEngine",
    "name_matches",
]
