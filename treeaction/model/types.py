"""Value types shared by the node model and the engines."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class OperationState(str, Enum):
    """Tri-state permission value stored per node and operation."""

    UNSELECTED = "unselected"
    ALLOWED = "allowed"
    DENIED = "denied"

    def next(self) -> "OperationState":
        """Return the next state in the toggle rotation."""
        return _ROTATION[self]


_ROTATION = {
    OperationState.UNSELECTED: OperationState.ALLOWED,
    OperationState.ALLOWED: OperationState.DENIED,
    OperationState.DENIED: OperationState.UNSELECTED,
}


class LoadState(str, Enum):
    """Lazy-load lifecycle of a folder; ``LOADING`` doubles as the fetch guard."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"


@dataclass(frozen=True)
class OperationDef:
    """One catalog entry: a short operation code and its human label."""

    code: str
    label: str


DEFAULT_OPERATIONS: tuple[OperationDef, ...] = (
    OperationDef("C", "Create"),
    OperationDef("R", "Read"),
    OperationDef("U", "Update"),
    OperationDef("D", "Delete"),
    OperationDef("S", "Share"),
)


@dataclass(frozen=True)
class NodeSpec:
    """Description of a node to create, as returned by a children loader.

    ``children`` may carry nested specs for eagerly supplied subfolders.
    """

    id: str
    name: str
    is_folder: bool = False
    lazy_load: bool = False
    available_operations: tuple[str, ...] = ()
    operation_state: Mapping[str, OperationState | str] = field(default_factory=dict)
    collapsed: bool = True
    children: tuple["NodeSpec", ...] = ()


def coerce_state(value: OperationState | str) -> OperationState:
    """Normalize a state name or enum member, raising ``ValueError`` if unknown."""
    if isinstance(value, OperationState):
        return value
    return OperationState(str(value).strip().lower())


__all__ = [
    "OperationState",
    "LoadState",
    "OperationDef",
    "DEFAULT_OPERATIONS",
    "NodeSpec",
    "coerce_state",
]
