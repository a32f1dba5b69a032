"""Tree vertex with local bookkeeping for level, parent link, and op states."""

from __future__ import annotations

import weakref
from collections.abc import Iterator
from dataclasses import dataclass, field

from ..errors import DuplicateAttachmentError, TreeActionError
from .types import LoadState, OperationState, coerce_state


@dataclass(eq=False)
class Node:
    """One file or folder entry.

    ``parent`` is held through a weak reference so ownership only flows from
    a node to its ``children``. ``level`` is re-derived on attachment and is
    never meant to be assigned by callers.
    """

    id: str
    name: str
    is_folder: bool = False
    lazy_load: bool = False
    available_operations: list[str] = field(default_factory=list)
    operation_state: dict[str, OperationState] = field(default_factory=dict)
    collapsed: bool = True
    load_state: LoadState | None = None
    level: int = field(default=0, init=False)
    mixed_operations: set[str] = field(default_factory=set, init=False)
    visible: bool = field(default=True, init=False)
    children: list["Node"] = field(default_factory=list, init=False, repr=False)
    _parent_ref: weakref.ReferenceType["Node"] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.is_folder:
            self.lazy_load = False
        if self.load_state is None or not self.lazy_load:
            self.load_state = LoadState.NOT_LOADED if self.lazy_load else LoadState.LOADED
        self.available_operations = list(dict.fromkeys(self.available_operations))
        self.operation_state = {
            code: coerce_state(state)
            for code, state in self.operation_state.items()
            if code in self.available_operations
        }

    @property
    def parent(self) -> "Node | None":
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def is_loaded(self) -> bool:
        return self.load_state is LoadState.LOADED

    @property
    def is_loading(self) -> bool:
        return self.load_state is LoadState.LOADING

    def is_operation_available(self, code: str) -> bool:
        return code in self.available_operations

    def state_of(self, code: str) -> OperationState:
        """Return the stored state for ``code``; absent keys read as unselected."""
        return self.operation_state.get(code, OperationState.UNSELECTED)

    def is_mixed(self, code: str) -> bool:
        return code in self.mixed_operations

    def add_child(self, child: "Node") -> "Node":
        """Attach ``child`` as the last child and re-derive its subtree levels."""
        if not self.is_folder:
            raise TreeActionError(f"node {self.id!r} is not a folder and cannot hold children")
        existing_parent = child.parent
        if existing_parent is not None:
            raise DuplicateAttachmentError(child.id, existing_parent.id)
        if child is self or any(ancestor is child for ancestor in self.ancestors()):
            raise DuplicateAttachmentError(child.id, self.id)
        child._parent_ref = weakref.ref(self)
        self.children.append(child)
        child._relevel(self.level + 1)
        return child

    def detach_children(self) -> list["Node"]:
        """Drop every child and clear their parent links; returns the old children."""
        removed = self.children
        self.children = []
        for child in removed:
            child._parent_ref = None
        return removed

    def _relevel(self, level: int) -> None:
        self.level = level
        for child in self.children:
            child._relevel(level + 1)

    def ancestors(self) -> Iterator["Node"]:
        """Yield parent, grandparent, ... up to the root."""
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def iter_subtree(self) -> Iterator["Node"]:
        """Yield this node and its loaded descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def attach(parent: Node, child: Node) -> Node:
    """Attach ``child`` under ``parent``; see :meth:`Node.add_child`."""
    return parent.add_child(child)


__all__ = ["Node", "attach"]
