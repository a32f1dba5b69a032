"""Tree facade owning the root node, catalog, registry, and engines."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping

from .engine.events import EventEmitter, Listener, TreeEvent
from .engine.loading import ChildrenLoader, LoadCoordinator
from .engine.search import SearchEngine
from .engine.state import StateEngine
from .errors import MalformedTreeError
from .model.catalog import OperationCatalog
from .model.node import Node
from .model.registry import NodeRegistry
from .model.types import DEFAULT_OPERATIONS, OperationDef, OperationState
from .serialization import parse_document, serialize_document

logger = logging.getLogger(__name__)


class TreeAction:
    """Hierarchical tri-state permission tree with lazy folders and search.

    All mutations are expected to come from one event-loop thread. Methods
    that may wait on the children loader are coroutines; the rest complete
    synchronously, including both propagation passes of ``set_operation``.
    """

    def __init__(
        self,
        operations: Iterable[OperationDef] | None = None,
        children_loader: ChildrenLoader | None = None,
        *,
        initial_data: Mapping[str, object] | str | None = None,
        retain_search_loads: bool = False,
        root_id: str = "root",
        root_name: str = "Root",
    ) -> None:
        self.events = EventEmitter()
        definitions = list(DEFAULT_OPERATIONS if operations is None else operations)
        self._root = Node(root_id, root_name, is_folder=True)
        self.catalog = OperationCatalog(lambda: self._root, definitions)
        self._root.available_operations = self.catalog.codes()
        self.registry = NodeRegistry(self._root)
        self.states = StateEngine(on_change=self._state_changed)
        self.loads = LoadCoordinator(
            self.registry,
            self.states,
            self.events,
            self.catalog.codes,
            children_loader,
        )
        self.searcher = SearchEngine(
            lambda: self._root,
            self.loads,
            self.events,
            retain_loads=retain_search_loads,
        )
        if initial_data is not None:
            self.load_json(initial_data)

    @property
    def root(self) -> Node:
        return self._root

    @property
    def children_loader(self) -> ChildrenLoader | None:
        return self.loads.children_loader

    @children_loader.setter
    def children_loader(self, loader: ChildrenLoader | None) -> None:
        self.loads.children_loader = loader

    @property
    def is_search_active(self) -> bool:
        return self.searcher.active

    def on(self, event: TreeEvent | str, listener: Listener) -> "TreeAction":
        self.events.on(event, listener)
        return self

    def off(self, event: TreeEvent | str, listener: Listener) -> "TreeAction":
        self.events.off(event, listener)
        return self

    def _state_changed(self, node: Node) -> None:
        self.events.emit(TreeEvent.TREE_UPDATED, self._root)

    # Structure

    def find_node(self, node_id: str) -> Node | None:
        return self.registry.find(node_id)

    def iter_nodes(self) -> Iterator[Node]:
        return self._root.iter_subtree()

    def attach(self, parent: Node, child: Node) -> Node:
        """Attach ``child`` (with its subtree) under a live ``parent``."""
        self.registry.attach(parent, child)
        self.states.recompute_all(child)
        self.states.refresh_mixed_path(parent)
        self.events.emit(TreeEvent.TREE_UPDATED, self._root)
        return child

    # Operation states

    def set_operation(self, node: Node, code: str, state: OperationState | str) -> bool:
        return self.states.set_operation(node, code, state)

    def toggle_operation(self, node: Node, code: str) -> OperationState | None:
        return self.states.toggle_operation(node, code)

    def set_node_initial_states(self, node_id: str, states: Mapping[str, OperationState | str]) -> bool:
        """Seed raw states on one node; ``False`` when the id is unknown."""
        node = self.registry.find(node_id)
        if node is None:
            return False
        self.states.seed_states(node, states)
        self.events.emit(TreeEvent.TREE_UPDATED, self._root)
        return True

    # Catalog

    def operation_types(self) -> list[OperationDef]:
        return self.catalog.definitions()

    def add_operation_type(self, code: str, label: str) -> OperationDef:
        definition = self.catalog.add_code(code, label)
        self.states.refresh_mixed(self._root)
        self.events.emit(TreeEvent.TREE_UPDATED, self._root)
        return definition

    def remove_operation_type(self, code: str) -> bool:
        removed = self.catalog.remove_code(code)
        if removed:
            self.events.emit(TreeEvent.TREE_UPDATED, self._root)
        return removed

    # Expansion

    async def expand(self, node: Node) -> None:
        await self.loads.expand(node)

    def collapse(self, node: Node) -> None:
        self.loads.collapse(node)

    async def toggle_collapse(self, node: Node) -> None:
        await self.loads.toggle_collapse(node)

    async def expand_to_depth(self, max_level: int | None = None) -> None:
        await self.loads.expand_to_depth(self._root, max_level)
        self.events.emit(TreeEvent.TREE_UPDATED, self._root)

    def collapse_to_depth(self, min_level: int) -> None:
        self.loads.collapse_to_depth(self._root, min_level)
        self.events.emit(TreeEvent.TREE_UPDATED, self._root)

    # Search

    async def search(self, query: str) -> list[Node]:
        return await self.searcher.search(query)

    def clear_search(self) -> None:
        self.searcher.clear_search()

    # Serialization

    def to_document(self) -> dict[str, object]:
        return serialize_document(self.catalog.definitions(), self._root)

    def export_json(self, indent: int | None = 2) -> str:
        text = json.dumps(self.to_document(), indent=indent)
        self.events.emit(TreeEvent.EXPORTED, text)
        return text

    def load_json(self, data: Mapping[str, object] | str) -> Node:
        """Replace catalog and tree from a document; nothing changes on error.

        Accepts a parsed mapping or JSON text. Raises ``MalformedTreeError``.
        """
        if isinstance(data, (str, bytes, bytearray)):
            try:
                data = json.loads(data)
            except ValueError as exc:
                raise MalformedTreeError([("$", f"invalid JSON: {exc}")]) from exc
        operations, root = parse_document(data, self.catalog.definitions())
        self.catalog.replace(operations)
        self.registry.reset(root)
        self._root = root
        self.searcher.reset()
        self.states.recompute_all(root)
        logger.debug("loaded tree with %d nodes", len(self.registry))
        self.events.emit(TreeEvent.DATA_LOADED, root)
        return root


__all__ = ["TreeAction"]
