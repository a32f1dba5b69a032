"""Lazy-load lifecycle of folder nodes with per-node single flight."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping

from ..errors import ChildrenLoadError
from ..model.node import Node
from ..model.registry import NodeRegistry
from ..model.types import LoadState, NodeSpec
from ..serialization import nodes_from_loader_result
from .events import EventEmitter, TreeEvent
from .state import StateEngine

logger = logging.getLogger(__name__)

LoaderResult = Iterable[NodeSpec | Mapping[str, object]]
ChildrenLoader = Callable[[Node, str | None], LoaderResult | Awaitable[LoaderResult]]


class LoadCoordinator:
    """Expand/collapse folders and fetch lazy children at most once per epoch.

    ``LoadState.LOADING`` on a node is the lock: a second ``expand`` that sees
    it returns immediately. Searches that need the same subtree await the
    in-flight future instead of starting another fetch. A completion is only
    applied while the registry still maps the node id to the same object.
    """

    def __init__(
        self,
        registry: NodeRegistry,
        states: StateEngine,
        events: EventEmitter,
        catalog_codes: Callable[[], list[str]],
        children_loader: ChildrenLoader | None = None,
    ) -> None:
        self._registry = registry
        self._states = states
        self._events = events
        self._catalog_codes = catalog_codes
        self.children_loader = children_loader
        self._in_flight: dict[Node, asyncio.Future[bool]] = {}
        self._speculative: set[Node] = set()

    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def is_speculative(self, node: Node) -> bool:
        return node in self._speculative

    async def expand(self, node: Node) -> None:
        """Open ``node``, fetching its children first when not yet loaded.

        Raises ``ChildrenLoadError`` when the fetch fails; the node is then
        back in ``NOT_LOADED`` and ``collapsed`` is unchanged.
        """
        if not node.is_folder:
            return
        if node.load_state is LoadState.LOADED:
            self._speculative.discard(node)
            if node.collapsed:
                node.collapsed = False
                self._events.emit(TreeEvent.NODE_EXPANDED, node)
            return
        if node.is_loading:
            logger.debug("expand of %r ignored: load already in flight", node.id)
            return
        await self._load(node, None, reveal=True, speculative=False)

    def collapse(self, node: Node) -> None:
        """Hide ``node``'s children without discarding anything already loaded."""
        if not node.is_folder or node.collapsed:
            return
        node.collapsed = True
        self._events.emit(TreeEvent.NODE_COLLAPSED, node)

    async def toggle_collapse(self, node: Node) -> None:
        if not node.is_folder:
            return
        if node.collapsed:
            await self.expand(node)
        else:
            self.collapse(node)

    async def ensure_loaded(self, node: Node, query: str | None = None, *, speculative: bool = False) -> bool:
        """Make sure ``node``'s children are present without opening it.

        Joins a load that is already running. Returns ``False`` when the load
        failed or the node was superseded; failures are logged and emitted
        but not raised.
        """
        if not node.is_folder or node.load_state is LoadState.LOADED:
            return True
        if node.is_loading:
            return await self.wait_for(node)
        try:
            return await self._load(node, query, reveal=False, speculative=speculative)
        except ChildrenLoadError:
            return False

    async def wait_for(self, node: Node) -> bool:
        """Wait for ``node``'s in-flight load, if any; report whether it is loaded."""
        future = self._in_flight.get(node)
        if future is not None:
            await asyncio.shield(future)
        return node.load_state is LoadState.LOADED and self._registry.is_live(node)

    async def _fetch(self, node: Node, query: str | None) -> list[NodeSpec | Mapping[str, object]]:
        if self.children_loader is None:
            return []
        result = self.children_loader(node, query)
        if inspect.isawaitable(result):
            result = await result
        return list(result or [])

    async def _load(self, node: Node, query: str | None, *, reveal: bool, speculative: bool) -> bool:
        node.load_state = LoadState.LOADING
        self._registry.detach_children(node)
        future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._in_flight[node] = future
        logger.debug("loading children of %r (query=%r)", node.id, query)
        try:
            try:
                records = await self._fetch(node, query)
                if not self._registry.is_live(node):
                    logger.debug("discarding children for superseded node %r", node.id)
                    return False
                children = nodes_from_loader_result(records, self._catalog_codes())
                for child in children:
                    self._registry.attach(node, child)
            except asyncio.CancelledError:
                self._registry.detach_children(node)
                raise
            except Exception as exc:
                if not self._registry.is_live(node):
                    logger.debug("dropping load failure for superseded node %r: %s", node.id, exc)
                    return False
                self._registry.detach_children(node)
                node.load_state = LoadState.NOT_LOADED
                message = str(exc) or type(exc).__name__
                error = ChildrenLoadError(node.id, message)
                logger.warning("failed to load children of %r: %s", node.id, message)
                self._events.emit(TreeEvent.LOAD_FAILED, node, error)
                raise error from exc

            node.load_state = LoadState.LOADED
            if speculative:
                self._speculative.add(node)
            for child in node.children:
                self._states.recompute_all(child)
            self._states.refresh_mixed_path(node)
            logger.debug("loaded %d children of %r", len(node.children), node.id)
            if reveal and node.collapsed:
                node.collapsed = False
                self._events.emit(TreeEvent.NODE_EXPANDED, node)
            self._events.emit(TreeEvent.TREE_UPDATED, node)
            return True
        finally:
            if node.load_state is LoadState.LOADING:
                node.load_state = LoadState.NOT_LOADED
            if self._in_flight.get(node) is future:
                del self._in_flight[node]
            if not future.done():
                future.set_result(node.load_state is LoadState.LOADED)

    async def expand_to_depth(self, root: Node, max_level: int | None = None) -> None:
        """Open every folder shallower than ``max_level`` (all folders when ``None``).

        Parents are opened before their children; sibling loads run
        concurrently. Load failures are logged and leave that subtree closed.
        """

        async def visit(node: Node) -> None:
            if not node.is_folder:
                return
            if max_level is not None and node.level >= max_level:
                return
            try:
                await self.expand(node)
            except ChildrenLoadError:
                return
            if node.is_loading:
                if not await self.wait_for(node):
                    return
                if node.collapsed:
                    node.collapsed = False
                    self._events.emit(TreeEvent.NODE_EXPANDED, node)
            await asyncio.gather(*(visit(child) for child in list(node.children)))

        await visit(root)

    def collapse_to_depth(self, root: Node, min_level: int) -> None:
        """Close every folder at ``min_level`` or deeper."""
        for node in root.iter_subtree():
            if node.level >= min_level:
                self.collapse(node)

    def discard_speculative(self) -> int:
        """Unload folders whose children were fetched only to answer a search."""
        discarded = 0
        for node in list(self._speculative):
            if not self._registry.is_live(node) or node.load_state is not LoadState.LOADED:
                continue
            self._registry.detach_children(node)
            node.load_state = LoadState.NOT_LOADED
            node.collapsed = True
            self._states.refresh_mixed_path(node)
            discarded += 1
        self._speculative.clear()
        if discarded:
            logger.debug("discarded %d search-only loads", discarded)
        return discarded

    def forget_speculative(self) -> None:
        """Keep search-loaded children as regular loaded data."""
        self._speculative.clear()


__all__ = ["LoadCoordinator", "ChildrenLoader", "LoaderResult"]
