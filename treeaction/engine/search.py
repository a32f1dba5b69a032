"""Name search that loads unloaded subtrees and projects node visibility."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ..model.node import Node
from .events import EventEmitter, TreeEvent
from .loading import LoadCoordinator

logger = logging.getLogger(__name__)


def name_matches(name: str, query: str) -> bool:
    """Case-insensitive substring test."""
    return query.casefold() in name.casefold()


def mark_path_visible(node: Node) -> None:
    """Show ``node`` and open every ancestor so it is reachable."""
    node.visible = True
    for ancestor in node.ancestors():
        ancestor.visible = True
        if ancestor.is_folder:
            ancestor.collapsed = False


def mark_subtree_visible(node: Node) -> None:
    for descendant in node.iter_subtree():
        descendant.visible = True


def set_visibility(root: Node, visible: bool) -> None:
    for node in root.iter_subtree():
        node.visible = visible


class SearchEngine:
    """Run name searches over the whole tree, lazy subtrees included.

    Every lazy folder that is not loaded yet is fetched through the load
    coordinator (joining loads already in flight) before matching, and the
    visibility projection is computed only after all of those loads settle.
    A newer ``search`` or ``clear_search`` supersedes a search that is still
    waiting on loads; the superseded one does not touch visibility.
    """

    def __init__(
        self,
        root_provider: Callable[[], Node],
        loads: LoadCoordinator,
        events: EventEmitter,
        *,
        retain_loads: bool = False,
    ) -> None:
        self._root_provider = root_provider
        self._loads = loads
        self._events = events
        self.retain_loads = retain_loads
        self.active = False
        self.query = ""
        self.matches: list[Node] = []
        self._generation = 0

    def is_match(self, node: Node) -> bool:
        return any(match is node for match in self.matches)

    async def search(self, query: str) -> list[Node]:
        """Show only nodes matching ``query``, their ancestors, and folder contents.

        An empty query is the same as ``clear_search``. Returns matches in
        pre-order.
        """
        if not query:
            self.clear_search()
            return []

        self._generation += 1
        generation = self._generation
        root = self._root_provider()
        self.active = True
        self.query = query
        self.matches = []
        logger.debug("search started: %r", query)
        self._events.emit(TreeEvent.SEARCH_STARTED, root)
        set_visibility(root, False)

        await self._load_unloaded(root, query, generation)

        if generation != self._generation or root is not self._root_provider():
            logger.debug("search for %r superseded", query)
            if not self.active:
                self._drop_search_loads(root)
            return []

        matches = [node for node in root.iter_subtree() if name_matches(node.name, query)]
        set_visibility(root, False)
        for match in matches:
            mark_path_visible(match)
            if match.is_folder:
                match.collapsed = False
                mark_subtree_visible(match)
        self.matches = matches
        logger.debug("search for %r matched %d nodes", query, len(matches))
        self._events.emit(TreeEvent.SEARCH_COMPLETED, root)
        return list(matches)

    async def _load_unloaded(self, node: Node, query: str, generation: int) -> None:
        if generation != self._generation:
            return
        if node.is_folder and node.lazy_load and not node.is_loaded:
            if not await self._loads.ensure_loaded(node, query, speculative=True):
                return
        if generation != self._generation:
            return
        children = list(node.children)
        if children:
            await asyncio.gather(*(self._load_unloaded(child, query, generation) for child in children))

    def _drop_search_loads(self, root: Node) -> None:
        """Apply the clear-time load policy to loads that settled after a clear."""
        if self.retain_loads:
            self._loads.forget_speculative()
        elif self._loads.discard_speculative() and root is self._root_provider():
            self._events.emit(TreeEvent.TREE_UPDATED, root)

    def clear_search(self) -> None:
        """Restore full visibility and drop or keep search-only loads."""
        self._generation += 1
        root = self._root_provider()
        was_active = self.active
        self.active = False
        self.query = ""
        self.matches = []
        if self.retain_loads:
            self._loads.forget_speculative()
        else:
            self._loads.discard_speculative()
        set_visibility(root, True)
        if was_active:
            self._events.emit(TreeEvent.TREE_UPDATED, root)

    def reset(self) -> None:
        """Forget search state after the tree was replaced wholesale."""
        self._generation += 1
        self.active = False
        self.query = ""
        self.matches = []
        self._loads.forget_speculative()


__all__ = ["SearchEngine", "name_matches", "mark_path_visible", "mark_subtree_visible", "set_visibility"]
