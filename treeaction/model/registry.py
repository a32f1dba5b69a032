"""Id index over the live nodes of one tree."""

from __future__ import annotations

from ..errors import DuplicateAttachmentError, DuplicateNodeIdError
from .node import Node


class NodeRegistry:
    """Map node ids to the node objects currently attached to the tree.

    A node is *live* while the registry maps its id to that exact object.
    Nodes dropped by a reload or a tree replacement stop being live even if
    a pending load still holds a reference to them.
    """

    def __init__(self, root: Node) -> None:
        self._by_id: dict[str, Node] = {}
        self.reset(root)

    def reset(self, root: Node) -> None:
        """Replace the whole index with the subtree rooted at ``root``."""
        by_id: dict[str, Node] = {}
        for node in root.iter_subtree():
            if node.id in by_id:
                raise DuplicateNodeIdError(node.id)
            by_id[node.id] = node
        self._by_id = by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def find(self, node_id: str) -> Node | None:
        return self._by_id.get(node_id)

    def is_live(self, node: Node) -> bool:
        return self._by_id.get(node.id) is node

    def attach(self, parent: Node, child: Node) -> Node:
        """Attach ``child`` under live ``parent`` and index its whole subtree."""
        if child.parent is not None:
            raise DuplicateAttachmentError(child.id, child.parent.id)
        seen: set[str] = set()
        for node in child.iter_subtree():
            if node.id in self._by_id or node.id in seen:
                raise DuplicateNodeIdError(node.id)
            seen.add(node.id)
        parent.add_child(child)
        for node in child.iter_subtree():
            self._by_id[node.id] = node
        return child

    def detach_children(self, parent: Node) -> list[Node]:
        """Drop ``parent``'s children and unindex every node below it."""
        removed = parent.detach_children()
        for child in removed:
            for node in child.iter_subtree():
                if self._by_id.get(node.id) is node:
                    del self._by_id[node.id]
        return removed


__all__ = ["NodeRegistry"]
