"""Tri-state operation propagation across the node hierarchy."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from ..model.node import Node
from ..model.types import OperationState, coerce_state

logger = logging.getLogger(__name__)


def _child_states(node: Node, code: str) -> set[OperationState] | None:
    """Return the distinct states of ``node``'s children for ``code``.

    Only children that have ``code`` available take part. ``None`` means no
    child carries the operation.
    """
    relevant = [child for child in node.children if child.is_operation_available(code)]
    if not relevant:
        return None
    return {child.state_of(code) for child in relevant}


class StateEngine:
    """Set/toggle operation states with down-propagation and up-aggregation.

    Every public mutation finishes both propagation passes before returning.
    Requests for operations a node does not carry are ignored.
    """

    def __init__(self, on_change: Callable[[Node], None] | None = None) -> None:
        self._on_change = on_change

    def set_operation(self, node: Node, code: str, new_state: OperationState | str) -> bool:
        """Apply ``new_state`` to ``node`` and every descendant carrying ``code``.

        Descendants lacking ``code`` are skipped but their own subtrees are
        still visited. Ancestors are then re-derived from their current
        children. Returns ``False`` when ``code`` is unavailable on ``node``.
        """
        if not node.is_operation_available(code):
            logger.debug("ignoring %s on %r: operation not available", code, node.id)
            return False
        state = coerce_state(new_state)
        for descendant in node.iter_subtree():
            if descendant.is_operation_available(code):
                descendant.operation_state[code] = state
                descendant.mixed_operations.discard(code)
        self._aggregate_upward(node, code)
        if self._on_change is not None:
            self._on_change(node)
        return True

    def toggle_operation(self, node: Node, code: str) -> OperationState | None:
        """Rotate unselected -> allowed -> denied -> unselected; ``None`` if unavailable."""
        if not node.is_operation_available(code):
            logger.debug("ignoring toggle of %s on %r: operation not available", code, node.id)
            return None
        new_state = node.state_of(code).next()
        self.set_operation(node, code, new_state)
        return new_state

    def seed_states(self, node: Node, states: Mapping[str, OperationState | str]) -> list[str]:
        """Store raw states on ``node`` only, without propagation.

        Codes not available on ``node`` are skipped. Mixed flags along the
        ancestor path are re-derived afterwards. Returns the applied codes.
        """
        applied: list[str] = []
        for code, value in states.items():
            if not node.is_operation_available(code):
                logger.debug("skipping seed of %s on %r: operation not available", code, node.id)
                continue
            node.operation_state[code] = coerce_state(value)
            applied.append(code)
        self.refresh_mixed_path(node)
        return applied

    def _aggregate_upward(self, node: Node, code: str) -> None:
        for ancestor in node.ancestors():
            states = _child_states(ancestor, code)
            if states is None:
                break
            if not ancestor.is_operation_available(code):
                continue
            if len(states) == 1:
                ancestor.operation_state[code] = next(iter(states))
                ancestor.mixed_operations.discard(code)
            else:
                ancestor.mixed_operations.add(code)

    def refresh_mixed(self, node: Node, codes: Iterable[str] | None = None) -> None:
        """Re-derive ``node``'s mixed flags from its current children.

        Stored states are left alone; only the derived indicator changes.
        """
        for code in list(node.available_operations if codes is None else codes):
            states = _child_states(node, code) if node.is_operation_available(code) else None
            if states is not None and len(states) > 1:
                node.mixed_operations.add(code)
            else:
                node.mixed_operations.discard(code)
        node.mixed_operations &= set(node.available_operations)

    def refresh_mixed_path(self, node: Node) -> None:
        """Re-derive mixed flags of ``node`` and then each of its ancestors."""
        self.refresh_mixed(node)
        for ancestor in node.ancestors():
            self.refresh_mixed(ancestor)

    def recompute_all(self, root: Node) -> None:
        """Re-derive mixed flags for a whole subtree, children before parents."""
        for node in reversed(list(root.iter_subtree())):
            self.refresh_mixed(node)


__all__ = ["StateEngine"]
