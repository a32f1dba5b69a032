"""Ordered operation catalog with tree-wide cascading on change."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from ..errors import OperationCatalogError
from .node import Node
from .types import DEFAULT_OPERATIONS, OperationDef

logger = logging.getLogger(__name__)

MAX_CODE_LENGTH = 2


def normalize_code(code: str) -> str:
    """Trim and upper-case ``code``; reject empty or over-long codes."""
    normalized = str(code).strip().upper()
    if not 1 <= len(normalized) <= MAX_CODE_LENGTH:
        raise OperationCatalogError(f"operation code must be 1-{MAX_CODE_LENGTH} characters: {code!r}")
    return normalized


class OperationCatalog:
    """Ordered list of ``OperationDef`` owned by one tree.

    Mutations walk the current tree synchronously: ``add_code`` makes the new
    code available on the root only, ``remove_code`` purges the code from
    every node's available operations, stored states, and mixed flags.
    """

    def __init__(
        self,
        root_provider: Callable[[], Node],
        definitions: Iterable[OperationDef] | None = None,
    ) -> None:
        self._root_provider = root_provider
        self._definitions: list[OperationDef] = []
        self.replace(DEFAULT_OPERATIONS if definitions is None else definitions)

    def replace(self, definitions: Iterable[OperationDef]) -> None:
        """Swap in a new definition list without touching any node."""
        checked: list[OperationDef] = []
        seen: set[str] = set()
        for definition in definitions:
            code = normalize_code(definition.code)
            if code in seen:
                raise OperationCatalogError(f"operation code {code!r} already exists")
            seen.add(code)
            checked.append(OperationDef(code, definition.label))
        self._definitions = checked

    def __iter__(self) -> Iterator[OperationDef]:
        return iter(list(self._definitions))

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, code: object) -> bool:
        return any(definition.code == code for definition in self._definitions)

    def definitions(self) -> list[OperationDef]:
        return list(self._definitions)

    def codes(self) -> list[str]:
        return [definition.code for definition in self._definitions]

    def label_for(self, code: str) -> str | None:
        for definition in self._definitions:
            if definition.code == code:
                return definition.label
        return None

    def add_code(self, code: str, label: str) -> OperationDef:
        """Append a new operation and make it available on the root node."""
        normalized = normalize_code(code)
        if normalized in self:
            raise OperationCatalogError(f"operation code {normalized!r} already exists")
        label = str(label).strip()
        if not label:
            raise OperationCatalogError(f"operation {normalized!r} needs a label")
        definition = OperationDef(normalized, label)
        self._definitions.append(definition)
        root = self._root_provider()
        if not root.is_operation_available(normalized):
            root.available_operations.append(normalized)
        logger.debug("added operation %s (%s)", normalized, label)
        return definition

    def remove_code(self, code: str) -> bool:
        """Remove ``code`` and purge it tree-wide; no-op when it is unknown."""
        code = str(code).strip().upper()
        index = next(
            (idx for idx, definition in enumerate(self._definitions) if definition.code == code),
            None,
        )
        if index is None:
            return False
        del self._definitions[index]
        purged = 0
        for node in self._root_provider().iter_subtree():
            if code in node.available_operations:
                node.available_operations.remove(code)
                purged += 1
            node.operation_state.pop(code, None)
            node.mixed_operations.discard(code)
        logger.debug("removed operation %s from %d nodes", code, purged)
        return True


__all__ = ["OperationCatalog", "normalize_code", "MAX_CODE_LENGTH"]
