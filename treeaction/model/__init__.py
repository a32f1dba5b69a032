"""Node graph, id registry, operation catalog, and shared value types."""

from __future__ import annotations

from .catalog import MAX_CODE_LENGTH, OperationCatalog, normalize_code
from .node import Node, attach
from .registry import NodeRegistry
from .types import DEFAULT_OPERATIONS, LoadState, NodeSpec, OperationDef, OperationState, coerce_state

__all__ = [
    "Node",
    "attach",
    "NodeRegistry",
    "OperationCatalog",
    "normalize_code",
    "MAX_CODE_LENGTH",
    "OperationDef",
    "OperationState",
    "LoadState",
    "NodeSpec",
    "DEFAULT_OPERATIONS",
    "coerce_state",
]
