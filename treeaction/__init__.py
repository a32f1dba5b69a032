"""Public package surface for treeaction.

Exposes the ``TreeAction`` facade, its node/catalog types, engine classes,
and the error taxonomy. ``main`` runs the command line lazily.
"""

from __future__ import annotations

from .engine import EventEmitter, LoadCoordinator, SearchEngine, StateEngine, TreeEvent
from .errors import (
    ChildrenLoadError,
    DuplicateAttachmentError,
    DuplicateNodeIdError,
    MalformedTreeError,
    OperationCatalogError,
    TreeActionError,
)
from .model import LoadState, Node, NodeRegistry, NodeSpec, OperationCatalog, OperationDef, OperationState, attach
from .tree import TreeAction


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "TreeAction",
    "Node",
    "NodeSpec",
    "NodeRegistry",
    "attach",
    "OperationCatalog",
    "OperationDef",
    "OperationState",
    "LoadState",
    "EventEmitter",
    "TreeEvent",
    "StateEngine",
    "LoadCoordinator",
    "SearchEngine",
    "TreeActionError",
    "DuplicateAttachmentError",
    "DuplicateNodeIdError",
    "ChildrenLoadError",
    "MalformedTreeError",
    "OperationCatalogError",
    "main",
]
