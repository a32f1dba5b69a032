"""Exception taxonomy for tree mutation, loading, and document parsing."""

from __future__ import annotations


class TreeActionError(Exception):
    """Base class for every error raised by the tree engine."""


class DuplicateAttachmentError(TreeActionError):
    """Raised when a node that already has a parent is attached again."""

    def __init__(self, node_id: str, parent_id: str | None) -> None:
        super().__init__(f"node {node_id!r} is already attached to {parent_id!r}")
        self.node_id = node_id
        self.parent_id = parent_id


class DuplicateNodeIdError(TreeActionError):
    """Raised when an attached subtree reuses an id that is already live."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"duplicate node id {node_id!r}")
        self.node_id = node_id


class ChildrenLoadError(TreeActionError):
    """Raised when the children loader fails or returns unusable records."""

    def __init__(self, node_id: str, message: str) -> None:
        super().__init__(f"loading children of {node_id!r} failed: {message}")
        self.node_id = node_id


class MalformedTreeError(TreeActionError, ValueError):
    """Raised when a serialized tree document cannot be applied.

    ``problems`` lists ``(json_path, message)`` pairs; every problem found
    during validation is reported, not only the first.
    """

    def __init__(self, problems: list[tuple[str, str]]) -> None:
        summary = "; ".join(f"{path}: {message}" for path, message in problems[:5])
        if len(problems) > 5:
            summary += f"; ... ({len(problems) - 5} more)"
        super().__init__(f"malformed tree document: {summary}")
        self.problems = list(problems)


class OperationCatalogError(TreeActionError, ValueError):
    """Raised for invalid operation codes/labels or refused catalog changes."""


__all__ = [
    "TreeActionError",
    "DuplicateAttachmentError",
    "DuplicateNodeIdError",
    "ChildrenLoadError",
    "MalformedTreeError",
    "OperationCatalogError",
]
