"""Command-line front door for treeaction.

Loads a serialized tree document, applies catalog, state, expansion, and
search requests in that order, then writes the resulting document.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from . import config
from .errors import MalformedTreeError, OperationCatalogError, TreeActionError
from .loaders import JsonDirectoryChildrenLoader
from .logger import setup_logging
from .model.types import OperationState
from .tree import TreeAction

logger = logging.getLogger(__name__)


def _nonnegative_int(value: str) -> int:
    """argparse type for non-negative integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _split_fields(value: str, count: int, usage: str) -> list[str]:
    parts = value.rsplit(":", count - 1)
    if len(parts) != count or not all(parts):
        raise argparse.ArgumentTypeError(f"expected {usage}, got {value!r}")
    return parts


def _state_assignment(value: str) -> tuple[str, str, OperationState]:
    node_id, code, state = _split_fields(value, 3, "ID:CODE:STATE")
    try:
        return node_id, code.upper(), OperationState(state.lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in OperationState)
        raise argparse.ArgumentTypeError(f"unknown state {state!r} (choose from {choices})") from exc


def _toggle_request(value: str) -> tuple[str, str]:
    node_id, code = _split_fields(value, 2, "ID:CODE")
    return node_id, code.upper()


def _operation_definition(value: str) -> tuple[str, str]:
    code, _, label = value.partition(":")
    if not code or not label:
        raise argparse.ArgumentTypeError(f"expected CODE:LABEL, got {value!r}")
    return code, label


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treeaction",
        description="Apply permission changes, expansion, and search to a serialized operation tree.",
    )
    parser.add_argument("document", type=Path, help="tree document (JSON) to load")
    parser.add_argument(
        "--children-dir",
        type=Path,
        help="directory holding <node id>.json child lists for lazy folders",
    )
    parser.add_argument("--add-operation", action="append", type=_operation_definition, default=[], metavar="CODE:LABEL")
    parser.add_argument("--remove-operation", action="append", default=[], metavar="CODE")
    parser.add_argument("--set", dest="assignments", action="append", type=_state_assignment, default=[], metavar="ID:CODE:STATE")
    parser.add_argument("--toggle", action="append", type=_toggle_request, default=[], metavar="ID:CODE")
    parser.add_argument(
        "--expand-level",
        type=_nonnegative_int,
        nargs="?",
        const=-1,
        help="expand folders above this depth (configured default when no value is given)",
    )
    parser.add_argument("--collapse-level", type=_nonnegative_int, help="collapse folders at or below this depth")
    parser.add_argument("--search", help="show only nodes whose name contains this text")
    parser.add_argument(
        "--retain-search-loads",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="keep children loaded only for the search (default from config)",
    )
    parser.add_argument("--visible-only", action="store_true", help="print ids of visible nodes instead of the document")
    parser.add_argument("--output", type=Path, help="write output here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="log engine activity to stderr")
    return parser


def _require_node(tree: TreeAction, node_id: str):
    node = tree.find_node(node_id)
    if node is None:
        raise TreeActionError(f"unknown node id {node_id!r}")
    return node


async def run(args: argparse.Namespace) -> str:
    """Execute parsed CLI arguments and return the text to emit."""
    retain = config.load_retain_search_loads() if args.retain_search_loads is None else args.retain_search_loads
    loader = JsonDirectoryChildrenLoader(args.children_dir) if args.children_dir is not None else None
    tree = TreeAction(config.load_default_operations(), loader, retain_search_loads=retain)
    tree.load_json(args.document.read_text(encoding="utf-8"))

    for code, label in args.add_operation:
        tree.add_operation_type(code, label)
    for code in args.remove_operation:
        tree.remove_operation_type(code)
    for node_id, code, state in args.assignments:
        tree.set_operation(_require_node(tree, node_id), code, state)
    for node_id, code in args.toggle:
        tree.toggle_operation(_require_node(tree, node_id), code)

    if args.collapse_level is not None:
        tree.collapse_to_depth(args.collapse_level)
    if args.expand_level is not None:
        level = config.load_expand_level() if args.expand_level < 0 else args.expand_level
        await tree.expand_to_depth(level)
    if args.search:
        matches = await tree.search(args.search)
        logger.info("search %r matched %d nodes", args.search, len(matches))

    if args.visible_only:
        return "\n".join(node.id for node in tree.iter_nodes() if node.visible) + "\n"
    return tree.export_json() + "\n"


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        text = asyncio.run(run(args))
        if args.output is not None:
            args.output.write_text(text, encoding="utf-8")
        else:
            sys.stdout.write(text)
    except OSError as exc:
        print(f"treeaction: {exc}", file=sys.stderr)
        return 1
    except MalformedTreeError as exc:
        print("treeaction: malformed tree document", file=sys.stderr)
        for path, message in exc.problems:
            print(f"  {path}: {message}", file=sys.stderr)
        return 2
    except (OperationCatalogError, TreeActionError) as exc:
        print(f"treeaction: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
