"""Serialized tree document: export, validation, and node reconstruction.

Document shape::

    {
      "operations": [{"code": "R", "label": "Read"}, ...],
      "tree": {"id": ..., "name": ..., "isFolder": ..., "level": ...,
               "availableOperations": [...], "operationState": {...},
               "lazyLoad": ..., "loaded": ..., "collapsed": ...,
               "children": [...]}
    }

Parsing is all-or-nothing: every problem is collected and reported through a
single ``MalformedTreeError`` before any node is handed back. ``level`` is
re-derived from attachment and mixed flags are never read from a document.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .errors import MalformedTreeError, OperationCatalogError
from .model.catalog import normalize_code
from .model.node import Node
from .model.types import LoadState, NodeSpec, OperationDef, coerce_state


def serialize_node(node: Node) -> dict[str, object]:
    """Return the JSON-ready record for ``node`` and its loaded children."""
    return {
        "id": node.id,
        "name": node.name,
        "isFolder": node.is_folder,
        "level": node.level,
        "availableOperations": list(node.available_operations),
        "operationState": {code: state.value for code, state in node.operation_state.items()},
        "lazyLoad": node.lazy_load,
        "loaded": node.load_state is LoadState.LOADED,
        "collapsed": node.collapsed,
        "children": [serialize_node(child) for child in node.children],
    }


def serialize_document(operations: Iterable[OperationDef], root: Node) -> dict[str, object]:
    return {
        "operations": [{"code": op.code, "label": op.label} for op in operations],
        "tree": serialize_node(root),
    }


def spec_to_record(spec: NodeSpec) -> dict[str, object]:
    """Convert a loader ``NodeSpec`` into the serialized node-record shape."""
    return {
        "id": spec.id,
        "name": spec.name,
        "isFolder": spec.is_folder,
        "lazyLoad": spec.lazy_load,
        "availableOperations": list(spec.available_operations),
        "operationState": {
            code: state.value if hasattr(state, "value") else state
            for code, state in spec.operation_state.items()
        },
        "collapsed": spec.collapsed,
        "children": [spec_to_record(child) for child in spec.children],
    }


@dataclass
class _ParseContext:
    codes: set[str]
    problems: list[tuple[str, str]] = field(default_factory=list)
    seen_ids: set[str] = field(default_factory=set)

    def problem(self, path: str, message: str) -> None:
        self.problems.append((path, message))


def _optional_bool(record: Mapping[str, object], key: str, default: bool, path: str, ctx: _ParseContext) -> bool:
    value = record.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        ctx.problem(f"{path}.{key}", f"expected a boolean, got {type(value).__name__}")
        return default
    return value


def _parse_node(record: object, path: str, ctx: _ParseContext) -> Node | None:
    if not isinstance(record, Mapping):
        ctx.problem(path, "node record must be an object")
        return None

    node_id = record.get("id")
    if not isinstance(node_id, str) or not node_id:
        ctx.problem(f"{path}.id", "missing or empty node id")
        node_id = None
    elif node_id in ctx.seen_ids:
        ctx.problem(f"{path}.id", f"duplicate node id {node_id!r}")
    else:
        ctx.seen_ids.add(node_id)

    name = record.get("name")
    if not isinstance(name, str):
        ctx.problem(f"{path}.name", "missing node name")
        name = ""

    is_folder = _optional_bool(record, "isFolder", False, path, ctx)
    lazy_load = _optional_bool(record, "lazyLoad", False, path, ctx)
    loaded = _optional_bool(record, "loaded", not lazy_load, path, ctx)
    collapsed = _optional_bool(record, "collapsed", True, path, ctx)

    available: list[str] = []
    raw_available = record.get("availableOperations", [])
    if not isinstance(raw_available, list):
        ctx.problem(f"{path}.availableOperations", "expected a list of operation codes")
        raw_available = []
    for idx, code in enumerate(raw_available):
        if not isinstance(code, str) or code not in ctx.codes:
            ctx.problem(f"{path}.availableOperations[{idx}]", f"operation {code!r} is not in the catalog")
        elif code not in available:
            available.append(code)

    states: dict[str, object] = {}
    raw_states = record.get("operationState", {})
    if not isinstance(raw_states, Mapping):
        ctx.problem(f"{path}.operationState", "expected an object of code to state")
        raw_states = {}
    for code, value in raw_states.items():
        state_path = f"{path}.operationState.{code}"
        if code not in ctx.codes:
            ctx.problem(state_path, f"operation {code!r} is not in the catalog")
            continue
        if code not in available:
            ctx.problem(state_path, f"operation {code!r} is not available on this node")
            continue
        try:
            states[code] = coerce_state(value)
        except ValueError:
            ctx.problem(state_path, f"unknown state {value!r}")

    raw_children = record.get("children", [])
    if raw_children is None:
        raw_children = []
    if not isinstance(raw_children, list):
        ctx.problem(f"{path}.children", "expected a list of node records")
        raw_children = []
    if raw_children and not is_folder:
        ctx.problem(f"{path}.children", "only folders may have children")
        raw_children = []

    children = [_parse_node(child, f"{path}.children[{idx}]", ctx) for idx, child in enumerate(raw_children)]
    if node_id is None:
        return None

    if lazy_load and is_folder and children:
        loaded = True
    node = Node(
        node_id,
        name,
        is_folder=is_folder,
        lazy_load=lazy_load,
        available_operations=available,
        operation_state=states,
        collapsed=collapsed,
        load_state=LoadState.LOADED if loaded else LoadState.NOT_LOADED,
    )
    for child in children:
        if child is not None:
            node.add_child(child)
    return node


def parse_operations(raw: object) -> list[OperationDef]:
    """Validate the ``operations`` list of a document."""
    problems: list[tuple[str, str]] = []
    definitions: list[OperationDef] = []
    if not isinstance(raw, list):
        raise MalformedTreeError([("$.operations", "expected a list of operations")])
    seen: set[str] = set()
    for idx, item in enumerate(raw):
        path = f"$.operations[{idx}]"
        if not isinstance(item, Mapping):
            problems.append((path, "operation must be an object"))
            continue
        label = item.get("label", item.get("tooltip"))
        try:
            code = normalize_code(item.get("code", ""))
        except OperationCatalogError as exc:
            problems.append((f"{path}.code", str(exc)))
            continue
        if code in seen:
            problems.append((f"{path}.code", f"duplicate operation code {code!r}"))
            continue
        if not isinstance(label, str) or not label.strip():
            problems.append((f"{path}.label", "missing operation label"))
            continue
        seen.add(code)
        definitions.append(OperationDef(code, label.strip()))
    if problems:
        raise MalformedTreeError(problems)
    return definitions


def parse_document(
    data: object,
    fallback_operations: Iterable[OperationDef] = (),
) -> tuple[list[OperationDef], Node]:
    """Validate a whole document and build a detached root node.

    ``fallback_operations`` is used when the document carries no catalog.
    Raises ``MalformedTreeError`` listing every problem found.
    """
    if not isinstance(data, Mapping):
        raise MalformedTreeError([("$", "document must be an object")])
    if "operations" in data:
        operations = parse_operations(data["operations"])
    else:
        operations = list(fallback_operations)
    if "tree" not in data:
        raise MalformedTreeError([("$.tree", "missing tree record")])
    ctx = _ParseContext(codes={op.code for op in operations})
    root = _parse_node(data["tree"], "$.tree", ctx)
    if ctx.problems or root is None:
        raise MalformedTreeError(ctx.problems or [("$.tree", "invalid root record")])
    return operations, root


def nodes_from_loader_result(
    items: Iterable[NodeSpec | Mapping[str, object]],
    codes: Iterable[str],
) -> list[Node]:
    """Validate children returned by a loader and build detached nodes."""
    ctx = _ParseContext(codes=set(codes))
    nodes: list[Node] = []
    for idx, item in enumerate(items):
        record = spec_to_record(item) if isinstance(item, NodeSpec) else item
        node = _parse_node(record, f"$[{idx}]", ctx)
        if node is not None:
            nodes.append(node)
    if ctx.problems:
        raise MalformedTreeError(ctx.problems)
    return nodes


__all__ = [
    "serialize_node",
    "serialize_document",
    "spec_to_record",
    "parse_operations",
    "parse_document",
    "nodes_from_loader_result",
]
