"""Persistent JSON config helpers.

Stores the default operation catalog, the search-load retention policy, and
the default expansion depth used by the command line.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

from .errors import OperationCatalogError
from .model.catalog import normalize_code
from .model.types import DEFAULT_OPERATIONS, OperationDef

APP_NAME = "treeaction"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH
DEFAULT_EXPAND_LEVEL = 1


def load_config() -> dict[str, object]:
    """Read the treeaction settings file at ``CONFIG_PATH``.

    The per-key helpers below validate individual values; this only
    guarantees a mapping. Anything that is not a readable JSON object yields
    ``{}``, so every setting falls back to its default.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Write the whole settings mapping back to ``CONFIG_PATH``.

    Callers merge into ``load_config()`` first. A settings file that cannot
    be written leaves the in-memory defaults in force.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def load_default_operations() -> list[OperationDef]:
    """Return the configured operation catalog, or the built-in CRUDS one.

    Invalid or duplicate entries are skipped; an empty result falls back to
    the built-in catalog.
    """
    raw = load_config().get("operations")
    if not isinstance(raw, list):
        return list(DEFAULT_OPERATIONS)
    out: list[OperationDef] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        label = item.get("label")
        if not isinstance(label, str) or not label.strip():
            continue
        try:
            code = normalize_code(item.get("code", ""))
        except OperationCatalogError:
            continue
        if code in seen:
            continue
        seen.add(code)
        out.append(OperationDef(code, label.strip()))
    return out or list(DEFAULT_OPERATIONS)


def save_default_operations(operations: list[OperationDef]) -> None:
    config = load_config()
    config["operations"] = [{"code": op.code, "label": op.label} for op in operations]
    save_config(config)


def load_retain_search_loads() -> bool:
    """Return whether search-triggered loads survive ``clear_search``.

    Only explicit boolean values are accepted; anything else means ``False``.
    """
    value = load_config().get("retain_search_loads")
    return value if isinstance(value, bool) else False


def save_retain_search_loads(retain: bool) -> None:
    config = load_config()
    config["retain_search_loads"] = bool(retain)
    save_config(config)


def load_expand_level() -> int:
    """Return the configured default expansion depth (non-negative int)."""
    value = load_config().get("expand_level")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return DEFAULT_EXPAND_LEVEL
    return value


def save_expand_level(level: int) -> None:
    config = load_config()
    config["expand_level"] = max(0, int(level))
    save_config(config)
