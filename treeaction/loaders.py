"""Ready-made children loaders for lazy folders."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from .model.node import Node
from .model.types import NodeSpec

logger = logging.getLogger(__name__)


class JsonDirectoryChildrenLoader:
    """Load ``<directory>/<node id>.json`` (a list of node records) per folder.

    File access runs in a worker thread so the event loop keeps serving other
    expands while a folder is being read.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, node: Node) -> Path:
        return self.directory / f"{node.id}.json"

    def _read(self, path: Path) -> list[Mapping[str, object]]:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{path.name}: expected a list of node records")
        return data

    async def __call__(self, node: Node, query: str | None = None) -> list[Mapping[str, object]]:
        path = self.path_for(node)
        logger.debug("reading children of %r from %s", node.id, path)
        return await asyncio.to_thread(self._read, path)


class MappingChildrenLoader:
    """In-memory loader keyed by folder id; records every request it serves."""

    def __init__(
        self,
        children_by_id: Mapping[str, Sequence[NodeSpec | Mapping[str, object]]],
        *,
        delay: float = 0.0,
    ) -> None:
        self.children_by_id = dict(children_by_id)
        self.delay = delay
        self.calls: list[tuple[str, str | None]] = []

    async def __call__(self, node: Node, query: str | None = None) -> list[NodeSpec | Mapping[str, object]]:
        self.calls.append((node.id, query))
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        try:
            return list(self.children_by_id[node.id])
        except KeyError:
            raise LookupError(f"no children registered for {node.id!r}") from None


__all__ = ["JsonDirectoryChildrenLoader", "MappingChildrenLoader"]
