"""Tests for search-driven loading and visibility projection."""

from __future__ import annotations

import asyncio
import unittest

from treeaction import TreeAction, TreeEvent
from treeaction.loaders import MappingChildrenLoader
from treeaction.model import LoadState, Node, NodeSpec

CHILDREN = {
    "docs": [
        NodeSpec("readme", "README.md", available_operations=("R",)),
        NodeSpec("specs", "Specs", is_folder=True, lazy_load=True, available_operations=("R",)),
    ],
    "specs": [
        NodeSpec("api", "API-Reference.md", available_operations=("R",)),
        NodeSpec("cli", "cli.md", available_operations=("R",)),
    ],
    "photos": [NodeSpec("beach", "beach.jpg", available_operations=("R", "D"))],
}


def _make_tree(loader, **kwargs) -> TreeAction:
    tree = TreeAction(children_loader=loader, **kwargs)
    work = tree.attach(tree.root, Node("work", "Work", is_folder=True, available_operations=["R"]))
    tree.attach(work, Node("report", "report.txt", available_operations=["R"]))
    tree.attach(tree.root, Node("docs", "Documents", is_folder=True, lazy_load=True, available_operations=["R"]))
    tree.attach(tree.root, Node("photos", "Photos", is_folder=True, lazy_load=True, available_operations=["R", "D"]))
    return tree


def _visible_ids(tree: TreeAction) -> list[str]:
    return [node.id for node in tree.iter_nodes() if node.visible]


class SearchEngineTests(unittest.IsolatedAsyncioTestCase):
    async def test_search_finds_match_inside_unloaded_lazy_folders(self) -> None:
        loader = MappingChildrenLoader(CHILDREN)
        tree = _make_tree(loader)

        matches = await tree.search("api-ref")

        api = tree.find_node("api")
        self.assertEqual(matches, [api])
        self.assertTrue(api.visible)
        for ancestor in api.ancestors():
            self.assertTrue(ancestor.visible, ancestor.id)
            self.assertFalse(ancestor.collapsed, ancestor.id)
        self.assertEqual(_visible_ids(tree), ["root", "docs", "specs", "api"])
        self.assertEqual(sorted(loader.calls), [("docs", "api-ref"), ("photos", "api-ref"), ("specs", "api-ref")])
        self.assertTrue(tree.is_search_active)

    async def test_match_is_case_insensitive_substring(self) -> None:
        tree = _make_tree(MappingChildrenLoader(CHILDREN))

        matches = await tree.search("REPORT")

        self.assertEqual([node.id for node in matches], ["report"])
        self.assertFalse(tree.find_node("work").collapsed)

    async def test_matching_folder_reveals_and_opens_its_subtree(self) -> None:
        tree = _make_tree(MappingChildrenLoader(CHILDREN))

        await tree.search("spec")

        specs = tree.find_node("specs")
        self.assertFalse(specs.collapsed)
        self.assertTrue(tree.find_node("api").visible)
        self.assertTrue(tree.find_node("cli").visible)
        self.assertFalse(tree.find_node("readme").visible)
        self.assertTrue(tree.searcher.is_match(specs))
        self.assertFalse(tree.searcher.is_match(tree.find_node("cli")))

    async def test_no_match_hides_everything_but_keeps_nodes(self) -> None:
        tree = _make_tree(MappingChildrenLoader(CHILDREN))

        matches = await tree.search("zzz")

        self.assertEqual(matches, [])
        self.assertEqual(_visible_ids(tree), [])
        self.assertIsNotNone(tree.find_node("beach"))

    async def test_clear_search_restores_visibility_and_discards_search_loads(self) -> None:
        tree = _make_tree(MappingChildrenLoader(CHILDREN))
        await tree.search("beach")

        tree.clear_search()

        self.assertTrue(all(node.visible for node in tree.iter_nodes()))
        self.assertFalse(tree.is_search_active)
        docs = tree.find_node("docs")
        self.assertIs(docs.load_state, LoadState.NOT_LOADED)
        self.assertEqual(docs.children, [])
        self.assertIsNone(tree.find_node("beach"))

    async def test_retained_search_loads_survive_clear(self) -> None:
        loader = MappingChildrenLoader(CHILDREN)
        tree = _make_tree(loader, retain_search_loads=True)
        await tree.search("beach")

        tree.clear_search()

        self.assertIs(tree.find_node("photos").load_state, LoadState.LOADED)
        self.assertTrue(tree.find_node("beach").visible)
        await tree.expand(tree.find_node("photos"))
        self.assertEqual(len(loader.calls), 3)

    async def test_user_expanded_folders_are_not_discarded(self) -> None:
        tree = _make_tree(MappingChildrenLoader(CHILDREN))
        docs = tree.find_node("docs")
        await tree.expand(docs)

        await tree.search("cli")
        tree.clear_search()

        self.assertIs(docs.load_state, LoadState.LOADED)
        specs = tree.find_node("specs")
        self.assertIs(specs.load_state, LoadState.NOT_LOADED)
        self.assertTrue(specs.collapsed)

    async def test_search_joins_load_already_in_flight(self) -> None:
        release = asyncio.Event()
        calls: list[tuple[str, str | None]] = []

        async def loader(node: Node, query: str | None = None) -> list[NodeSpec]:
            calls.append((node.id, query))
            await release.wait()
            return list(CHILDREN[node.id])

        tree = _make_tree(loader)
        expanding = asyncio.create_task(tree.expand(tree.find_node("docs")))
        await asyncio.sleep(0)
        searching = asyncio.create_task(tree.search("readme"))
        await asyncio.sleep(0)
        release.set()
        await expanding
        matches = await searching

        self.assertEqual([node.id for node in matches], ["readme"])
        self.assertEqual([node_id for node_id, _ in calls].count("docs"), 1)
        self.assertIn(("docs", None), calls)

    async def test_failed_search_load_does_not_abort_search(self) -> None:
        children = dict(CHILDREN)
        del children["photos"]
        failures: list[str] = []
        tree = _make_tree(MappingChildrenLoader(children))
        tree.on(TreeEvent.LOAD_FAILED, lambda node, error: failures.append(node.id))

        matches = await tree.search("readme")

        self.assertEqual([node.id for node in matches], ["readme"])
        self.assertEqual(failures, ["photos"])
        self.assertIs(tree.find_node("photos").load_state, LoadState.NOT_LOADED)

    async def test_empty_query_clears_search(self) -> None:
        tree = _make_tree(MappingChildrenLoader(CHILDREN))
        await tree.search("report")

        self.assertEqual(await tree.search(""), [])

        self.assertFalse(tree.is_search_active)
        self.assertTrue(all(node.visible for node in tree.iter_nodes()))

    async def test_search_emits_start_and_completion(self) -> None:
        tree = _make_tree(MappingChildrenLoader(CHILDREN))
        seen: list[str] = []
        tree.on(TreeEvent.SEARCH_STARTED, lambda root: seen.append("started"))
        tree.on(TreeEvent.SEARCH_COMPLETED, lambda root: seen.append("completed"))

        await tree.search("work")

        self.assertEqual(seen, ["started", "completed"])

    async def test_clear_during_pending_search_supersedes_it(self) -> None:
        release = asyncio.Event()
        calls: list[str] = []

        async def loader(node: Node, query: str | None = None) -> list[NodeSpec]:
            calls.append(node.id)
            await release.wait()
            return list(CHILDREN[node.id])

        tree = _make_tree(loader)
        searching = asyncio.create_task(tree.search("api"))
        while len(calls) < 2:
            await asyncio.sleep(0)
        tree.clear_search()
        release.set()

        self.assertEqual(await searching, [])
        self.assertFalse(tree.is_search_active)
        self.assertTrue(all(node.visible for node in tree.iter_nodes()))
        docs = tree.find_node("docs")
        self.assertIs(docs.load_state, LoadState.NOT_LOADED)
        self.assertEqual(docs.children, [])
        self.assertFalse(tree.loads.is_speculative(docs))
        self.assertIsNone(tree.find_node("specs"))
        self.assertEqual(sorted(calls), ["docs", "photos"])

    async def test_retained_loads_from_cleared_pending_search_become_regular(self) -> None:
        release = asyncio.Event()
        calls: list[str] = []

        async def loader(node: Node, query: str | None = None) -> list[NodeSpec]:
            calls.append(node.id)
            await release.wait()
            return list(CHILDREN[node.id])

        tree = _make_tree(loader, retain_search_loads=True)
        searching = asyncio.create_task(tree.search("api"))
        while len(calls) < 2:
            await asyncio.sleep(0)
        tree.clear_search()
        release.set()
        await searching

        docs = tree.find_node("docs")
        self.assertIs(docs.load_state, LoadState.LOADED)
        self.assertFalse(tree.loads.is_speculative(docs))
        self.assertIs(tree.find_node("specs").load_state, LoadState.NOT_LOADED)


if __name__ == "__main__":
    unittest.main()
