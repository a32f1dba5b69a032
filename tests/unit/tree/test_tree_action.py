"""Tests for the tree facade: catalog changes, seeding, events, reload."""

from __future__ import annotations

import unittest

from treeaction import TreeAction, TreeEvent
from treeaction.errors import DuplicateNodeIdError, MalformedTreeError, OperationCatalogError
from treeaction.model import Node, OperationState


def _make_tree() -> TreeAction:
    tree = TreeAction()
    work = tree.attach(tree.root, Node("work", "Work", is_folder=True, available_operations=["C", "R", "U", "D", "S"]))
    tree.attach(work, Node("plan", "plan.md", available_operations=["R", "U"]))
    tree.attach(work, Node("budget", "budget.xlsx", available_operations=["R"]))
    return tree


class TreeActionTests(unittest.TestCase):
    def test_root_starts_with_full_catalog(self) -> None:
        tree = TreeAction()

        self.assertEqual(tree.root.available_operations, ["C", "R", "U", "D", "S"])
        self.assertEqual(tree.root.level, 0)
        self.assertIs(tree.find_node("root"), tree.root)

    def test_attach_rejects_duplicate_ids(self) -> None:
        tree = _make_tree()
        with self.assertRaises(DuplicateNodeIdError):
            tree.attach(tree.root, Node("plan", "Another plan"))

    def test_set_operation_emits_tree_updated(self) -> None:
        tree = _make_tree()
        updates: list[str] = []
        tree.on(TreeEvent.TREE_UPDATED, lambda root: updates.append(root.id))

        tree.set_operation(tree.root, "R", OperationState.ALLOWED)
        tree.set_operation(tree.find_node("budget"), "U", OperationState.ALLOWED)

        self.assertEqual(updates, ["root"])
        self.assertTrue(all(node.state_of("R") is OperationState.ALLOWED for node in tree.iter_nodes()))

    def test_toggle_operation_rotation(self) -> None:
        tree = _make_tree()
        plan = tree.find_node("plan")

        for expected in (OperationState.ALLOWED, OperationState.DENIED, OperationState.UNSELECTED):
            self.assertIs(tree.toggle_operation(plan, "U"), expected)

    def test_add_and_remove_operation_types(self) -> None:
        tree = _make_tree()
        tree.set_operation(tree.root, "R", OperationState.DENIED)

        tree.add_operation_type("ex", "Execute")

        self.assertIn("EX", tree.root.available_operations)
        self.assertNotIn("EX", tree.find_node("work").available_operations)
        with self.assertRaises(OperationCatalogError):
            tree.add_operation_type("EX", "Execute twice")

        self.assertTrue(tree.remove_operation_type("R"))
        self.assertFalse(tree.remove_operation_type("R"))
        for node in tree.iter_nodes():
            self.assertNotIn("R", node.available_operations)
            self.assertNotIn("R", node.operation_state)
        self.assertEqual([op.code for op in tree.operation_types()], ["C", "U", "D", "S", "EX"])

    def test_set_node_initial_states(self) -> None:
        tree = _make_tree()

        self.assertTrue(tree.set_node_initial_states("plan", {"R": "allowed", "D": "denied"}))
        self.assertFalse(tree.set_node_initial_states("missing", {"R": "allowed"}))

        plan = tree.find_node("plan")
        self.assertIs(plan.state_of("R"), OperationState.ALLOWED)
        self.assertNotIn("D", plan.operation_state)
        self.assertIn("R", tree.find_node("work").mixed_operations)

    def test_load_json_failure_leaves_tree_untouched(self) -> None:
        tree = _make_tree()
        root = tree.root
        loaded: list[object] = []
        tree.on(TreeEvent.DATA_LOADED, loaded.append)

        with self.assertRaises(MalformedTreeError):
            tree.load_json('{"tree": {"id": "r", "name": "R", "availableOperations": ["??"]}}')
        with self.assertRaises(MalformedTreeError):
            tree.load_json("{not json")

        self.assertIs(tree.root, root)
        self.assertIs(tree.find_node("plan").parent, tree.find_node("work"))
        self.assertEqual(len(tree.operation_types()), 5)
        self.assertEqual(loaded, [])

    def test_load_json_replaces_tree_and_emits(self) -> None:
        tree = _make_tree()
        loaded: list[str] = []
        tree.on(TreeEvent.DATA_LOADED, lambda root: loaded.append(root.id))

        tree.load_json({"operations": [{"code": "R", "label": "Read"}], "tree": {"id": "top", "name": "Top", "isFolder": True}})

        self.assertEqual(tree.root.id, "top")
        self.assertIsNone(tree.find_node("plan"))
        self.assertEqual(loaded, ["top"])
        self.assertEqual([op.code for op in tree.operation_types()], ["R"])

    def test_export_json_emits_text(self) -> None:
        tree = _make_tree()
        exported: list[str] = []
        tree.on(TreeEvent.EXPORTED, exported.append)

        text = tree.export_json()

        self.assertEqual(exported, [text])
        self.assertIn('"plan.md"', text)


if __name__ == "__main__":
    unittest.main()
