"""Tests for operation catalog mutation and tree-wide cascading."""

from __future__ import annotations

import unittest

from treeaction.errors import OperationCatalogError
from treeaction.model import Node, OperationCatalog, OperationDef, OperationState, attach


def _build_root() -> Node:
    root = Node(
        "root",
        "Root",
        is_folder=True,
        available_operations=["C", "R", "U", "D", "S"],
        operation_state={"R": "allowed", "D": "denied"},
    )
    docs = attach(root, Node("docs", "Docs", is_folder=True, available_operations=["R", "D"], operation_state={"R": "allowed"}))
    attach(docs, Node("a", "a.txt", available_operations=["R"], operation_state={"R": "denied"}))
    docs.mixed_operations.add("R")
    return root


class OperationCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.root = _build_root()
        self.catalog = OperationCatalog(lambda: self.root)

    def test_default_catalog_is_cruds(self) -> None:
        self.assertEqual(self.catalog.codes(), ["C", "R", "U", "D", "S"])
        self.assertEqual(self.catalog.label_for("S"), "Share")

    def test_add_code_makes_it_available_on_root_only(self) -> None:
        definition = self.catalog.add_code(" ex ", "Execute")

        self.assertEqual(definition, OperationDef("EX", "Execute"))
        self.assertEqual(self.catalog.codes()[-1], "EX")
        self.assertIn("EX", self.root.available_operations)
        for node in list(self.root.iter_subtree())[1:]:
            self.assertNotIn("EX", node.available_operations)

    def test_add_code_rejects_duplicates_and_bad_codes(self) -> None:
        with self.assertRaises(OperationCatalogError):
            self.catalog.add_code("R", "Read again")
        with self.assertRaises(OperationCatalogError):
            self.catalog.add_code("ABC", "Too long")
        with self.assertRaises(OperationCatalogError):
            self.catalog.add_code("", "Empty")
        with self.assertRaises(OperationCatalogError):
            self.catalog.add_code("X", "  ")
        self.assertEqual(len(self.catalog), 5)

    def test_remove_code_purges_every_node(self) -> None:
        self.assertTrue(self.catalog.remove_code("R"))

        self.assertNotIn("R", self.catalog)
        for node in self.root.iter_subtree():
            self.assertNotIn("R", node.available_operations)
            self.assertNotIn("R", node.operation_state)
            self.assertNotIn("R", node.mixed_operations)
        self.assertIs(self.root.state_of("D"), OperationState.DENIED)

    def test_remove_unknown_code_is_noop(self) -> None:
        self.assertFalse(self.catalog.remove_code("Z"))
        self.assertEqual(len(self.catalog), 5)

    def test_replace_rejects_duplicate_codes(self) -> None:
        with self.assertRaises(OperationCatalogError):
            self.catalog.replace([OperationDef("A", "A"), OperationDef("a", "again")])
        self.assertEqual(len(self.catalog), 5)


if __name__ == "__main__":
    unittest.main()
