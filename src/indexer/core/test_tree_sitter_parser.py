#!/usr/bin/env python3
"""
Tests for the tree-sitter parsing service.

Run with: python -m pytest test_tree_sitter_parser.py -v
Or simply: python test_tree_sitter_parser.py
"""

import io
import unittest
from contextlib import redirect_stdout
from unittest import mock

import tree_sitter_parser
from tree_sitter_parser import QueryCache, TreeSitterManager, load_language


class TestAvailability(unittest.TestCase):

    def test_grammar_languages(self):
        manager = TreeSitterManager()
        for language_id in ("python", "typescript", "tsx", "javascript", "go", "rust", "java"):
            self.assertTrue(manager.is_available(language_id), language_id)

    def test_languages_without_grammar(self):
        manager = TreeSitterManager()
        self.assertFalse(manager.is_available("terraform"))
        self.assertFalse(manager.is_available("cobol"))
        self.assertIsNone(load_language("terraform"))


class TestParseFile(unittest.TestCase):

    def setUp(self):
        self.manager = TreeSitterManager()

    def tearDown(self):
        self.manager.close()

    def test_parse_python(self):
        parsed = self.manager.parse_file("def f():\n    return 1\n", "python")
        self.assertIsNotNone(parsed)
        self.assertEqual(parsed.language_id, "python")
        self.assertEqual(parsed.tree.root_node.type, "module")

    def test_parse_typescript(self):
        parsed = self.manager.parse_file("const x: number = 1;\n", "typescript")
        self.assertIsNotNone(parsed)
        self.assertEqual(parsed.tree.root_node.type, "program")

    def test_languages_reused(self):
        self.manager.parse_file("x = 1\n", "python")
        first = self.manager.get_language("python")
        self.manager.parse_file("y = 2\n", "python")
        self.assertIs(self.manager.get_language("python"), first)

    def test_no_grammar_returns_none(self):
        self.assertIsNone(self.manager.parse_file('resource "a" "b" {}', "terraform"))
        self.assertIsNone(self.manager.parse_file("IDENTIFICATION DIVISION.", "cobol"))

    def test_missing_grammar_is_remembered(self):
        output = io.StringIO()
        with mock.patch.dict(tree_sitter_parser.LANGUAGE_GRAMMARS, {"fake": ("no_such_grammar_module", "language")}):
            with redirect_stdout(output):
                self.assertIsNone(self.manager.parse_file("anything", "fake"))
                self.assertIsNone(self.manager.parse_file("anything", "fake"))
        self.assertEqual(output.getvalue().count("Warning"), 1)

    def test_closed_manager_raises(self):
        self.manager.close()
        with self.assertRaises(RuntimeError):
            self.manager.parse_file("x = 1\n", "python")


class TestLifecycle(unittest.TestCase):

    def test_context_manager_releases_queries(self):
        with TreeSitterManager() as manager:
            language = manager.get_language("python")
            manager.query_cache.get("python", "definitions", language, "(identifier) @definition")
            self.assertEqual(len(manager.query_cache), 1)
        self.assertEqual(len(manager.query_cache), 0)
        with self.assertRaises(RuntimeError):
            manager.parse_file("x = 1\n", "python")


class TestQueryCache(unittest.TestCase):

    def test_failed_query_cached_as_none(self):
        manager = TreeSitterManager()
        language = manager.get_language("python")
        cache = QueryCache()
        output = io.StringIO()
        with redirect_stdout(output):
            self.assertIsNone(cache.get("python", "bad", language, "(no_such_node) @x"))
            self.assertIsNone(cache.get("python", "bad", language, "(no_such_node) @x"))
        self.assertEqual(output.getvalue().count("Warning"), 1)
        self.assertEqual(len(cache), 1)

    def test_compiled_query_reused(self):
        manager = TreeSitterManager()
        language = manager.get_language("python")
        cache = QueryCache()
        first = cache.get("python", "ids", language, "(identifier) @id")
        self.assertIsNotNone(first)
        self.assertIs(cache.get("python", "ids", language, "(identifier) @id"), first)


if __name__ == "__main__":
    unittest.main(verbosity=2)
