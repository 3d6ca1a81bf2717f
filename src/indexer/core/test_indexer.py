#!/usr/bin/env python3
"""
Tests for the per-file pipeline, chunk ids and the CLI.

Run with: python -m pytest test_indexer.py -v
Or simply: python test_indexer.py
"""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from chunk_types import ChunkInvariantError, ChunkKind
from chunker_settings import ChunkerSettings
from indexer import (
    FileChunks,
    build_chunk_id,
    build_project_graph,
    chunk_file,
    detect_language,
    main,
    parse_chunk_id,
)
from tree_sitter_parser import TreeSitterManager


def default_settings() -> ChunkerSettings:
    with mock.patch.dict(os.environ, {}, clear=True):
        return ChunkerSettings(_env_file=None)


class TestChunkIds(unittest.TestCase):

    def test_round_trip(self):
        chunk_id = build_chunk_id("team", "api", "src/app.py", 3, 17, "0123456789abcdef")
        self.assertEqual(chunk_id, "team//api//src/app.py//3-17//0123456789abcdef")
        parts = parse_chunk_id(chunk_id)
        self.assertEqual(parts.group, "team")
        self.assertEqual(parts.file, "src/app.py")
        self.assertEqual((parts.start_line, parts.end_line), (3, 17))
        self.assertEqual(parts.hash, "0123456789abcdef")

    def test_malformed_ids(self):
        for chunk_id in (
            "team//api//src/app.py//3-17",
            "team//api//src/app.py//x-17//abc",
            "team//api//src/app.py//1-2-3//abc",
            "team////src/app.py//3-17//abc",
            "",
        ):
            self.assertIsNone(parse_chunk_id(chunk_id), chunk_id)


class TestDetectLanguage(unittest.TestCase):

    def test_known_extensions(self):
        self.assertEqual(detect_language("app.py"), "python")
        self.assertEqual(detect_language("src/App.TSX"), "tsx")
        self.assertEqual(detect_language("main.tf"), "terraform")
        self.assertEqual(detect_language("lib/tasks/db.rake"), "ruby")

    def test_unknown_extension(self):
        self.assertIsNone(detect_language("README.md"))
        self.assertIsNone(detect_language("Makefile"))


class TestChunkFile(unittest.TestCase):

    CODE = "def helper():\n    return 42\n\n\ndef run():\n    return helper()\n"

    @classmethod
    def setUpClass(cls):
        cls.settings = default_settings()

    def setUp(self):
        self.manager = TreeSitterManager()

    def tearDown(self):
        self.manager.close()

    def test_syntax_tree_path(self):
        result = chunk_file(self.CODE, "python", self.settings, self.manager)
        self.assertTrue(result.used_syntax_tree)
        self.assertEqual(len(result.chunks), len(result.symbols))
        self.assertEqual(result.symbols[0].defines_symbols, ["helper", "run"])
        self.assertEqual(result.chunks[0].symbol_name, "helper")
        self.assertEqual(result.chunks[0].kind, ChunkKind.FUNCTION)

    def test_without_parser_uses_heuristics(self):
        result = chunk_file(self.CODE, "python", self.settings)
        self.assertFalse(result.used_syntax_tree)
        self.assertEqual([r.defines_symbols for r in result.symbols], [["helper"], ["run"]])
        self.assertTrue(all(r.uses_symbols == [] for r in result.symbols))

    def test_language_without_grammar(self):
        code = 'resource "aws_s3_bucket" "logs" {\n  bucket = "logs"\n}\n'
        result = chunk_file(code, "terraform", self.settings, self.manager)
        self.assertFalse(result.used_syntax_tree)
        self.assertEqual(result.chunks[0].symbol_name, "logs")
        self.assertEqual(result.chunks[0].kind, ChunkKind.RESOURCE)

    def test_empty_ast_result_falls_back_to_regex_chunks(self):
        with mock.patch("indexer.chunk_by_ast", return_value=[]):
            result = chunk_file(self.CODE, "python", self.settings, self.manager)
        self.assertTrue(result.used_syntax_tree)
        self.assertEqual(len(result.chunks), 2)
        self.assertEqual(result.symbols[1].uses_symbols, ["helper"])

    def test_unexpected_failure_falls_back(self):
        output = io.StringIO()
        with mock.patch("indexer.chunk_by_ast", side_effect=ValueError("boom")), redirect_stdout(output):
            result = chunk_file(self.CODE, "python", self.settings, self.manager)
        self.assertFalse(result.used_syntax_tree)
        self.assertEqual(len(result.chunks), 2)
        self.assertIn("Warning", output.getvalue())

    def test_invariant_errors_propagate(self):
        with mock.patch("indexer.chunk_by_ast", side_effect=ChunkInvariantError("bad range")):
            with self.assertRaises(ChunkInvariantError):
                chunk_file(self.CODE, "python", self.settings, self.manager)

    def test_blank_file(self):
        result = chunk_file("\n\n", "python", self.settings, self.manager)
        self.assertEqual(result.chunks, [])
        self.assertEqual(result.symbols, [])


class TestProjectGraph(unittest.TestCase):

    def test_cross_file_edge(self):
        settings = default_settings()
        with TreeSitterManager() as manager:
            files = {
                "a.py": chunk_file("def helper():\n    return 42\n", "python", settings, manager),
                "b.py": chunk_file(
                    "from a import helper\n\n\ndef run():\n    return helper()\n", "python", settings, manager
                ),
            }
        graph = build_project_graph("local", "demo", files)

        self.assertEqual(len(graph.chunk_ids["a.py"]), 1)
        self.assertEqual(len(graph.edges), 1)
        edge = graph.edges[0]
        self.assertEqual(edge.from_chunk_id, graph.chunk_ids["b.py"][0])
        self.assertEqual(edge.to_chunk_id, graph.chunk_ids["a.py"][0])
        self.assertEqual(edge.symbol_name, "helper")
        self.assertEqual(parse_chunk_id(edge.to_chunk_id).file, "a.py")

    def test_empty_project(self):
        graph = build_project_graph("local", "demo", {"empty.py": FileChunks(chunks=[], symbols=[])})
        self.assertEqual(graph.chunk_ids, {"empty.py": []})
        self.assertEqual(graph.edges, [])


class TestCli(unittest.TestCase):

    def run_main(self, argv):
        output = io.StringIO()
        with mock.patch.dict(os.environ, {}, clear=True), redirect_stdout(output):
            code = main(argv)
        return code, output.getvalue()

    def test_summary_for_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "a.py").write_text("def helper():\n    return 42\n")
            Path(tmp, "b.py").write_text("def run():\n    return helper()\n")
            Path(tmp, "node_modules").mkdir()
            Path(tmp, "node_modules", "skip.js").write_text("function skipped() {}\n")

            code, output = self.run_main([tmp, "--no-ast", "--project", "demo"])

        self.assertEqual(code, 0)
        result_line = [line for line in output.splitlines() if line.startswith("__RESULT__:")][-1]
        result = json.loads(result_line[len("__RESULT__:"):])
        self.assertEqual(result["status"], "success")
        self.assertEqual(result["project"], "demo")
        self.assertEqual(result["files"], 2)
        self.assertEqual(result["syntax_tree_files"], 0)
        self.assertEqual(result["languages"], {"python": 2})

    def test_unexpected_error_reports_error_result(self):
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("indexer.index_paths", side_effect=RuntimeError("disk vanished")), \
                    mock.patch("sys.stderr", new_callable=io.StringIO):
                code, output = self.run_main([tmp])

        self.assertEqual(code, 1)
        result_line = [line for line in output.splitlines() if line.startswith("__RESULT__:")][-1]
        result = json.loads(result_line[len("__RESULT__:"):])
        self.assertEqual(result, {"status": "error", "error": "disk vanished"})

    def test_invalid_settings(self):
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("sys.stderr", new_callable=io.StringIO):
                code, _ = self.run_main([tmp, "--chunk-size", "16"])
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
