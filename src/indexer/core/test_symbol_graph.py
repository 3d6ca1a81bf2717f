#!/usr/bin/env python3
"""
Tests for the symbol graph builder.

Run with: python -m pytest test_symbol_graph.py -v
Or simply: python test_symbol_graph.py
"""

import unittest

from chunk_types import SymbolEdge
from symbol_graph import ChunkSymbols, build_symbol_edges, build_symbol_index


class TestBuildSymbolEdges(unittest.TestCase):

    def test_single_call_edge(self):
        edges = build_symbol_edges([
            {"chunk_id": "a", "defines_symbols": ["greet"], "uses_symbols": []},
            {"chunk_id": "b", "defines_symbols": [], "uses_symbols": ["greet"]},
        ])
        self.assertEqual(edges, [SymbolEdge(
            from_chunk_id="b",
            to_chunk_id="a",
            relation_type="calls",
            symbol_name="greet",
        )])

    def test_empty_input(self):
        self.assertEqual(build_symbol_edges([]), [])

    def test_disjoint_symbols(self):
        edges = build_symbol_edges([
            ChunkSymbols("a", ["alpha"], ["gamma"]),
            ChunkSymbols("b", ["beta"], ["delta"]),
        ])
        self.assertEqual(edges, [])

    def test_no_self_edges(self):
        edges = build_symbol_edges([
            ChunkSymbols("a", ["walk"], ["walk"]),
        ])
        self.assertEqual(edges, [])

    def test_duplicate_triples_collapsed(self):
        edges = build_symbol_edges([
            ChunkSymbols("a", ["greet"], []),
            ChunkSymbols("a", ["greet"], []),
            ChunkSymbols("b", [], ["greet", "greet"]),
        ])
        self.assertEqual([(e.from_chunk_id, e.to_chunk_id, e.symbol_name) for e in edges], [("b", "a", "greet")])

    def test_fan_out_to_every_definition(self):
        edges = build_symbol_edges([
            ChunkSymbols("a", ["parse"], []),
            ChunkSymbols("b", ["parse"], []),
            ChunkSymbols("c", [], ["parse"]),
        ])
        self.assertEqual([e.to_chunk_id for e in edges], ["a", "b"])
        self.assertTrue(all(e.from_chunk_id == "c" for e in edges))

    def test_mixed_records_and_mappings(self):
        edges = build_symbol_edges([
            ChunkSymbols("a", ["load"], ["save"]),
            {"chunk_id": "b", "defines_symbols": ["save"], "uses_symbols": ["load"]},
        ])
        self.assertEqual(
            [(e.from_chunk_id, e.to_chunk_id, e.symbol_name) for e in edges],
            [("a", "b", "save"), ("b", "a", "load")],
        )
        self.assertTrue(all(e.relation_type == "calls" for e in edges))

    def test_deterministic(self):
        chunks = [
            ChunkSymbols("a", ["x1", "x2"], ["y1"]),
            ChunkSymbols("b", ["y1"], ["x1", "x2"]),
            ChunkSymbols("c", ["x2"], ["y1", "x1"]),
        ]
        self.assertEqual(build_symbol_edges(chunks), build_symbol_edges(chunks))


class TestBuildSymbolIndex(unittest.TestCase):

    def test_ordered_without_repeats(self):
        index = build_symbol_index([
            ChunkSymbols("b", ["run"], []),
            ChunkSymbols("a", ["run", "stop"], []),
            ChunkSymbols("b", ["run"], []),
        ])
        self.assertEqual(index, {"run": ["b", "a"], "stop": ["a"]})


if __name__ == "__main__":
    unittest.main(verbosity=2)
