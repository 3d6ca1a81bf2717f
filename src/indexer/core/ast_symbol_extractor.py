#!/usr/bin/env python3
"""
Per-chunk symbol extraction from a parsed tree-sitter tree.

The definitions and usages queries for a language run once over the whole
tree; every capture is then bucketed into the chunk(s) whose line range
contains it. This keeps the cost proportional to captures + lines instead of
re-running queries per chunk.

Extraction never raises for data problems: an unsupported language or a query
that fails to compile yields empty results.
"""

from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from typing import Iterator, Protocol, Sequence

from tree_sitter import Language, Node, Query, QueryCursor, Tree

from ast_queries import LANGUAGE_QUERIES, LanguageQuerySet
from chunk_types import ChunkKind, DefinedSymbol, SymbolExtractionResult
from tree_sitter_parser import QueryCache, compile_query

# How many ancestors of a definition capture are inspected to resolve its kind
MAX_KIND_DEPTH = 3

MIN_SYMBOL_LENGTH = 2


class LineRange(Protocol):
    start_line: int
    end_line: int


# Node type -> kind, shared by every language
NODE_TYPE_TO_KIND: dict[str, ChunkKind] = {
    # TypeScript / JavaScript
    "function_declaration": ChunkKind.FUNCTION,
    "generator_function_declaration": ChunkKind.FUNCTION,
    "class_declaration": ChunkKind.CLASS,
    "abstract_class_declaration": ChunkKind.CLASS,
    "interface_declaration": ChunkKind.INTERFACE,
    "type_alias_declaration": ChunkKind.TYPE,
    "enum_declaration": ChunkKind.ENUM,
    "lexical_declaration": ChunkKind.VARIABLE,
    "variable_declaration": ChunkKind.VARIABLE,
    "variable_declarator": ChunkKind.VARIABLE,
    "method_definition": ChunkKind.METHOD,
    # Python
    "function_definition": ChunkKind.FUNCTION,
    "class_definition": ChunkKind.CLASS,
    "assignment": ChunkKind.VARIABLE,
    # Go (also Java/C#/PHP method_declaration)
    "method_declaration": ChunkKind.METHOD,
    "type_spec": ChunkKind.TYPE,
    # Rust
    "function_item": ChunkKind.FUNCTION,
    "struct_item": ChunkKind.CLASS,
    "enum_item": ChunkKind.ENUM,
    "trait_item": ChunkKind.INTERFACE,
    "impl_item": ChunkKind.CLASS,
    "type_item": ChunkKind.TYPE,
    "const_item": ChunkKind.CONSTANT,
    # Ruby
    "class": ChunkKind.CLASS,
    "module": ChunkKind.MODULE,
    "method": ChunkKind.METHOD,
    # C / C++
    "struct_specifier": ChunkKind.CLASS,
    "enum_specifier": ChunkKind.ENUM,
    "class_specifier": ChunkKind.CLASS,
    # C#
    "struct_declaration": ChunkKind.CLASS,
    # PHP
    "trait_declaration": ChunkKind.INTERFACE,
}

# Keywords, builtins and generic names that never make useful cross-references
NOISE_KEYWORDS: frozenset[str] = frozenset({
    "this", "self", "null", "nil", "None", "true", "false", "undefined",
    "void", "int", "float", "double", "bool", "boolean", "string", "String",
    "number", "char", "byte", "long", "short",
    "var", "let", "const", "return", "if", "else", "for", "while", "do",
    "switch", "case", "break", "continue", "new", "delete", "throw", "try",
    "catch", "finally",
    "class", "struct", "enum", "interface", "type", "import", "export",
    "from", "as", "async", "await", "yield", "static", "public", "private",
    "protected", "override", "abstract", "final", "virtual", "super",
    "extends", "implements", "package", "module", "require",
    "fn", "func", "def", "lambda",
    "println", "printf", "print", "fmt", "log", "console",
    "main", "init", "err", "error", "ok", "Ok", "Err", "Some",
    "Object", "Array", "Map", "Set", "List", "Dict", "Tuple",
})


def is_noise(symbol: str) -> bool:
    return len(symbol) < MIN_SYMBOL_LENGTH or symbol in NOISE_KEYWORDS


def resolve_kind(node: Node) -> ChunkKind:
    """Walk up to MAX_KIND_DEPTH ancestors looking for a known declaration node."""
    current = node.parent
    depth = 0
    while current is not None and depth < MAX_KIND_DEPTH:
        kind = NODE_TYPE_TO_KIND.get(current.type)
        if kind is not None:
            return kind
        current = current.parent
        depth += 1
    return ChunkKind.UNKNOWN


def node_text(node: Node) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""


@contextmanager
def compiled_queries(
    language: Language,
    language_id: str,
    query_set: LanguageQuerySet,
    query_cache: QueryCache | None = None,
) -> Iterator[tuple[Query | None, Query | None]]:
    """
    Acquire the (definitions, usages) queries for one extraction call.

    With a cache the queries stay owned by the cache. Without one they are
    compiled here and released when the block exits, whether or not it raised.
    """
    if query_cache is not None:
        yield (
            query_cache.get(language_id, "definitions", language, query_set.definitions),
            query_cache.get(language_id, "usages", language, query_set.usages),
        )
        return

    compiled: dict[str, Query | None] = {}
    try:
        compiled["definitions"] = compile_query(language, query_set.definitions, language_id, "definitions")
        compiled["usages"] = compile_query(language, query_set.usages, language_id, "usages")
        yield compiled["definitions"], compiled["usages"]
    finally:
        compiled.clear()


def run_captures(query: Query | None, root: Node, capture_name: str) -> list[Node]:
    """All nodes captured under capture_name, in source order."""
    if query is None:
        return []
    captures = QueryCursor(query).captures(root)
    nodes = captures.get(capture_name, [])
    return sorted(nodes, key=lambda n: (n.start_byte, n.end_byte))


def build_row_index(chunks: Sequence[LineRange]) -> dict[int, list[int]]:
    """Map each source row to the indices of the chunks covering it."""
    rows: dict[int, list[int]] = defaultdict(list)
    for index, chunk in enumerate(chunks):
        for row in range(chunk.start_line, chunk.end_line + 1):
            rows[row].append(index)
    return rows


def empty_results(count: int) -> list[SymbolExtractionResult]:
    return [SymbolExtractionResult() for _ in range(count)]


def extract_symbols_for_chunks(
    tree: Tree,
    language: Language,
    chunks: Sequence[LineRange],
    language_id: str,
    query_cache: QueryCache | None = None,
) -> list[SymbolExtractionResult]:
    """
    Extract defines_symbols, uses_symbols and defined_symbols for each chunk.

    Args:
        tree: Parsed tree for the whole file
        language: The tree-sitter Language the tree was parsed with
        chunks: Chunk line ranges (0-indexed, inclusive)
        language_id: Language identifier, e.g. "typescript"
        query_cache: Optional cache of compiled queries owned by the parsing service

    Returns:
        One SymbolExtractionResult per chunk, in the same order
    """
    query_set = LANGUAGE_QUERIES.get(language_id)
    if query_set is None or not chunks:
        return empty_results(len(chunks))

    with compiled_queries(language, language_id, query_set, query_cache) as (def_query, use_query):
        root = tree.root_node
        definition_nodes = run_captures(def_query, root, "definition")
        usage_nodes = run_captures(use_query, root, "usage")

    rows = build_row_index(chunks)
    defines: list[dict[str, ChunkKind]] = [{} for _ in chunks]
    uses: list[dict[str, None]] = [{} for _ in chunks]

    for node in definition_nodes:
        targets = rows.get(node.start_point[0])
        if not targets:
            continue
        name = node_text(node)
        if is_noise(name):
            continue
        kind = resolve_kind(node)
        for index in targets:
            defines[index].setdefault(name, kind)

    for node in usage_nodes:
        targets = rows.get(node.start_point[0])
        if not targets:
            continue
        name = node_text(node)
        if is_noise(name):
            continue
        for index in targets:
            uses[index][name] = None

    results: list[SymbolExtractionResult] = []
    for chunk_defines, chunk_uses in zip(defines, uses):
        # A recursive call or a self-typed annotation is not a cross-reference
        used = [name for name in chunk_uses if name not in chunk_defines]
        defined = [DefinedSymbol(name=name, kind=kind) for name, kind in chunk_defines.items()]
        results.append(SymbolExtractionResult(
            defines_symbols=[d.name for d in defined],
            uses_symbols=used,
            defined_symbols=defined,
        ))

    return results
