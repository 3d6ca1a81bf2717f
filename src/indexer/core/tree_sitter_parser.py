#!/usr/bin/env python3
"""
Tree-sitter parsing service.

Loads grammars on demand, parses files, and owns the cache of compiled
symbol queries. A manager holds a single Parser, which is not reentrant:
keep one manager per worker when parsing concurrently.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass

from tree_sitter import Language, Parser, Query, QueryError, Tree


# Language id -> (grammar module, language function). None means no grammar is
# available and the heuristic path is used for that language.
LANGUAGE_GRAMMARS: dict[str, tuple[str, str] | None] = {
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "javascript": ("tree_sitter_javascript", "language"),
    "python": ("tree_sitter_python", "language"),
    "go": ("tree_sitter_go", "language"),
    "rust": ("tree_sitter_rust", "language"),
    "java": ("tree_sitter_java", "language"),
    "ruby": ("tree_sitter_ruby", "language"),
    "c": ("tree_sitter_c", "language"),
    "cpp": ("tree_sitter_cpp", "language"),
    "csharp": ("tree_sitter_c_sharp", "language"),
    "php": ("tree_sitter_php", "language_php"),
    "terraform": None,
}


@dataclass
class ParsedFile:
    """A parsed tree together with the grammar that produced it."""
    tree: Tree
    language: Language
    language_id: str


def load_language(language_id: str) -> Language | None:
    """Import the grammar package for a language id and wrap it in a Language."""
    grammar = LANGUAGE_GRAMMARS.get(language_id)
    if grammar is None:
        return None

    module_name, func_name = grammar
    module = importlib.import_module(module_name)
    return Language(getattr(module, func_name)())


def compile_query(language: Language, source: str, language_id: str, name: str) -> Query | None:
    """Compile a query, or warn and return None when it does not match the grammar."""
    try:
        return Query(language, source)
    except QueryError as e:
        print(f"  Warning: {name} query failed to compile for {language_id}: {e}")
        return None


class QueryCache:
    """
    Compiled queries keyed by (language id, query name).

    Owned by the parsing service and handed to the symbol extractor, so
    compiled queries outlive a single extraction call without any global state.
    """

    def __init__(self):
        self._queries: dict[tuple[str, str], Query | None] = {}

    def get(self, language_id: str, name: str, language: Language, source: str) -> Query | None:
        """Return the compiled query, compiling it on first use. None if it does not compile."""
        key = (language_id, name)
        if key not in self._queries:
            self._queries[key] = compile_query(language, source, language_id, name)
        return self._queries[key]

    def __len__(self) -> int:
        return len(self._queries)

    def clear(self) -> None:
        self._queries.clear()


class TreeSitterManager:
    """Parses source text into tree-sitter trees, one language at a time."""

    def __init__(self):
        self._parser: Parser | None = Parser()
        self._languages: dict[str, Language] = {}
        self._failed: set[str] = set()
        self.query_cache = QueryCache()

    def is_available(self, language_id: str) -> bool:
        return LANGUAGE_GRAMMARS.get(language_id) is not None

    def get_language(self, language_id: str) -> Language | None:
        if language_id in self._languages:
            return self._languages[language_id]
        if language_id in self._failed or not self.is_available(language_id):
            return None

        try:
            language = load_language(language_id)
        except (ImportError, AttributeError, ValueError) as e:
            print(f"  Warning: Failed to load tree-sitter grammar for {language_id}: {e}")
            self._failed.add(language_id)
            return None

        self._languages[language_id] = language
        return language

    def parse_file(self, content: str, language_id: str) -> ParsedFile | None:
        """Parse content; None when the language has no grammar or parsing fails."""
        if self._parser is None:
            raise RuntimeError("TreeSitterManager is closed")

        language = self.get_language(language_id)
        if language is None:
            return None

        try:
            self._parser.language = language
            tree = self._parser.parse(content.encode("utf-8"))
        except Exception as e:
            print(f"  Warning: Failed to parse file as {language_id}: {e}")
            return None

        if tree is None:
            return None
        return ParsedFile(tree=tree, language=language, language_id=language_id)

    def close(self) -> None:
        """Release the parser and every cached query."""
        self.query_cache.clear()
        self._languages.clear()
        self._parser = None

    def __enter__(self) -> TreeSitterManager:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
