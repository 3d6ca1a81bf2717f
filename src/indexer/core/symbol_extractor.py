#!/usr/bin/env python3
"""
Regex-based symbol extraction for chunks without a syntax tree.

This is a much weaker approximation than the tree-query path in
ast_symbol_extractor: it only scans the first few lines of a chunk, returns
at most one symbol per chunk, and cannot find used symbols at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from chunk_types import ChunkKind, ChunkResult, DefinedSymbol, SymbolExtractionResult

# Max lines scanned from the start of a chunk
SCAN_LINES = 5


@dataclass
class ExtractedSymbol:
    name: str
    kind: ChunkKind


@dataclass(frozen=True)
class SymbolPattern:
    pattern: re.Pattern[str]
    kind: ChunkKind
    # 0 means "no name in the match, use the kind's value"
    name_group: int = 1


def _p(regex: str, kind: ChunkKind, name_group: int = 1) -> SymbolPattern:
    return SymbolPattern(re.compile(regex), kind, name_group)


TS_JS_PATTERNS = [
    _p(r"^\s*export\s+default\s+class\s+(\w+)", ChunkKind.CLASS),
    _p(r"^\s*(?:export\s+)?(?:abstract\s+)?class\s+(\w+)", ChunkKind.CLASS),
    _p(r"^\s*(?:export\s+)?interface\s+(\w+)", ChunkKind.INTERFACE),
    _p(r"^\s*(?:export\s+)?type\s+(\w+)\s*=", ChunkKind.TYPE),
    _p(r"^\s*(?:export\s+)?enum\s+(\w+)", ChunkKind.ENUM),
    _p(r"^\s*(?:export\s+)?(?:async\s+)?function\s+(\w+)", ChunkKind.FUNCTION),
    _p(r"^\s*(?:export\s+)?const\s+(\w+)\s*=\s*(?:async\s*)?\(", ChunkKind.FUNCTION),
    _p(r"^\s*(?:export\s+)?const\s+(\w+)\s*=\s*(?:async\s*)?(?:\([^)]*\)|[a-zA-Z_$]\w*)\s*=>", ChunkKind.FUNCTION),
    _p(r"^\s*(?:export\s+)?const\s+(\w+)\s*=", ChunkKind.CONSTANT),
    _p(r"^\s*(?:export\s+)?let\s+(\w+)\s*=", ChunkKind.VARIABLE),
    _p(r"^\s*(?:export\s+)?var\s+(\w+)\s*=", ChunkKind.VARIABLE),
    # Method inside a class body
    _p(r"^\s+(?:async\s+)?(\w+)\s*\(", ChunkKind.METHOD),
    # Express-style route handlers
    _p(r"^\s*(?:app|router)\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)", ChunkKind.ROUTE, 2),
]

PYTHON_PATTERNS = [
    _p(r"^\s*class\s+(\w+)", ChunkKind.CLASS),
    _p(r"^\s*(?:async\s+)?def\s+(\w+)", ChunkKind.FUNCTION),
    _p(r"^(\w+)\s*=\s*", ChunkKind.VARIABLE),
]

GO_PATTERNS = [
    _p(r"^\s*type\s+(\w+)\s+struct", ChunkKind.CLASS),
    _p(r"^\s*type\s+(\w+)\s+interface", ChunkKind.INTERFACE),
    _p(r"^\s*type\s+(\w+)\s+", ChunkKind.TYPE),
    _p(r"^\s*func\s+\(\s*\w+\s+\*?(\w+)\)\s+(\w+)\s*\(", ChunkKind.METHOD, 2),
    _p(r"^\s*func\s+(\w+)\s*\(", ChunkKind.FUNCTION),
    _p(r"^\s*var\s+(\w+)\s+", ChunkKind.VARIABLE),
    _p(r"^\s*const\s+(\w+)\s*=", ChunkKind.CONSTANT),
]

RUST_PATTERNS = [
    _p(r"^\s*(?:pub\s+)?struct\s+(\w+)", ChunkKind.CLASS),
    _p(r"^\s*(?:pub\s+)?enum\s+(\w+)", ChunkKind.ENUM),
    _p(r"^\s*(?:pub\s+)?trait\s+(\w+)", ChunkKind.INTERFACE),
    _p(r"^\s*(?:pub\s+)?type\s+(\w+)", ChunkKind.TYPE),
    _p(r"^\s*(?:pub\s+)?mod\s+(\w+)", ChunkKind.MODULE),
    _p(r"^\s*(?:pub\s+)?(?:async\s+)?fn\s+(\w+)", ChunkKind.FUNCTION),
    _p(r"^\s*impl\s+(?:\w+\s+for\s+)?(\w+)", ChunkKind.CLASS),
    _p(r"^\s*(?:pub\s+)?const\s+(\w+)", ChunkKind.CONSTANT),
    _p(r"^\s*(?:pub\s+)?static\s+(\w+)", ChunkKind.VARIABLE),
]

JAVA_PATTERNS = [
    _p(r"^\s*(?:public|private|protected)?\s*(?:abstract\s+)?(?:static\s+)?class\s+(\w+)", ChunkKind.CLASS),
    _p(r"^\s*(?:public|private|protected)?\s*interface\s+(\w+)", ChunkKind.INTERFACE),
    _p(r"^\s*(?:public|private|protected)?\s*enum\s+(\w+)", ChunkKind.ENUM),
    _p(
        r"^\s*(?:public|private|protected)?\s*(?:static\s+)?(?:final\s+)?(?:synchronized\s+)?"
        r"(?:\w+(?:<[^>]+>)?)\s+(\w+)\s*\(",
        ChunkKind.METHOD,
    ),
    _p(r"^\s*(?:public|private|protected)?\s*(?:static\s+)?(?:final\s+)?\w+\s+(\w+)\s*=", ChunkKind.VARIABLE),
]

RUBY_PATTERNS = [
    _p(r"^\s*class\s+(\w+)", ChunkKind.CLASS),
    _p(r"^\s*module\s+(\w+)", ChunkKind.MODULE),
    _p(r"^\s*def\s+(?:self\.)?(\w+[?!]?)", ChunkKind.METHOD),
    _p(r"^\s*(\w+)\s*=\s*", ChunkKind.VARIABLE),
]

C_CPP_PATTERNS = [
    _p(r"^\s*(?:class|struct)\s+(\w+)", ChunkKind.CLASS),
    _p(r"^\s*enum\s+(?:class\s+)?(\w+)", ChunkKind.ENUM),
    _p(r"^\s*namespace\s+(\w+)", ChunkKind.MODULE),
    _p(r"^\s*typedef\s+.+\s+(\w+)\s*;", ChunkKind.TYPE),
    _p(r"^\s*(?:(?:static|inline|virtual|extern|const)\s+)*(?:\w+(?:::\w+)*\s+)+(\w+)\s*\(", ChunkKind.FUNCTION),
    _p(r"^\s*#define\s+(\w+)", ChunkKind.CONSTANT),
]

CSHARP_PATTERNS = [
    _p(
        r"^\s*(?:public|private|protected|internal)?\s*(?:abstract\s+)?(?:static\s+)?(?:partial\s+)?class\s+(\w+)",
        ChunkKind.CLASS,
    ),
    _p(r"^\s*(?:public|private|protected|internal)?\s*interface\s+(\w+)", ChunkKind.INTERFACE),
    _p(r"^\s*(?:public|private|protected|internal)?\s*enum\s+(\w+)", ChunkKind.ENUM),
    _p(
        r"^\s*(?:public|private|protected|internal)?\s*(?:static\s+)?(?:partial\s+)?struct\s+(\w+)",
        ChunkKind.CLASS,
    ),
    _p(r"^\s*(?:public|private|protected|internal)?\s*namespace\s+(\w+)", ChunkKind.MODULE),
    _p(
        r"^\s*(?:public|private|protected|internal)?\s*(?:static\s+)?(?:async\s+)?(?:virtual\s+)?"
        r"(?:override\s+)?(?:\w+(?:<[^>]+>)?)\s+(\w+)\s*\(",
        ChunkKind.METHOD,
    ),
]

TERRAFORM_PATTERNS = [
    _p(r'^\s*resource\s+"(\w+)"\s+"(\w+)"', ChunkKind.RESOURCE, 2),
    _p(r'^\s*data\s+"(\w+)"\s+"(\w+)"', ChunkKind.RESOURCE, 2),
    _p(r'^\s*module\s+"(\w+)"', ChunkKind.MODULE),
    _p(r'^\s*variable\s+"(\w+)"', ChunkKind.VARIABLE),
    _p(r'^\s*output\s+"(\w+)"', ChunkKind.VARIABLE),
    _p(r"^\s*locals\s*\{", ChunkKind.BLOCK, 0),
]

LANGUAGE_PATTERNS: dict[str, list[SymbolPattern]] = {
    "typescript": TS_JS_PATTERNS,
    "javascript": TS_JS_PATTERNS,
    "tsx": TS_JS_PATTERNS,
    "python": PYTHON_PATTERNS,
    "go": GO_PATTERNS,
    "rust": RUST_PATTERNS,
    "java": JAVA_PATTERNS,
    "ruby": RUBY_PATTERNS,
    "c": C_CPP_PATTERNS,
    "cpp": C_CPP_PATTERNS,
    "csharp": CSHARP_PATTERNS,
    "terraform": TERRAFORM_PATTERNS,
}


def extract_symbol(content: str, language: str) -> ExtractedSymbol | None:
    """
    Find the symbol a chunk declares by scanning its first SCAN_LINES lines.

    The first matching pattern wins. Returns None when the language has no
    patterns or nothing matches.
    """
    patterns = LANGUAGE_PATTERNS.get(language)
    if not patterns:
        return None

    for line in content.split("\n", SCAN_LINES)[:SCAN_LINES]:
        for symbol_pattern in patterns:
            match = symbol_pattern.pattern.search(line)
            if not match:
                continue
            if symbol_pattern.name_group == 0:
                name = symbol_pattern.kind.value
            else:
                name = match.group(symbol_pattern.name_group)
            if name:
                return ExtractedSymbol(name=name, kind=symbol_pattern.kind)

    return None


def extract_symbols_heuristic(chunks: Sequence[ChunkResult], language: str) -> list[SymbolExtractionResult]:
    """Per-chunk results from extract_symbol: one define at most, never any uses."""
    results: list[SymbolExtractionResult] = []
    for chunk in chunks:
        symbol = extract_symbol(chunk.content, language)
        if symbol is None:
            results.append(SymbolExtractionResult())
            continue
        results.append(SymbolExtractionResult(
            defines_symbols=[symbol.name],
            uses_symbols=[],
            defined_symbols=[DefinedSymbol(name=symbol.name, kind=symbol.kind)],
        ))
    return results
