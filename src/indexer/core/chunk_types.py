#!/usr/bin/env python3
"""
Shared value types for chunking and symbol extraction.

Every type here is transient: it is created for one indexing request and
handed to the caller, which assigns durable chunk ids and persists it.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum

# Number of hex characters kept from the SHA-256 content digest
HASH_LENGTH = 16


class ChunkInvariantError(RuntimeError):
    """Raised when chunking hits a state that indicates a bug, not bad input."""


class ChunkKind(str, Enum):
    """Syntactic category of a defined symbol."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    CONSTANT = "constant"
    VARIABLE = "variable"
    MODULE = "module"
    ROUTE = "route"
    RESOURCE = "resource"
    BLOCK = "block"
    UNKNOWN = "unknown"


@dataclass
class ChunkResult:
    """A contiguous line range of one file (0-indexed, inclusive)."""

    content: str
    start_line: int
    end_line: int
    hash: str
    symbol_name: str | None = None
    kind: ChunkKind | None = None


@dataclass
class DefinedSymbol:
    name: str
    kind: ChunkKind


@dataclass
class SymbolExtractionResult:
    """Symbols defined and referenced by a single chunk."""

    defines_symbols: list[str] = field(default_factory=list)
    uses_symbols: list[str] = field(default_factory=list)
    defined_symbols: list[DefinedSymbol] = field(default_factory=list)


@dataclass
class SymbolEdge:
    """A directed edge from the chunk using a symbol to the chunk defining it."""

    from_chunk_id: str
    to_chunk_id: str
    relation_type: str
    symbol_name: str


def hash_content(text: str) -> str:
    """Truncated SHA-256 digest used for caching and dedup downstream."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def make_chunk(text: str, start_line: int, end_line: int) -> ChunkResult:
    """Build a ChunkResult, checking the line range."""
    if start_line < 0 or end_line < start_line:
        raise ChunkInvariantError(f"malformed chunk range {start_line}-{end_line}")
    return ChunkResult(
        content=text,
        start_line=start_line,
        end_line=end_line,
        hash=hash_content(text),
    )


def hard_split_line(line: str, line_number: int, max_chunk_size: int) -> list[ChunkResult]:
    """
    Split one over-long line into fixed character windows.

    All fragments carry the same line number. Whitespace-only windows are dropped.
    """
    if max_chunk_size <= 0:
        raise ChunkInvariantError(f"max_chunk_size must be positive, got {max_chunk_size}")

    chunks: list[ChunkResult] = []
    for pos in range(0, len(line), max_chunk_size):
        piece = line[pos:pos + max_chunk_size]
        if piece.strip():
            chunks.append(make_chunk(piece, line_number, line_number))
    return chunks
