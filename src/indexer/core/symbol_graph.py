#!/usr/bin/env python3
"""
Symbol graph builder.

Connects chunks by symbol name:
- Source chunk uses a symbol (a call, instantiation or type reference)
- Target chunk defines a symbol with the same name

Edges carry relation_type='calls'. Resolution is by name only: a symbol
defined in several chunks fans out to every one of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Union

from chunk_types import SymbolEdge

RELATION_CALLS = "calls"


@dataclass
class ChunkSymbols:
    """Symbols of one chunk that already has its durable id."""
    chunk_id: str
    defines_symbols: list[str] = field(default_factory=list)
    uses_symbols: list[str] = field(default_factory=list)


ChunkSymbolsLike = Union[ChunkSymbols, Mapping[str, object]]


def _as_chunk_symbols(chunk: ChunkSymbolsLike) -> ChunkSymbols:
    if isinstance(chunk, ChunkSymbols):
        return chunk
    return ChunkSymbols(
        chunk_id=str(chunk["chunk_id"]),
        defines_symbols=list(chunk.get("defines_symbols") or []),
        uses_symbols=list(chunk.get("uses_symbols") or []),
    )


def build_symbol_index(chunks: Iterable[ChunkSymbols]) -> dict[str, list[str]]:
    """Map each defined symbol to the chunk ids defining it, in input order without repeats."""
    index: dict[str, dict[str, None]] = {}
    for chunk in chunks:
        for symbol in chunk.defines_symbols:
            index.setdefault(symbol, {})[chunk.chunk_id] = None
    return {symbol: list(chunk_ids) for symbol, chunk_ids in index.items()}


def build_symbol_edges(chunks: Iterable[ChunkSymbolsLike]) -> list[SymbolEdge]:
    """
    Build 'calls' edges from every chunk using a symbol to every chunk defining it.

    Args:
        chunks: ChunkSymbols records, or mappings with chunk_id /
            defines_symbols / uses_symbols keys

    Returns:
        Edges in input order; no self-edges and no repeated
        (from, to, symbol) triples
    """
    records = [_as_chunk_symbols(chunk) for chunk in chunks]
    symbol_index = build_symbol_index(records)

    edges: list[SymbolEdge] = []
    seen_edges: set[tuple[str, str, str]] = set()

    for chunk in records:
        for symbol in chunk.uses_symbols:
            for target_chunk_id in symbol_index.get(symbol, ()):
                if target_chunk_id == chunk.chunk_id:
                    continue

                edge_key = (chunk.chunk_id, target_chunk_id, symbol)
                if edge_key in seen_edges:
                    continue
                seen_edges.add(edge_key)
                edges.append(SymbolEdge(
                    from_chunk_id=chunk.chunk_id,
                    to_chunk_id=target_chunk_id,
                    relation_type=RELATION_CALLS,
                    symbol_name=symbol,
                ))

    return edges
