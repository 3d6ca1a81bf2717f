#!/usr/bin/env python3
"""
AST-based code chunking using tree-sitter.

This module chunks a parsed file along real syntax boundaries, keeping
semantic units together for better embedding quality.

Key features:
- Top-level nodes are natural chunk boundaries; small neighbours are grouped
  up to chunk_size
- Comments directly preceding a declaration stay in the declaration's chunk
- Whitespace and comments between nodes are preserved verbatim
- Nodes larger than max_chunk_size are split by their children, at most
  MAX_RECURSIVE_DEPTH levels deep, then by fixed line windows
- No chunk ever exceeds max_chunk_size and no two chunks share a line (apart
  from the character-split pieces of a single huge line)
"""

from __future__ import annotations

from dataclasses import dataclass

from tree_sitter import Node, Tree

from chunk_types import ChunkInvariantError, ChunkResult, hard_split_line, make_chunk

# Levels of named children split_node may descend before falling back to fixed_split
MAX_RECURSIVE_DEPTH = 3

# Comment node types across the supported grammars
COMMENT_TYPES = frozenset({"comment", "line_comment", "block_comment"})


@dataclass
class AstChunkerConfig:
    """Size limits for AST chunking, in characters."""
    chunk_size: int
    max_chunk_size: int


def is_comment_node(node: Node) -> bool:
    return node.type in COMMENT_TYPES


def text_for_range(lines: list[str], start_line: int, end_line: int) -> str:
    """Text of an inclusive line range, rebuilt from the file's lines."""
    return "\n".join(lines[start_line:end_line + 1])


def emit_range(
    lines: list[str],
    start_line: int,
    end_line: int,
    max_chunk_size: int,
    chunks: list[ChunkResult],
) -> None:
    """Append a line range as one chunk, or fixed-split it when too large. Blank ranges are skipped."""
    if end_line < start_line:
        return
    text = text_for_range(lines, start_line, end_line)
    if not text.strip():
        return
    if len(text) <= max_chunk_size:
        chunks.append(make_chunk(text, start_line, end_line))
    else:
        chunks.extend(fixed_split(lines, start_line, end_line, max_chunk_size))


def fixed_split(
    lines: list[str],
    start_line: int,
    end_line: int,
    max_chunk_size: int,
) -> list[ChunkResult]:
    """
    Greedy line-boundary split with no overlap (AST chunks are self-contained).

    A single line longer than max_chunk_size is split by characters.
    """
    chunks: list[ChunkResult] = []
    current = start_line

    while current <= end_line:
        size = 0
        last = current
        while last <= end_line:
            line_len = len(lines[last]) + 1
            if size + line_len > max_chunk_size and last > current:
                break
            size += line_len
            last += 1
        last -= 1

        text = text_for_range(lines, current, last)
        if len(text) > max_chunk_size:
            # Only possible for a single over-long line
            chunks.extend(hard_split_line(lines[current], current, max_chunk_size))
        elif text.strip():
            chunks.append(make_chunk(text, current, last))
        current = last + 1

    return chunks


def split_node(
    node: Node,
    lines: list[str],
    config: AstChunkerConfig,
    depth: int,
    first_line: int | None = None,
) -> list[ChunkResult]:
    """
    Split a node that may exceed max_chunk_size along its named children.

    Args:
        node: The node to split
        lines: The file's lines
        config: Size limits
        depth: Current recursion depth (0 for top-level nodes)
        first_line: First line not yet emitted; lines before it are skipped

    Returns:
        Chunks covering the node's non-blank lines from first_line on
    """
    if depth < 0:
        raise ChunkInvariantError(f"negative split depth {depth}")

    start = node.start_point[0]
    if first_line is not None:
        start = max(start, first_line)
    end = node.end_point[0]
    if end < start:
        return []

    text = text_for_range(lines, start, end)
    if len(text) <= config.max_chunk_size:
        if not text.strip():
            return []
        return [make_chunk(text, start, end)]

    children = node.named_children
    if depth >= MAX_RECURSIVE_DEPTH or not children:
        return fixed_split(lines, start, end, config.max_chunk_size)

    chunks: list[ChunkResult] = []
    next_line = start

    for child in children:
        child_start = child.start_point[0]
        child_end = child.end_point[0]
        if child_end < next_line:
            continue

        # Text between children (punctuation, comments, blank lines) stands alone
        if child_start > next_line:
            emit_range(lines, next_line, child_start - 1, config.max_chunk_size, chunks)
            next_line = child_start

        chunks.extend(split_node(child, lines, config, depth + 1, next_line))
        next_line = child_end + 1

    emit_range(lines, next_line, end, config.max_chunk_size, chunks)
    return chunks


def chunk_by_ast(tree: Tree, content: str, config: AstChunkerConfig) -> list[ChunkResult]:
    """
    Chunk source code along the top-level nodes of a parsed tree.

    Args:
        tree: Parsed tree-sitter tree for content
        content: The source text the tree was parsed from
        config: chunk_size / max_chunk_size

    Returns:
        Chunks with 0-indexed inclusive line ranges, in file order
    """
    if not content.strip():
        return []

    lines = content.split("\n")
    last_line = len(lines) - 1
    top_level = tree.root_node.named_children

    chunks: list[ChunkResult] = []

    if not top_level:
        # Flat file (e.g. plain data): the whole content is one chunk
        emit_range(lines, 0, last_line, config.max_chunk_size, chunks)
        return chunks

    # Lines [pending, group_end] form the current group; empty while group_end < pending
    pending = 0
    group_end = -1
    # First line of the run of comment nodes closing the group, if any
    comment_run_start: int | None = None

    for node in top_level:
        node_start = node.start_point[0]
        node_end = min(node.end_point[0], last_line)
        if node_end <= group_end or node_end < pending:
            # Fully inside lines that are already grouped or emitted
            continue

        span_start = group_end + 1 if group_end >= pending else pending
        node_size = len(text_for_range(lines, span_start, node_end))
        comment = is_comment_node(node)

        if node_size > config.max_chunk_size and not comment:
            # Flush the group extended up to this node, leading gap included
            emit_range(lines, pending, max(group_end, node_start - 1), config.max_chunk_size, chunks)
            pending = max(pending, group_end + 1, node_start)
            chunks.extend(split_node(node, lines, config, 0, pending))
            pending = node_end + 1
            group_end = node_end
            comment_run_start = None
            continue

        if group_end >= pending and not comment:
            group_size = len(text_for_range(lines, pending, group_end))
            if group_size + node_size > config.chunk_size:
                # Leading comments move with the declaration they document
                flush_end = group_end if comment_run_start is None else comment_run_start - 1
                if flush_end >= pending:
                    emit_range(lines, pending, flush_end, config.max_chunk_size, chunks)
                    pending = flush_end + 1

        if comment:
            if comment_run_start is None:
                comment_run_start = max(node_start, span_start)
        else:
            comment_run_start = None
        group_end = node_end

    # Final group plus any trailing text
    emit_range(lines, pending, last_line, config.max_chunk_size, chunks)
    return chunks
