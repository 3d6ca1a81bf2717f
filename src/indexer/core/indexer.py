#!/usr/bin/env python3
"""
Per-file indexing pipeline and command line entry point.

This module:
1. Detects a file's language from its extension
2. Parses it once with tree-sitter when a grammar is available
3. Chunks it along syntax boundaries (regex chunker as fallback)
4. Extracts defined/used symbols per chunk from the same tree
5. Assigns chunk ids and links chunks across a project by symbol name

Nothing is persisted: the CLI prints a JSON summary for inspection.

Environment variables (see chunker_settings):
- INDEXER_CHUNK_SIZE: Target chunk size in characters (default: 1024)
- INDEXER_OVERLAP: Overlap for fixed-window chunking (default: 128)
- INDEXER_MAX_CHUNK_SIZE: Hard chunk size limit (default: 3 x chunk size)
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generator, Mapping, NamedTuple

from pydantic import ValidationError

from ast_chunker import AstChunkerConfig, chunk_by_ast
from ast_symbol_extractor import extract_symbols_for_chunks
from chunk_types import ChunkInvariantError, ChunkResult, SymbolEdge, SymbolExtractionResult
from chunker import Chunker
from chunker_settings import ChunkerSettings
from symbol_extractor import extract_symbols_heuristic
from symbol_graph import ChunkSymbols, build_symbol_edges
from tree_sitter_parser import TreeSitterManager

CHUNK_ID_SEPARATOR = "//"

DEFAULT_GROUP = "local"

# Mapping of file extensions to language ids
EXTENSION_TO_LANGUAGE = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".rs": "rust",
    ".go": "go",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hh": "cpp",
    ".rb": "ruby",
    ".rake": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".tf": "terraform",
    ".tfvars": "terraform",
}

# Directories to exclude
EXCLUDE_DIRS = {
    "node_modules", "dist", "build", ".git", "target",
    "__pycache__", "venv", ".venv", "vendor", ".next",
    "coverage", ".terraform", ".pytest_cache", ".mypy_cache",
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class FileChunks:
    """Chunks of one file with the symbol results parallel to them."""
    chunks: list[ChunkResult]
    symbols: list[SymbolExtractionResult]
    used_syntax_tree: bool = False


@dataclass
class ProjectGraph:
    """Chunk ids per file (parallel to each file's chunks) and the edges between them."""
    chunk_ids: dict[str, list[str]] = field(default_factory=dict)
    edges: list[SymbolEdge] = field(default_factory=list)


class ChunkIdParts(NamedTuple):
    group: str
    project: str
    file: str
    start_line: int
    end_line: int
    hash: str


# =============================================================================
# Chunk IDs
# =============================================================================


def build_chunk_id(group: str, project: str, file: str, start_line: int, end_line: int, hash: str) -> str:
    """Stable chunk id: {group}//{project}//{file}//{start}-{end}//{hash}."""
    return CHUNK_ID_SEPARATOR.join([group, project, file, f"{start_line}-{end_line}", hash])


def parse_chunk_id(chunk_id: str) -> ChunkIdParts | None:
    """Split a chunk id back into its components; None if it is malformed."""
    parts = chunk_id.split(CHUNK_ID_SEPARATOR)
    if len(parts) != 5 or not all(parts):
        return None

    group, project, file, line_range, hash = parts
    line_parts = line_range.split("-")
    if len(line_parts) != 2 or not all(p.isdigit() for p in line_parts):
        return None

    return ChunkIdParts(group, project, file, int(line_parts[0]), int(line_parts[1]), hash)


# =============================================================================
# File Pipeline
# =============================================================================


def detect_language(filename: str) -> str | None:
    """Get the language id from a file name's extension."""
    return EXTENSION_TO_LANGUAGE.get(Path(filename).suffix.lower())


def _heuristic_chunker(settings: ChunkerSettings) -> Chunker:
    return Chunker(
        chunk_size=settings.chunk_size,
        overlap=settings.overlap,
        max_chunk_size=settings.effective_max_chunk_size,
    )


def _annotate(chunks: list[ChunkResult], symbols: list[SymbolExtractionResult]) -> None:
    """Copy each chunk's first defined symbol onto the chunk itself."""
    for chunk, result in zip(chunks, symbols):
        if result.defined_symbols:
            chunk.symbol_name = result.defined_symbols[0].name
            chunk.kind = result.defined_symbols[0].kind


def chunk_file(
    content: str,
    language_id: str,
    settings: ChunkerSettings,
    parser: TreeSitterManager | None = None,
) -> FileChunks:
    """
    Chunk one file and extract the symbols of every chunk.

    The file is parsed once. AST chunking and tree-query extraction share that
    tree; if AST chunking yields nothing the regex chunker runs instead, still
    with tree-query symbols. Without a tree, or when the tree path fails
    unexpectedly, the regex chunker and the regex symbol extractor are used.

    Raises:
        ChunkInvariantError: A chunker produced an impossible state
    """
    parsed = parser.parse_file(content, language_id) if parser is not None else None

    if parsed is not None:
        try:
            config = AstChunkerConfig(
                chunk_size=settings.chunk_size,
                max_chunk_size=settings.effective_max_chunk_size,
            )
            chunks = chunk_by_ast(parsed.tree, content, config)
            if not chunks:
                chunks = _heuristic_chunker(settings).chunk(content, language_id)

            symbols = extract_symbols_for_chunks(
                parsed.tree, parsed.language, chunks, language_id, parser.query_cache
            )
            _annotate(chunks, symbols)
            return FileChunks(chunks=chunks, symbols=symbols, used_syntax_tree=True)
        except ChunkInvariantError:
            raise
        except Exception as e:
            print(f"  Warning: AST chunking/symbol extraction failed for {language_id}, using regex chunker: {e}")

    chunks = _heuristic_chunker(settings).chunk(content, language_id)
    symbols = extract_symbols_heuristic(chunks, language_id)
    _annotate(chunks, symbols)
    return FileChunks(chunks=chunks, symbols=symbols, used_syntax_tree=False)


def build_project_graph(group: str, project: str, files: Mapping[str, FileChunks]) -> ProjectGraph:
    """
    Assign chunk ids to every file's chunks and link them by symbol name.

    Args:
        group: Group name used in chunk ids
        project: Project name used in chunk ids
        files: File path -> chunked file, in the order to process them

    Returns:
        ProjectGraph with ids parallel to each file's chunks and 'calls' edges
    """
    graph = ProjectGraph()
    records: list[ChunkSymbols] = []

    for file_path, file_chunks in files.items():
        ids: list[str] = []
        for chunk, result in zip(file_chunks.chunks, file_chunks.symbols):
            chunk_id = build_chunk_id(group, project, file_path, chunk.start_line, chunk.end_line, chunk.hash)
            ids.append(chunk_id)
            records.append(ChunkSymbols(
                chunk_id=chunk_id,
                defines_symbols=result.defines_symbols,
                uses_symbols=result.uses_symbols,
            ))
        graph.chunk_ids[file_path] = ids

    graph.edges = build_symbol_edges(records)
    return graph


# =============================================================================
# CLI
# =============================================================================


def should_include_file(path: Path) -> bool:
    """Check if a file found while walking a directory should be chunked."""
    if detect_language(path.name) is None:
        return False
    return not any(part in EXCLUDE_DIRS for part in path.parts)


def find_files(paths: list[str]) -> Generator[tuple[Path, str], None, None]:
    """Yield (path, name used in chunk ids) for every file to chunk."""
    for raw in paths:
        root = Path(raw)
        if root.is_file():
            yield root, root.as_posix()
            continue
        for path in sorted(root.rglob("*")):
            relative = path.relative_to(root)
            if path.is_file() and should_include_file(relative):
                yield path, relative.as_posix()


def index_paths(
    paths: list[str],
    settings: ChunkerSettings,
    group: str,
    project: str,
    use_ast: bool = True,
) -> dict:
    """Chunk every file under paths and build the project graph."""
    files: dict[str, FileChunks] = {}
    languages: dict[str, int] = {}

    parser = TreeSitterManager() if use_ast else None
    try:
        for path, name in find_files(paths):
            language_id = detect_language(path.name) or "text"
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                print(f"  Warning: Could not read {path}: {e}", file=sys.stderr)
                continue

            files[name] = chunk_file(content, language_id, settings, parser)
            languages[language_id] = languages.get(language_id, 0) + 1
    finally:
        if parser is not None:
            parser.close()

    graph = build_project_graph(group, project, files)

    return {
        "status": "success",
        "group": group,
        "project": project,
        "files": len(files),
        "chunks": sum(len(f.chunks) for f in files.values()),
        "syntax_tree_files": sum(1 for f in files.values() if f.used_syntax_tree),
        "languages": languages,
        "edges": len(graph.edges),
        "chunk_size": settings.chunk_size,
        "overlap": settings.overlap,
        "max_chunk_size": settings.effective_max_chunk_size,
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Chunk source files, extract symbols and link chunks by symbol name"
    )
    parser.add_argument("paths", nargs="+", help="Files or directories to chunk")
    parser.add_argument("--chunk-size", type=int, help="Target chunk size in characters")
    parser.add_argument("--overlap", type=int, help="Overlap for fixed-window chunking")
    parser.add_argument("--group", default=DEFAULT_GROUP, help="Group name used in chunk ids")
    parser.add_argument("--project", help="Project name used in chunk ids (default: first path's name)")
    parser.add_argument(
        "--no-ast",
        action="store_true",
        help="Skip tree-sitter and use the regex chunker only",
    )
    args = parser.parse_args(argv)

    overrides = {}
    if args.chunk_size is not None:
        overrides["chunk_size"] = args.chunk_size
    if args.overlap is not None:
        overrides["overlap"] = args.overlap

    try:
        settings = ChunkerSettings(**overrides)
    except ValidationError as e:
        print(f"Error: invalid chunking settings: {e}", file=sys.stderr)
        return 2

    project = args.project or Path(args.paths[0]).resolve().name or "project"
    try:
        result = index_paths(args.paths, settings, args.group, project, use_ast=not args.no_ast)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        result = {"status": "error", "error": str(e)}
        print(f"\n__RESULT__:{json.dumps(result)}")
        return 1

    # Output result as JSON after any warnings
    print(f"\n__RESULT__:{json.dumps(result)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
