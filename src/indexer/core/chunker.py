#!/usr/bin/env python3
"""
Heuristic (regex/line based) code chunking.

Used when no syntax tree is available for a file. Each language family is a
boundary strategy plugged into one shared buffering loop:
- Keyword-block languages (Ruby, Terraform): a start keyword opens a block, an
  end line at the opening indentation closes it
- Brace languages (TypeScript, Go, Rust, Java, C, ...): a top-level declaration
  opens a block, brace depth returning to zero closes it
- Indent languages (Python): top-level def/class lines mark boundaries
- Anything else: fixed-size windows with a character-budgeted overlap

Whatever the strategy, no chunk is ever longer than 3 x chunk_size: oversized
buffers are bisected by lines and single huge lines are split by characters.
"""

from __future__ import annotations

import re
from typing import Callable

from chunk_types import ChunkResult, hard_split_line, make_chunk
from chunker_settings import DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP, MAX_CHUNK_SIZE_FACTOR

# Buffer size (in multiples of chunk_size) that forces a flush on unterminated input
SAFETY_VALVE_FACTOR = 2


# =============================================================================
# Patterns
# =============================================================================


RUBY_START = re.compile(r"^\s*(def|class|module)\s")
RUBY_END = re.compile(r"^\s*end\s*$")

TERRAFORM_START = re.compile(r"^\s*(resource|data|module|variable|output|locals)\s")
TERRAFORM_END = re.compile(r"^\s*}\s*$")

JS_TOP_LEVEL = re.compile(
    r"^\s*(export\s+)?(default\s+)?(async\s+)?(function|class|const|let|var|interface|type|enum)\s"
)
GO_TOP_LEVEL = re.compile(r"^(func|type|var|const)\s")
RUST_TOP_LEVEL = re.compile(
    r"^\s*(pub(\([\w:]+\))?\s+)?(async\s+|unsafe\s+)?(fn|struct|enum|trait|impl|mod|type|const|static)\b"
)
JAVA_TOP_LEVEL = re.compile(
    r"^\s*((public|private|protected|internal|static|abstract|final|sealed|partial)\s+)*"
    r"(class|interface|enum|record|struct|namespace)\s"
)
C_TOP_LEVEL = re.compile(
    r"^(struct|class|enum|union|namespace|typedef|template)\b|^[A-Za-z_]\w*(\s+[\*&]*[A-Za-z_][\w:]*)+\s*\("
)
PHP_TOP_LEVEL = re.compile(
    r"^\s*((abstract|final|public|private|protected|static)\s+)*(function|class|interface|trait|enum)\s"
)
ARROW_OR_ASSIGN = re.compile(r"=\s*(async\s*)?\(")

# Simplified lexing: nested template literals containing braces are not handled
STRIP_COMMENTS = re.compile(r"/\*.*?\*/|//.*$")
STRIP_STRINGS = re.compile(r"'[^']*'|\"[^\"]*\"|`[^`]*`")

PYTHON_TOP_LEVEL = re.compile(r"^(def |class |async def )")
PYTHON_DECORATOR = re.compile(r"^@")


def get_indent(line: str) -> int:
    """Leading whitespace width; 0 for blank lines."""
    stripped = line.lstrip()
    if not stripped:
        return 0
    return len(line) - len(stripped)


# =============================================================================
# Boundary Strategies
# =============================================================================


class BoundaryStrategy:
    """
    Decides where blocks open and close for one chunking call.

    opens() is consulted before a line is buffered, closes() after.
    Strategies are stateful and created fresh for every call.
    """

    def opens(self, line: str) -> bool:
        return False

    def closes(self, line: str) -> bool:
        return False

    def reset(self) -> None:
        """Forget any open block (called after a safety-valve flush)."""


class KeywordBlockBoundary(BoundaryStrategy):
    """Blocks delimited by keywords, e.g. Ruby `def ... end`."""

    def __init__(self, start: re.Pattern[str], end: re.Pattern[str]):
        self.start = start
        self.end = end
        self.in_block = False
        self.block_indent = -1

    def opens(self, line: str) -> bool:
        if self.in_block or not self.start.search(line):
            return False
        self.in_block = True
        self.block_indent = get_indent(line)
        return True

    def closes(self, line: str) -> bool:
        # Nested blocks end at a deeper indentation than the one that opened
        if self.in_block and self.end.search(line) and get_indent(line) <= self.block_indent:
            self.reset()
            return True
        return False

    def reset(self) -> None:
        self.in_block = False
        self.block_indent = -1


class BraceBoundary(BoundaryStrategy):
    """Blocks delimited by braces, opened by a declaration at depth 0."""

    def __init__(self, top_level: re.Pattern[str]):
        self.top_level = top_level
        self.depth = 0
        self.in_block = False

    def opens(self, line: str) -> bool:
        if self.depth != 0:
            return False
        if self.top_level.search(line) or ARROW_OR_ASSIGN.search(line):
            self.in_block = True
            return True
        return False

    def closes(self, line: str) -> bool:
        stripped = STRIP_STRINGS.sub("", STRIP_COMMENTS.sub("", line))
        self.depth += stripped.count("{") - stripped.count("}")
        if self.depth < 0:
            self.depth = 0
        if self.in_block and self.depth == 0 and "}" in stripped:
            self.in_block = False
            return True
        return False

    def reset(self) -> None:
        self.depth = 0
        self.in_block = False


class IndentBoundary(BoundaryStrategy):
    """Top-level def/class lines start a new chunk; decorators stay attached."""

    def __init__(self):
        self.after_decorator = False

    def opens(self, line: str) -> bool:
        if PYTHON_DECORATOR.match(line):
            if self.after_decorator:
                return False
            self.after_decorator = True
            return True
        if PYTHON_TOP_LEVEL.match(line):
            decorated = self.after_decorator
            self.after_decorator = False
            return not decorated
        # Comments and decorator continuation lines keep the decorator pending
        if line[:1] not in ("", " ", "\t", ")", "]", "}", "#"):
            self.after_decorator = False
        return False

    def reset(self) -> None:
        self.after_decorator = False


# Language id -> strategy factory. Unknown languages use fixed windows.
LANGUAGE_STRATEGIES: dict[str, Callable[[], BoundaryStrategy]] = {
    "ruby": lambda: KeywordBlockBoundary(RUBY_START, RUBY_END),
    "terraform": lambda: KeywordBlockBoundary(TERRAFORM_START, TERRAFORM_END),
    "typescript": lambda: BraceBoundary(JS_TOP_LEVEL),
    "javascript": lambda: BraceBoundary(JS_TOP_LEVEL),
    "tsx": lambda: BraceBoundary(JS_TOP_LEVEL),
    "go": lambda: BraceBoundary(GO_TOP_LEVEL),
    "rust": lambda: BraceBoundary(RUST_TOP_LEVEL),
    "java": lambda: BraceBoundary(JAVA_TOP_LEVEL),
    "csharp": lambda: BraceBoundary(JAVA_TOP_LEVEL),
    "c": lambda: BraceBoundary(C_TOP_LEVEL),
    "cpp": lambda: BraceBoundary(C_TOP_LEVEL),
    "php": lambda: BraceBoundary(PHP_TOP_LEVEL),
    "python": IndentBoundary,
}


# =============================================================================
# Chunker
# =============================================================================


class Chunker:
    """
    Regex/line based chunker.

    chunk_size is the target size in characters; overlap only applies to the
    fixed-window fallback. The hard limit max_chunk_size defaults to
    3 x chunk_size.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        max_chunk_size: int | None = None,
    ):
        self.chunk_size = chunk_size or DEFAULT_CHUNK_SIZE
        self.overlap = overlap if overlap is not None else DEFAULT_OVERLAP
        self.max_chunk_size = max_chunk_size or self.chunk_size * MAX_CHUNK_SIZE_FACTOR

    def chunk(self, content: str, language: str) -> list[ChunkResult]:
        if not content.strip():
            return []

        factory = LANGUAGE_STRATEGIES.get(language)
        if factory is None:
            return self.chunk_fixed(content)
        return self.chunk_by_boundaries(content, factory())

    def chunk_by_boundaries(self, content: str, strategy: BoundaryStrategy) -> list[ChunkResult]:
        """Shared buffering loop driven by a boundary strategy."""
        lines = content.split("\n")
        chunks: list[ChunkResult] = []
        buffer: list[str] = []
        buffer_size = 0
        has_content = False

        def flush(end_line: int) -> None:
            nonlocal buffer, buffer_size, has_content
            if buffer and has_content:
                self._emit(buffer, end_line - len(buffer) + 1, chunks)
            buffer = []
            buffer_size = 0
            has_content = False

        for i, line in enumerate(lines):
            if strategy.opens(line):
                # A whitespace-only buffer is dropped rather than emitted
                flush(i - 1)

            buffer.append(line)
            buffer_size += len(line) + 1
            if not has_content and line.strip():
                has_content = True

            if strategy.closes(line):
                flush(i)
            elif buffer_size > self.chunk_size * SAFETY_VALVE_FACTOR:
                flush(i)
                strategy.reset()

        flush(len(lines) - 1)
        return chunks

    def chunk_fixed(self, content: str) -> list[ChunkResult]:
        """Fixed-size windows with an overlap measured in characters."""
        lines = content.split("\n")
        chunks: list[ChunkResult] = []
        start = 0

        while start < len(lines):
            end = start
            size = 0
            while end < len(lines) and size < self.chunk_size:
                size += len(lines[end]) + 1
                end += 1

            self._emit(lines[start:end], start, chunks)
            if end >= len(lines):
                break

            overlap_lines = 0
            overlap_size = 0
            while overlap_size < self.overlap and end - overlap_lines - 1 >= start:
                overlap_lines += 1
                overlap_size += len(lines[end - overlap_lines]) + 1

            start = max(start + 1, end - overlap_lines)

        return chunks

    def _emit(self, buffer: list[str], start_line: int, chunks: list[ChunkResult]) -> None:
        """Append buffered lines as chunks, bisecting anything over max_chunk_size."""
        text = "\n".join(buffer)
        if not text.strip():
            return

        if len(text) <= self.max_chunk_size:
            chunks.append(make_chunk(text, start_line, start_line + len(buffer) - 1))
            return

        if len(buffer) == 1:
            chunks.extend(hard_split_line(buffer[0], start_line, self.max_chunk_size))
            return

        mid = len(buffer) // 2
        self._emit(buffer[:mid], start_line, chunks)
        self._emit(buffer[mid:], start_line + mid, chunks)
