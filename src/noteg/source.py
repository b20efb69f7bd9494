"""Source positions, span tracking and source files for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, order=True)
class Position:
    """A point in source text: 1-based line/column, 0-based offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True)
class Span:
    """A range within a source file. ``end`` is exclusive."""

    file: str
    start: Position
    end: Position

    @property
    def start_line(self) -> int:
        return self.start.line

    @property
    def start_col(self) -> int:
        return self.start.column

    @property
    def end_line(self) -> int:
        return self.end.line

    @property
    def end_col(self) -> int:
        return self.end.column

    def to(self, other: Span) -> Span:
        """Span covering from the start of self to the end of *other*."""
        return Span(self.file, self.start, other.end)

    def __str__(self) -> str:
        return f"{self.file}:{self.start.line}:{self.start.column}"


class SourceFile:
    """A loaded source file with line access for diagnostics."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.content = path.read_text()
        self.lines = self.content.splitlines()

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line, or empty string if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return ""

    def span_text(self, span: Span) -> str:
        """Extract the text covered by a span."""
        return self.content[span.start.offset:span.end.offset]
