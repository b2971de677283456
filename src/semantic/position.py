"""Row/column positions and the per-file line table."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.errors import LineIndexMismatch

if TYPE_CHECKING:
    from pathlib import Path

    from parse.syntax import Locate, SyntaxTree


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based row and byte column."""

    row: int
    col: int

    def __str__(self) -> str:
        return f"{self.row}:{self.col}"


@dataclass(frozen=True)
class Range:
    """Half-open span ``[begin, end)``."""

    begin: Position
    end: Position

    def contains(self, position: Position) -> bool:
        return self.begin <= position < self.end

    def contains_range(self, other: Range) -> bool:
        return self.begin <= other.begin and other.end <= self.end

    def compare(self, position: Position) -> int:
        """Three-way compare against a point: -1 before, 0 containing, 1 after.

        Rows decide first; columns only break ties on the range's first and
        last rows.
        """
        if self.end.row < position.row:
            return -1
        if self.begin.row > position.row:
            return 1
        if self.end.row == position.row and self.end.col <= position.col:
            return -1
        if self.begin.row == position.row and self.begin.col > position.col:
            return 1
        return 0

    def __str__(self) -> str:
        return f"{self.begin}-{self.end}"


@dataclass(frozen=True)
class DocumentPosition:
    document: Path
    position: Position


@dataclass(frozen=True)
class DocumentRange:
    document: Path
    range: Range


class PositionMapper:
    """Maps parser coordinates (1-based line, absolute offset) to positions.

    The table holds the absolute byte offset at which every line starts.
    Line 0 starts at offset 0; every LF or CR-LF terminator adds the offset
    of the line that follows it.
    """

    def __init__(self, line_starts: list[int]) -> None:
        self._line_starts = line_starts

    @classmethod
    def from_tree(cls, syntax_tree: SyntaxTree) -> PositionMapper:
        line_starts = [0]
        for token in syntax_tree.newlines():
            text = syntax_tree.source[token.locate.offset : token.locate.end]
            index = 0
            while index < len(text):
                if text.startswith(b"\r\n", index):
                    index += 2
                elif text[index : index + 1] == b"\n":
                    index += 1
                else:
                    # lone CR is not a line terminator
                    index += 1
                    continue
                line_starts.append(token.locate.offset + index)
        return cls(line_starts)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_start(self, row: int) -> int:
        return self._line_starts[row]

    def locate_to_position(self, line: int, offset: int) -> Position:
        row = line - 1
        if row < 0 or row >= len(self._line_starts):
            raise LineIndexMismatch.at_line(line, offset, len(self._line_starts))
        col = offset - self._line_starts[row]
        if col < 0:
            raise LineIndexMismatch.at_line(line, offset, len(self._line_starts))
        return Position(row=row, col=col)

    def position_of(self, locate: Locate) -> Position:
        return self.locate_to_position(locate.line, locate.offset)

    def range_of(self, locate: Locate) -> Range:
        """Range of a single-line token."""
        begin = self.position_of(locate)
        return Range(begin=begin, end=Position(begin.row, begin.col + locate.length))

    def offset_to_position(self, offset: int) -> Position:
        if offset < 0:
            msg = f"offset must be non-negative, got {offset}"
            raise ValueError(msg)
        row = bisect_right(self._line_starts, offset) - 1
        return Position(row=row, col=offset - self._line_starts[row])


__all__ = [
    "DocumentPosition",
    "DocumentRange",
    "Position",
    "PositionMapper",
    "Range",
]
