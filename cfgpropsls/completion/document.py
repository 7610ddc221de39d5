"""
Read-only document snapshot used by the completion engine.

A snapshot is taken once when a completion request starts; the engine never
goes back to the live editor document afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass

from lsprotocol.types import Position

from cfgpropsls.completion.errors import OffsetOutOfRange


@dataclass(frozen=True)
class DocumentSnapshot:
    """Immutable copy of a document's text."""

    source: str
    uri: str = ""

    def text_of_current_line(self, caret_offset: int) -> tuple[str, int]:
        """
        Return the text from the start of the caret's line up to the caret.

        Returns:
            Tuple of (line text up to caret, absolute line start offset)

        Raises:
            OffsetOutOfRange: if the caret is not inside the document
        """
        if caret_offset < 0 or caret_offset > len(self.source):
            raise OffsetOutOfRange(caret_offset, len(self.source))

        line_start = self.source.rfind("\n", 0, caret_offset) + 1
        return self.source[line_start:caret_offset], line_start

    def offset_at(self, position: Position) -> int:
        """Convert an LSP position (line/character) into an absolute offset."""
        lines = self.source.split("\n")
        if position.line < 0 or position.line >= len(lines):
            raise OffsetOutOfRange(position.line, len(lines))

        line = lines[position.line]
        if position.character < 0 or position.character > len(line):
            raise OffsetOutOfRange(position.character, len(line))

        return sum(len(l) + 1 for l in lines[: position.line]) + position.character

    def position_at(self, offset: int) -> Position:
        """Convert an absolute offset into an LSP position."""
        if offset < 0 or offset > len(self.source):
            raise OffsetOutOfRange(offset, len(self.source))

        line = self.source.count("\n", 0, offset)
        line_start = self.source.rfind("\n", 0, offset) + 1
        return Position(line=line, character=offset - line_start)
