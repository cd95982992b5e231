"""LineBuffer: an in-memory editor over a list of lines.

Implements the Editor protocol so editor-bound triggers can run outside
an editor application, e.g. from the CLI against a markdown file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from tagflow.models.context import Position


class LineBuffer:
    """Text buffer with a cursor, addressed by (line, ch) positions.

    Example::

        buf = LineBuffer("- [ ] task\\n  - child", cursor=Position(0, 10))
        buf.replace_range("\\n  * note", Position(1, 9))
        buf.text  # "- [ ] task\\n  - child\\n  * note"
    """

    def __init__(self, text: str = "", cursor: Optional[Position] = None) -> None:
        self._lines: list[str] = text.split("\n")
        if cursor is None:
            last = len(self._lines) - 1
            cursor = Position(line=last, ch=len(self._lines[last]))
        self._cursor = self._clamp(cursor)

    @classmethod
    def from_file(cls, path: str | Path, line: Optional[int] = None) -> LineBuffer:
        """Load a file with the cursor at the end of ``line`` (default: last line)."""
        buf = cls(Path(path).read_text(encoding="utf-8"))
        if line is not None:
            buf.set_cursor(Position(line=line, ch=len(buf.get_line(line))))
        return buf

    def save(self, path: str | Path) -> None:
        Path(path).write_text(self.text, encoding="utf-8")

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    # -- Editor protocol ------------------------------------------------

    def get_cursor(self) -> Position:
        return self._cursor

    def set_cursor(self, pos: Position) -> None:
        self._cursor = self._clamp(pos)

    def get_line(self, n: int) -> str:
        if n < 0 or n >= len(self._lines):
            raise IndexError(f"Line {n} out of range (0..{len(self._lines) - 1})")
        return self._lines[n]

    def line_count(self) -> int:
        return len(self._lines)

    def get_selection(self) -> str:
        return ""

    def replace_range(self, text: str, start: Position, end: Optional[Position] = None) -> None:
        """Replace text between start and end (insert at start when end is None)."""
        end = end or start
        start, end = self._clamp(start), self._clamp(end)
        if (end.line, end.ch) < (start.line, start.ch):
            start, end = end, start
        before = self._lines[start.line][: start.ch]
        after = self._lines[end.line][end.ch :]
        replacement = (before + text + after).split("\n")
        self._lines[start.line : end.line + 1] = replacement

    def _clamp(self, pos: Position) -> Position:
        line = min(max(pos.line, 0), len(self._lines) - 1)
        ch = min(max(pos.ch, 0), len(self._lines[line]))
        return Position(line=line, ch=ch)
