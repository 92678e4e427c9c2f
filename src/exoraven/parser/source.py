"""
Source positions and comment masking for Exoscript documents.

Everything here works on zero-based line/character offsets. Block comments
are masked (replaced by spaces) rather than removed so that offsets computed
on the masked text are valid in the original line.
"""

from dataclasses import dataclass
from typing import Dict, Any, List, Optional


@dataclass(frozen=True)
class Position:
    """A zero-based line/character location."""
    line: int
    character: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    """A span between two positions, end exclusive."""
    start: Position
    end: Position

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> "Range":
        """Range covering [start, end) of a single line."""
        return cls(Position(line, start), Position(line, end))

    def contains_line(self, line: int) -> bool:
        return self.start.line <= line <= self.end.line

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


def split_lines(text: str) -> List[str]:
    """Split on \\n, dropping a \\r that precedes it."""
    lines = text.split("\n")
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def end_of_document(lines: List[str]) -> Position:
    """Position just past the last character of the document."""
    last = len(lines) - 1
    return Position(last, len(lines[last]) if last >= 0 else 0)


@dataclass
class CommentBlock:
    """A block comment that spans more than one line."""
    start: Position
    end: Optional[Position] = None   # None while unterminated

    @property
    def closed(self) -> bool:
        return self.end is not None


@dataclass
class MaskedLine:
    """One line after block comments have been blanked out."""
    text: str
    fully_commented: bool = False    # whole line inside a comment opened earlier
    had_comment: bool = False        # some part of the line was masked


class BlockCommentScanner:
    """
    Line-by-line `/* ... */` tracker.

    Feed lines in order; each call returns the line with comment text
    replaced by spaces. The only carried state is whether a comment is
    still open at the end of the previous line.

    Usage:
        scanner = BlockCommentScanner()
        for n, line in enumerate(lines):
            masked = scanner.feed(line, n)
        if scanner.open_block:
            ...  # unterminated comment
    """

    OPEN = "/*"
    CLOSE = "*/"

    def __init__(self):
        self.open_block: Optional[CommentBlock] = None
        self.blocks: List[CommentBlock] = []

    @property
    def in_comment(self) -> bool:
        return self.open_block is not None

    def feed(self, line: str, line_no: int) -> MaskedLine:
        chars = list(line)
        pos = 0
        had_comment = False

        if self.open_block is not None:
            end = line.find(self.CLOSE)
            if end == -1:
                return MaskedLine(" " * len(line), fully_commented=True, had_comment=True)
            self._blank(chars, 0, end + 2)
            self.open_block.end = Position(line_no, end + 2)
            self.blocks.append(self.open_block)
            self.open_block = None
            pos = end + 2
            had_comment = True

        while True:
            start = line.find(self.OPEN, pos)
            if start == -1:
                break
            had_comment = True
            end = line.find(self.CLOSE, start + 2)
            if end == -1:
                self._blank(chars, start, len(line))
                self.open_block = CommentBlock(start=Position(line_no, start))
                break
            self._blank(chars, start, end + 2)
            pos = end + 2

        return MaskedLine("".join(chars), had_comment=had_comment)

    @staticmethod
    def _blank(chars: List[str], start: int, end: int) -> None:
        for i in range(start, end):
            chars[i] = " "


def strip_line_comment(line: str) -> str:
    """Drop everything from the first `//` on."""
    idx = line.find("//")
    return line if idx == -1 else line[:idx]
