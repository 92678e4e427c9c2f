"""
Conditional-block balance validation.

`[if ...] ... [endif]` blocks may span any number of lines and may have
comments interleaved, so this pass runs over the raw text rather than the
classified lines. Block comments are masked with the same scanner the lexer
uses, which keeps comment boundaries identical between the two passes.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, List, Optional

from exoraven.parser.diagnostic import Diagnostic, error
from exoraven.parser.source import (
    BlockCommentScanner,
    Range,
    split_lines,
    strip_line_comment,
)


BRACKET_RE = re.compile(r"\[([^\]]*)\]")


class BracketRole(Enum):
    """What a bracket expression does to conditional-block nesting."""
    OPEN = auto()           # [if cond], [if random]
    MIDDLE = auto()         # [else], [elseif cond], [or], [|]
    CLOSE = auto()          # [endif], [end]
    INTERPOLATION = auto()  # [=var_name]


@dataclass(frozen=True)
class BracketExpr:
    """One `[...]` occurrence on a line."""
    content: str            # text between the brackets, stripped
    role: Optional[BracketRole]
    line: int
    start: int              # offset of '['
    end: int                # offset just past ']'

    @property
    def range(self) -> Range:
        return Range.on_line(self.line, self.start, self.end)


def classify_bracket(content: str) -> Optional[BracketRole]:
    """Role of a bracket expression, or None for literal bracketed text."""
    word = content.strip().lower()
    if word == "if" or word.startswith("if "):
        return BracketRole.OPEN
    if word in ("endif", "end"):
        return BracketRole.CLOSE
    if word in ("else", "elseif", "or", "|") or word.startswith(("else ", "elseif ", "or ")):
        return BracketRole.MIDDLE
    if word.startswith("="):
        return BracketRole.INTERPOLATION
    return None


def find_brackets(line: str, line_no: int) -> Iterator[BracketExpr]:
    """Yield the bracket expressions of one line, left to right."""
    for match in BRACKET_RE.finditer(line):
        content = match.group(1).strip()
        yield BracketExpr(
            content=content,
            role=classify_bracket(content),
            line=line_no,
            start=match.start(),
            end=match.end(),
        )


@dataclass(frozen=True)
class BracketPair:
    """A matched opening and closing bracket."""
    open: BracketExpr
    close: BracketExpr


@dataclass
class BracketReport:
    """Result of validating a document's conditional blocks."""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    pairs: List[BracketPair] = field(default_factory=list)


class BracketValidator:
    """
    Checks that conditional blocks open and close in order.

    Usage:
        report = BracketValidator(text).validate()
    """

    def __init__(self, text: str):
        self.lines = split_lines(text)

    def validate(self) -> BracketReport:
        report = BracketReport()
        stack: List[BracketExpr] = []
        scanner = BlockCommentScanner()

        for line_no, raw in enumerate(self.lines):
            masked = scanner.feed(raw, line_no)
            if masked.fully_commented:
                continue
            visible = strip_line_comment(masked.text)

            for expr in find_brackets(visible, line_no):
                if expr.role is BracketRole.OPEN:
                    stack.append(expr)
                elif expr.role is BracketRole.CLOSE:
                    if stack:
                        report.pairs.append(BracketPair(stack.pop(), expr))
                    else:
                        report.diagnostics.append(error(
                            f"Unexpected [{expr.content.lower()}] - no matching [if]",
                            expr.range,
                            "unmatched-endif",
                        ))
                elif expr.role is BracketRole.MIDDLE and not stack:
                    report.diagnostics.append(error(
                        f"[{expr.content}] outside of [if] block",
                        expr.range,
                        "orphaned-else",
                    ))

        for frame in stack:
            report.diagnostics.append(error(
                "Unclosed [if] - missing [endif] or [end]",
                Range.on_line(frame.line, frame.start, frame.start + 3),
                "unclosed-if",
            ))

        return report


def validate_brackets(text: str) -> BracketReport:
    """Validate conditional-block nesting across the whole document."""
    return BracketValidator(text).validate()
