"""
Exoscript Lexer (Line Classifier)

Converts raw script text into one classified record per line.
Handles: story headers, tilde directives, choices, choice IDs, jumps,
page breaks, comments, and plain narrative text.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from exoraven.parser.brackets import BracketExpr, find_brackets
from exoraven.parser.diagnostic import Diagnostic, Severity, error, warning
from exoraven.parser.keywords import (
    ASSIGNMENT_COMMANDS,
    BARE_COMMANDS,
    COMMANDS,
    COMMAND_TYPOS,
    CONDITION_COMMANDS,
    DIVIDER_MIN_LENGTH,
    OPTIONAL_EXPRESSION_COMMANDS,
)
from exoraven.parser.source import (
    BlockCommentScanner,
    CommentBlock,
    Range,
    end_of_document,
    split_lines,
)


class LineKind(Enum):
    """Classification of a single source line."""
    EMPTY = auto()              # blank
    COMMENT = auto()            # // ..., or only block-comment text
    IN_COMMENT = auto()         # entirely inside an open /* ... */
    DIVIDER = auto()            # ==== decoration
    STORY_HEADER = auto()       # === storyID
    INVALID_HEADER = auto()     # === with no identifier
    DIRECTIVE = auto()          # ~if, ~set, ...
    UNKNOWN_DIRECTIVE = auto()  # ~word not in the whitelist
    JUMP = auto()               # >, >>, >!
    CHOICE_ID = auto()          # = choiceID
    CHOICE = auto()             # *, **, ... with text
    HIDDEN_CHOICE = auto()      # *= choiceID
    INVALID_CHOICE = auto()     # *= with no identifier
    PAGE_BREAK = auto()         # - alone
    TEXT = auto()               # narrative text
    EOF = auto()                # synthetic end marker


class JumpStyle(Enum):
    """How a jump transfers control."""
    NORMAL = "normal"           # >
    SILENT = "silent"           # >>
    NO_BREAK = "nobreak"        # >! and >>>


@dataclass
class LineRecord:
    """One classified line. Payload fields are set according to `kind`."""
    kind: LineKind
    line: int
    range: Range
    raw: str = ""
    # STORY_HEADER
    story_id: Optional[str] = None
    # DIRECTIVE / UNKNOWN_DIRECTIVE
    command: Optional[str] = None
    expression: str = ""
    expression_start: int = 0
    # JUMP
    jump_style: Optional[JumpStyle] = None
    target: Optional[str] = None
    # CHOICE_ID / HIDDEN_CHOICE
    choice_id: Optional[str] = None
    # CHOICE / HIDDEN_CHOICE / INVALID_CHOICE
    depth: int = 0
    text: str = ""
    # TEXT
    brackets: List[BracketExpr] = field(default_factory=list)

    def __repr__(self):
        return f"LineRecord({self.kind.name}, L{self.line}, {self.raw.strip()!r})"


@dataclass
class LexResult:
    """Everything the lexer learned about a document."""
    records: List[LineRecord]
    diagnostics: List[Diagnostic]
    lines: List[str]
    comment_blocks: List[CommentBlock]


class Lexer:
    """
    Line classifier for Exoscript documents.

    Classification never fails: anything unrecognized becomes TEXT, so
    there is always exactly one record per input line followed by EOF.

    Usage:
        result = Lexer(source_text).tokenize()
        for record in result.records:
            ...
    """

    DIVIDER_RE = re.compile(r"^={%d,}" % DIVIDER_MIN_LENGTH)
    STORY_RE = re.compile(r"^===\s+(\w+)")
    TILDE_RE = re.compile(r"^~(\w+)\s*(.*)$")
    JUMP_RE = re.compile(r"^(>{1,3})(!?)\s*(.*)$")
    CHOICE_ID_RE = re.compile(r"^=\s*(\w+)\s*$")
    CHOICE_RE = re.compile(r"^(\*+)(=?)\s*(.*)$")
    HIDDEN_ID_RE = re.compile(r"^(\w+)\s*$")
    PAGE_BREAK_RE = re.compile(r"^-\s*$")

    def __init__(self, source: str, filename: str = "<unknown>"):
        self.source = source
        self.filename = filename
        self.lines = split_lines(source)
        self.records: List[LineRecord] = []
        self.diagnostics: List[Diagnostic] = []

    def tokenize(self) -> LexResult:
        """Classify every line of the source."""
        scanner = BlockCommentScanner()

        for line_no, raw in enumerate(self.lines):
            masked = scanner.feed(raw, line_no)
            self.records.append(self._classify(line_no, raw, masked.text, masked.fully_commented))

        if scanner.open_block is not None:
            self.diagnostics.append(error(
                "Unclosed block comment",
                Range(scanner.open_block.start, end_of_document(self.lines)),
                "unclosed-comment",
            ))
            scanner.blocks.append(scanner.open_block)

        eof = end_of_document(self.lines)
        self.records.append(LineRecord(LineKind.EOF, eof.line, Range(eof, eof)))

        return LexResult(
            records=self.records,
            diagnostics=self.diagnostics,
            lines=self.lines,
            comment_blocks=scanner.blocks,
        )

    def _classify(self, line_no: int, raw: str, line: str, fully_commented: bool) -> LineRecord:
        """Classify one line. `line` is `raw` with block comments blanked."""
        full = Range.on_line(line_no, 0, len(raw))

        if fully_commented:
            return LineRecord(LineKind.IN_COMMENT, line_no, full, raw)

        trimmed = line.strip()
        if not trimmed:
            kind = LineKind.EMPTY if not raw.strip() else LineKind.COMMENT
            return LineRecord(kind, line_no, full, raw)

        indent = len(line) - len(line.lstrip())
        to_end = Range.on_line(line_no, indent, len(raw))

        if trimmed.startswith("//"):
            return LineRecord(LineKind.COMMENT, line_no, to_end, raw)

        if self.DIVIDER_RE.match(trimmed):
            return LineRecord(LineKind.DIVIDER, line_no, full, raw)

        match = self.STORY_RE.match(trimmed)
        if match:
            return LineRecord(LineKind.STORY_HEADER, line_no, to_end, raw, story_id=match.group(1))

        if trimmed.startswith("==="):
            self.diagnostics.append(error(
                "Invalid story header. Expected: === storyID", to_end, "invalid-story-header"
            ))
            return LineRecord(LineKind.INVALID_HEADER, line_no, to_end, raw)

        match = self.TILDE_RE.match(trimmed)
        if match:
            return self._classify_directive(line_no, raw, indent, to_end, match)

        match = self.JUMP_RE.match(trimmed)
        if match:
            arrows, bang, target = match.group(1), match.group(2), match.group(3).strip()
            if arrows == ">>":
                style = JumpStyle.SILENT
            elif arrows == ">>>" or bang:
                style = JumpStyle.NO_BREAK
            else:
                style = JumpStyle.NORMAL
            return LineRecord(
                LineKind.JUMP, line_no, to_end, raw,
                jump_style=style, target=target or None,
            )

        match = self.CHOICE_ID_RE.match(trimmed)
        if match and not trimmed.startswith("=="):
            return LineRecord(LineKind.CHOICE_ID, line_no, to_end, raw, choice_id=match.group(1))

        match = self.CHOICE_RE.match(trimmed)
        if match:
            return self._classify_choice(line_no, raw, to_end, match)

        if self.PAGE_BREAK_RE.match(trimmed):
            return LineRecord(LineKind.PAGE_BREAK, line_no, Range.on_line(line_no, indent, indent + 1), raw)

        return LineRecord(
            LineKind.TEXT, line_no, full, raw,
            brackets=list(find_brackets(line, line_no)),
        )

    def _classify_directive(self, line_no: int, raw: str, indent: int, to_end: Range, match) -> LineRecord:
        command = match.group(1).lower()
        expression = match.group(2).strip()
        expression_start = indent + match.start(2)
        keyword = Range.on_line(line_no, indent, indent + len(command) + 1)

        if command not in COMMANDS:
            suggestion = COMMAND_TYPOS.get(command)
            if suggestion:
                self.diagnostics.append(error(f"Did you mean ~{suggestion}?", keyword, "typo"))
            else:
                self.diagnostics.append(error(
                    f"Unknown tilde command: ~{command}. Valid commands: {', '.join(COMMANDS)}",
                    keyword,
                    "unknown-tilde-command",
                ))
            return LineRecord(
                LineKind.UNKNOWN_DIRECTIVE, line_no, to_end, raw,
                command=command, expression=expression, expression_start=expression_start,
            )

        self._validate_directive(command, expression, line_no, keyword, expression_start)
        return LineRecord(
            LineKind.DIRECTIVE, line_no, to_end, raw,
            command=command, expression=expression, expression_start=expression_start,
        )

    def _classify_choice(self, line_no: int, raw: str, to_end: Range, match) -> LineRecord:
        depth = len(match.group(1))
        rest = match.group(3).strip()

        if not match.group(2):
            return LineRecord(LineKind.CHOICE, line_no, to_end, raw, depth=depth, text=rest)

        if not rest:
            self.diagnostics.append(error(
                "Hidden choice marker *= requires an ID", to_end, "missing-choice-id"
            ))
            return LineRecord(LineKind.INVALID_CHOICE, line_no, to_end, raw, depth=depth)

        id_match = self.HIDDEN_ID_RE.match(rest)
        choice_id = id_match.group(1) if id_match else rest.split()[0]
        return LineRecord(
            LineKind.HIDDEN_CHOICE, line_no, to_end, raw,
            depth=depth, choice_id=choice_id,
        )

    def _validate_directive(self, command: str, expression: str, line_no: int,
                            keyword: Range, expression_start: int) -> None:
        """Check a whitelisted directive's expression."""
        if command in BARE_COMMANDS:
            return

        if not expression:
            if command in OPTIONAL_EXPRESSION_COMMANDS:
                return
            self.diagnostics.append(warning(
                f"~{command} requires a condition or expression", keyword, "empty-tilde-expression"
            ))
            return

        if command in CONDITION_COMMANDS:
            self.diagnostics.extend(check_parentheses(
                expression, line_no, expression_start,
                "Unbalanced parentheses: unexpected )",
            ))
        elif command in ASSIGNMENT_COMMANDS:
            self.diagnostics.extend(check_parentheses(
                expression, line_no, expression_start,
                "Unbalanced parentheses in set expression",
            ))


def check_parentheses(expression: str, line_no: int, offset: int,
                      extra_close_message: str) -> List[Diagnostic]:
    """
    Report parenthesis imbalance in a single-line expression.

    The first `)` with no matching `(` is reported at its own offset and the
    count restarts from zero; openings still unclosed at the end are
    reported once, spanning the whole expression.
    """
    found: List[Diagnostic] = []
    depth = 0
    reported_close = False

    for i, ch in enumerate(expression):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if depth < 0:
            if not reported_close:
                found.append(Diagnostic(
                    extra_close_message,
                    Range.on_line(line_no, offset + i, offset + i + 1),
                    Severity.ERROR,
                    "unbalanced-parens",
                ))
                reported_close = True
            depth = 0

    if depth > 0:
        found.append(Diagnostic(
            "Unbalanced parentheses: missing )",
            Range.on_line(line_no, offset, offset + len(expression)),
            Severity.ERROR,
            "unbalanced-parens",
        ))

    return found


def tokenize(source: str) -> LexResult:
    """Classify an Exoscript document."""
    return Lexer(source).tokenize()
