"""
Exoscript Parser

Builds a tree of stories and choices from the lexer's line records.
Handles choice nesting, choice-ID registration, jumps, and the
cross-reference pass that resolves jump targets once every story is built.
"""

import itertools
import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from exoraven.parser.diagnostic import Diagnostic, error, warning
from exoraven.parser.keywords import (
    MUTATION_COMMANDS,
    REQUIREMENT_COMMANDS,
    is_special_target,
)
from exoraven.parser.lexer import JumpStyle, LexResult, LineKind, LineRecord, Lexer
from exoraven.parser.source import CommentBlock, Position, Range

logger = logging.getLogger(__name__)


class NodeType(Enum):
    """Types of tree nodes."""
    DOCUMENT = auto()
    STORY = auto()
    CHOICE = auto()
    CHOICE_REF = auto()
    JUMP = auto()
    DIRECTIVE = auto()


@dataclass
class DirectiveNode:
    """A `~command expression` line."""
    command: str
    expression: str
    range: Range
    node_type: NodeType = NodeType.DIRECTIVE

    def __repr__(self):
        return f"Directive(~{self.command} {self.expression})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_type": "directive",
            "command": self.command,
            "expression": self.expression,
            "range": self.range.to_dict(),
        }


@dataclass
class ChoiceRef:
    """Definition of an identifier usable as a jump target."""
    id: str
    range: Range
    hidden: bool = False    # *= id rather than = id
    node_type: NodeType = NodeType.CHOICE_REF

    def __repr__(self):
        return f"ChoiceRef({'*=' if self.hidden else '='} {self.id})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_type": "choice_ref",
            "id": self.id,
            "hidden": self.hidden,
            "range": self.range.to_dict(),
        }


@dataclass
class JumpNode:
    """A `>`, `>>` or `>!` line inside a choice."""
    target: str
    range: Range
    style: JumpStyle = JumpStyle.NORMAL
    node_type: NodeType = NodeType.JUMP

    def __repr__(self):
        return f"Jump({self.style.value} -> {self.target!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_type": "jump",
            "target": self.target,
            "style": self.style.value,
            "range": self.range.to_dict(),
        }


@dataclass
class ChoiceNode:
    """One `*` option. Children are the options one level deeper."""
    depth: int
    text: str
    range: Range
    ref: Optional[ChoiceRef] = None
    requirements: List[DirectiveNode] = field(default_factory=list)
    mutations: List[DirectiveNode] = field(default_factory=list)
    jumps: List[JumpNode] = field(default_factory=list)
    page_breaks: List[Range] = field(default_factory=list)
    children: List["ChoiceNode"] = field(default_factory=list)
    node_type: NodeType = NodeType.CHOICE

    def __repr__(self):
        label = f"= {self.ref.id}" if self.ref else repr(self.text)
        return f"Choice({'*' * self.depth} {label}, {len(self.children)} children)"

    def walk(self):
        """Yield this choice and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    @property
    def last_line(self) -> int:
        """Line of the deepest, latest descendant (or of this choice)."""
        return max(choice.range.end.line for choice in self.walk())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_type": "choice",
            "depth": self.depth,
            "text": self.text,
            "id": self.ref.id if self.ref else None,
            "range": self.range.to_dict(),
            "requirements": [r.to_dict() for r in self.requirements],
            "mutations": [m.to_dict() for m in self.mutations],
            "jumps": [j.to_dict() for j in self.jumps],
            "page_breaks": [r.to_dict() for r in self.page_breaks],
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class StoryNode:
    """A `=== id` story and everything up to the next header."""
    id: str
    range: Range
    header_range: Range
    requirements: List[DirectiveNode] = field(default_factory=list)
    mutations: List[DirectiveNode] = field(default_factory=list)
    choices: List[ChoiceNode] = field(default_factory=list)
    refs: Dict[str, ChoiceRef] = field(default_factory=dict)
    node_type: NodeType = NodeType.STORY

    def __repr__(self):
        return f"Story({self.id}, {len(self.choices)} choices)"

    def all_choices(self):
        """Every choice in the story, depth first."""
        for choice in self.choices:
            yield from choice.walk()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_type": "story",
            "id": self.id,
            "range": self.range.to_dict(),
            "header_range": self.header_range.to_dict(),
            "requirements": [r.to_dict() for r in self.requirements],
            "mutations": [m.to_dict() for m in self.mutations],
            "refs": {key: ref.to_dict() for key, ref in self.refs.items()},
            "choices": [c.to_dict() for c in self.choices],
        }


@dataclass
class DocumentNode:
    """Root of the tree. Rebuilt from scratch for every text change."""
    stories: List[StoryNode] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    disabled: bool = False
    comment_blocks: List[CommentBlock] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)
    filename: str = "<unknown>"
    node_type: NodeType = NodeType.DOCUMENT

    def __repr__(self):
        return f"Document({self.filename}, {len(self.stories)} stories)"

    def story_at_line(self, line: int) -> Optional[StoryNode]:
        """The story whose span contains `line`."""
        for story in self.stories:
            if story.range.contains_line(line):
                return story
        return None

    def get_story(self, story_id: str) -> Optional[StoryNode]:
        for story in self.stories:
            if story.id == story_id:
                return story
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_type": "document",
            "filename": self.filename,
            "disabled": self.disabled,
            "stories": [s.to_dict() for s in self.stories],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class Parser:
    """
    Tree builder for Exoscript documents.

    Never raises on malformed input: every structural problem becomes a
    diagnostic and the offending line is still placed in the tree where
    that keeps later consumers working.

    Usage:
        document = Parser(Lexer(text).tokenize()).parse()
    """

    # Significant records inspected for a leading ~disabled
    DISABLED_LOOKAHEAD = 10

    # Lines that do not count toward DISABLED_LOOKAHEAD
    BLANK_KINDS = frozenset({LineKind.EMPTY, LineKind.COMMENT, LineKind.IN_COMMENT})

    CONDITIONAL_TARGET_RE = re.compile(r"^if\s+.+\s+\?\s+(\w+)\s*:\s*(\w+)$")

    # Lines that count as story content when found before any header
    CONTENT_KINDS = frozenset({
        LineKind.TEXT,
        LineKind.CHOICE,
        LineKind.HIDDEN_CHOICE,
        LineKind.CHOICE_ID,
        LineKind.JUMP,
        LineKind.PAGE_BREAK,
        LineKind.DIRECTIVE,
    })

    # Lines that never precede a well-placed ~disabled
    NEUTRAL_KINDS = frozenset({
        LineKind.EMPTY,
        LineKind.COMMENT,
        LineKind.IN_COMMENT,
        LineKind.DIVIDER,
    })

    def __init__(self, lexed: LexResult, filename: str = "<unknown>"):
        self.lexed = lexed
        self.records = lexed.records
        self.lines = lexed.lines
        self.filename = filename
        self.diagnostics: List[Diagnostic] = list(lexed.diagnostics)
        self.stories: List[StoryNode] = []
        self.disabled = False
        # Open choices, outermost first
        self._stack: List[ChoiceNode] = []
        self._story: Optional[StoryNode] = None
        self._seen_content = False

    def parse(self) -> DocumentNode:
        """Build the story tree, then resolve jump targets."""
        self.disabled = self._detect_disabled()

        for record in self.records:
            if record.kind is LineKind.EOF:
                break
            self._handle(record)

        self._close_story(len(self.lines) - 1)
        self._resolve_jumps()

        logger.debug(f"Parsed {self.filename}: {len(self.stories)} stories, "
                     f"{len(self.diagnostics)} diagnostics")

        return DocumentNode(
            stories=self.stories,
            diagnostics=self.diagnostics,
            disabled=self.disabled,
            comment_blocks=self.lexed.comment_blocks,
            lines=self.lines,
            filename=self.filename,
        )

    def _detect_disabled(self) -> bool:
        significant = (r for r in self.records if r.kind not in self.BLANK_KINDS)
        for record in itertools.islice(significant, self.DISABLED_LOOKAHEAD):
            if record.kind is LineKind.STORY_HEADER:
                return False
            if record.kind is LineKind.DIRECTIVE and record.command == "disabled":
                return True
        return False

    @property
    def _current(self) -> Optional[ChoiceNode]:
        return self._stack[-1] if self._stack else None

    # ------------------------------------------------------------------
    # Record dispatch
    # ------------------------------------------------------------------

    def _handle(self, record: LineRecord) -> None:
        kind = record.kind

        if kind is LineKind.DIRECTIVE and record.command == "disabled":
            # Inside a story the directive is ignored
            if self._seen_content and self._story is None:
                self.diagnostics.append(warning(
                    "~disabled should be on the first line of the file",
                    record.range,
                    "misplaced-disabled",
                ))
            self._seen_content = True
            return

        if kind not in self.NEUTRAL_KINDS:
            self._seen_content = True

        if kind is LineKind.STORY_HEADER:
            self._open_story(record)
            return

        if self._story is None:
            if kind in self.CONTENT_KINDS and not self.disabled:
                self.diagnostics.append(warning(
                    "Content found before story header. Expected: === storyID",
                    record.range,
                    "content-before-story",
                ))
            return

        if kind is LineKind.DIRECTIVE:
            self._add_directive(record)
        elif kind is LineKind.CHOICE:
            self._add_choice(ChoiceNode(depth=record.depth, text=record.text, range=record.range))
        elif kind is LineKind.CHOICE_ID:
            ref = self._register(record, hidden=False)
            current = self._current
            if current is not None and current.ref is None:
                current.ref = ref
        elif kind is LineKind.HIDDEN_CHOICE:
            ref = self._register(record, hidden=True)
            self._add_choice(ChoiceNode(depth=record.depth, text="", range=record.range, ref=ref))
        elif kind is LineKind.JUMP:
            self._add_jump(record)
        elif kind is LineKind.PAGE_BREAK:
            if self._current is not None:
                self._current.page_breaks.append(record.range)

    # ------------------------------------------------------------------
    # Stories
    # ------------------------------------------------------------------

    def _open_story(self, record: LineRecord) -> None:
        self._close_story(record.line - 1)
        story = StoryNode(id=record.story_id, range=record.range, header_range=record.range)
        story.refs["start"] = ChoiceRef(id="start", range=record.range, hidden=True)
        self._story = story
        self._stack = []
        self.stories.append(story)

    def _close_story(self, last_line: int) -> None:
        story = self._story
        if story is None:
            return
        last_line = max(last_line, story.header_range.start.line)
        end = Position(last_line, len(self.lines[last_line]))
        if last_line == story.header_range.start.line:
            end = story.header_range.end
        story.range = Range(story.header_range.start, end)
        self._story = None

    # ------------------------------------------------------------------
    # Story content
    # ------------------------------------------------------------------

    def _add_directive(self, record: LineRecord) -> None:
        node = DirectiveNode(command=record.command, expression=record.expression, range=record.range)
        owner = self._current if self._current is not None else self._story
        if record.command in REQUIREMENT_COMMANDS:
            owner.requirements.append(node)
        elif record.command in MUTATION_COMMANDS:
            owner.mutations.append(node)

    def _add_choice(self, choice: ChoiceNode) -> None:
        depth = choice.depth
        while self._stack and self._stack[-1].depth >= depth:
            self._stack.pop()

        parent = self._current
        if parent is not None and parent.depth == depth - 1:
            parent.children.append(choice)
        else:
            if depth > 1:
                self.diagnostics.append(error(
                    f"Choice level {depth} has no parent choice",
                    choice.range,
                    "orphaned-choice",
                ))
            self._story.choices.append(choice)

        self._stack.append(choice)

    def _register(self, record: LineRecord, hidden: bool) -> ChoiceRef:
        """Add a choice ID to the story's table; the first definition wins."""
        ref = ChoiceRef(id=record.choice_id, range=record.range, hidden=hidden)
        refs = self._story.refs
        if ref.id in refs:
            self.diagnostics.append(error(
                f"Duplicate choice ID: {ref.id}",
                record.range,
                "duplicate-choice-id",
            ))
        else:
            refs[ref.id] = ref
        return ref

    def _add_jump(self, record: LineRecord) -> None:
        if self._current is None:
            self.diagnostics.append(warning(
                "Jump found outside of a choice",
                record.range,
                "orphaned-jump",
            ))
            return
        self._current.jumps.append(JumpNode(
            target=record.target or "",
            range=record.range,
            style=record.jump_style,
        ))

    # ------------------------------------------------------------------
    # Cross references
    # ------------------------------------------------------------------

    def _resolve_jumps(self) -> None:
        for story in self.stories:
            for choice in story.all_choices():
                for jump in choice.jumps:
                    for target in jump_targets(jump.target):
                        if target not in story.refs and not is_special_target(target):
                            self.diagnostics.append(warning(
                                f"Unknown jump target: {target}",
                                jump.range,
                                "unknown-jump-target",
                            ))


def jump_targets(target: str) -> List[str]:
    """
    Identifiers a jump target expression refers to.

    `if <cond> ? a : b` names both a and b; anything else names its first
    word (so `> backonce extra` resolves `backonce`).
    """
    target = target.strip()
    if not target:
        return []
    match = Parser.CONDITIONAL_TARGET_RE.match(target)
    if match:
        return [match.group(1), match.group(2)]
    return [target.split()[0]]


def parse_source(source: str, filename: str = "<unknown>") -> DocumentNode:
    """Parse source text into a document tree."""
    lexed = Lexer(source, filename).tokenize()
    return Parser(lexed, filename).parse()


def read_source(filepath: str) -> str:
    """Read a script file, falling back through common encodings."""
    # latin-1 always succeeds
    for encoding in ['utf-8-sig', 'utf-8', 'latin-1']:
        try:
            with open(filepath, 'r', encoding=encoding, newline='') as f:
                return f.read()
        except UnicodeDecodeError:
            continue
    raise AssertionError("latin-1 decoding cannot fail")


def parse_file(filepath: str) -> DocumentNode:
    """Parse a file into a document tree."""
    return parse_source(read_source(filepath), filepath)
