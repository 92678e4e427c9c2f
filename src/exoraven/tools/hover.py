"""
Hover text for Exoscript documents.

Given a zero-based line/character, describes the command keyword,
variable prefix, bracket keyword, jump target or choice ID under the cursor.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from exoraven.parser.keywords import is_special_target
from exoraven.parser.parser import DocumentNode, jump_targets
from exoraven.parser.source import Range


# command -> (syntax, description)
COMMAND_DOCS = {
    "if": ("~if condition",
           "Requirement condition. The choice/story is only available if the condition is true."),
    "ifd": ("~ifd condition",
            "Requirement condition (show disabled). Like ~if, but shows the choice as "
            "disabled instead of hiding it."),
    "set": ("~set variable = value",
            "Set a variable to a value when this choice is selected."),
    "setif": ("~setif condition ? variable = value",
              "Conditionally set a variable based on a condition."),
    "call": ("~call function()",
             "Call a game function when this choice is selected."),
    "callif": ("~callif condition ? function()",
               "Conditionally call a function based on a condition."),
    "disabled": ("~disabled",
                 "Marks this file as disabled. The entire file will be skipped."),
    "once": ("~once",
             "This choice/story can only be selected once per playthrough."),
}

# prefix -> (name, description)
PREFIX_DOCS = {
    "var_": ("Story Variable", "Story-scoped variable. Resets when the story ends."),
    "mem_": ("Memory Variable",
             "Game-scoped memory. Persists across stories within the same playthrough."),
    "hog_": ("Groundhog Variable",
             "Persistent variable. Survives across groundhog loops (new game+)."),
    "skill_": ("Skill", "Character skill value (0-100+). Affects various checks and outcomes."),
    "love_": ("Relationship",
              "Relationship value with a character. Affects dialogue and romance options."),
    "story_": ("Story Flag", "Story occurrence flag. Tracks whether a story event has happened."),
    "call_": ("Function Call", "Calls a game function and returns its value."),
}

BRACKET_DOCS = {
    "if": "Conditional text block. Text only appears if condition is true.",
    "else": "Alternative text when the [if] condition is false.",
    "elseif": "Additional condition check within an [if] block.",
    "endif": "Ends an [if] conditional block.",
    "end": "Ends an [if] conditional block (alternative to [endif]).",
    "or": "Alternative option in a random block. One option is chosen randomly.",
    "random": "Starts a random selection block. Use with [or] for alternatives.",
}

SPECIAL_TARGET_DOCS = {
    "start": "Jumps to the beginning of the current story.",
    "end": "Ends the current story and returns to the previous context.",
    "back": "Returns to the previous choice point.",
    "backonce": "Returns to the previous choice point (one-time).",
    "startonce": "Jumps to the start of the story (one-time).",
}

WORD_RE = re.compile(r"\w+")
DIRECTIVE_RE = re.compile(r"^(\s*)~(\w+)")
BRACKET_WORD_RE = re.compile(r"\[(\w+)")
JUMP_RE = re.compile(r"^\s*>{1,3}!?\s*(.*)$")
CHOICE_ID_RE = re.compile(r"^\s*\**=\s*(\w+)")


@dataclass
class Hover:
    """Markdown shown for a position, and the word it describes."""
    contents: str
    range: Range

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contents": {"kind": "markdown", "value": self.contents},
            "range": self.range.to_dict(),
        }


def word_at(line: str, character: int) -> Optional[Tuple[int, int]]:
    """Span of the word touching `character` (either edge counts)."""
    for match in WORD_RE.finditer(line):
        if match.start() <= character <= match.end():
            return match.start(), match.end()
    return None


def hover_at(document: DocumentNode, line: int, character: int) -> Optional[Hover]:
    """Hover text for a position, or None when nothing there is recognized."""
    if not 0 <= line < len(document.lines):
        return None
    text = document.lines[line]

    span = word_at(text, character)
    if span is None:
        return None
    start, end = span
    word = text[start:end]
    word_range = Range.on_line(line, start, end)

    # Command keyword
    match = DIRECTIVE_RE.match(text)
    if match and match.start(2) == start:
        command = match.group(2).lower()
        if command in COMMAND_DOCS:
            syntax, description = COMMAND_DOCS[command]
            return Hover(f"**~{command}**\n\nSyntax: `{syntax}`\n\n{description}", word_range)

    # Variable prefix
    for prefix, (name, description) in PREFIX_DOCS.items():
        if word.startswith(prefix):
            return Hover(f"**{name}**: `{word}`\n\n{description}", word_range)

    # Bracket keyword
    for match in BRACKET_WORD_RE.finditer(text):
        if match.start() <= character <= match.end():
            keyword = match.group(1).lower()
            if keyword in BRACKET_DOCS:
                return Hover(f"**[{keyword}]**\n\n{BRACKET_DOCS[keyword]}", word_range)

    # Jump target
    match = JUMP_RE.match(text)
    if match and word in jump_targets(match.group(1)):
        story = document.story_at_line(line)
        if story is not None:
            return Hover(_describe_target(story.refs, word), word_range)

    # Choice ID definition
    match = CHOICE_ID_RE.match(text)
    if match and match.start(1) == start:
        return Hover(
            f"**Choice ID**: `{word}`\n\n"
            f"This ID can be used as a jump target with `> {word}`",
            word_range,
        )

    return None


def _describe_target(refs, target: str) -> str:
    ref = refs.get(target)
    # The seeded start entry is the header itself, not a user definition
    if ref is not None and target != "start":
        hidden = " (hidden choice)" if ref.hidden else ""
        return (f"**Jump Target**: `{target}`\n\n"
                f"Defined at line {ref.range.start.line + 1}{hidden}")
    if is_special_target(target):
        key = target.lower()
        return f"**{key}**\n\n{SPECIAL_TARGET_DOCS[key]}"
    return (f"**Jump Target**: `{target}`\n\n"
            f"Unknown target - not defined in this story")
