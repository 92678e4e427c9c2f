"""
Context completions for Exoscript documents.

The suggestion list depends only on the text before the cursor:
- `~` at line start: tilde commands
- a jump prefix: the story's choice IDs plus pseudo-targets
- `[`: bracket keywords
- a partial prefix word, a directive expression, or `[=`: variable prefixes
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from exoraven.parser.parser import DocumentNode


class CompletionKind(Enum):
    """Item kinds, valued as editors number them."""
    FUNCTION = 3
    VARIABLE = 6
    KEYWORD = 14
    REFERENCE = 18
    OPERATOR = 24


@dataclass(frozen=True)
class CompletionItem:
    label: str
    kind: CompletionKind
    detail: str = ""
    documentation: str = ""
    insert_text: Optional[str] = None    # snippet syntax when set

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "label": self.label,
            "kind": self.kind.value,
            "detail": self.detail,
            "documentation": self.documentation,
        }
        if self.insert_text is not None:
            result["insertText"] = self.insert_text
            result["insertTextFormat"] = 2
        return result


TILDE_COMPLETIONS = [
    CompletionItem("if", CompletionKind.KEYWORD, "Requirement condition",
                   "The choice/story is only available if the condition is true.",
                   "if ${1:condition}"),
    CompletionItem("ifd", CompletionKind.KEYWORD, "Requirement (show disabled)",
                   "Like ~if, but shows the choice as disabled instead of hiding it.",
                   "ifd ${1:condition}"),
    CompletionItem("set", CompletionKind.KEYWORD, "Set variable",
                   "Set a variable to a value when this choice is selected.",
                   "set ${1:variable} = ${2:value}"),
    CompletionItem("setif", CompletionKind.KEYWORD, "Conditional set",
                   "Conditionally set a variable based on a condition.",
                   "setif ${1:condition} ? ${2:variable} = ${3:value}"),
    CompletionItem("call", CompletionKind.KEYWORD, "Call function",
                   "Call a game function when this choice is selected.",
                   "call ${1:function}()"),
    CompletionItem("callif", CompletionKind.KEYWORD, "Conditional call",
                   "Conditionally call a function based on a condition.",
                   "callif ${1:condition} ? ${2:function}()"),
    CompletionItem("disabled", CompletionKind.KEYWORD, "Disable file",
                   "Marks this file as disabled. The entire file will be skipped."),
    CompletionItem("once", CompletionKind.KEYWORD, "One-time event",
                   "This choice/story can only be selected once per playthrough."),
]

PREFIX_COMPLETIONS = [
    CompletionItem("var_", CompletionKind.VARIABLE, "Story-scoped variable",
                   "Resets when the story ends.", "var_${1:name}"),
    CompletionItem("mem_", CompletionKind.VARIABLE, "Game-scoped memory",
                   "Persists across stories within the same playthrough.", "mem_${1:name}"),
    CompletionItem("hog_", CompletionKind.VARIABLE, "Groundhog variable",
                   "Persists across groundhog loops (new game+).", "hog_${1:name}"),
    CompletionItem("skill_", CompletionKind.VARIABLE, "Character skill",
                   "Character skill value (0-100+).", "skill_${1:name}"),
    CompletionItem("love_", CompletionKind.VARIABLE, "Relationship value",
                   "Relationship value with a character.", "love_${1:character}"),
    CompletionItem("story_", CompletionKind.VARIABLE, "Story flag",
                   "Tracks whether a story event has happened.", "story_${1:name}"),
    CompletionItem("call_", CompletionKind.FUNCTION, "Function call",
                   "Calls a game function and returns its value.", "call_${1:function}()"),
]

BRACKET_COMPLETIONS = [
    CompletionItem("if", CompletionKind.KEYWORD, "Conditional block",
                   "Text only appears if condition is true.",
                   "if ${1:condition}]${2:text}[endif"),
    CompletionItem("if random", CompletionKind.KEYWORD, "Random selection",
                   "Randomly choose between options.",
                   "if random]${1:option1}[or]${2:option2}[endif"),
    CompletionItem("else", CompletionKind.KEYWORD, "Alternative branch",
                   "Text when the [if] condition is false."),
    CompletionItem("elseif", CompletionKind.KEYWORD, "Additional condition",
                   "Additional condition check within an [if] block.",
                   "elseif ${1:condition}"),
    CompletionItem("endif", CompletionKind.KEYWORD, "End conditional",
                   "Ends an [if] conditional block."),
    CompletionItem("end", CompletionKind.KEYWORD, "End conditional",
                   "Ends an [if] conditional block (alternative to [endif])."),
    CompletionItem("or", CompletionKind.KEYWORD, "Random alternative",
                   "Alternative option in a random block."),
    CompletionItem("=", CompletionKind.OPERATOR, "Variable interpolation",
                   "Insert variable value into text.", "=${1:variable}"),
]

SPECIAL_JUMP_COMPLETIONS = [
    CompletionItem("start", CompletionKind.REFERENCE, "Jump to start",
                   "Jumps to the beginning of the current story."),
    CompletionItem("end", CompletionKind.REFERENCE, "End story",
                   "Ends the current story and returns to the previous context."),
    CompletionItem("back", CompletionKind.REFERENCE, "Go back",
                   "Returns to the previous choice point."),
    CompletionItem("backonce", CompletionKind.REFERENCE, "Go back (once)",
                   "Returns to the previous choice point (one-time)."),
    CompletionItem("startonce", CompletionKind.REFERENCE, "Start over (once)",
                   "Jumps to the start of the story (one-time)."),
]

TILDE_RE = re.compile(r"^~\w*$")
JUMP_RE = re.compile(r"^>{1,3}!?\s*\w*$")
BRACKET_RE = re.compile(r"\[\s*\w*$")
PARTIAL_PREFIX_RE = re.compile(r"\b(var|mem|hog|skill|love|story|call)_?$")
EXPRESSION_RE = re.compile(r"^~(if|ifd|set|setif|call|callif)\s+.*$", re.IGNORECASE)
INTERPOLATION_RE = re.compile(r"\[=\w*$")


def completions_at(document: DocumentNode, line: int, character: int) -> List[CompletionItem]:
    """Suggestions for the cursor position; empty when no context applies."""
    text = document.lines[line] if 0 <= line < len(document.lines) else ""
    before = text[:character]
    trimmed = before.lstrip()

    if TILDE_RE.match(trimmed):
        return list(TILDE_COMPLETIONS)

    if JUMP_RE.match(trimmed):
        return jump_completions(document, line)

    if BRACKET_RE.search(before):
        return list(BRACKET_COMPLETIONS)

    match = PARTIAL_PREFIX_RE.search(before)
    if match:
        typed = match.group(1)
        return [item for item in PREFIX_COMPLETIONS if item.label.startswith(typed)]

    if EXPRESSION_RE.match(trimmed):
        return list(PREFIX_COMPLETIONS)

    if INTERPOLATION_RE.search(before):
        # Plain names; the `[=` is already typed
        return [
            CompletionItem(item.label, item.kind, item.detail, item.documentation)
            for item in PREFIX_COMPLETIONS
        ]

    return []


def jump_completions(document: DocumentNode, line: int) -> List[CompletionItem]:
    """Pseudo-targets, then the choice IDs of the story containing `line`."""
    items = list(SPECIAL_JUMP_COMPLETIONS)
    story = document.story_at_line(line)
    if story is None:
        return items

    for ref_id, ref in story.refs.items():
        if ref_id == "start":
            continue
        items.append(CompletionItem(
            ref_id,
            CompletionKind.REFERENCE,
            "Hidden choice" if ref.hidden else "Choice ID",
            f"Defined at line {ref.range.start.line + 1}",
        ))
    return items
