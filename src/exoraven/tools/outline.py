"""
Document outline.

One symbol per story; under it the story's choice IDs and its choice tree,
ordered by line.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from exoraven.parser.parser import ChoiceNode, ChoiceRef, DocumentNode, StoryNode
from exoraven.parser.source import Range


PREVIEW_LENGTH = 40


class SymbolKind(Enum):
    """Symbol kinds, valued as editors number them."""
    MODULE = 2      # story
    KEY = 20        # choice ID, or a choice that has one
    EVENT = 24      # plain choice


@dataclass
class DocumentSymbol:
    name: str
    kind: SymbolKind
    range: Range
    selection_range: Range
    children: List["DocumentSymbol"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "name": self.name,
            "kind": self.kind.value,
            "range": self.range.to_dict(),
            "selectionRange": self.selection_range.to_dict(),
        }
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


def document_symbols(document: DocumentNode) -> List[DocumentSymbol]:
    """Outline of every story in the document."""
    return [story_symbol(story) for story in document.stories]


def story_symbol(story: StoryNode) -> DocumentSymbol:
    children = [ref_symbol(ref) for key, ref in story.refs.items() if key != "start"]
    children.extend(choice_symbol(choice) for choice in story.choices)
    children.sort(key=lambda symbol: symbol.range.start.line)

    return DocumentSymbol(
        name=story.id,
        kind=SymbolKind.MODULE,
        range=story.range,
        selection_range=story.header_range,
        children=children,
    )


def ref_symbol(ref: ChoiceRef) -> DocumentSymbol:
    prefix = "*= " if ref.hidden else "= "
    return DocumentSymbol(prefix + ref.id, SymbolKind.KEY, ref.range, ref.range)


def choice_label(choice: ChoiceNode) -> str:
    """`**= id` for a choice with an ID, else the stars and a text preview."""
    stars = "*" * choice.depth
    if choice.ref is not None:
        return f"{stars}= {choice.ref.id}"
    preview = choice.text[:PREVIEW_LENGTH]
    if len(choice.text) > PREVIEW_LENGTH:
        preview += "..."
    return f"{stars} {preview or '(empty)'}"


def choice_symbol(choice: ChoiceNode) -> DocumentSymbol:
    return DocumentSymbol(
        name=choice_label(choice),
        kind=SymbolKind.KEY if choice.ref is not None else SymbolKind.EVENT,
        range=choice.range,
        selection_range=choice.range,
        children=[choice_symbol(child) for child in choice.children],
    )
