"""
Folding ranges.

Stories spanning several lines, choices with nested options, block
comments spanning several lines, and matched [if] ... [endif] pairs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List

from exoraven.parser.brackets import BracketPair
from exoraven.parser.parser import ChoiceNode, DocumentNode


class FoldingKind(Enum):
    REGION = "region"
    COMMENT = "comment"


@dataclass(frozen=True)
class FoldingRange:
    start_line: int
    end_line: int
    kind: FoldingKind = FoldingKind.REGION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startLine": self.start_line,
            "endLine": self.end_line,
            "kind": self.kind.value,
        }


def folding_ranges(document: DocumentNode,
                   bracket_pairs: Iterable[BracketPair] = ()) -> List[FoldingRange]:
    """Every foldable region of an analyzed document."""
    ranges: List[FoldingRange] = []

    for story in document.stories:
        if story.range.end.line > story.range.start.line:
            ranges.append(FoldingRange(story.range.start.line, story.range.end.line))
        for choice in story.choices:
            _fold_choice(choice, ranges)

    for block in document.comment_blocks:
        # An unterminated comment folds to the end of the document
        end_line = block.end.line if block.closed else len(document.lines) - 1
        if end_line > block.start.line:
            ranges.append(FoldingRange(block.start.line, end_line, FoldingKind.COMMENT))

    for pair in bracket_pairs:
        if pair.close.line > pair.open.line:
            ranges.append(FoldingRange(pair.open.line, pair.close.line))

    return ranges


def _fold_choice(choice: ChoiceNode, ranges: List[FoldingRange]) -> None:
    if not choice.children:
        return
    end_line = choice.last_line
    if end_line > choice.range.start.line:
        ranges.append(FoldingRange(choice.range.start.line, end_line))
    for child in choice.children:
        _fold_choice(child, ranges)
