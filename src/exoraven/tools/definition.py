"""
Go to definition for jump targets.
"""

import re
from typing import Optional

from exoraven.parser.parser import DocumentNode, jump_targets
from exoraven.parser.source import Range
from exoraven.tools.hover import word_at


JUMP_RE = re.compile(r"^\s*>{1,3}!?\s*(.*)$")


def definition_at(document: DocumentNode, line: int, character: int) -> Optional[Range]:
    """
    Range of the definition a jump target under the cursor refers to.

    `start` leads to the story header. Other pseudo-targets, unknown
    targets, and positions that are not on a jump target give None.
    """
    if not 0 <= line < len(document.lines):
        return None
    text = document.lines[line]

    match = JUMP_RE.match(text)
    if match is None:
        return None

    span = word_at(text, character)
    if span is None:
        return None
    word = text[span[0]:span[1]]
    if word not in jump_targets(match.group(1)):
        return None

    story = document.story_at_line(line)
    if story is None:
        return None
    ref = story.refs.get(word)
    return ref.range if ref is not None else None
