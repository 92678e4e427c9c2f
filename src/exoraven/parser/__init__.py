"""
exoraven.parser - Exoscript Parser

Line classifier, tree builder and bracket validator for Exoscript files.
Converts script text into a story/choice tree plus diagnostics.
"""

from exoraven.parser.source import Position, Range, BlockCommentScanner, CommentBlock
from exoraven.parser.diagnostic import Diagnostic, Severity
from exoraven.parser.lexer import Lexer, LexResult, LineKind, LineRecord, JumpStyle, tokenize
from exoraven.parser.parser import (
    Parser,
    parse_file,
    parse_source,
    read_source,
    jump_targets,
    # Tree node types
    NodeType,
    DocumentNode,
    StoryNode,
    ChoiceNode,
    ChoiceRef,
    JumpNode,
    DirectiveNode,
)
from exoraven.parser.brackets import (
    BracketExpr,
    BracketPair,
    BracketReport,
    BracketRole,
    BracketValidator,
    validate_brackets,
)

__all__ = [
    # Source
    "Position",
    "Range",
    "BlockCommentScanner",
    "CommentBlock",
    "Diagnostic",
    "Severity",
    # Lexer
    "Lexer",
    "LexResult",
    "LineKind",
    "LineRecord",
    "JumpStyle",
    "tokenize",
    # Parser
    "Parser",
    "parse_file",
    "parse_source",
    "read_source",
    "jump_targets",
    # Tree nodes
    "NodeType",
    "DocumentNode",
    "StoryNode",
    "ChoiceNode",
    "ChoiceRef",
    "JumpNode",
    "DirectiveNode",
    # Brackets
    "BracketExpr",
    "BracketPair",
    "BracketReport",
    "BracketRole",
    "BracketValidator",
    "validate_brackets",
]
