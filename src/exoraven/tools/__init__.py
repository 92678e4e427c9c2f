"""
exoraven.tools - Lint and Editor Projections

- lint: heuristic line checks
- outline: document symbols
- folding: folding ranges
- hover: hover markup
- completion: context completions
- definition: jump-target navigation
"""

# Linter
from .lint import ScriptLinter, LintRule, lint_text

# Projections
from .outline import DocumentSymbol, SymbolKind, document_symbols
from .folding import FoldingRange, FoldingKind, folding_ranges
from .hover import Hover, hover_at
from .completion import CompletionItem, CompletionKind, completions_at
from .definition import definition_at

__all__ = [
    # Lint
    "ScriptLinter",
    "LintRule",
    "lint_text",
    # Outline
    "DocumentSymbol",
    "SymbolKind",
    "document_symbols",
    # Folding
    "FoldingRange",
    "FoldingKind",
    "folding_ranges",
    # Hover
    "Hover",
    "hover_at",
    # Completion
    "CompletionItem",
    "CompletionKind",
    "completions_at",
    # Definition
    "definition_at",
]
