"""
Diagnostics Aggregator

Runs the analysis passes over a document and merges their diagnostics:

    lexer -> tree builder -> bracket validator -> lint

Each pass is isolated: if one raises, its failure is reported as a single
Error diagnostic and the remaining passes still run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from exoraven.config import AnalyzerConfig
from exoraven.errors import SourceReadError
from exoraven.parser.brackets import BracketPair, validate_brackets
from exoraven.parser.diagnostic import Diagnostic, Severity, error
from exoraven.parser.lexer import LexResult, Lexer
from exoraven.parser.parser import DocumentNode, Parser, read_source
from exoraven.parser.source import Range
from exoraven.tools.lint import ScriptLinter

logger = logging.getLogger(__name__)


DISABLED_MESSAGE = "This file is disabled with ~disabled"

# Stage failure reporting: stage name -> (message prefix, diagnostic code)
STAGE_FAILURES = {
    "lexer": ("Lexer error", "lexer-exception"),
    "parser": ("Parser error", "parser-exception"),
    "brackets": ("Bracket validation error", "bracket-exception"),
    "lint": ("Validation error", "validation-exception"),
}

# Codes both the lexer and the linter emit for the same line
SHARED_CODES = frozenset({"typo"})


@dataclass
class AnalysisResult:
    """Everything known about one document version."""
    document: DocumentNode
    diagnostics: List[Diagnostic] = field(default_factory=list)
    bracket_pairs: List[BracketPair] = field(default_factory=list)
    filename: str = "<unknown>"

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self.diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.filename,
            "disabled": self.document.disabled,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class Analyzer:
    """
    Runs every pass over one text and assembles the result.

    Usage:
        result = Analyzer(config).analyze(text, "story.exo")
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig.from_dict({})
        self.linter = ScriptLinter(disabled_rules=self.config.disabled_rules)

    def analyze(self, text: str, filename: str = "<unknown>") -> AnalysisResult:
        found: List[Diagnostic] = []

        lexed = self._run("lexer", found, lambda: Lexer(text, filename).tokenize())
        if lexed is None:
            lexed = LexResult(records=[], diagnostics=[], lines=[""], comment_blocks=[])

        # The tree builder carries the lexer's diagnostics forward
        parsed: List[Diagnostic] = []
        document = self._run("parser", parsed, lambda: Parser(lexed, filename).parse())
        if document is None:
            document = DocumentNode(lines=lexed.lines, filename=filename)
            found.extend(lexed.diagnostics)
            found.extend(parsed)
        else:
            found.extend(document.diagnostics)
            if document.disabled:
                found.append(Diagnostic(
                    DISABLED_MESSAGE,
                    Range.on_line(0, 0, 9),
                    Severity.INFO,
                    "disabled",
                ))

        report = self._run("brackets", found, lambda: validate_brackets(text))
        pairs = []
        if report is not None:
            found.extend(report.diagnostics)
            pairs = report.pairs

        linted = self._run("lint", found, lambda: self.linter.lint_text(text))
        if linted is not None:
            found.extend(linted)

        diagnostics = limit(dedupe(found), self.config.max_problems)
        document.diagnostics = diagnostics

        logger.debug(f"Analyzed {filename}: {len(diagnostics)} diagnostics")
        return AnalysisResult(document, diagnostics, pairs, filename)

    def _run(self, stage: str, found: List[Diagnostic], func: Callable[[], Any]) -> Any:
        """Run one pass; on failure record a stage diagnostic and return None."""
        try:
            return func()
        except Exception as e:
            logger.exception(f"{stage} stage failed")
            prefix, code = STAGE_FAILURES[stage]
            found.append(error(f"{prefix}: {e}", Range.on_line(0, 0, 1), code))
            return None


def dedupe(diagnostics: List[Diagnostic]) -> List[Diagnostic]:
    """
    Drop exact repeats of codes reported by more than one pass.

    Other repeats are separate findings (e.g. both arms of a conditional
    jump naming the same unknown target) and are kept.
    """
    seen = set()
    unique = []
    for diagnostic in diagnostics:
        if diagnostic.code in SHARED_CODES:
            if diagnostic in seen:
                continue
            seen.add(diagnostic)
        unique.append(diagnostic)
    return unique


def limit(diagnostics: List[Diagnostic], max_problems: int) -> List[Diagnostic]:
    return diagnostics[:max_problems]


def analyze_text(text: str, config: Optional[AnalyzerConfig] = None,
                 filename: str = "<unknown>") -> AnalysisResult:
    """Analyze document text with every pass."""
    return Analyzer(config).analyze(text, filename)


def analyze_file(path, config: Optional[AnalyzerConfig] = None) -> AnalysisResult:
    """Read and analyze one script file."""
    path = Path(path)
    try:
        text = read_source(str(path))
    except OSError as e:
        raise SourceReadError(path, e.strerror or str(e)) from e
    return analyze_text(text, config, str(path))
