"""
Exoscript Linter

Heuristic checks that run line by line, with block comments masked out:
- Misspelled tilde commands
- Unbalanced dialogue quotes
- Empty choices and header markers without an ID
- Variables with an unfamiliar prefix
- Operators split by a space

None of these affect the parsed tree; they only add diagnostics.
"""

import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from exoraven.parser.diagnostic import Diagnostic, Severity
from exoraven.parser.keywords import (
    COMMAND_TYPOS,
    KNOWN_SUFFIX_WORDS,
    LINT_PREFIXES,
    VARIABLE_PREFIXES,
)
from exoraven.parser.parser import read_source
from exoraven.parser.source import BlockCommentScanner, Range, split_lines

TILDE_RE = re.compile(r"^~(\w+)")


# ============================================================================
# LINTER RULES
# ============================================================================

class LintRule:
    """Base class for lint rules."""

    code: str = "lint"
    severity: Severity = Severity.WARNING

    def check(self, line: str, line_no: int, context: Dict[str, Any]) -> List[Diagnostic]:
        """Check one line and return any problems found."""
        raise NotImplementedError

    def diagnostic(self, message: str, line_no: int, start: int, end: int) -> Diagnostic:
        return Diagnostic(message, Range.on_line(line_no, start, end), self.severity, self.code)


class CommandTypoRule(LintRule):
    """Tilde command that is a known misspelling of a real one."""

    code = "typo"
    severity = Severity.ERROR

    def check(self, line, line_no, context):
        command = context["command"]
        if command is None or command not in COMMAND_TYPOS:
            return []
        start = line.index("~")
        return [self.diagnostic(
            f"Did you mean ~{COMMAND_TYPOS[command]}?",
            line_no, start, start + len(command) + 1,
        )]


class UnmatchedQuoteRule(LintRule):
    """Odd number of double quotes on a line."""

    code = "unmatched-quote"
    severity = Severity.HINT

    def check(self, line, line_no, context):
        if line.count('"') % 2 == 0:
            return []
        # Dialogue may legitimately continue on the next line
        return [self.diagnostic(
            "Unmatched quote - intentional if dialogue continues",
            line_no, 0, len(line),
        )]


class EmptyChoiceRule(LintRule):
    """Choice marker with no text after it."""

    code = "empty-choice"
    severity = Severity.WARNING

    EMPTY_CHOICE_RE = re.compile(r"^\*+\s*$")

    def check(self, line, line_no, context):
        if not self.EMPTY_CHOICE_RE.match(context["trimmed"]):
            return []
        return [self.diagnostic(
            "Empty choice text - use *= for hidden choices",
            line_no, line.index("*"), len(line),
        )]


class MissingStoryIdRule(LintRule):
    """A bare `===` line."""

    code = "missing-story-id"
    severity = Severity.ERROR

    def check(self, line, line_no, context):
        if context["trimmed"] != "===":
            return []
        start = line.index("===")
        return [self.diagnostic(
            "Story header requires an ID: === storyID",
            line_no, start, start + 3,
        )]


class UnknownPrefixRule(LintRule):
    """Variable in a condition or assignment with an unfamiliar prefix."""

    code = "unknown-prefix"
    severity = Severity.HINT

    COMMANDS = frozenset({"if", "ifd", "set", "setif"})
    VARIABLE_RE = re.compile(r"\b([a-z]+_\w+)\b")

    def check(self, line, line_no, context):
        if context["command"] not in self.COMMANDS:
            return []

        found = []
        common = ", ".join(VARIABLE_PREFIXES[:-1])
        for match in self.VARIABLE_RE.finditer(line):
            name = match.group(1)
            head = name.split("_", 1)[0]
            prefix = head + "_"
            if prefix in LINT_PREFIXES or head in KNOWN_SUFFIX_WORDS:
                continue
            found.append(self.diagnostic(
                f"Unknown variable prefix: {prefix}. Common prefixes: {common}",
                line_no, match.start(1), match.end(1),
            ))
        return found


class SpacedOperatorRule(LintRule):
    """`= =`, `& &` or `| |` inside a condition."""

    code = "spaced-operator"
    severity = Severity.WARNING

    COMMANDS = frozenset({"if", "ifd"})

    def check(self, line, line_no, context):
        if context["command"] not in self.COMMANDS:
            return []

        found = []
        if "= =" in line:
            start = line.index("= =")
            found.append(self.diagnostic(
                "Space in operator - did you mean == or =?",
                line_no, start, start + 3,
            ))

        # One logical-operator report per line; && wins over ||
        for spaced, intended in (("& &", "&&"), ("| |", "||")):
            if spaced in line:
                start = line.index(spaced)
                found.append(self.diagnostic(
                    f"Space in operator - did you mean {intended}?",
                    line_no, start, start + 3,
                ))
                break
        return found


DEFAULT_RULES = (
    CommandTypoRule,
    UnmatchedQuoteRule,
    EmptyChoiceRule,
    MissingStoryIdRule,
    UnknownPrefixRule,
    SpacedOperatorRule,
)


# ============================================================================
# LINTER ENGINE
# ============================================================================

class ScriptLinter:
    """
    Runs lint rules against every line of a document.

    Diagnostics come back in line order, and within a line in rule order.
    """

    def __init__(self, rules: Optional[List[LintRule]] = None,
                 disabled_rules: Iterable[str] = ()):
        rules = rules if rules is not None else [rule() for rule in DEFAULT_RULES]
        disabled = set(disabled_rules)
        self.rules = [rule for rule in rules if rule.code not in disabled]

    def lint_text(self, text: str) -> List[Diagnostic]:
        """Lint document text and return all problems."""
        found: List[Diagnostic] = []
        scanner = BlockCommentScanner()

        for line_no, raw in enumerate(split_lines(text)):
            masked = scanner.feed(raw, line_no)
            if masked.fully_commented:
                continue
            # Block comments blanked out, offsets unchanged
            line = masked.text
            trimmed = line.strip()
            match = TILDE_RE.match(trimmed)
            context = {
                "trimmed": trimmed,
                "command": match.group(1).lower() if match else None,
            }
            for rule in self.rules:
                found.extend(rule.check(line, line_no, context))

        return found

    def lint_file(self, file_path: Path) -> List[Diagnostic]:
        """Lint a file and return all problems."""
        return self.lint_text(read_source(str(file_path)))


def lint_text(text: str, disabled_rules: Iterable[str] = ()) -> List[Diagnostic]:
    """Convenience function to lint document text."""
    return ScriptLinter(disabled_rules=disabled_rules).lint_text(text)
