"""
Tests for the heuristic line linter.
"""

import pytest

from exoraven.parser.diagnostic import Severity
from exoraven.tools.lint import (
    EmptyChoiceRule,
    LintRule,
    ScriptLinter,
    UnmatchedQuoteRule,
    lint_text,
)

from conftest import codes, messages


class TestTypoRule:

    @pytest.mark.parametrize("typo,fixed", [
        ("iff", "if"), ("fi", "if"), ("sett", "set"), ("disabeld", "disabled"),
    ])
    def test_typo(self, typo, fixed):
        found = lint_text(f"~{typo} x")
        assert messages(found) == [f"Did you mean ~{fixed}?"]
        assert found[0].severity is Severity.ERROR

    def test_unknown_word_is_not_a_typo(self):
        assert lint_text("~unknown x") == []


class TestQuoteRule:

    def test_unmatched_quote(self):
        found = lint_text('"Hello, how are')
        assert messages(found) == ["Unmatched quote - intentional if dialogue continues"]
        assert found[0].severity is Severity.HINT
        assert found[0].range.end.character == 15

    def test_matched_quotes(self):
        assert lint_text('"Hello," she said. "Bye."') == []


class TestChoiceAndHeaderRules:

    def test_empty_choice(self):
        found = lint_text("  **  ")
        assert messages(found) == ["Empty choice text - use *= for hidden choices"]
        assert found[0].range.start.character == 2

    def test_hidden_choice_not_empty(self):
        assert lint_text("*= hidden") == []

    def test_bare_header(self):
        found = lint_text("===")
        assert messages(found) == ["Story header requires an ID: === storyID"]
        assert found[0].severity is Severity.ERROR

    def test_divider_is_not_bare_header(self):
        assert lint_text("====") == []


class TestPrefixRule:

    @pytest.mark.parametrize("line", [
        "~set var_something = true",
        "~set mem_remember = true",
        "~set hog_persistent = true",
        "~if skill_combat >= 10",
        "~if love_cal >= 50",
        "~if story_someEvent = false",
        "~if plot_stage > 2",
        "~if call_func() > 1",
        "~if age_days > 3 && season_now = 1",
    ])
    def test_known_prefixes(self, line):
        assert lint_text(line) == []

    def test_unknown_prefix(self):
        found = lint_text("~if weird_variable = true")
        assert messages(found) == [
            "Unknown variable prefix: weird_. Common prefixes: var_, mem_, hog_, skill_, love_, story_"
        ]
        rng = found[0].range
        assert (rng.start.character, rng.end.character) == (4, 18)

    def test_only_condition_and_set_lines(self):
        assert lint_text("~call weird_thing()") == []
        assert lint_text("weird_text in narration") == []


class TestOperatorRule:

    @pytest.mark.parametrize("line,intended", [
        ("~if age = = 10", "== or ="),
        ("~if a > 1 & & b > 2", "&&"),
        ("~ifd a > 1 | | b > 2", "||"),
    ])
    def test_spaced_operator(self, line, intended):
        found = lint_text(line)
        assert messages(found) == [f"Space in operator - did you mean {intended}?"]
        assert found[0].severity is Severity.WARNING

    def test_valid_operators(self):
        assert lint_text("~if age >= 10 && skill_combat > 5 || love_cal != 0") == []

    def test_not_checked_on_set(self):
        assert lint_text("~set var_x = = 1") == []


class TestLinterEngine:

    def test_line_order(self):
        found = lint_text('*\n"open\n===')
        assert codes(found) == ["empty-choice", "unmatched-quote", "missing-story-id"]
        assert [d.line for d in found] == [0, 1, 2]

    def test_block_comments_skipped(self):
        assert lint_text('/* ~iff\n*\n"open\n=== */') == []

    def test_text_after_comment_linted(self):
        found = lint_text('/* note */ ~fi x')
        assert messages(found) == ["Did you mean ~if?"]
        assert found[0].range.start.character == 11

    def test_disabled_rules(self):
        linter = ScriptLinter(disabled_rules=["unmatched-quote"])
        assert linter.lint_text('"open') == []
        assert "unmatched-quote" not in [rule.code for rule in linter.rules]

    def test_custom_rules(self):
        linter = ScriptLinter(rules=[EmptyChoiceRule()])
        assert codes(linter.lint_text('*\n"open')) == ["empty-choice"]

    def test_custom_rule_subclass(self):
        class ShoutRule(LintRule):
            code = "shout"
            severity = Severity.HINT

            def check(self, line, line_no, context):
                if line.isupper():
                    return [self.diagnostic("Too loud", line_no, 0, len(line))]
                return []

        linter = ScriptLinter(rules=[ShoutRule(), UnmatchedQuoteRule()])
        assert codes(linter.lint_text("HELLO\nhello")) == ["shout"]

    def test_lint_file(self, complex_path):
        found = ScriptLinter().lint_file(complex_path)
        assert found == []
