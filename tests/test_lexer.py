"""
Tests for the exoraven line classifier.
"""

import pytest

from exoraven.parser.lexer import JumpStyle, Lexer, LineKind, check_parentheses, tokenize
from exoraven.parser.source import BlockCommentScanner, split_lines

from conftest import codes, messages


def kinds(source):
    return [r.kind for r in tokenize(source).records]


class TestRecordCount:
    """One record per line, then EOF."""

    @pytest.mark.parametrize("source", [
        "",
        "\n",
        "=== a\ntext",
        "/* open\n\n\n",
        "~iff\n*=\n===\n[if]\n))))",
        "=== a\r\n* b\r\n",
    ])
    def test_one_record_per_line(self, source):
        result = tokenize(source)
        assert len(result.records) == len(split_lines(source)) + 1
        assert result.records[-1].kind is LineKind.EOF
        assert all(r.kind is not LineKind.EOF for r in result.records[:-1])

    def test_line_numbers_are_sequential(self):
        result = tokenize("a\nb\nc")
        assert [r.line for r in result.records[:-1]] == [0, 1, 2]

    def test_crlf_is_stripped(self):
        result = tokenize("=== story\r\n* pick\r\n")
        assert result.lines == ["=== story", "* pick", ""]
        assert result.records[0].story_id == "story"


class TestClassification:
    """Priority order of line kinds."""

    def test_empty_and_comment(self):
        assert kinds("\n// note\n   ")[:3] == [LineKind.EMPTY, LineKind.COMMENT, LineKind.EMPTY]

    def test_divider_is_not_a_header(self):
        result = tokenize("====\n==========")
        assert [r.kind for r in result.records[:2]] == [LineKind.DIVIDER, LineKind.DIVIDER]
        assert result.diagnostics == []

    def test_story_header(self):
        record = tokenize("=== myStory").records[0]
        assert record.kind is LineKind.STORY_HEADER
        assert record.story_id == "myStory"

    def test_story_header_with_trailing_decoration(self):
        result = tokenize("=== myStory ===============")
        assert result.records[0].story_id == "myStory"
        assert result.diagnostics == []

    def test_invalid_story_header(self):
        result = tokenize("===\nSome text")
        assert result.records[0].kind is LineKind.INVALID_HEADER
        assert messages(result.diagnostics) == ["Invalid story header. Expected: === storyID"]
        assert result.diagnostics[0].severity.value == "error"

    def test_choice_id_is_not_a_divider(self):
        record = tokenize("  = myId").records[0]
        assert record.kind is LineKind.CHOICE_ID
        assert record.choice_id == "myId"

    def test_choice_depth_and_text(self):
        record = tokenize("    *** Third level").records[0]
        assert record.kind is LineKind.CHOICE
        assert record.depth == 3
        assert record.text == "Third level"

    def test_hidden_choice(self):
        record = tokenize("**= secret").records[0]
        assert record.kind is LineKind.HIDDEN_CHOICE
        assert record.depth == 2
        assert record.choice_id == "secret"

    def test_hidden_choice_without_id(self):
        result = tokenize("*=")
        assert result.records[0].kind is LineKind.INVALID_CHOICE
        assert messages(result.diagnostics) == ["Hidden choice marker *= requires an ID"]

    def test_page_break(self):
        record = tokenize("  -").records[0]
        assert record.kind is LineKind.PAGE_BREAK
        assert record.range.start.character == 2

    def test_dash_with_text_is_text(self):
        assert kinds("- not a break")[0] is LineKind.TEXT

    def test_text_carries_brackets(self):
        record = tokenize("Hello [=var_name], [if x]yes[endif]").records[0]
        assert record.kind is LineKind.TEXT
        assert [b.content for b in record.brackets] == ["=var_name", "if x", "endif"]
        assert record.brackets[0].start == 6


class TestJumps:

    @pytest.mark.parametrize("line,style", [
        ("> target", JumpStyle.NORMAL),
        (">> target", JumpStyle.SILENT),
        (">! target", JumpStyle.NO_BREAK),
        (">>> target", JumpStyle.NO_BREAK),
    ])
    def test_jump_styles(self, line, style):
        record = tokenize("  " + line).records[0]
        assert record.kind is LineKind.JUMP
        assert record.jump_style is style
        assert record.target == "target"

    def test_jump_without_target(self):
        record = tokenize(">").records[0]
        assert record.kind is LineKind.JUMP
        assert record.target is None

    def test_conditional_target_kept_whole(self):
        record = tokenize("> if var_x ? a : b").records[0]
        assert record.target == "if var_x ? a : b"


class TestDirectives:

    def test_whitelisted_command(self):
        record = tokenize("~IF age >= 10").records[0]
        assert record.kind is LineKind.DIRECTIVE
        assert record.command == "if"
        assert record.expression == "age >= 10"
        assert record.expression_start == 4

    def test_unknown_command(self):
        result = tokenize("~unknown something")
        assert result.records[0].kind is LineKind.UNKNOWN_DIRECTIVE
        assert codes(result.diagnostics) == ["unknown-tilde-command"]
        assert result.diagnostics[0].message.startswith("Unknown tilde command: ~unknown. Valid commands: if, ifd")

    def test_typo_suggestion_replaces_unknown(self):
        result = tokenize("  ~iff age >= 10")
        assert messages(result.diagnostics) == ["Did you mean ~if?"]
        rng = result.diagnostics[0].range
        assert (rng.start.character, rng.end.character) == (2, 6)

    @pytest.mark.parametrize("command", ["disabled", "once", "set", "call"])
    def test_expression_not_required(self, command):
        assert tokenize(f"~{command}").diagnostics == []

    @pytest.mark.parametrize("command", ["if", "ifd", "setif", "callif"])
    def test_expression_required(self, command):
        result = tokenize(f"~{command}")
        assert messages(result.diagnostics) == [f"~{command} requires a condition or expression"]
        assert result.diagnostics[0].severity.value == "warning"

    def test_missing_close_paren(self):
        result = tokenize("~if (age >= 10")
        assert messages(result.diagnostics) == ["Unbalanced parentheses: missing )"]
        rng = result.diagnostics[0].range
        assert (rng.start.character, rng.end.character) == (4, 14)

    def test_extra_close_paren_in_set(self):
        result = tokenize("~set var_x = 1)")
        assert messages(result.diagnostics) == ["Unbalanced parentheses in set expression"]

    def test_call_expression_not_scanned(self):
        assert tokenize("~call story(otherEvent").diagnostics == []


class TestParentheses:

    @pytest.mark.parametrize("expression", [
        "(a)", "((a) && (b))", "f(g(h()))", "", "no parens",
    ])
    def test_balanced(self, expression):
        assert check_parentheses(expression, 0, 0, "extra") == []

    def test_first_extra_close_reported_at_offset(self):
        found = check_parentheses("a) && b)", 3, 10, "extra")
        assert len(found) == 1
        assert found[0].message == "extra"
        assert found[0].range.start.line == 3
        assert found[0].range.start.character == 11

    def test_counter_resets_after_extra_close(self):
        found = check_parentheses(")(", 0, 0, "extra")
        assert [d.message for d in found] == ["extra", "Unbalanced parentheses: missing )"]


class TestBlockComments:

    def test_fully_commented_lines(self):
        assert kinds("/* a\nb\nc */")[:3] == [LineKind.COMMENT, LineKind.IN_COMMENT, LineKind.COMMENT]

    def test_content_after_comment_end(self):
        result = tokenize("/* a\nend */ === story")
        assert result.records[1].kind is LineKind.STORY_HEADER
        assert result.records[1].story_id == "story"

    def test_inline_comment_masked(self):
        record = tokenize("=== /* x */ story").records[0]
        assert record.kind is LineKind.STORY_HEADER
        assert record.story_id == "story"

    def test_unclosed_comment(self):
        result = tokenize("=== test\n/* never closes\nSome text")
        assert messages(result.diagnostics) == ["Unclosed block comment"]
        rng = result.diagnostics[0].range
        assert (rng.start.line, rng.start.character) == (1, 0)
        assert (rng.end.line, rng.end.character) == (2, 9)
        assert len(result.comment_blocks) == 1
        assert not result.comment_blocks[0].closed

    def test_multiline_blocks_recorded(self):
        result = tokenize("/* one line */\n/* two\nlines */")
        assert len(result.comment_blocks) == 1
        block = result.comment_blocks[0]
        assert (block.start.line, block.end.line) == (1, 2)

    def test_scanner_masks_preserve_offsets(self):
        scanner = BlockCommentScanner()
        masked = scanner.feed("ab/*cd*/ef", 0)
        assert masked.text == "ab      ef"
        assert masked.had_comment
        assert not scanner.in_comment


class TestLexerClass:

    def test_filename_kept(self):
        lexer = Lexer("=== a", "story.exo")
        assert lexer.filename == "story.exo"
        assert lexer.tokenize().records[0].story_id == "a"
