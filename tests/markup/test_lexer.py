"""
Unit Tests for the Markup Lexer

Tests for escape-aware group scanning and comment stripping.
"""

import pytest

from quiz_toolkit.core.errors import StructuralError, UnbalancedGroup
from quiz_toolkit.markup.lexer import (
    command_at,
    escape_text,
    is_escaped,
    parse_bracket_group,
    parse_group,
    skip_whitespace,
    strip_comments,
)


class TestIsEscaped:
    """Tests for is_escaped."""

    @pytest.mark.parametrize("text,expected", [
        (r"{", False),
        (r"\{", True),
        (r"\\{", False),
        (r"\\\{", True),
    ])
    def test_is_escaped_when_backslash_run_then_odd_means_escaped(self, text, expected):
        """Only an odd run of backslashes escapes the next character."""
        assert is_escaped(text, len(text) - 1) is expected


class TestParseGroup:
    """Tests for parse_group and parse_bracket_group."""

    def test_parse_group_when_nested_then_returns_inner_content(self):
        """Nested braces should be balanced by depth."""
        group = parse_group("{a{b}c}d", 0)
        assert group.content == "a{b}c"
        assert group.end == 7

    def test_parse_group_when_escaped_braces_then_ignored(self):
        """Escaped braces should not change depth."""
        text = r"{a\}b\{c}"
        assert parse_group(text, 0).content == r"a\}b\{c"

    def test_parse_group_when_double_backslash_then_brace_counts(self):
        """A brace after an escaped backslash is a real brace."""
        text = r"{a\\}b}"
        assert parse_group(text, 0).content == "a\\\\"

    def test_parse_group_when_unbalanced_then_raises(self):
        """A group that never closes should raise UnbalancedGroup."""
        with pytest.raises(UnbalancedGroup) as exc:
            parse_group("x{a{b}", 1)
        assert exc.value.index == 1
        assert isinstance(exc.value, StructuralError)

    def test_parse_group_when_not_at_brace_then_value_error(self):
        """The start index must point at an opening brace."""
        with pytest.raises(ValueError, match="Expected"):
            parse_group("abc", 0)

    def test_parse_bracket_group_when_nested_then_balanced(self):
        """Square-bracket groups should balance the same way."""
        group = parse_bracket_group("[a[b]][c]", 0)
        assert group.content == "a[b]"
        assert group.end == 6


class TestStripComments:
    """Tests for strip_comments."""

    def test_strip_when_unescaped_percent_then_rest_of_line_dropped(self):
        """Comments run to the end of the line only."""
        assert strip_comments("a % note\nb") == "a \nb"

    def test_strip_when_escaped_percent_then_kept(self):
        """Escaped percent signs are literal."""
        assert strip_comments(r"50\% done % tail") == r"50\% done "

    def test_strip_when_crlf_then_joined_with_lf(self):
        """Windows newlines should be normalized."""
        assert strip_comments("a\r\nb%c\r\nd") == "a\nb\nd"


class TestEscapeText:
    """Tests for escape_text."""

    @pytest.mark.parametrize("text,expected", [
        ("50% off", r"50\% off"),
        ("Set {1, 2", r"Set \{1, 2"),
        ("a} b", r"a\} b"),
        ("{a} {b", r"{a} \{b"),
        ("} {", r"\} \{"),
        ("ends with \\", "ends with \\ "),
    ])
    def test_escape_when_special_chars_then_group_safe(self, text, expected):
        escaped = escape_text(text)
        assert escaped == expected
        assert parse_group("{" + escaped + "}", 0).content == escaped
        assert strip_comments(escaped) == escaped

    @pytest.mark.parametrize("text", [
        r"$\frac{a}{b}$ and 50\% done",
        r"\underline{\qquad} \{x\}",
        r"a \\ b",
        "",
    ])
    def test_escape_when_already_markup_then_unchanged(self, text):
        """Balanced, comment-free markup passes through as-is."""
        assert escape_text(text) == text


class TestHelpers:
    """Tests for skip_whitespace and command_at."""

    def test_skip_whitespace_when_spaces_and_newlines_then_skipped(self):
        assert skip_whitespace("  \n\tx", 0) == 4

    def test_command_at_when_longer_word_then_false(self):
        """\\blankspace is not \\blank."""
        assert command_at(r"\blank{x}", 0, r"\blank")
        assert not command_at(r"\blankspace", 0, r"\blank")
        assert not command_at(r"\\blank{x}", 1, r"\blank")
