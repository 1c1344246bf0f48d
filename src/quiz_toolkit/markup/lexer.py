"""
Module: markup.lexer

Purpose:
    Escape-aware scanning of balanced ``{...}`` / ``[...]`` groups and
    comment stripping over raw source markup. Nesting depth is unbounded,
    so groups are scanned with an explicit depth counter rather than
    regular expressions.

Key Functions:
    - is_escaped(): True if a character is preceded by an odd run of backslashes
    - parse_group(): Consume a balanced {...} group
    - parse_bracket_group(): Consume a balanced [...] group
    - strip_comments(): Drop unescaped % comments, per line
    - escape_text(): Make free text safe inside a {...} group
    - skip_whitespace(): Advance past whitespace

Used By:
    - markup.parser, markup.builder
    - numbering.labels, numbering.crossref

All functions are pure and re-entrant.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple

from quiz_toolkit.core.errors import UnbalancedGroup

_NEWLINE_RE = re.compile(r"\r?\n")


class Group(NamedTuple):
    """Result of a group scan: inner text and index just past the closer."""
    content: str
    end: int


def is_escaped(text: str, index: int) -> bool:
    """
    Return True if ``text[index]`` is escaped.

    A character is escaped iff it is preceded by an odd number of
    consecutive backslashes: ``\\{`` is escaped, ``\\\\{`` is not.
    """
    backslashes = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        backslashes += 1
        i -= 1
    return backslashes % 2 == 1


def _parse_delimited(text: str, start: int, opener: str, closer: str) -> Group:
    if start >= len(text) or text[start] != opener:
        raise ValueError(f"Expected {opener!r} at index {start}")
    depth = 0
    for i in range(start, len(text)):
        char = text[i]
        if char == opener and not is_escaped(text, i):
            depth += 1
        elif char == closer and not is_escaped(text, i):
            depth -= 1
            if depth == 0:
                return Group(text[start + 1:i], i + 1)
    raise UnbalancedGroup(opener, start)


def parse_group(text: str, start: int) -> Group:
    """
    Consume a depth-balanced ``{...}`` group starting at ``start``.

    Args:
        text: Source text
        start: Index of the opening brace

    Returns:
        Group(content, end) where content excludes the outer braces and
        end is the index just past the closing brace

    Raises:
        ValueError: If ``text[start]`` is not ``{``
        UnbalancedGroup: If depth never returns to zero

    Example:
        >>> parse_group("{a{b}c}d", 0)
        Group(content='a{b}c', end=7)
    """
    return _parse_delimited(text, start, "{", "}")


def parse_bracket_group(text: str, start: int) -> Group:
    """The ``[...]`` analog of parse_group."""
    return _parse_delimited(text, start, "[", "]")


def strip_comments(text: str) -> str:
    """
    Remove comments: on each line, everything from the first unescaped
    ``%`` to end of line. Escaped ``\\%`` is kept. Lines are re-joined
    with ``\\n``.
    """
    lines = []
    for line in _NEWLINE_RE.split(text):
        for i, char in enumerate(line):
            if char == "%" and not is_escaped(line, i):
                line = line[:i]
                break
        lines.append(line)
    return "\n".join(lines)


def escape_text(text: str) -> str:
    """
    Make arbitrary text safe as the content of a ``{...}`` group.

    Unescaped ``%`` becomes ``\\%``; braces without a partner become
    ``\\{`` / ``\\}``; a trailing odd backslash run gets a space so it
    cannot escape the closing brace. Text that already parses as a
    balanced, comment-free group is returned unchanged.

    Example:
        >>> escape_text("50% of {1, 2")
        '50\\\\% of \\\\{1, 2'
    """
    out: List[str] = []
    open_at: List[int] = []
    for i, char in enumerate(text):
        if char in "%{}" and not is_escaped(text, i):
            if char == "%":
                out.append("\\%")
                continue
            if char == "{":
                open_at.append(len(out))
            elif open_at:
                open_at.pop()
            else:
                out.append("\\}")
                continue
        out.append(char)
    for index in open_at:
        out[index] = "\\{"
    escaped = "".join(out)
    if is_escaped(escaped + "}", len(escaped)):
        escaped += " "
    return escaped


def skip_whitespace(text: str, pos: int) -> int:
    """Return the first index at or after ``pos`` that is not whitespace."""
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def command_at(text: str, pos: int, name: str) -> bool:
    """
    True if control word ``name`` (e.g. ``\\blank``) starts at ``pos``.

    The command must not itself be escaped and must end at a non-letter,
    so ``\\blankspace`` is not ``\\blank``.
    """
    if not text.startswith(name, pos) or is_escaped(text, pos):
        return False
    after = pos + len(name)
    return after >= len(text) or not text[after].isalpha()
