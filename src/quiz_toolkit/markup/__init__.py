"""
Source Markup Package

Parser and builder for the brace-delimited question markup, plus the
escape-aware lexer they share.

Usage:
    from quiz_toolkit.markup import parse_questions, build_questions

    result = parse_questions(text, options)
    text_again = build_questions(result.quiz, result.answer_key, options)
"""

from .builder import build_questions
from .lexer import parse_bracket_group, parse_group, strip_comments
from .parser import ParseResult, extract_inline_blanks, parse_choices_block, parse_questions

__all__ = [
    "build_questions",
    "parse_bracket_group",
    "parse_group",
    "strip_comments",
    "ParseResult",
    "extract_inline_blanks",
    "parse_choices_block",
    "parse_questions",
]
