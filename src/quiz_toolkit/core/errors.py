"""
Module: core.errors

Purpose:
    Exception taxonomy for conversions. Structural errors abort the
    enclosing call; malformed-question errors are raised inside
    per-question work and turned into warnings by the caller loop.

Key Classes:
    - ConversionError: Root of the hierarchy
    - StructuralError / UnbalancedGroup / InvalidPackage: Always fatal
    - MalformedQuestion / InvalidQuestionId / InvalidChoiceBlock: Per question

Used By:
    - markup.lexer, markup.parser
    - exchange.package_parse
    - core.ids
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for all conversion failures."""


class StructuralError(ConversionError):
    """Input is structurally broken; the whole document/package is rejected."""


class UnbalancedGroup(StructuralError):
    """A ``{...}`` or ``[...]`` group never returned to depth zero."""

    def __init__(self, opener: str, index: int):
        closer = "}" if opener == "{" else "]"
        super().__init__(
            f"Unbalanced '{opener}...{closer}' group starting at index {index}"
        )
        self.opener = opener
        self.index = index


class InvalidPackage(StructuralError):
    """Exchange package is missing its manifest or is otherwise unreadable."""


class MalformedQuestion(ConversionError):
    """A single question is unusable; only that question is skipped."""


class InvalidQuestionId(MalformedQuestion):
    """Question id matches neither the basic nor the advanced grammar."""

    def __init__(self, question_id: str):
        super().__init__(f"Invalid question id: {question_id!r}")
        self.question_id = question_id


class InvalidChoiceBlock(MalformedQuestion):
    """Choice block has an unknown marker, a missing group or a bad answer."""
