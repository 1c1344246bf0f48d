"""
Core Models Package

Immutable, validated data models shared by the markup and exchange codecs.

All question and answer records are frozen dataclasses validated on
construction, so an invalid question can never travel between components.
QuizDocument and AnswerKey are independent and correlated only by uid.
"""

from .questions import (
    BLANK_SENTINEL,
    CHOICE_KEYS,
    Choice,
    FillBlankQuestion,
    Question,
    QuestionKind,
    QuestionLevel,
    QuizDocument,
    SingleChoiceQuestion,
)
from .answers import Answer, AnswerKey, FillBlankAnswer, SingleChoiceAnswer
from .package import ImportedAsset, Package

__all__ = [
    "BLANK_SENTINEL",
    "CHOICE_KEYS",
    "Choice",
    "FillBlankQuestion",
    "Question",
    "QuestionKind",
    "QuestionLevel",
    "QuizDocument",
    "SingleChoiceQuestion",
    "Answer",
    "AnswerKey",
    "FillBlankAnswer",
    "SingleChoiceAnswer",
    "ImportedAsset",
    "Package",
]
