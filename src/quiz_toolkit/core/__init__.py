"""
Quiz Toolkit Core Package

Shared data models, id grammar, error taxonomy and warning collection.
These are the single source of truth for the markup and exchange codecs.

1. **Immutable Data Models**
   - Frozen dataclasses, validated on construction

2. **Independent Answer Key**
   - Questions and answers correlated only by uid

3. **Warnings, Not Exceptions, for Recoverable Defects**
   - Structural errors raise; everything else is collected
"""

from .models import (
    AnswerKey,
    Choice,
    FillBlankAnswer,
    FillBlankQuestion,
    ImportedAsset,
    Package,
    QuestionKind,
    QuestionLevel,
    QuizDocument,
    SingleChoiceAnswer,
    SingleChoiceQuestion,
)
from .diagnostics import ConversionWarning, WarningCollector, WarningKind

__all__ = [
    "AnswerKey",
    "Choice",
    "FillBlankAnswer",
    "FillBlankQuestion",
    "ImportedAsset",
    "Package",
    "QuestionKind",
    "QuestionLevel",
    "QuizDocument",
    "SingleChoiceAnswer",
    "SingleChoiceQuestion",
    "ConversionWarning",
    "WarningCollector",
    "WarningKind",
]
