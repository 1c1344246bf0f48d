"""
Module: config

Purpose:
    Configuration dataclass for conversions. Immutable configuration with
    validation on construction, shared by the markup parser/builder and
    the exchange codec.

Key Classes:
    - ConversionOptions: Options for every conversion operation
    - FillBlankExportMode: How multi-blank questions are exported
    - DisplayLanguage: Language of reference nouns

Used By:
    - markup.parser, markup.builder
    - exchange.items_build, exchange.package_build, exchange.package_parse
    - pipeline
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from quiz_toolkit.core.ids import DEFAULT_UID_SCHEME
from quiz_toolkit.core.models.questions import QuestionLevel


class FillBlankExportMode(str, Enum):
    """Export shape for fill-blank questions with more than one blank."""
    COMBINED = "combined_short_answer"  # One item, answers joined by a delimiter
    SPLIT = "split_items"               # One item per blank

    def __str__(self) -> str:
        return self.value


class DisplayLanguage(str, Enum):
    """Language of the noun prefixed to figure/table references."""
    VI = "vi"
    EN = "en"

    def __str__(self) -> str:
        return self.value


DEFAULT_COMBINED_DELIMITER = "; "


@dataclass(frozen=True)
class ConversionOptions:
    """
    Configuration for conversions (immutable).

    Attributes:
        course_code: Course code embedded in uids, e.g. "MAT3500"
        subject: Subject stamped on every question
        level: Level for imported questions (None = basic)
        topic: Forces the topic used in the markup versionId
        version_index: Version ordinal stamped on produced quizzes
        topic_by_quiz_title: Topic override per imported quiz title
        fill_blank_export_mode: COMBINED or SPLIT
        combined_delimiter: Delimiter joining answers in COMBINED mode
        include_solutions: Whether the markup builder writes solutions
        uid_scheme: Scheme prefix of uids and markup versionIds

    Example:
        >>> options = ConversionOptions(course_code="MAT3500", subject="discrete-math")
        >>> options.fill_blank_export_mode
        <FillBlankExportMode.COMBINED: 'combined_short_answer'>
    """

    # Required
    course_code: str
    subject: str

    # Parsing / import
    level: Optional[QuestionLevel] = None
    topic: Optional[str] = None
    version_index: int = 0
    topic_by_quiz_title: Dict[str, str] = field(default_factory=dict)

    # Export
    fill_blank_export_mode: FillBlankExportMode = FillBlankExportMode.COMBINED
    combined_delimiter: str = DEFAULT_COMBINED_DELIMITER

    # Markup building
    include_solutions: bool = True

    uid_scheme: str = DEFAULT_UID_SCHEME

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.course_code:
            raise ValueError("course_code must not be empty")
        if ":" in self.course_code:
            raise ValueError(f"course_code must not contain ':': {self.course_code!r}")
        if self.level is not None:
            object.__setattr__(self, "level", QuestionLevel(self.level))
        object.__setattr__(
            self, "fill_blank_export_mode", FillBlankExportMode(self.fill_blank_export_mode)
        )
        if self.version_index < 0:
            raise ValueError(f"version_index must be non-negative: {self.version_index}")
        if not self.combined_delimiter:
            raise ValueError("combined_delimiter must not be empty")
        if not self.uid_scheme or ":" in self.uid_scheme:
            raise ValueError(f"Invalid uid_scheme: {self.uid_scheme!r}")

    @property
    def import_level(self) -> QuestionLevel:
        return self.level or QuestionLevel.BASIC

    def with_overrides(self, **changes: Any) -> ConversionOptions:
        """Return a validated copy with some fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConversionOptions:
        """Build options from a plain mapping (unknown keys rejected)."""
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown option(s): {unknown}")
        return cls(**data)
