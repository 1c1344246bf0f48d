"""
Module: answers

Purpose:
    Answer-key records, kept apart from the questions and correlated only
    by uid. An AnswerKey is a plain ``dict[uid, Answer]``; a uid may be
    absent (warning, not error) but never present twice.

Key Functions:
    - SingleChoiceAnswer / FillBlankAnswer: Immutable answer records
    - answer_from_dict(): Dispatch on the serialized "type" tag
    - answer_key_to_dict() / answer_key_from_dict(): Whole-key helpers

Used By:
    - markup.parser, markup.builder
    - exchange.items_build, exchange.package_parse
    - core.utils.serialization
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .questions import CHOICE_KEYS, QuestionKind


def _check_points(points: Optional[float]) -> None:
    if points is not None and points < 0:
        raise ValueError(f"points cannot be negative: {points}")


@dataclass(frozen=True)
class SingleChoiceAnswer:
    """
    Correct option of a single-choice question.

    Attributes:
        correct_key: One of A..E
        points: Points possible, if known
        solution_markup: Worked solution in source markup
    """

    correct_key: str
    points: Optional[float] = None
    solution_markup: Optional[str] = None

    def __post_init__(self) -> None:
        if self.correct_key not in CHOICE_KEYS:
            raise ValueError(f"Invalid correct key: {self.correct_key!r}")
        _check_points(self.points)

    @property
    def kind(self) -> QuestionKind:
        return QuestionKind.SINGLE_CHOICE

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"type": self.kind.value, "correctKey": self.correct_key}
        if self.points is not None:
            d["points"] = self.points
        if self.solution_markup is not None:
            d["solutionLatex"] = self.solution_markup
        return d


@dataclass(frozen=True)
class FillBlankAnswer:
    """
    Accepted answers of a fill-blank question, one per blank, in order.

    ``accepted_answers`` is None when no answers could be recovered (e.g.
    a multi-select item without correct options); callers warn on that.

    Attributes:
        blank_count: Number of blanks
        accepted_answers: Ordered accepted answers, or None
        points: Points possible, if known
        solution_markup: Worked solution in source markup
        notes: Free-text flag for lossy conversions
    """

    blank_count: int
    accepted_answers: Optional[Tuple[str, ...]] = None
    points: Optional[float] = None
    solution_markup: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.blank_count < 1:
            raise ValueError(f"blank_count must be >= 1: {self.blank_count}")
        if self.accepted_answers is not None:
            object.__setattr__(self, "accepted_answers", tuple(self.accepted_answers))
        _check_points(self.points)

    @property
    def kind(self) -> QuestionKind:
        return QuestionKind.FILL_BLANK

    @property
    def answers(self) -> Tuple[str, ...]:
        """Accepted answers, empty when unpopulated."""
        return self.accepted_answers or ()

    @property
    def is_consistent(self) -> bool:
        """True when one accepted answer exists per blank."""
        return self.accepted_answers is not None and len(self.accepted_answers) == self.blank_count

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"type": self.kind.value, "blankCount": self.blank_count}
        if self.accepted_answers is not None:
            d["acceptedAnswers"] = list(self.accepted_answers)
        if self.points is not None:
            d["points"] = self.points
        if self.solution_markup is not None:
            d["solutionLatex"] = self.solution_markup
        if self.notes is not None:
            d["notes"] = self.notes
        return d


Answer = Union[SingleChoiceAnswer, FillBlankAnswer]
AnswerKey = Dict[str, Answer]


def answer_from_dict(data: Dict[str, Any]) -> Answer:
    """
    Deserialize an answer, dispatching on its "type" tag.

    Raises:
        ValueError: If the tag is not a known QuestionKind
    """
    kind = QuestionKind(data.get("type"))
    if kind == QuestionKind.SINGLE_CHOICE:
        return SingleChoiceAnswer(
            correct_key=data["correctKey"],
            points=data.get("points"),
            solution_markup=data.get("solutionLatex"),
        )
    accepted = data.get("acceptedAnswers")
    return FillBlankAnswer(
        blank_count=data["blankCount"],
        accepted_answers=tuple(accepted) if accepted is not None else None,
        points=data.get("points"),
        solution_markup=data.get("solutionLatex"),
        notes=data.get("notes"),
    )


def answer_key_to_dict(answer_key: AnswerKey) -> Dict[str, Dict[str, Any]]:
    return {uid: answer.to_dict() for uid, answer in answer_key.items()}


def answer_key_from_dict(data: Dict[str, Dict[str, Any]]) -> AnswerKey:
    return {uid: answer_from_dict(entry) for uid, entry in data.items()}
