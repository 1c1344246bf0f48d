"""
Module: questions

Purpose:
    Provides the question records and QuizDocument - the structure passed
    between the markup parser/builder and the exchange codec. Questions
    are a closed tagged union of SingleChoiceQuestion and FillBlankQuestion
    discriminated by ``kind``.

Key Functions:
    - SingleChoiceQuestion / FillBlankQuestion: Immutable question records
    - QuizDocument: Ordered questions plus version identity
    - question_from_dict(): Dispatch on the serialized "type" tag

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - markup.parser, markup.builder
    - exchange.items_build, exchange.package_parse
    - core.utils.serialization
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

CHOICE_KEYS: Tuple[str, ...] = ("A", "B", "C", "D", "E")
MIN_CHOICES = 2
MAX_CHOICES = len(CHOICE_KEYS)

# Masked-prompt blank marker shared by parser, builder and codec
BLANK_SENTINEL = "\\underline{\\qquad}"


class QuestionKind(str, Enum):
    """Discriminant of the question union (values are the wire tags)."""
    SINGLE_CHOICE = "mcq-single"
    FILL_BLANK = "fill-blank"

    def __str__(self) -> str:
        return self.value


class QuestionLevel(str, Enum):
    """Difficulty tier encoded in the question id."""
    BASIC = "basic"
    ADVANCED = "advanced"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Choice:
    """One option of a single-choice question."""
    key: str
    text: str

    def __post_init__(self) -> None:
        if self.key not in CHOICE_KEYS:
            raise ValueError(f"Invalid choice key: {self.key!r}")


def _check_common(uid: str, number: int) -> None:
    if not uid:
        raise ValueError("uid must not be empty")
    if number < 0:
        raise ValueError(f"number cannot be negative: {number}")


@dataclass(frozen=True)
class SingleChoiceQuestion:
    """
    Single-choice question (immutable).

    Attributes:
        uid: Durable identity "<scheme>:<courseCode>:<id>"
        id: Question id like "graph:q01"
        topic: Topic decoded from the id
        level: BASIC or ADVANCED, decoded from the id
        number: Question number decoded from the id
        prompt: Prompt markup
        choices: Options keyed A.. in order
        subject: Subject the question belongs to

    Invariants:
        - 2 <= len(choices) <= 5
        - choice keys are A, B, ... contiguous and unique
    """

    uid: str
    id: str
    topic: str
    level: QuestionLevel
    number: int
    prompt: str
    choices: Tuple[Choice, ...]
    subject: str = ""

    def __post_init__(self) -> None:
        """Validate question on construction."""
        _check_common(self.uid, self.number)
        object.__setattr__(self, "level", QuestionLevel(self.level))
        object.__setattr__(self, "choices", tuple(self.choices))
        if not (MIN_CHOICES <= len(self.choices) <= MAX_CHOICES):
            raise ValueError(
                f"{self.uid}: expected {MIN_CHOICES}-{MAX_CHOICES} choices, got {len(self.choices)}"
            )
        keys = tuple(c.key for c in self.choices)
        if keys != CHOICE_KEYS[: len(keys)]:
            raise ValueError(f"{self.uid}: choice keys must run A.. in order: {keys}")

    @property
    def kind(self) -> QuestionKind:
        return QuestionKind.SINGLE_CHOICE

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(c.key for c in self.choices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "subject": self.subject,
            "type": self.kind.value,
            "id": self.id,
            "topic": self.topic,
            "level": self.level.value,
            "number": self.number,
            "prompt": self.prompt,
            "choices": [{"key": c.key, "text": c.text} for c in self.choices],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SingleChoiceQuestion:
        return cls(
            uid=data["uid"],
            id=data["id"],
            topic=data["topic"],
            level=QuestionLevel(data.get("level", "basic")),
            number=data["number"],
            prompt=data.get("prompt", ""),
            choices=tuple(Choice(c["key"], c["text"]) for c in data.get("choices", [])),
            subject=data.get("subject", ""),
        )


@dataclass(frozen=True)
class FillBlankQuestion:
    """
    Fill-in-the-blank question (immutable).

    The prompt is masked: each blank is a BLANK_SENTINEL. A masked prompt
    may hold more sentinels than blank_count (answerless markers).

    Invariants:
        - blank_count >= 1
    """

    uid: str
    id: str
    topic: str
    level: QuestionLevel
    number: int
    prompt: str
    blank_count: int
    subject: str = ""

    def __post_init__(self) -> None:
        """Validate question on construction."""
        _check_common(self.uid, self.number)
        object.__setattr__(self, "level", QuestionLevel(self.level))
        if self.blank_count < 1:
            raise ValueError(f"{self.uid}: blank_count must be >= 1: {self.blank_count}")

    @property
    def kind(self) -> QuestionKind:
        return QuestionKind.FILL_BLANK

    @property
    def sentinel_count(self) -> int:
        """Number of blank sentinels in the masked prompt."""
        return self.prompt.count(BLANK_SENTINEL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "subject": self.subject,
            "type": self.kind.value,
            "id": self.id,
            "topic": self.topic,
            "level": self.level.value,
            "number": self.number,
            "prompt": self.prompt,
            "blankCount": self.blank_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FillBlankQuestion:
        return cls(
            uid=data["uid"],
            id=data["id"],
            topic=data["topic"],
            level=QuestionLevel(data.get("level", "basic")),
            number=data["number"],
            prompt=data.get("prompt", ""),
            blank_count=data["blankCount"],
            subject=data.get("subject", ""),
        )


Question = Union[SingleChoiceQuestion, FillBlankQuestion]


def question_from_dict(data: Dict[str, Any]) -> Question:
    """
    Deserialize a question, dispatching on its "type" tag.

    Raises:
        ValueError: If the tag is not a known QuestionKind
    """
    kind = QuestionKind(data.get("type"))
    if kind == QuestionKind.SINGLE_CHOICE:
        return SingleChoiceQuestion.from_dict(data)
    return FillBlankQuestion.from_dict(data)


@dataclass(frozen=True)
class QuizDocument:
    """
    Ordered questions plus version identity (immutable).

    Order is significant: it drives numbering and presentation.

    Attributes:
        version_id: Version identifier, also the exported quiz title
        version_index: Version ordinal
        questions: Questions in presentation order
    """

    version_id: str
    version_index: int = 0
    questions: Tuple[Question, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "questions", tuple(self.questions))
        if self.version_index < 0:
            raise ValueError(f"version_index cannot be negative: {self.version_index}")
        uids = [q.uid for q in self.questions]
        if len(uids) != len(set(uids)):
            raise ValueError(f"Duplicate question uid in {self.version_id!r}")

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    @property
    def uids(self) -> Tuple[str, ...]:
        return tuple(q.uid for q in self.questions)

    @property
    def topics(self) -> Tuple[str, ...]:
        """Distinct topics in first-seen order."""
        return tuple(dict.fromkeys(q.topic for q in self.questions))

    def get(self, uid: str) -> Optional[Question]:
        for q in self.questions:
            if q.uid == uid:
                return q
        return None

    def with_version(self, version_id: str, version_index: Optional[int] = None) -> QuizDocument:
        """Return a copy carrying a different version identity."""
        return replace(
            self,
            version_id=version_id,
            version_index=self.version_index if version_index is None else version_index,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": {"versionId": self.version_id, "versionIndex": self.version_index},
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QuizDocument:
        version = data.get("version", {})
        return cls(
            version_id=version["versionId"],
            version_index=version.get("versionIndex", 0),
            questions=tuple(question_from_dict(q) for q in data.get("questions", [])),
        )

    def __repr__(self) -> str:
        return f"QuizDocument({self.version_id!r}, questions={len(self.questions)})"
