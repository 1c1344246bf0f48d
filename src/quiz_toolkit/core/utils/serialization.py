"""
Serialization Utilities

Provides to/from JSON utilities for QuizDocument and AnswerKey, using the
wire shapes the host application stores:

    quiz:       {"version": {"versionId", "versionIndex"}, "questions": [...]}
    answer key: {uid: {"type", "correctKey" | "blankCount" + "acceptedAnswers", ...}}

- `serialize_*` / `deserialize_*` work on dicts
- `save_*_json` / `load_*_json` work on files
- Validation via schemas before deserialization
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..models.answers import AnswerKey, answer_key_from_dict, answer_key_to_dict
from ..models.questions import QuizDocument
from ..schemas.validator import validate_answer_key, validate_quiz


# ─────────────────────────────────────────────────────────────────────────────
# Quiz Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_quiz(quiz: QuizDocument) -> dict[str, Any]:
    """
    Serialize a QuizDocument to a dictionary.

    The output can be written to JSON and will pass schema validation.
    """
    return quiz.to_dict()


def deserialize_quiz(data: dict[str, Any], *, validate: bool = True, strict: bool = False) -> QuizDocument:
    """
    Deserialize a QuizDocument from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate before deserializing
        strict: Validate against the JSON schema as well

    Raises:
        ValidationError: If validate=True and data is invalid
        ValueError: If a record violates a model invariant
    """
    if validate:
        validate_quiz(data, strict=strict)
    return QuizDocument.from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# Answer Key Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_answer_key(answer_key: AnswerKey) -> dict[str, Any]:
    return answer_key_to_dict(answer_key)


def deserialize_answer_key(data: dict[str, Any], *, validate: bool = True, strict: bool = False) -> AnswerKey:
    """
    Deserialize an AnswerKey from a dictionary.

    Raises:
        ValidationError: If validate=True and data is invalid
    """
    if validate:
        validate_answer_key(data, strict=strict)
    return answer_key_from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# File I/O
# ─────────────────────────────────────────────────────────────────────────────

def save_quiz_json(quiz: QuizDocument, path: Path) -> None:
    """Write a quiz as pretty-printed UTF-8 JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_quiz(quiz), f, ensure_ascii=False, indent=2)


def load_quiz_json(path: Path, *, strict: bool = False) -> QuizDocument:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return deserialize_quiz(data, strict=strict)


def save_answer_key_json(answer_key: AnswerKey, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_answer_key(answer_key), f, ensure_ascii=False, indent=2)


def load_answer_key_json(path: Path, *, strict: bool = False) -> AnswerKey:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return deserialize_answer_key(data, strict=strict)
