"""
Schema Validation Utilities

Validates serialized quizzes and answer keys (the JSON shapes exchanged
with the host application) before they are turned back into models.

- Basic structural checks always run and fail fast
- ``strict=True`` additionally validates against the JSON Schema files
  shipped next to this module
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from ..models.questions import CHOICE_KEYS, QuestionKind


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _run_jsonschema(data: Any, schema_name: str) -> None:
    schema = _load_schema(schema_name)
    validator = jsonschema.Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        first = errors[0]
        raise ValidationError(
            f"Schema validation failed: {first.message}",
            path=".".join(str(p) for p in first.absolute_path),
            errors=[e.message for e in errors],
        )


def validate_quiz(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate serialized quiz data.

    Args:
        data: Quiz dictionary ({"version": {...}, "questions": [...]})
        strict: If True, also validate against quiz.schema.json

    Raises:
        ValidationError: If data is invalid
    """
    version = data.get("version")
    if not isinstance(version, dict) or "versionId" not in version:
        raise ValidationError("Missing version.versionId", path="version")

    questions = data.get("questions")
    if not isinstance(questions, list):
        raise ValidationError("questions must be a list", path="questions")

    seen: set[str] = set()
    for i, question in enumerate(questions):
        path = f"questions[{i}]"
        _validate_question(question, path)
        uid = question["uid"]
        if uid in seen:
            raise ValidationError(f"Duplicate uid: {uid}", path=f"{path}.uid")
        seen.add(uid)

    if strict:
        _run_jsonschema(data, "quiz")


def _validate_question(data: Any, path: str) -> None:
    """Validate a single serialized question."""
    if not isinstance(data, dict):
        raise ValidationError("question must be an object", path=path)

    required = ["uid", "type", "id", "topic", "number", "prompt"]
    missing = [f for f in required if f not in data]
    if missing:
        raise ValidationError(
            f"Question missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing]
        )

    kind = data.get("type")
    if kind not in {k.value for k in QuestionKind}:
        raise ValidationError(f"Invalid question type: {kind!r}", path=f"{path}.type")

    if kind == QuestionKind.SINGLE_CHOICE.value:
        choices = data.get("choices")
        if not isinstance(choices, list) or not (2 <= len(choices) <= len(CHOICE_KEYS)):
            raise ValidationError(
                f"choices must be a list of 2-{len(CHOICE_KEYS)} options",
                path=f"{path}.choices"
            )
        keys = [c.get("key") for c in choices if isinstance(c, dict)]
        if keys != list(CHOICE_KEYS[: len(choices)]):
            raise ValidationError(
                f"choice keys must run A.. in order: {keys}",
                path=f"{path}.choices"
            )
    else:
        blank_count = data.get("blankCount")
        if not isinstance(blank_count, int) or blank_count < 1:
            raise ValidationError(
                f"Invalid blankCount: {blank_count!r} (must be positive integer)",
                path=f"{path}.blankCount"
            )


def validate_answer_key(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate a serialized answer key ({uid: answer}).

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("answer key must be an object")

    for uid, entry in data.items():
        path = uid
        if not isinstance(entry, dict):
            raise ValidationError("answer must be an object", path=path)
        kind = entry.get("type")
        if kind == QuestionKind.SINGLE_CHOICE.value:
            if entry.get("correctKey") not in CHOICE_KEYS:
                raise ValidationError(
                    f"Invalid correctKey: {entry.get('correctKey')!r}",
                    path=f"{path}.correctKey"
                )
        elif kind == QuestionKind.FILL_BLANK.value:
            blank_count = entry.get("blankCount")
            if not isinstance(blank_count, int) or blank_count < 1:
                raise ValidationError(
                    f"Invalid blankCount: {blank_count!r}",
                    path=f"{path}.blankCount"
                )
            accepted = entry.get("acceptedAnswers")
            if accepted is not None and not isinstance(accepted, list):
                raise ValidationError(
                    "acceptedAnswers must be a list",
                    path=f"{path}.acceptedAnswers"
                )
        else:
            raise ValidationError(f"Invalid answer type: {kind!r}", path=f"{path}.type")

    if strict:
        _run_jsonschema(data, "answer_key")
