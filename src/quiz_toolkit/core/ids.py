"""
Module: core.ids

Purpose:
    Question id grammar and uid construction. An id decomposes into
    (topic, level, number):

        graph:q12               -> ("graph", BASIC, 12)
        advancecombinatorics:q3 -> ("combinatorics", ADVANCED, 3)

Key Functions:
    - parse_question_id(): Decompose an id, raising InvalidQuestionId
    - format_question_id(): Inverse of parse_question_id
    - make_uid(): Build "<scheme>:<courseCode>:<id>"

Used By:
    - markup.parser
    - exchange.package_parse
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import InvalidQuestionId
from .models.questions import QuestionLevel

ADVANCED_PREFIX = "advance"
DEFAULT_UID_SCHEME = "latex"

_ADVANCED_ID_RE = re.compile(r"^advance([a-z0-9-]+):q(\d+)$", re.IGNORECASE)
_BASIC_ID_RE = re.compile(r"^([a-z0-9-]+):q(\d+)$", re.IGNORECASE)


@dataclass(frozen=True)
class QuestionIdInfo:
    """Decomposed question id."""
    topic: str
    level: QuestionLevel
    number: int


def parse_question_id(question_id: str) -> QuestionIdInfo:
    """
    Decompose a question id into topic, level and number.

    The advanced grammar is tried first, so ``advancegraph:q01`` is an
    advanced question on topic ``graph``.

    Raises:
        InvalidQuestionId: If the id matches neither grammar
    """
    match = _ADVANCED_ID_RE.match(question_id)
    if match:
        return QuestionIdInfo(match.group(1), QuestionLevel.ADVANCED, int(match.group(2)))
    match = _BASIC_ID_RE.match(question_id)
    if match:
        return QuestionIdInfo(match.group(1), QuestionLevel.BASIC, int(match.group(2)))
    raise InvalidQuestionId(question_id)


def format_question_id(topic: str, level: QuestionLevel | str, number: int) -> str:
    """Build an id that parse_question_id decomposes back to the same triple."""
    prefix = ADVANCED_PREFIX if QuestionLevel(level) == QuestionLevel.ADVANCED else ""
    return f"{prefix}{topic}:q{number:02d}"


def make_uid(course_code: str, question_id: str, scheme: str = DEFAULT_UID_SCHEME) -> str:
    return f"{scheme}:{course_code}:{question_id}"
