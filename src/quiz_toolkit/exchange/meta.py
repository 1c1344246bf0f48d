"""
Module: exchange.meta

Purpose:
    Per-quiz assessment metadata document: writer used on export and a
    lenient reader used on import.

Key Functions:
    - build_assessment_meta(): Title + points -> metadata XML
    - parse_assessment_meta(): Metadata XML -> AssessmentMeta
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional
from xml.etree.ElementTree import Element, SubElement

from quiz_toolkit.exchange.xmltools import child_text, parse_xml, to_pretty_xml

CANVAS_NAMESPACE = "http://canvas.instructure.com/xsd/cccv1p0"


@dataclass(frozen=True)
class AssessmentMeta:
    """
    Quiz-level settings read from an assessment metadata document.

    Fields are None when absent or not coercible.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    points_possible: Optional[float] = None
    shuffle_answers: Optional[bool] = None
    scoring_policy: Optional[str] = None
    allowed_attempts: Optional[float] = None
    one_question_at_a_time: Optional[bool] = None
    cant_go_back: Optional[bool] = None
    show_correct_answers: Optional[bool] = None
    one_time_results: Optional[bool] = None
    due_at: Optional[str] = None
    unlock_at: Optional[str] = None
    lock_at: Optional[str] = None


def _coerce_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    value = value.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _coerce_number(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def build_assessment_meta(title: str, points_possible: int) -> str:
    """Metadata XML for a quiz; settings other than title/points are fixed."""
    quiz = Element("quiz", xmlns=CANVAS_NAMESPACE)
    fields = [
        ("title", title),
        ("description", ""),
        ("points_possible", str(points_possible)),
        ("shuffle_answers", "false"),
        ("allowed_attempts", "-1"),
        ("scoring_policy", "keep_highest"),
        ("one_question_at_a_time", "false"),
        ("cant_go_back", "false"),
        ("show_correct_answers", "true"),
        ("one_time_results", "false"),
    ]
    for name, value in fields:
        SubElement(quiz, name).text = value
    return to_pretty_xml(quiz)


def parse_assessment_meta(xml: bytes | str) -> AssessmentMeta:
    """
    Read an assessment metadata document.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is not well-formed
    """
    root = parse_xml(xml)
    quiz = root if root.tag == "quiz" else root.find("quiz")

    def text(name: str) -> Optional[str]:
        return child_text(quiz, name)

    return AssessmentMeta(
        title=text("title"),
        description=text("description"),
        points_possible=_coerce_number(text("points_possible")),
        shuffle_answers=_coerce_bool(text("shuffle_answers")),
        scoring_policy=text("scoring_policy"),
        allowed_attempts=_coerce_number(text("allowed_attempts")),
        one_question_at_a_time=_coerce_bool(text("one_question_at_a_time")),
        cant_go_back=_coerce_bool(text("cant_go_back")),
        show_correct_answers=_coerce_bool(text("show_correct_answers")),
        one_time_results=_coerce_bool(text("one_time_results")),
        due_at=text("due_at"),
        unlock_at=text("unlock_at"),
        lock_at=text("lock_at"),
    )
