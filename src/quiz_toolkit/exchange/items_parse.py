"""
Module: exchange.items_parse

Purpose:
    Reads an interchange item document into ExchangeItem records. Each
    item is classified by its question_type metadata into a closed set of
    shapes; anything unrecognized is kept as ItemShape.UNKNOWN so the
    caller can warn about it by name.

Key Functions:
    - parse_items_xml(): Item document -> List[ExchangeItem]
    - shape_for_type(): question_type tag -> ItemShape

Used By:
    - exchange.package_parse
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
from xml.etree.ElementTree import Element

from quiz_toolkit.exchange.items_build import (
    FILL_IN_MULTIPLE_BLANKS,
    FULL_SCORE,
    MULTIPLE_ANSWERS,
    MULTIPLE_CHOICE,
    RESPONSE_IDENT,
    SHORT_ANSWER,
    TRUE_FALSE,
)
from quiz_toolkit.exchange.xmltools import parse_xml, text_of

logger = logging.getLogger(__name__)

UNKNOWN_TYPE = "unknown"


class ItemShape(str, Enum):
    """Closed set of item shapes the importer understands."""
    SINGLE_CHOICE = "single_choice"
    MULTI_SELECT = "multi_select"
    SHORT_ANSWER = "short_answer"
    MULTI_BLANK = "multi_blank"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


_SHAPE_BY_TYPE = {
    MULTIPLE_CHOICE: ItemShape.SINGLE_CHOICE,
    TRUE_FALSE: ItemShape.SINGLE_CHOICE,
    MULTIPLE_ANSWERS: ItemShape.MULTI_SELECT,
    SHORT_ANSWER: ItemShape.SHORT_ANSWER,
    FILL_IN_MULTIPLE_BLANKS: ItemShape.MULTI_BLANK,
}


def shape_for_type(question_type: str) -> ItemShape:
    return _SHAPE_BY_TYPE.get(question_type, ItemShape.UNKNOWN)


def choice_index(choices: Tuple["ExchangeChoice", ...], ident: Optional[str]) -> Optional[int]:
    """Position of the choice with ``ident``, None if absent."""
    if not ident:
        return None
    for index, choice in enumerate(choices):
        if choice.ident == ident:
            return index
    return None


@dataclass(frozen=True)
class ExchangeChoice:
    ident: str
    html: str


@dataclass(frozen=True)
class ExchangeBlank:
    """One sub-blank of a multi-blank item."""
    response_ident: str
    choices: Tuple[ExchangeChoice, ...]
    correct_ident: Optional[str] = None


@dataclass(frozen=True)
class ExchangeItem:
    """
    One item as read from the package, before translation to questions.

    Only the fields relevant to ``shape`` are populated.
    """
    ident: str
    question_type: str
    shape: ItemShape
    prompt_html: str
    points: Optional[float] = None
    response_ident: Optional[str] = None
    choices: Tuple[ExchangeChoice, ...] = ()
    correct_ident: Optional[str] = None
    short_answers: Tuple[str, ...] = ()
    required: Tuple[str, ...] = ()
    forbidden: Tuple[str, ...] = ()
    blanks: Tuple[ExchangeBlank, ...] = ()


# ─────────────────────────────────────────────────────────────────────────────
# Element Readers
# ─────────────────────────────────────────────────────────────────────────────

def _material_html(parent: Optional[Element]) -> str:
    """HTML of the first mattext below ``parent``, plus any child <img>."""
    if parent is None:
        return ""
    mattext = parent.find(".//mattext")
    if mattext is None:
        return ""
    imgs = "".join(
        f'<img src="{img.get("src")}" />' for img in mattext.iter("img") if img.get("src")
    )
    return text_of(mattext) + imgs


def _metadata(item: Element) -> Tuple[str, Optional[float]]:
    fields = {}
    for field_el in item.findall("./itemmetadata/qtimetadata/qtimetadatafield"):
        label = text_of(field_el.find("fieldlabel"))
        entry = text_of(field_el.find("fieldentry"))
        if label and entry:
            fields[label] = entry

    points = None
    raw_points = fields.get("points_possible")
    if raw_points:
        try:
            points = float(raw_points)
        except ValueError:
            logger.debug(f"Ignoring non-numeric points_possible {raw_points!r}")
    return fields.get("question_type", UNKNOWN_TYPE), points


def _choices(response_lid: Optional[Element]) -> Tuple[ExchangeChoice, ...]:
    if response_lid is None:
        return ()
    return tuple(
        ExchangeChoice(label.get("ident", ""), _material_html(label.find("material")))
        for label in response_lid.findall("./render_choice/response_label")
    )


def _full_score_conditions(item: Element) -> List[Element]:
    """respconditions whose setvar awards the full score."""
    conditions = []
    for cond in item.findall("./resprocessing/respcondition"):
        setvar = cond.find("setvar")
        if setvar is not None and text_of(setvar).strip() in (FULL_SCORE, f"{FULL_SCORE}.0"):
            conditions.append(cond)
    return conditions


def _varequal_values(parent: Optional[Element], response_ident: str) -> List[str]:
    if parent is None:
        return []
    return [
        text_of(ve)
        for ve in parent.findall("varequal")
        if ve.get("respident") == response_ident and text_of(ve)
    ]


def _correct_values(item: Element, response_ident: str) -> List[str]:
    values: List[str] = []
    for cond in _full_score_conditions(item):
        values.extend(_varequal_values(cond.find("conditionvar"), response_ident))
    return values


def _multi_answer(item: Element, response_ident: str) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    for cond in _full_score_conditions(item):
        and_el = cond.find("./conditionvar/and")
        if and_el is None:
            continue
        required = _varequal_values(and_el, response_ident)
        forbidden = _varequal_values(and_el.find("not"), response_ident)
        return tuple(required), tuple(forbidden)
    return (), ()


def _parse_item(item: Element) -> ExchangeItem:
    ident = item.get("ident", "")
    question_type, points = _metadata(item)
    shape = shape_for_type(question_type)
    presentation = item.find("presentation")
    prompt_html = _material_html(presentation.find("material") if presentation is not None else None)
    base = dict(ident=ident, question_type=question_type, shape=shape, prompt_html=prompt_html, points=points)

    if presentation is None or shape == ItemShape.UNKNOWN:
        return ExchangeItem(**base)

    if shape in (ItemShape.SINGLE_CHOICE, ItemShape.MULTI_SELECT):
        response_lid = presentation.find("response_lid")
        response_ident = RESPONSE_IDENT
        if response_lid is not None:
            response_ident = response_lid.get("ident", RESPONSE_IDENT)
        choices = _choices(response_lid)
        if shape == ItemShape.SINGLE_CHOICE:
            correct = _correct_values(item, response_ident)
            return ExchangeItem(
                **base, response_ident=response_ident, choices=choices,
                correct_ident=correct[0] if correct else None,
            )
        required, forbidden = _multi_answer(item, response_ident)
        return ExchangeItem(
            **base, response_ident=response_ident, choices=choices,
            required=required, forbidden=forbidden,
        )

    if shape == ItemShape.SHORT_ANSWER:
        response = presentation.find("response_str")
        if response is None:
            response = presentation.find("response_lid")
        response_ident = response.get("ident", RESPONSE_IDENT) if response is not None else RESPONSE_IDENT
        return ExchangeItem(
            **base, response_ident=response_ident,
            short_answers=tuple(_correct_values(item, response_ident)),
        )

    blanks = []
    for response_lid in presentation.findall("response_lid"):
        response_ident = response_lid.get("ident", "")
        correct = _correct_values(item, response_ident)
        blanks.append(ExchangeBlank(response_ident, _choices(response_lid), correct[0] if correct else None))
    return ExchangeItem(**base, blanks=tuple(blanks))


def parse_items_xml(xml: bytes | str) -> List[ExchangeItem]:
    """
    Read every item of an item document, in document order.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is not well-formed
    """
    root = parse_xml(xml)
    items = [_parse_item(item) for item in root.iter("item")]
    logger.debug(f"Read {len(items)} item(s)")
    return items
