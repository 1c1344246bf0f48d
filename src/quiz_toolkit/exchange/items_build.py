"""
Module: exchange.items_build

Purpose:
    Builds the interchange item document for one quiz. Single-choice
    questions become choice items scored on the correct option's ident;
    fill-blank questions become short-answer items, either one combined
    item or (split mode) one item per blank.

Key Functions:
    - build_items_xml(): QuizDocument + AnswerKey -> (xml, item_count)
    - prompt_to_html(): Plain prompt -> item HTML with file-base images
    - item_ident() / choice_ident(): Deterministic identifiers

Dependencies:
    - xml.etree.ElementTree: Document construction

Used By:
    - exchange.package_build
"""

from __future__ import annotations

import hashlib
import html
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from xml.etree.ElementTree import Element, SubElement

from quiz_toolkit.config import ConversionOptions, FillBlankExportMode
from quiz_toolkit.core.diagnostics import WarningCollector, WarningKind
from quiz_toolkit.core.models.answers import AnswerKey, FillBlankAnswer, SingleChoiceAnswer
from quiz_toolkit.core.models.package import ImportedAsset
from quiz_toolkit.core.models.questions import (
    BLANK_SENTINEL,
    FillBlankQuestion,
    QuizDocument,
    SingleChoiceQuestion,
)
from quiz_toolkit.exchange.assets import FILEBASE_MARKER, build_asset_name_lookup, encode_filebase_path
from quiz_toolkit.exchange.xmltools import to_pretty_xml

logger = logging.getLogger(__name__)

QTI_NAMESPACE = "http://www.imsglobal.org/xsd/ims_qtiasiv1p2"
RESPONSE_IDENT = "response1"
ANSWER_LABEL_IDENT = "answer1"
FULL_SCORE = "100"
DEFAULT_POINTS = 1

# question_type metadata tags
MULTIPLE_CHOICE = "multiple_choice_question"
TRUE_FALSE = "true_false_question"
MULTIPLE_ANSWERS = "multiple_answers_question"
SHORT_ANSWER = "short_answer_question"
FILL_IN_MULTIPLE_BLANKS = "fill_in_multiple_blanks_question"

IMAGE_PLACEHOLDER_RE = re.compile(r"\[image:\s*([^\]]+)\]")


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def item_ident(uid: str, blank_index: Optional[int] = None) -> str:
    """``q_`` + 12 hex chars of md5(uid), or of md5("uid:b") for split items."""
    seed = uid if blank_index is None else f"{uid}:{blank_index}"
    return f"q_{md5_hex(seed)[:12]}"


def choice_ident(question_index: int, choice_index: int) -> str:
    return str((question_index + 1) * 1000 + choice_index + 1)


def _format_points(points: float) -> str:
    return str(int(points)) if float(points).is_integer() else str(points)


def prompt_to_html(
    prompt: str,
    assets_by_name: Dict[str, ImportedAsset],
    collector: WarningCollector,
) -> str:
    """
    Render a plain prompt as item HTML.

    Text is HTML-escaped, ``[image: name]`` placeholders become file-base
    ``<img>`` tags (unresolved ones are kept as text with a warning), and
    newlines become ``<br/>``. The result is wrapped in ``<p>``.
    """
    out: List[str] = []
    last = 0
    for match in IMAGE_PLACEHOLDER_RE.finditer(prompt):
        out.append(html.escape(prompt[last:match.start()], quote=False))
        asset = assets_by_name.get(match.group(1).strip())
        if asset is None:
            collector.add(
                WarningKind.MISSING_ASSET,
                f"Missing asset for placeholder {match.group(0)}",
            )
            out.append(html.escape(match.group(0), quote=False))
        else:
            src = f"{FILEBASE_MARKER}{encode_filebase_path(asset.zip_path)}"
            out.append(f'<img src="{html.escape(src)}" />')
        last = match.end()
    out.append(html.escape(prompt[last:], quote=False))

    body = re.sub(r"\r?\n", "<br/>", "".join(out))
    return f"<p>{body}</p>"


# ─────────────────────────────────────────────────────────────────────────────
# Element Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _add_mattext(parent: Element, html_text: str) -> None:
    material = SubElement(parent, "material")
    SubElement(material, "mattext", texttype="text/html").text = html_text


def _add_metadata(item: Element, question_type: str, points: float) -> None:
    qtimetadata = SubElement(SubElement(item, "itemmetadata"), "qtimetadata")
    for label, entry in (("question_type", question_type), ("points_possible", _format_points(points))):
        field_el = SubElement(qtimetadata, "qtimetadatafield")
        SubElement(field_el, "fieldlabel").text = label
        SubElement(field_el, "fieldentry").text = entry


def _add_resprocessing(item: Element, correct_values: Sequence[str]) -> None:
    """Outcomes plus one full-score condition per correct value."""
    resprocessing = SubElement(item, "resprocessing")
    outcomes = SubElement(resprocessing, "outcomes")
    SubElement(outcomes, "decvar", varname="SCORE", vartype="Decimal", minvalue="0", maxvalue="100")
    for value in correct_values:
        cond = SubElement(resprocessing, "respcondition")
        conditionvar = SubElement(cond, "conditionvar")
        SubElement(conditionvar, "varequal", respident=RESPONSE_IDENT).text = value
        SubElement(cond, "setvar", varname="SCORE", action="Set").text = FULL_SCORE


def _short_answer_item(
    ident: str, prompt_html: str, points: float, answers: Sequence[str]
) -> Element:
    item = Element("item", ident=ident)
    _add_metadata(item, SHORT_ANSWER, points)
    presentation = SubElement(item, "presentation")
    _add_mattext(presentation, prompt_html)
    response = SubElement(presentation, "response_str", ident=RESPONSE_IDENT, rcardinality="Single")
    render = SubElement(response, "render_fib")
    SubElement(render, "response_label", ident=ANSWER_LABEL_IDENT)
    _add_resprocessing(item, answers)
    return item


# ─────────────────────────────────────────────────────────────────────────────
# Question Builders
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class _ItemContext:
    answer_key: AnswerKey
    assets_by_name: Dict[str, ImportedAsset]
    options: ConversionOptions
    collector: WarningCollector

    def points_for(self, uid: str) -> float:
        answer = self.answer_key.get(uid)
        if answer is not None and answer.points is not None:
            return answer.points
        return DEFAULT_POINTS

    def html(self, text: str) -> str:
        return prompt_to_html(text, self.assets_by_name, self.collector)


def _single_choice_items(
    question: SingleChoiceQuestion, index: int, ctx: _ItemContext
) -> List[Element]:
    answer = ctx.answer_key.get(question.uid)
    correct_key = answer.correct_key if isinstance(answer, SingleChoiceAnswer) else None

    item = Element("item", ident=item_ident(question.uid))
    _add_metadata(item, MULTIPLE_CHOICE, ctx.points_for(question.uid))
    presentation = SubElement(item, "presentation")
    _add_mattext(presentation, ctx.html(question.prompt))
    response = SubElement(presentation, "response_lid", ident=RESPONSE_IDENT, rcardinality="Single")
    render = SubElement(response, "render_choice")

    correct_ident = None
    for c_index, choice in enumerate(question.choices):
        ident = choice_ident(index, c_index)
        label = SubElement(render, "response_label", ident=ident)
        _add_mattext(label, ctx.html(choice.text))
        if choice.key == correct_key:
            correct_ident = ident

    if correct_ident is None:
        ctx.collector.add(
            WarningKind.MISSING_ANSWER_DATA,
            f"Missing correct choice for {question.uid}",
            uid=question.uid,
        )
    _add_resprocessing(item, [correct_ident] if correct_ident else [])
    return [item]


def _fill_blank_items(question: FillBlankQuestion, ctx: _ItemContext) -> List[Element]:
    answer = ctx.answer_key.get(question.uid)
    accepted = list(answer.answers) if isinstance(answer, FillBlankAnswer) else []
    points = ctx.points_for(question.uid)
    blank_count = question.blank_count
    uid = question.uid

    if blank_count > 1 and ctx.options.fill_blank_export_mode == FillBlankExportMode.SPLIT:
        items = []
        for b in range(blank_count):
            split_prompt = f"{question.prompt}\n\nBlank {b + 1}: {BLANK_SENTINEL}"
            answers = [accepted[b]] if b < len(accepted) and accepted[b] else []
            if not answers:
                ctx.collector.add(
                    WarningKind.MISSING_ANSWER_DATA,
                    f"Missing accepted answer for {uid} blank {b + 1}",
                    uid=uid,
                )
            items.append(_short_answer_item(item_ident(uid, b), ctx.html(split_prompt), points, answers))
        ctx.collector.add(
            WarningKind.LOSSY_CONVERSION,
            f"Split fill-blank item into {blank_count} items for {uid}",
            uid=uid,
        )
        return items

    prompt = question.prompt
    answers = accepted
    if blank_count > 1:
        delimiter = ctx.options.combined_delimiter
        prompt = f"{prompt}\n\nEnter answers separated by {delimiter}\nAnswer: {BLANK_SENTINEL}"
        if len(accepted) >= blank_count:
            answers = [delimiter.join(accepted[:blank_count])]
        ctx.collector.add(
            WarningKind.LOSSY_CONVERSION,
            f"Combined {blank_count} blanks into one short-answer item for {uid}",
            uid=uid,
        )
    if not answers:
        ctx.collector.add(
            WarningKind.MISSING_ANSWER_DATA,
            f"Missing accepted answers for {uid}",
            uid=uid,
        )
    return [_short_answer_item(item_ident(uid), ctx.html(prompt), points, answers)]


def build_items_xml(
    quiz: QuizDocument,
    answer_key: AnswerKey,
    assets: Sequence[ImportedAsset],
    options: ConversionOptions,
    collector: WarningCollector,
) -> tuple[str, int]:
    """
    Build the item document for one quiz.

    Args:
        quiz: Questions to export, in order
        answer_key: Answers by uid
        assets: Assets that "[image: name]" placeholders may reference
        options: Fill-blank export mode and combined delimiter
        collector: Receives missing-answer, missing-asset and lossy warnings

    Returns:
        (xml, item_count) where item_count counts split items individually
    """
    ctx = _ItemContext(answer_key, build_asset_name_lookup(assets), options, collector)

    root = Element("questestinterop", xmlns=QTI_NAMESPACE)
    assessment = SubElement(root, "assessment", ident=quiz.version_id, title=quiz.version_id)
    section = SubElement(assessment, "section", ident="root_section")

    item_count = 0
    for index, question in enumerate(quiz.questions):
        if isinstance(question, SingleChoiceQuestion):
            items = _single_choice_items(question, index, ctx)
        else:
            items = _fill_blank_items(question, ctx)
        section.extend(items)
        item_count += len(items)

    logger.debug(f"Built {item_count} item(s) for {quiz.version_id}")
    return to_pretty_xml(root), item_count
