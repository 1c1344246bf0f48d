"""
Module: exchange.package_parse

Purpose:
    Imports an exchange package back into QuizDocuments and an AnswerKey.
    The manifest lists the quizzes; each quiz's items are dispatched by
    shape and translated into the single-choice / fill-blank union.

    - Single-choice-style items map directly
    - Short-answer items become one-blank fill-blank questions
    - Multi-select items become a fill-blank asking for the sorted,
      comma-joined correct keys (lossy, flagged in notes)
    - Multi-blank items become one fill-blank whose per-blank options
      are appended to the prompt (lossy, flagged in notes)
    - Unknown item types are dropped with a warning
    - Quizzes that resolve to the same topic get -2, -3, ... suffixes so
      their uids stay distinct

    Every item is translated in isolation; a bad item becomes a warning
    and the rest of the package still imports.

Key Functions:
    - parse_package(): Package -> ImportResult
    - resolve_topic(): Quiz title -> topic

Used By:
    - pipeline.package_to_markup
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from xml.etree.ElementTree import ParseError

from quiz_toolkit.config import ConversionOptions
from quiz_toolkit.core.diagnostics import ConversionWarning, WarningCollector, WarningKind
from quiz_toolkit.core.errors import InvalidPackage, MalformedQuestion
from quiz_toolkit.core.ids import format_question_id, make_uid, parse_question_id
from quiz_toolkit.core.models.answers import Answer, AnswerKey, FillBlankAnswer, SingleChoiceAnswer
from quiz_toolkit.core.models.package import MANIFEST_PATH, ImportedAsset, Package
from quiz_toolkit.core.models.questions import (
    BLANK_SENTINEL,
    CHOICE_KEYS,
    Choice,
    FillBlankQuestion,
    Question,
    QuizDocument,
    SingleChoiceQuestion,
)
from quiz_toolkit.exchange.items_parse import (
    ExchangeChoice,
    ExchangeItem,
    ItemShape,
    choice_index,
    parse_items_xml,
)
from quiz_toolkit.exchange.manifest import QuizResource, parse_manifest
from quiz_toolkit.exchange.meta import AssessmentMeta, parse_assessment_meta
from quiz_toolkit.exchange.normalize import normalize_html, slugify

logger = logging.getLogger(__name__)

IMPORT_VERSION_SCHEME = "canvas"
DEFAULT_TOPIC = "quiz"

MULTI_SELECT_INSTRUCTION = "Select ALL that apply. Write letters separated by commas:"
MULTI_ANSWER_NOTE = "multi-answer converted"
MULTI_BLANK_NOTE = "multi-blank converted"
ALTERNATIVES_NOTE = "alternative answers dropped"

_BLANK_PLACEHOLDER_RE = re.compile(r"\[[A-Za-z0-9_-]+\]")


@dataclass(frozen=True)
class ImportResult:
    """Output of parse_package."""
    quizzes: List[QuizDocument]
    answer_key: AnswerKey
    assets: List[ImportedAsset] = field(default_factory=list)
    warnings: List[ConversionWarning] = field(default_factory=list)


def resolve_topic(title: str, options: ConversionOptions) -> str:
    """Explicit override for the title, else its slug, else "quiz"."""
    if title in options.topic_by_quiz_title:
        return options.topic_by_quiz_title[title]
    return slugify(title) or DEFAULT_TOPIC


class _ItemTranslator:
    """Translates the items of one package; holds the shared import state."""

    def __init__(self, package: Package, options: ConversionOptions, collector: WarningCollector):
        self.package = package
        self.options = options
        self.collector = collector
        self.assets: Dict[str, ImportedAsset] = {}
        self.answer_key: AnswerKey = {}
        self.seen_uids: set[str] = set()
        self.topics: set[str] = set()

    def normalize(self, html: str) -> str:
        return normalize_html(html, self.package, self.assets, self.collector)

    def unique_topic(self, topic: str, title: str) -> str:
        """Suffix -2, -3, ... when an earlier quiz in the package already took the topic."""
        candidate, n = topic, 2
        while candidate in self.topics:
            candidate = f"{topic}-{n}"
            n += 1
        if candidate != topic:
            logger.warning(f"Topic {topic!r} already used in this package; importing {title!r} as {candidate!r}")
        self.topics.add(candidate)
        return candidate

    def keyed_choices(self, choices: Tuple[ExchangeChoice, ...], uid: str) -> Tuple[Choice, ...]:
        if len(choices) > len(CHOICE_KEYS):
            raise MalformedQuestion(
                f"{len(choices)} choices exceed the supported {len(CHOICE_KEYS)} for {uid}"
            )
        return tuple(Choice(CHOICE_KEYS[i], self.normalize(c.html)) for i, c in enumerate(choices))

    # ─────────────────────────────────────────────────────────────────────
    # Per-shape translation
    # ─────────────────────────────────────────────────────────────────────

    def translate(self, item: ExchangeItem, base: dict) -> Optional[Tuple[Question, Optional[Answer]]]:
        uid = base["uid"]
        if item.shape == ItemShape.SINGLE_CHOICE:
            return self._single_choice(item, base)
        if item.shape == ItemShape.SHORT_ANSWER:
            return self._short_answer(item, base)
        if item.shape == ItemShape.MULTI_SELECT:
            return self._multi_select(item, base)
        if item.shape == ItemShape.MULTI_BLANK:
            return self._multi_blank(item, base)
        self.collector.add(
            WarningKind.UNKNOWN_QUESTION_TYPE,
            f"Unknown question_type '{item.question_type}' for {uid}",
            uid=uid,
        )
        return None

    def _single_choice(self, item: ExchangeItem, base: dict):
        uid = base["uid"]
        question = SingleChoiceQuestion(**base, choices=self.keyed_choices(item.choices, uid))
        index = choice_index(item.choices, item.correct_ident)
        if index is None:
            self.collector.add(WarningKind.MISSING_ANSWER_DATA, f"Missing correct choice for {uid}", uid=uid)
            return question, None
        return question, SingleChoiceAnswer(correct_key=CHOICE_KEYS[index], points=item.points)

    def _short_answer(self, item: ExchangeItem, base: dict):
        uid = base["uid"]
        prompt = base.pop("prompt")
        if BLANK_SENTINEL not in prompt:
            prompt = f"{prompt} {BLANK_SENTINEL}".strip()
        question = FillBlankQuestion(**base, prompt=prompt, blank_count=1)

        accepted = item.short_answers
        notes = None
        if not accepted:
            self.collector.add(WarningKind.MISSING_ANSWER_DATA, f"Missing accepted answers for {uid}", uid=uid)
        elif len(accepted) > 1:
            self.collector.add(
                WarningKind.LOSSY_CONVERSION,
                f"Kept first of {len(accepted)} accepted answers for {uid}",
                uid=uid,
            )
            notes = ALTERNATIVES_NOTE
        answer = FillBlankAnswer(
            blank_count=1,
            accepted_answers=accepted[:1] or None,
            points=item.points,
            notes=notes,
        )
        return question, answer

    def _multi_select(self, item: ExchangeItem, base: dict):
        uid = base["uid"]
        choices = self.keyed_choices(item.choices, uid)
        correct_keys = sorted(
            CHOICE_KEYS[i]
            for i in (choice_index(item.choices, ident) for ident in item.required)
            if i is not None
        )
        prompt_lines = [base.pop("prompt"), "", MULTI_SELECT_INSTRUCTION]
        prompt_lines += [f"{c.key}) {c.text}" for c in choices]
        prompt_lines.append(f"Answer: {BLANK_SENTINEL}")
        question = FillBlankQuestion(**base, prompt="\n".join(prompt_lines), blank_count=1)

        if not correct_keys:
            self.collector.add(WarningKind.MISSING_ANSWER_DATA, f"Missing correct keys for {uid}", uid=uid)
        self.collector.add(
            WarningKind.LOSSY_CONVERSION,
            f"Converted multi-select item to fill-blank for {uid}",
            uid=uid,
        )
        answer = FillBlankAnswer(
            blank_count=1,
            accepted_answers=(",".join(correct_keys),) if correct_keys else None,
            points=item.points,
            notes=MULTI_ANSWER_NOTE,
        )
        return question, answer

    def _multi_blank(self, item: ExchangeItem, base: dict):
        uid = base["uid"]
        if not item.blanks:
            raise MalformedQuestion(f"Missing blanks for {uid}")

        prompt = base.pop("prompt")
        placeholders = _BLANK_PLACEHOLDER_RE.findall(prompt)
        masked = _BLANK_PLACEHOLDER_RE.sub(lambda _m: BLANK_SENTINEL, prompt)
        if len(placeholders) != len(item.blanks):
            self.collector.add(WarningKind.LOSSY_CONVERSION, f"Placeholder count mismatch for {uid}", uid=uid)

        option_lines: List[str] = []
        correct_keys: List[str] = []
        for b, blank in enumerate(item.blanks):
            choices = self.keyed_choices(blank.choices, uid)
            index = choice_index(blank.choices, blank.correct_ident)
            if index is None:
                self.collector.add(
                    WarningKind.MISSING_ANSWER_DATA,
                    f"Missing correct option for {uid} blank {b + 1}",
                    uid=uid,
                )
            else:
                correct_keys.append(CHOICE_KEYS[index])
            option_lines.append(f"Blank {b + 1} options:")
            option_lines += [f"{c.key}) {c.text}" for c in choices]

        masked = f"{masked}\n\n" + "\n".join(option_lines)
        blank_count = len(item.blanks)
        question = FillBlankQuestion(**base, prompt=masked, blank_count=blank_count)
        self.collector.add(
            WarningKind.LOSSY_CONVERSION,
            f"Converted multi-blank item to fill-blank for {uid}",
            uid=uid,
        )
        answer = FillBlankAnswer(
            blank_count=blank_count,
            accepted_answers=tuple(correct_keys) if len(correct_keys) == blank_count else None,
            points=item.points,
            notes=MULTI_BLANK_NOTE,
        )
        return question, answer

    # ─────────────────────────────────────────────────────────────────────
    # Quiz
    # ─────────────────────────────────────────────────────────────────────

    def import_quiz(self, resource: QuizResource, items: List[ExchangeItem], title: str) -> QuizDocument:
        topic = self.unique_topic(resolve_topic(title, self.options), title)
        level = self.options.import_level
        questions: List[Question] = []

        for index, item in enumerate(items):
            number = index + 1
            question_id = format_question_id(topic, level, number)
            uid = make_uid(self.options.course_code, question_id, self.options.uid_scheme)
            try:
                parse_question_id(question_id)
                if uid in self.seen_uids:
                    raise MalformedQuestion(f"Duplicate uid {uid} from quiz {title!r}")
                base = dict(
                    uid=uid,
                    id=question_id,
                    topic=topic,
                    level=level,
                    number=number,
                    prompt=self.normalize(item.prompt_html),
                    subject=self.options.subject,
                )
                translated = self.translate(item, base)
            except (MalformedQuestion, ValueError) as e:
                self.collector.add(
                    WarningKind.MALFORMED_QUESTION,
                    f"Skipping item {item.ident or number} ({uid}): {e}",
                    uid=uid,
                )
                continue
            if translated is None:
                continue

            question, answer = translated
            questions.append(question)
            self.seen_uids.add(uid)
            if answer is not None:
                self.answer_key[uid] = answer

        return QuizDocument(
            version_id=f"{IMPORT_VERSION_SCHEME}:{resource.identifier}",
            version_index=self.options.version_index,
            questions=tuple(questions),
        )


def _read_meta(package: Package, resource: QuizResource) -> Optional[AssessmentMeta]:
    if not resource.meta_path:
        return None
    data = package.get(resource.meta_path)
    if data is None:
        logger.warning(f"Missing assessment metadata: {resource.meta_path}")
        return None
    try:
        return parse_assessment_meta(data)
    except ParseError as e:
        logger.warning(f"Unreadable assessment metadata {resource.meta_path}: {e}")
        return None


def parse_package(package: Package, options: ConversionOptions) -> ImportResult:
    """
    Import every quiz listed in a package manifest.

    Args:
        package: Package blobs (manifest, item documents, metadata, assets)
        options: Course code, subject, level and topic overrides for imports

    Returns:
        ImportResult with one QuizDocument per readable quiz resource, the
        merged answer key, referenced assets and all warnings

    Raises:
        InvalidPackage: If the manifest is missing or not well-formed
    """
    manifest_xml = package.get(MANIFEST_PATH)
    if manifest_xml is None:
        raise InvalidPackage(f"{MANIFEST_PATH} not found in package")
    try:
        manifest = parse_manifest(manifest_xml)
    except ParseError as e:
        raise InvalidPackage(f"Unreadable {MANIFEST_PATH}: {e}") from e

    collector = WarningCollector()
    translator = _ItemTranslator(package, options, collector)
    quizzes: List[QuizDocument] = []

    for resource in manifest.quiz_resources:
        qti_xml = package.get(resource.qti_path)
        if qti_xml is None:
            collector.add(WarningKind.MISSING_ASSET, f"Missing QTI file: {resource.qti_path}")
            continue
        try:
            items = parse_items_xml(qti_xml)
        except ParseError as e:
            collector.add(WarningKind.MALFORMED_QUESTION, f"Unreadable QTI file {resource.qti_path}: {e}")
            continue

        meta = _read_meta(package, resource)
        title = (meta.title if meta else None) or resource.identifier
        quiz = translator.import_quiz(resource, items, title)
        quizzes.append(quiz)
        logger.info(f"Imported {len(quiz)} of {len(items)} item(s) from {title!r} as {quiz.version_id}")

    return ImportResult(
        quizzes=quizzes,
        answer_key=translator.answer_key,
        assets=list(translator.assets.values()),
        warnings=collector.warnings,
    )
