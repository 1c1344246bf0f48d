"""
Module: markup.parser

Purpose:
    Source-markup parser. Scans top-level (brace-depth zero) occurrences of
    the two question commands and extracts QuizDocument + AnswerKey:

        \\baitracnghiem{id}{prompt}{choices}{solution}
        \\baidienvao[opt][opt]{id}{prompt}{solution}

    A bad question is skipped with a warning and scanning resumes after the
    last consumed argument; only unbalanced braces abort the whole parse.

Key Functions:
    - parse_questions(): Main entry point
    - parse_choices_block(): Decode a \\haipa/\\bapa/\\bonpa/\\nampa block
    - extract_inline_blanks(): Mask \\blank / \\answer / \\daugach markers

Dependencies:
    - markup.lexer: Group scanning, comment stripping
    - core.ids: Question id grammar

Used By:
    - pipeline.markup_to_package
    - markup.builder (round-trip tests)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from quiz_toolkit.config import ConversionOptions
from quiz_toolkit.core.diagnostics import ConversionWarning, WarningCollector, WarningKind
from quiz_toolkit.core.errors import (
    InvalidChoiceBlock,
    MalformedQuestion,
    StructuralError,
    UnbalancedGroup,
)
from quiz_toolkit.core.ids import make_uid, parse_question_id
from quiz_toolkit.core.models.answers import AnswerKey, FillBlankAnswer, SingleChoiceAnswer
from quiz_toolkit.core.models.questions import (
    BLANK_SENTINEL,
    CHOICE_KEYS,
    Choice,
    FillBlankQuestion,
    Question,
    QuizDocument,
    SingleChoiceQuestion,
)
from quiz_toolkit.markup.lexer import (
    command_at,
    is_escaped,
    parse_bracket_group,
    parse_group,
    skip_whitespace,
    strip_comments,
)

logger = logging.getLogger(__name__)

SINGLE_CHOICE_COMMAND = "\\baitracnghiem"
FILL_BLANK_COMMAND = "\\baidienvao"

# Choice-block marker -> arity
CHOICE_MARKERS: Dict[str, int] = {
    "\\haipa": 2,
    "\\bapa": 3,
    "\\bonpa": 4,
    "\\nampa": 5,
}

BLANK_MARKER = "\\blank"
ANSWER_MARKER = "\\answer"
NO_ANSWER_MARKER = "\\daugach"
ANSWER_BEARING_MARKERS = (BLANK_MARKER, ANSWER_MARKER)
INLINE_MARKERS = (BLANK_MARKER, ANSWER_MARKER, NO_ANSWER_MARKER)

MIXED_TOPIC = "mixed"
MAX_OPTIONAL_ARGS = 2


@dataclass(frozen=True)
class ParseResult:
    """Output of parse_questions."""
    quiz: QuizDocument
    answer_key: AnswerKey
    warnings: List[ConversionWarning] = field(default_factory=list)


@dataclass(frozen=True)
class InlineBlanks:
    """Output of extract_inline_blanks."""
    masked_prompt: str
    answers: Tuple[str, ...]
    found_any: bool


# ─────────────────────────────────────────────────────────────────────────────
# Question Pieces
# ─────────────────────────────────────────────────────────────────────────────

def parse_choices_block(block: str, question_id: str) -> Tuple[str, Tuple[Choice, ...]]:
    """
    Decode a choices block into (correct_key, choices).

    The block starts with an arity marker, optionally followed by one
    ignored ``[...]`` argument, then ``arity + 1`` groups: the correct
    answer (letter A-E or 1-based digit) and the choice texts.

    Raises:
        InvalidChoiceBlock: Unknown marker, missing group, or an answer
            outside the declared arity
    """
    trimmed = block.strip()
    marker = next((m for m in CHOICE_MARKERS if command_at(trimmed, 0, m)), None)
    if marker is None:
        raise InvalidChoiceBlock(
            f"Expected one of {', '.join(CHOICE_MARKERS)} in choices block of {question_id}"
        )
    arity = CHOICE_MARKERS[marker]

    pos = skip_whitespace(trimmed, len(marker))
    if pos < len(trimmed) and trimmed[pos] == "[":
        pos = parse_bracket_group(trimmed, pos).end

    parts: List[str] = []
    for _ in range(arity + 1):
        pos = skip_whitespace(trimmed, pos)
        if pos >= len(trimmed) or trimmed[pos] != "{":
            raise InvalidChoiceBlock(
                f"Expected '{{' in {marker} block of {question_id}: "
                f"found {len(parts)} of {arity + 1} groups"
            )
        group = parse_group(trimmed, pos)
        parts.append(group.content)
        pos = group.end

    correct_raw, choice_texts = parts[0], parts[1:]
    token = correct_raw.strip().upper()
    if token in CHOICE_KEYS:
        correct_key = token
    elif len(token) == 1 and token in "12345":
        correct_key = CHOICE_KEYS[int(token) - 1]
    else:
        raise InvalidChoiceBlock(f"Invalid correct choice {correct_raw!r} in {question_id}")

    allowed = CHOICE_KEYS[:arity]
    if correct_key not in allowed:
        raise InvalidChoiceBlock(f"Correct choice '{correct_key}' out of range for {question_id}")

    choices = tuple(Choice(key, text.strip()) for key, text in zip(allowed, choice_texts))
    return correct_key, choices


def _find_marker(text: str, start: int) -> Tuple[int, Optional[str]]:
    """Earliest inline marker at or after start, as (index, marker)."""
    best_idx, best_marker = -1, None
    for marker in INLINE_MARKERS:
        idx = text.find(marker, start)
        while idx != -1 and not command_at(text, idx, marker):
            idx = text.find(marker, idx + 1)
        if idx != -1 and (best_idx == -1 or idx < best_idx):
            best_idx, best_marker = idx, marker
    return best_idx, best_marker


def extract_inline_blanks(prompt: str) -> InlineBlanks:
    """
    Replace inline blank markers in a prompt with BLANK_SENTINEL.

    ``\\blank{x}`` and ``\\answer{x}`` contribute ``x`` to the answers;
    ``\\daugach{...}`` becomes a sentinel without an answer. A marker not
    followed by ``{`` is kept verbatim.
    """
    answers: List[str] = []
    out: List[str] = []
    found_any = False
    i = 0

    while i < len(prompt):
        idx, marker = _find_marker(prompt, i)
        if marker is None:
            out.append(prompt[i:])
            break

        out.append(prompt[i:idx])
        pos = skip_whitespace(prompt, idx + len(marker))
        if pos >= len(prompt) or prompt[pos] != "{":
            out.append(marker)
            i = idx + len(marker)
            continue

        found_any = True
        group = parse_group(prompt, pos)
        if marker in ANSWER_BEARING_MARKERS:
            answers.append(group.content.strip())
        out.append(BLANK_SENTINEL)
        i = group.end

    return InlineBlanks("".join(out), tuple(answers), found_any)


# ─────────────────────────────────────────────────────────────────────────────
# Command Scanning
# ─────────────────────────────────────────────────────────────────────────────

def _read_groups(text: str, pos: int, count: int) -> Tuple[List[str], int]:
    """Read up to ``count`` {..} arguments; stops early at a missing one."""
    groups: List[str] = []
    for _ in range(count):
        pos = skip_whitespace(text, pos)
        if pos >= len(text) or text[pos] != "{":
            break
        group = parse_group(text, pos)
        groups.append(group.content)
        pos = group.end
    return groups, pos


def _skip_optional_args(text: str, pos: int) -> int:
    for _ in range(MAX_OPTIONAL_ARGS):
        nxt = skip_whitespace(text, pos)
        if nxt >= len(text) or text[nxt] != "[":
            break
        pos = parse_bracket_group(text, nxt).end
    return pos


class _QuestionSink:
    """Accumulates parsed questions for one parse call."""

    def __init__(self, options: ConversionOptions, collector: WarningCollector):
        self.options = options
        self.collector = collector
        self.questions: List[Question] = []
        self.answer_key: AnswerKey = {}
        self.topics: Dict[str, None] = {}

    def add(self, question: Question, answer) -> None:
        if question.uid in self.answer_key:
            self.collector.add(
                WarningKind.MALFORMED_QUESTION,
                f"Duplicate question id {question.id}; keeping the first occurrence",
                uid=question.uid,
            )
            return
        self.questions.append(question)
        self.answer_key[question.uid] = answer
        self.topics.setdefault(question.topic, None)

    def single_choice(self, groups: List[str]) -> None:
        raw_id, prompt, choices_raw, solution = groups
        question_id = raw_id.strip()
        try:
            info = parse_question_id(question_id)
        except MalformedQuestion:
            self.collector.add(
                WarningKind.MALFORMED_QUESTION,
                f"Invalid question id in {SINGLE_CHOICE_COMMAND}: {raw_id}",
            )
            return

        uid = make_uid(self.options.course_code, question_id, self.options.uid_scheme)
        try:
            correct_key, choices = parse_choices_block(choices_raw, question_id)
            question = SingleChoiceQuestion(
                uid=uid,
                id=question_id,
                topic=info.topic,
                level=info.level,
                number=info.number,
                prompt=prompt.strip(),
                choices=choices,
                subject=self.options.subject,
            )
        except (MalformedQuestion, ValueError) as e:
            self.collector.add(WarningKind.MALFORMED_QUESTION, str(e), uid=uid)
            return

        answer = SingleChoiceAnswer(correct_key=correct_key, solution_markup=solution.strip())
        self.add(question, answer)

    def fill_blank(self, groups: List[str]) -> None:
        raw_id, prompt, solution = groups
        question_id = raw_id.strip()
        try:
            info = parse_question_id(question_id)
        except MalformedQuestion:
            self.collector.add(
                WarningKind.MALFORMED_QUESTION,
                f"Invalid question id in {FILL_BLANK_COMMAND}: {raw_id}",
            )
            return

        uid = make_uid(self.options.course_code, question_id, self.options.uid_scheme)
        extracted = extract_inline_blanks(prompt)
        if not extracted.found_any or not extracted.answers:
            self.collector.add(
                WarningKind.MALFORMED_QUESTION,
                f"Fill-blank {question_id} has no {BLANK_MARKER} or {ANSWER_MARKER} macros",
                uid=uid,
            )
            return

        blank_count = len(extracted.answers)
        question = FillBlankQuestion(
            uid=uid,
            id=question_id,
            topic=info.topic,
            level=info.level,
            number=info.number,
            prompt=extracted.masked_prompt.strip(),
            blank_count=blank_count,
            subject=self.options.subject,
        )
        answer = FillBlankAnswer(
            blank_count=blank_count,
            accepted_answers=extracted.answers,
            solution_markup=solution.strip(),
        )
        self.add(question, answer)


def parse_questions(text: str, options: ConversionOptions) -> ParseResult:
    """
    Parse source markup into a QuizDocument and AnswerKey.

    Args:
        text: Source markup (comments are stripped first)
        options: Course code, subject, topic override, version index

    Returns:
        ParseResult with the quiz, its answer key and recoverable warnings.
        The versionId is "<scheme>:<course>:<topic>" where topic is
        options.topic, else the single shared topic, else "mixed".

    Raises:
        StructuralError: If braces are unbalanced anywhere in the document

    Example:
        >>> result = parse_questions(r"\\baitracnghiem{g:q01}{P}{\\haipa{B}{X}{Y}}{S}", options)
        >>> result.answer_key["latex:MAT3500:g:q01"].correct_key
        'B'
    """
    cleaned = strip_comments(text)
    collector = WarningCollector()
    sink = _QuestionSink(options, collector)

    i = 0
    depth = 0
    outer_open = -1
    while i < len(cleaned):
        ch = cleaned[i]
        if ch == "{" and not is_escaped(cleaned, i):
            if depth == 0:
                outer_open = i
            depth += 1
        elif ch == "}" and not is_escaped(cleaned, i):
            depth -= 1
            if depth < 0:
                raise StructuralError(f"Unmatched '}}' at index {i}")

        if depth == 0 and ch == "\\":
            if command_at(cleaned, i, SINGLE_CHOICE_COMMAND):
                groups, pos = _read_groups(cleaned, i + len(SINGLE_CHOICE_COMMAND), 4)
                if len(groups) == 4:
                    sink.single_choice(groups)
                else:
                    collector.add(
                        WarningKind.MALFORMED_QUESTION,
                        f"Invalid {SINGLE_CHOICE_COMMAND} at index {i}: missing argument {len(groups) + 1}",
                    )
                i = pos
                continue

            if command_at(cleaned, i, FILL_BLANK_COMMAND):
                pos = _skip_optional_args(cleaned, i + len(FILL_BLANK_COMMAND))
                groups, pos = _read_groups(cleaned, pos, 3)
                if len(groups) == 3:
                    sink.fill_blank(groups)
                else:
                    collector.add(
                        WarningKind.MALFORMED_QUESTION,
                        f"Invalid {FILL_BLANK_COMMAND} at index {i}: missing argument {len(groups) + 1}",
                    )
                i = pos
                continue

        i += 1

    if depth > 0:
        raise UnbalancedGroup("{", outer_open)

    if options.topic:
        version_topic = options.topic
    elif len(sink.topics) == 1:
        version_topic = next(iter(sink.topics))
    else:
        version_topic = MIXED_TOPIC

    quiz = QuizDocument(
        version_id=f"{options.uid_scheme}:{options.course_code}:{version_topic}",
        version_index=options.version_index,
        questions=tuple(sink.questions),
    )
    logger.info(
        f"Parsed {len(quiz.questions)} question(s) from markup into {quiz.version_id} "
        f"({len(collector)} warning(s))"
    )
    return ParseResult(quiz, sink.answer_key, collector.warnings)
