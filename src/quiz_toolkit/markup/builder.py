"""
Module: markup.builder

Purpose:
    Renders a QuizDocument + AnswerKey back into source markup, one command
    per question. Inverse of markup.parser on everything the parser
    produces: re-parsing the output yields equal questions and answers.
    Text from other sources, such as package imports, is escaped so the
    output always re-parses.

Key Functions:
    - build_questions(): Render a whole quiz
    - build_choices_block(): Render a \\haipa/\\bapa/\\bonpa/\\nampa block
    - inline_blanks(): Re-insert accepted answers into a masked prompt

Used By:
    - pipeline.package_to_markup
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from quiz_toolkit.config import ConversionOptions
from quiz_toolkit.core.models.answers import AnswerKey, FillBlankAnswer, SingleChoiceAnswer
from quiz_toolkit.core.models.questions import (
    BLANK_SENTINEL,
    CHOICE_KEYS,
    FillBlankQuestion,
    QuizDocument,
    SingleChoiceQuestion,
)
from quiz_toolkit.markup.lexer import escape_text
from quiz_toolkit.markup.parser import (
    BLANK_MARKER,
    CHOICE_MARKERS,
    FILL_BLANK_COMMAND,
    NO_ANSWER_MARKER,
    SINGLE_CHOICE_COMMAND,
)

logger = logging.getLogger(__name__)

ARITY_MARKERS = {arity: marker for marker, arity in CHOICE_MARKERS.items()}
FALLBACK_CHOICE_MARKER = "\\bonpa"
FALLBACK_CORRECT_KEY = CHOICE_KEYS[0]


def _escaped(text: str, uid: str) -> str:
    escaped = escape_text(text)
    if escaped != text:
        logger.warning(f"Escaped markup-special characters in {uid}")
    return escaped


def build_choices_block(question: SingleChoiceQuestion, correct_key: str) -> str:
    """Render ``\\<marker>{correct}{text}...`` for a single-choice question."""
    marker = ARITY_MARKERS.get(len(question.choices))
    if marker is None:
        logger.warning(
            f"No choice marker for {len(question.choices)} choices in {question.uid}; "
            f"using {FALLBACK_CHOICE_MARKER}"
        )
        marker = FALLBACK_CHOICE_MARKER
    parts = [correct_key] + [_escaped(c.text.strip(), question.uid) for c in question.choices]
    return marker + "".join(f"{{{part}}}" for part in parts)


def inline_blanks(prompt: str, answers: Optional[Sequence[str]]) -> str:
    """
    Replace each blank sentinel with ``\\blank{answer}`` in order.

    Sentinels beyond the available answers get the answerless
    ``\\daugach{}`` marker, so the masked prompt survives a re-parse.
    Answers are escaped with escape_text.
    """
    answers = list(answers or ())
    pieces = prompt.split(BLANK_SENTINEL)
    out: List[str] = [pieces[0]]
    for index, piece in enumerate(pieces[1:]):
        if index < len(answers):
            out.append(f"{BLANK_MARKER}{{{escape_text(answers[index])}}}")
        else:
            out.append(f"{NO_ANSWER_MARKER}{{}}")
        out.append(piece)
    return "".join(out)


def _build_single_choice(
    question: SingleChoiceQuestion, answer, include_solutions: bool
) -> str:
    if isinstance(answer, SingleChoiceAnswer):
        correct_key = answer.correct_key
        solution = answer.solution_markup or ""
    else:
        logger.warning(f"No correct key for {question.uid}; writing {FALLBACK_CORRECT_KEY}")
        correct_key = FALLBACK_CORRECT_KEY
        solution = ""
    if not include_solutions:
        solution = ""

    prompt = _escaped(question.prompt, question.uid)
    choices = build_choices_block(question, correct_key)
    solution = _escaped(solution, question.uid)
    return f"{SINGLE_CHOICE_COMMAND}{{{question.id}}}{{{prompt}}}{{{choices}}}{{{solution}}}"


def _build_fill_blank(question: FillBlankQuestion, answer, include_solutions: bool) -> str:
    if isinstance(answer, FillBlankAnswer):
        answers = answer.accepted_answers
        solution = answer.solution_markup or ""
    else:
        logger.warning(f"No accepted answers for {question.uid}; blanks left empty")
        answers = None
        solution = ""
    if not include_solutions:
        solution = ""

    prompt = inline_blanks(_escaped(question.prompt, question.uid), answers)
    solution = _escaped(solution, question.uid)
    return f"{FILL_BLANK_COMMAND}{{{question.id}}}{{{prompt}}}{{{solution}}}"


def build_questions(
    quiz: QuizDocument,
    answer_key: AnswerKey,
    options: Optional[ConversionOptions] = None,
) -> str:
    """
    Render a quiz as source markup.

    Args:
        quiz: Questions in presentation order
        answer_key: Answers by uid (missing entries fall back with a log warning)
        options: Only include_solutions is consulted (default: solutions written)

    Returns:
        One command per question, joined by newlines
    """
    include_solutions = options.include_solutions if options is not None else True

    lines: List[str] = []
    for question in quiz.questions:
        answer = answer_key.get(question.uid)
        if isinstance(question, SingleChoiceQuestion):
            lines.append(_build_single_choice(question, answer, include_solutions))
        else:
            lines.append(_build_fill_blank(question, answer, include_solutions))

    logger.debug(f"Built markup for {len(lines)} question(s) of {quiz.version_id}")
    return "\n".join(lines)
