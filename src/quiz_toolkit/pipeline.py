"""
Module: pipeline

Purpose:
    End-to-end conversions chaining the codecs:

        markup  -> parse_questions -> build_package -> Package
        Package -> parse_package   -> build_questions -> markup per quiz

    Warnings from every stage are concatenated in stage order. Structural
    errors (unbalanced markup, unreadable manifest) propagate.

Key Functions:
    - markup_to_package(): Source markup -> ExportResult
    - package_to_markup(): Package -> MarkupResult
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from quiz_toolkit.config import ConversionOptions
from quiz_toolkit.core.diagnostics import ConversionWarning
from quiz_toolkit.core.models.answers import AnswerKey
from quiz_toolkit.core.models.package import ImportedAsset, Package
from quiz_toolkit.exchange.package_build import ExportResult, build_package
from quiz_toolkit.exchange.package_parse import parse_package
from quiz_toolkit.markup.builder import build_questions
from quiz_toolkit.markup.parser import parse_questions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkupResult:
    """Output of package_to_markup: markup text per imported versionId."""
    markup: Dict[str, str]
    answer_key: AnswerKey
    assets: List[ImportedAsset] = field(default_factory=list)
    warnings: List[ConversionWarning] = field(default_factory=list)


def markup_to_package(
    text: str,
    options: ConversionOptions,
    quiz_title: Optional[str] = None,
    assets: Sequence[ImportedAsset] = (),
) -> ExportResult:
    """
    Parse source markup and export it as a one-quiz package.

    Args:
        text: Source markup
        options: Conversion options for both stages
        quiz_title: Replaces the parsed versionId, which is also the quiz
            title on import (e.g. "Quiz graph" imports back as topic "graph")
        assets: Blobs for "[image: name]" placeholders

    Raises:
        StructuralError: If the markup has unbalanced braces
    """
    parsed = parse_questions(text, options)
    quiz = parsed.quiz.with_version(quiz_title) if quiz_title else parsed.quiz
    exported = build_package([quiz], parsed.answer_key, assets, options)
    logger.info(f"Converted {len(quiz)} question(s) from markup into package {quiz.version_id!r}")
    return ExportResult(exported.package, parsed.warnings + exported.warnings)


def package_to_markup(package: Package, options: ConversionOptions) -> MarkupResult:
    """
    Import a package and render each quiz as source markup.

    Raises:
        InvalidPackage: If the package has no readable manifest
    """
    imported = parse_package(package, options)
    markup = {
        quiz.version_id: build_questions(quiz, imported.answer_key, options)
        for quiz in imported.quizzes
    }
    logger.info(f"Converted {len(markup)} quiz(zes) from package into markup")
    return MarkupResult(markup, imported.answer_key, imported.assets, imported.warnings)
