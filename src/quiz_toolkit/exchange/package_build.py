"""
Module: exchange.package_build

Purpose:
    Assembles an exchange package from quizzes, an answer key and assets.
    Every quiz lands under a directory named by its hash identifier, so
    exporting the same versionId always yields the same paths. Metadata
    and manifest entries are derived from the built items.

Key Functions:
    - build_package(): Quizzes + answer key + assets -> ExportResult
    - quiz_hash(): "g" + md5(versionId)

Used By:
    - pipeline.markup_to_package
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from quiz_toolkit.config import ConversionOptions
from quiz_toolkit.core.diagnostics import ConversionWarning, WarningCollector
from quiz_toolkit.core.models.answers import AnswerKey
from quiz_toolkit.core.models.package import MANIFEST_PATH, ImportedAsset, Package
from quiz_toolkit.core.models.questions import QuizDocument
from quiz_toolkit.exchange.items_build import build_items_xml, md5_hex
from quiz_toolkit.exchange.manifest import QuizResource, build_manifest
from quiz_toolkit.exchange.meta import build_assessment_meta

logger = logging.getLogger(__name__)

META_FILENAME = "assessment_meta.xml"


@dataclass(frozen=True)
class ExportResult:
    """Output of build_package."""
    package: Package
    warnings: List[ConversionWarning] = field(default_factory=list)


def quiz_hash(version_id: str) -> str:
    return f"g{md5_hex(version_id)}"


def quiz_paths(version_id: str) -> tuple[str, str, str]:
    """(hash, item document path, metadata path) for a versionId."""
    digest = quiz_hash(version_id)
    return digest, f"{digest}/{digest}.xml", f"{digest}/{META_FILENAME}"


def build_package(
    quizzes: Sequence[QuizDocument],
    answer_key: AnswerKey,
    assets: Sequence[ImportedAsset],
    options: ConversionOptions,
) -> ExportResult:
    """
    Export quizzes as an exchange package.

    Args:
        quizzes: Quizzes to export (versionIds must be distinct)
        answer_key: Answers for every quiz, by uid
        assets: Image blobs referenced by "[image: name]" placeholders
        options: Fill-blank export mode and combined delimiter

    Returns:
        ExportResult(package, warnings). Missing answers and unresolved
        placeholders are warnings; the affected items are still exported.

    Raises:
        ValueError: If two quizzes share a versionId
    """
    collector = WarningCollector()
    package = Package()
    resources: List[QuizResource] = []

    for quiz in quizzes:
        digest, qti_path, meta_path = quiz_paths(quiz.version_id)
        if digest in package.quiz_index:
            raise ValueError(f"Duplicate versionId in export: {quiz.version_id!r}")

        xml, item_count = build_items_xml(quiz, answer_key, assets, options, collector)
        package.add(qti_path, xml)
        package.add(meta_path, build_assessment_meta(quiz.version_id, item_count))
        package.quiz_index[digest] = qti_path
        resources.append(QuizResource(digest, qti_path, meta_path))
        logger.info(f"Exported {quiz.version_id} as {digest} ({item_count} item(s))")

    for asset in assets:
        package.add(asset.zip_path, asset.data)

    package.add(MANIFEST_PATH, build_manifest(resources, assets))
    return ExportResult(package, collector.warnings)
