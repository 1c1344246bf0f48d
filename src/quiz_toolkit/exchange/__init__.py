"""
Exchange Package Codec

Converts QuizDocuments + AnswerKey to and from an interchange package
(manifest, per-quiz item documents, assessment metadata and web assets)
held in memory as a Package of path -> bytes.

Usage:
    from quiz_toolkit.exchange import build_package, parse_package

    exported = build_package([quiz], answer_key, [], options)
    imported = parse_package(exported.package, options)
"""

from .items_parse import ItemShape
from .normalize import normalize_html, slugify
from .package_build import ExportResult, build_package, quiz_hash
from .package_parse import ImportResult, parse_package

__all__ = [
    "ItemShape",
    "normalize_html",
    "slugify",
    "ExportResult",
    "build_package",
    "quiz_hash",
    "ImportResult",
    "parse_package",
]
