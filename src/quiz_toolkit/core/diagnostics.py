"""
Module: core.diagnostics

Captures recoverable conversion defects as warnings so a bulk job can
report them without failing.

Structure:
- Each warning has a kind (closed enum), a human-readable message and,
  when known, the uid of the affected question
- str(warning) is the message, so callers can treat the list as strings
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class WarningKind(str, Enum):
    """Category of a recoverable defect."""
    MALFORMED_QUESTION = "malformed_question"        # Bad id / choice block / missing argument
    MISSING_ANSWER_DATA = "missing_answer_data"      # No correct key or accepted answers
    UNKNOWN_QUESTION_TYPE = "unknown_question_type"  # Item dropped on import
    LOSSY_CONVERSION = "lossy_conversion"            # Shape down-converted or split
    MISSING_ASSET = "missing_asset"                  # Placeholder or blob not resolvable

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ConversionWarning:
    """
    A single recoverable defect.

    Attributes:
        kind: Warning category
        message: Human-readable description
        uid: Affected question uid, if any
    """
    kind: WarningKind
    message: str
    uid: Optional[str] = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        d = {"kind": self.kind.value, "message": self.message}
        if self.uid:
            d["uid"] = self.uid
        return d


class WarningCollector:
    """
    Ordered collector for conversion warnings.

    One collector lives for one conversion call; nothing is shared
    between calls.
    """

    def __init__(self) -> None:
        self._warnings: List[ConversionWarning] = []

    def add(self, kind: WarningKind, message: str, uid: Optional[str] = None) -> ConversionWarning:
        """Record a warning and log it."""
        warning = ConversionWarning(kind, message, uid)
        self._warnings.append(warning)
        logger.warning(f"[{kind.value}] {message}")
        return warning

    def extend(self, warnings: List[ConversionWarning]) -> None:
        """Append already-recorded warnings (no re-logging)."""
        self._warnings.extend(warnings)

    @property
    def warnings(self) -> List[ConversionWarning]:
        return list(self._warnings)

    def of_kind(self, kind: WarningKind) -> List[ConversionWarning]:
        return [w for w in self._warnings if w.kind == kind]

    def __len__(self) -> int:
        return len(self._warnings)

    def __iter__(self) -> Iterator[ConversionWarning]:
        return iter(self._warnings)

    def summary(self) -> Dict[str, int]:
        """Count warnings per kind."""
        counts: Dict[str, int] = {}
        for w in self._warnings:
            counts[w.kind.value] = counts.get(w.kind.value, 0) + 1
        return counts
