"""
Module: numbering.labels

Purpose:
    Assigns display numbers to figure and equation labels across a batch of
    source-markup documents, in one left-to-right pass.

    One counter is shared by every numbered block in the batch:

    - A figure-like block (figure, table, tabular, tikzpicture, ...) ticks
      once when it opens. Every label inside it, including labels in
      nested environments, gets that number. Unlabeled blocks still tick.
    - A math block (equation, align, ...) ticks once per label inside it.
    - A minipage group (minipages separated only by whitespace or ``~``)
      ticks once, at its first figure-like block; all figure-like blocks in
      the group share that number. Any other content, or the end of the
      document, closes the group.
    - Labels outside numbered blocks are ignored.

    The counter lives in a NumberingCursor owned by the caller, so separate
    batches never interfere. Documents must be fed in display order and
    never in parallel within one batch.

Key Functions:
    - collect_sequential_labels(): Documents -> LabelMap
    - NumberingCursor: Batch-scoped counter

Used By:
    - numbering.references (consumes LabelMap.labels)
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from quiz_toolkit.markup.lexer import is_escaped, strip_comments

logger = logging.getLogger(__name__)

FIGURE_ENVS = frozenset({
    "figure", "figure*", "figwindow",
    "table", "table*", "tabwindow", "tabular",
    "tikzpicture", "tikz",
    "algorithm", "algo",
})

_MATH_BASE_ENVS = ("equation", "align", "gather", "multline", "flalign", "alignat", "eqnarray")
MATH_ENVS = frozenset(_MATH_BASE_ENVS) | frozenset(f"{name}*" for name in _MATH_BASE_ENVS)

MINIPAGE_ENV = "minipage"

_TOKEN_RE = re.compile(r"\\(begin|end)\s*\{([^}]*)\}|\\label\s*\{([^}]*)\}")
_NEXT_MINIPAGE_RE = re.compile(r"[\s~]*\\begin\s*\{minipage\}")

HASH_LENGTH = 16


class NumberingCursor:
    """
    Monotonic counter shared by all numbered blocks of one batch.

    Example:
        >>> cursor = NumberingCursor()
        >>> cursor.tick(), cursor.tick()
        ('1', '2')
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start cannot be negative: {start}")
        self.value = start

    def tick(self) -> str:
        self.value += 1
        return str(self.value)

    def __repr__(self) -> str:
        return f"NumberingCursor(value={self.value})"


@dataclass(frozen=True)
class LabelMap:
    """
    Result of a numbering pass.

    Attributes:
        labels: Label -> display number
        hashes: Content hash of each numbered figure-like block -> number,
            so an unlabeled block can be matched back to its number
    """
    labels: Dict[str, str] = field(default_factory=dict)
    hashes: Dict[str, str] = field(default_factory=dict)

    def get(self, label: str) -> Optional[str]:
        return self.labels.get(label)

    def __len__(self) -> int:
        return len(self.labels)


def block_hash(block: str) -> str:
    """sha256 of a block with normalized newlines, truncated to 16 hex chars."""
    normalized = block.replace("\r\n", "\n").replace("\r", "\n").strip()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:HASH_LENGTH]


class _FrameKind(str, Enum):
    FIGURE = "figure"
    MATH = "math"
    MINIPAGE = "minipage"
    OTHER = "other"


@dataclass
class _Frame:
    name: str
    kind: _FrameKind
    start: int
    number: Optional[str] = None


@dataclass
class _MinipageGroup:
    number: Optional[str] = None


class _DocumentScanner:
    """Walks one comment-stripped document, writing into shared tables."""

    def __init__(self, text: str, cursor: NumberingCursor, labels: Dict[str, str], hashes: Dict[str, str]):
        self.text = text
        self.cursor = cursor
        self.labels = labels
        self.hashes = hashes
        self.frames: List[_Frame] = []
        self.figure: Optional[_Frame] = None
        self.group: Optional[_MinipageGroup] = None
        self.minipage_depth = 0

    def run(self) -> None:
        for match in _TOKEN_RE.finditer(self.text):
            if is_escaped(self.text, match.start()):
                continue
            if match.group(1) == "begin":
                self._begin(match.group(2).strip(), match.start())
            elif match.group(1) == "end":
                self._end(match.group(2).strip(), match.end())
            else:
                self._label(match.group(3).strip())

        if self.frames:
            names = ", ".join(f.name for f in self.frames)
            logger.warning(f"Unclosed environment(s) at end of document: {names}")

    def _in_math(self) -> bool:
        return any(f.kind == _FrameKind.MATH for f in self.frames)

    def _begin(self, name: str, start: int) -> None:
        if name in FIGURE_ENVS and self.figure is None:
            if self.group is not None:
                if self.group.number is None:
                    self.group.number = self.cursor.tick()
                number = self.group.number
            else:
                number = self.cursor.tick()
            frame = _Frame(name, _FrameKind.FIGURE, start, number)
            self.figure = frame
        elif name == MINIPAGE_ENV and self.figure is None and not self._in_math():
            if self.group is None:
                self.group = _MinipageGroup()
            self.minipage_depth += 1
            frame = _Frame(name, _FrameKind.MINIPAGE, start)
        elif name in MATH_ENVS and self.figure is None:
            frame = _Frame(name, _FrameKind.MATH, start)
        else:
            frame = _Frame(name, _FrameKind.OTHER, start)
        self.frames.append(frame)

    def _end(self, name: str, end: int) -> None:
        for index in range(len(self.frames) - 1, -1, -1):
            if self.frames[index].name == name:
                break
        else:
            logger.debug(f"Ignoring \\end{{{name}}} without matching \\begin")
            return

        closed = self.frames[index:]
        del self.frames[index:]
        for frame in reversed(closed):
            self._close(frame, end)

    def _close(self, frame: _Frame, end: int) -> None:
        if frame is self.figure:
            self.hashes[block_hash(self.text[frame.start:end])] = frame.number
            self.figure = None
        elif frame.kind == _FrameKind.MINIPAGE:
            self.minipage_depth -= 1
            if self.minipage_depth == 0 and not _NEXT_MINIPAGE_RE.match(self.text, end):
                self.group = None

    def _label(self, label: str) -> None:
        if not label:
            return
        if self.figure is not None:
            number = self.figure.number
        elif self._in_math():
            number = self.cursor.tick()
        else:
            logger.debug(f"Label '{label}' is outside any numbered block")
            return

        if label in self.labels and self.labels[label] != number:
            logger.warning(
                f"Duplicate label '{label}': {self.labels[label]} replaced by {number}"
            )
        self.labels[label] = number


def collect_sequential_labels(
    documents: Iterable[str],
    cursor: Optional[NumberingCursor] = None,
) -> LabelMap:
    """
    Number the labels of a batch of documents in one sequential pass.

    Args:
        documents: Source-markup documents in display order
        cursor: Counter to continue from (a fresh one starting at 0 if None)

    Returns:
        LabelMap of label -> number and block hash -> number

    Example:
        >>> doc = r"\\begin{figure}\\label{f}\\end{figure}\\begin{align}a\\label{e1}\\\\b\\label{e2}\\end{align}"
        >>> collect_sequential_labels([doc]).labels
        {'f': '1', 'e1': '2', 'e2': '3'}
    """
    cursor = cursor if cursor is not None else NumberingCursor()
    labels: Dict[str, str] = {}
    hashes: Dict[str, str] = {}

    count = 0
    for document in documents:
        _DocumentScanner(strip_comments(document), cursor, labels, hashes).run()
        count += 1

    logger.debug(f"Numbered {len(labels)} label(s) across {count} document(s); counter at {cursor.value}")
    return LabelMap(labels, hashes)
