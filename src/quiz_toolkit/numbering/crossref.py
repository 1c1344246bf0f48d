"""
Module: numbering.crossref

Purpose:
    Harvests a label table from a typesetting engine's auxiliary output,
    for callers that prefer the engine's own numbering. Each line of the
    form ``\\newlabel{key}{{number}{page}...}`` contributes key -> number
    once the number's decoration macros are removed. Running the engine
    is the caller's concern; only its text output is read here.

Key Functions:
    - harvest_aux_labels(): Aux text -> Dict[label, number]
    - clean_label_number(): Strip decoration macros from a number
"""

from __future__ import annotations

import logging
import re
from typing import Dict

from quiz_toolkit.core.errors import UnbalancedGroup
from quiz_toolkit.markup.lexer import parse_group, skip_whitespace

logger = logging.getLogger(__name__)

CREF_SUFFIX = "@cref"

_NEWLABEL_RE = re.compile(r"\\newlabel\s*(?=\{)")
_DROP_RE = re.compile(r"\\(?:relax|protect)(?![A-Za-z])\s*")
_NBSP_RE = re.compile(r"\\nobreakspace(?![A-Za-z])\s*(?:\{\})?")
_WRAPPER_RE = re.compile(r"\\(?:textup|textbf|mbox|ensuremath|thmnumber)\s*(?=\{)")
_SPACE_RE = re.compile(r"\s+")


def clean_label_number(raw: str) -> str:
    """
    Remove decoration macros from an auxiliary label number.

    Example:
        >>> clean_label_number(r"\\textup {\\relax 2.1}")
        '2.1'
    """
    text = _DROP_RE.sub("", raw)
    text = _NBSP_RE.sub(" ", text)
    while True:
        match = _WRAPPER_RE.search(text)
        if match is None:
            break
        group = parse_group(text, match.end())
        text = text[:match.start()] + group.content + text[group.end:]
    return _SPACE_RE.sub(" ", text).strip()


def harvest_aux_labels(aux_text: str) -> Dict[str, str]:
    """
    Build a label table from auxiliary output.

    Companion ``@cref`` labels are skipped. Entries that cannot be parsed
    are logged and skipped; later entries for the same key win.
    """
    labels: Dict[str, str] = {}
    for match in _NEWLABEL_RE.finditer(aux_text):
        try:
            key = parse_group(aux_text, match.end())
            value_start = skip_whitespace(aux_text, key.end)
            value = parse_group(aux_text, value_start)
            number_start = skip_whitespace(value.content, 0)
            number = parse_group(value.content, number_start)
            cleaned = clean_label_number(number.content)
        except (UnbalancedGroup, ValueError) as e:
            logger.warning(f"Skipping unreadable \\newlabel at index {match.start()}: {e}")
            continue

        label = key.content.strip()
        if not label or label.endswith(CREF_SUFFIX):
            continue
        labels[label] = cleaned

    logger.debug(f"Harvested {len(labels)} label(s) from auxiliary output")
    return labels
