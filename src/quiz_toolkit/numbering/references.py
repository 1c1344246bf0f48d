"""
Reference rewriting.

Replaces ``\\ref{label}`` with the label's display number and
``\\eqref{label}`` with ``(number)``. A reference introduced by
``\\figurename`` or ``\\tablename`` is prefixed with the figure or table
noun of the requested display language. Unresolved labels are kept as
their raw text and logged.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping, Union

from quiz_toolkit.config import DisplayLanguage
from quiz_toolkit.markup.lexer import is_escaped
from quiz_toolkit.numbering.labels import LabelMap

logger = logging.getLogger(__name__)

FIGURE_PREFIX = "\\figurename"
TABLE_PREFIX = "\\tablename"

# (figure noun, table noun) per language
NOUNS = {
    DisplayLanguage.VI: ("Hình", "Bảng"),
    DisplayLanguage.EN: ("Figure", "Table"),
}

_REFERENCE_RE = re.compile(
    r"(?:(\\figurename|\\tablename)(?![A-Za-z])\s*~?\s*)?\\(eqref|ref)\s*\{([^}]*)\}"
)


def replace_references(
    text: str,
    labels: Union[LabelMap, Mapping[str, str]],
    language: Union[DisplayLanguage, str] = DisplayLanguage.VI,
) -> str:
    """
    Rewrite every reference command in ``text``.

    Args:
        text: Source markup
        labels: LabelMap or plain label -> number mapping
        language: Noun language for \\figurename / \\tablename references

    Example:
        >>> replace_references(r"See \\figurename~\\ref{fig:a}", {"fig:a": "1"}, "en")
        'See Figure 1'
    """
    if not text:
        return text
    table = labels.labels if isinstance(labels, LabelMap) else labels
    figure_noun, table_noun = NOUNS[DisplayLanguage(language)]

    def substitute(match: re.Match) -> str:
        if is_escaped(text, match.start()):
            return match.group(0)
        prefix, command, raw_label = match.groups()
        label = raw_label.strip()
        display = table.get(label)
        if display is None:
            logger.warning(f"Reference label '{label}' not found in label map")
            display = label

        if command == "eqref":
            display = f"({display})"
        if prefix == FIGURE_PREFIX:
            display = f"{figure_noun} {display}"
        elif prefix == TABLE_PREFIX:
            display = f"{table_noun} {display}"
        return display

    return _REFERENCE_RE.sub(substitute, text)
