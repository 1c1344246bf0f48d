"""
Unit Tests for Reference Rewriting and Aux Label Harvesting
"""

import logging

import pytest

from quiz_toolkit.config import DisplayLanguage
from quiz_toolkit.numbering import (
    collect_sequential_labels,
    harvest_aux_labels,
    replace_references,
)
from quiz_toolkit.numbering.crossref import clean_label_number


class TestReplaceReferences:
    """Tests for replace_references."""

    def test_replace_when_figurename_default_then_vietnamese_noun(self):
        text = r"See \figurename~\ref{fig:test}"
        assert replace_references(text, {"fig:test": "1"}) == "See Hình 1"

    def test_replace_when_figurename_english_then_figure_noun(self):
        text = r"See \figurename~\ref{fig:test}"
        assert replace_references(text, {"fig:test": "1"}, "en") == "See Figure 1"
        assert replace_references(text, {"fig:test": "1"}, DisplayLanguage.EN) == "See Figure 1"

    def test_replace_when_tablename_then_table_noun(self):
        assert replace_references(r"\tablename \ref{t}", {"t": "2"}) == "Bảng 2"

    def test_replace_when_eqref_then_parenthesized(self):
        assert replace_references(r"by \eqref{ eq:1 }.", {"eq:1": "3"}) == "by (3)."

    def test_replace_when_plain_ref_then_number_only(self):
        assert replace_references(r"Figure~\ref{a}", {"a": "7"}) == "Figure~7"

    def test_replace_when_unresolved_then_raw_label_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="quiz_toolkit.numbering.references"):
            out = replace_references(r"see \ref{missing}", {})
        assert out == "see missing"
        assert "Reference label 'missing' not found" in caplog.text

    def test_replace_when_escaped_then_kept(self):
        text = r"a \\ref{x}"
        assert replace_references(text, {"x": "1"}) == text

    def test_replace_when_label_map_then_numbers_from_pass(self):
        """A LabelMap from a numbering pass can be used directly."""
        doc = r"\begin{figure}\label{fig:a}\end{figure}\begin{equation}x\label{eq:b}\end{equation}"
        label_map = collect_sequential_labels([doc])
        out = replace_references(r"\figurename~\ref{fig:a} and \eqref{eq:b}", label_map, "en")
        assert out == "Figure 1 and (2)"

    def test_replace_when_unknown_language_then_raises(self):
        with pytest.raises(ValueError):
            replace_references(r"\ref{a}", {"a": "1"}, "fr")

    def test_replace_when_empty_then_unchanged(self):
        assert replace_references("", {}) == ""


AUX = "\n".join([
    r"\relax",
    r"\newlabel{fig:a}{{1}{2}}",
    r"\newlabel{fig:a@cref}{{[figure][1][]1}{2}}",
    r"\newlabel{eq:b}{{\textup {\relax 2.1}}{3}{}{equation.2.1}{}}",
    r"\newlabel{thm:c}{{\thmnumber{3}\nobreakspace{}A}{4}}",
    r"\newlabel{broken}{no braces}",
])


class TestHarvestAuxLabels:
    """Tests for harvest_aux_labels and clean_label_number."""

    def test_harvest_when_aux_then_cleaned_numbers(self):
        """Decorations are stripped and @cref companions skipped."""
        assert harvest_aux_labels(AUX) == {"fig:a": "1", "eq:b": "2.1", "thm:c": "3 A"}

    def test_harvest_when_unreadable_entry_then_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="quiz_toolkit.numbering.crossref"):
            harvest_aux_labels(r"\newlabel{x}")
        assert "Skipping unreadable \\newlabel" in caplog.text

    def test_harvest_when_labels_then_usable_for_references(self):
        labels = harvest_aux_labels(AUX)
        assert replace_references(r"\eqref{eq:b}", labels) == "(2.1)"

    @pytest.mark.parametrize("raw,expected", [
        (r"\textup {\relax 2.1}", "2.1"),
        (r"\mbox{\textbf{4}}", "4"),
        (r"\protect 5", "5"),
        ("  6  ", "6"),
    ])
    def test_clean_when_decorated_then_plain(self, raw, expected):
        assert clean_label_number(raw) == expected
