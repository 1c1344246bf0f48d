"""
Label Numbering Package

Cross-document numbering of figure and equation labels, reference
rewriting, and harvesting of an external engine's label table.

Usage:
    from quiz_toolkit.numbering import collect_sequential_labels, replace_references

    label_map = collect_sequential_labels(documents)
    text = replace_references(text, label_map, "en")
"""

from .crossref import harvest_aux_labels
from .labels import LabelMap, NumberingCursor, collect_sequential_labels
from .references import replace_references

__all__ = [
    "harvest_aux_labels",
    "LabelMap",
    "NumberingCursor",
    "collect_sequential_labels",
    "replace_references",
]
