"""
Module: exchange.normalize

Purpose:
    Turns item HTML from an exchange package into markup-plain prompt text,
    and derives topic slugs from quiz titles.

    - Entities are decoded
    - <br> becomes a newline; closing p/div/li becomes a blank line
    - Equation images become inline \\(..\\) or display \\[..\\] math
    - File-base images become "[image: <name>]" placeholders and their
      blobs are collected as ImportedAsset records
    - Runs of three or more newlines collapse to two

Key Functions:
    - normalize_html(): HTML -> plain text
    - slugify(): Quiz title -> topic slug

Used By:
    - exchange.package_parse
"""

from __future__ import annotations

import re
import unicodedata
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

from quiz_toolkit.core.diagnostics import WarningCollector, WarningKind
from quiz_toolkit.core.models.package import ImportedAsset, Package
from quiz_toolkit.exchange.assets import ensure_asset, map_filebase_src_to_zip_path

EQUATION_IMAGE_CLASS = "equation_image"
EQUATION_CONTENT_ATTR = "data-equation-content"

BLOCK_TAGS = {"p", "div", "li"}

_QUIZ_PREFIX_RE = re.compile(r"^Quiz\s+", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_MULTI_NEWLINE_RE = re.compile(r"\n{3,}")


def slugify(value: str) -> str:
    """
    Topic slug for a quiz title.

    Example:
        >>> slugify("Quiz Đồ thị 2")
        'do-thi-2'
    """
    trimmed = _QUIZ_PREFIX_RE.sub("", value.strip())
    folded = unicodedata.normalize("NFD", trimmed.replace("đ", "d").replace("Đ", "D"))
    ascii_text = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub("-", ascii_text.lower()).strip("-")


def _is_display_math(formula: str) -> bool:
    return "\\begin" in formula or "\n" in formula


class _PromptTextParser(HTMLParser):
    """Flattens item HTML to text, resolving images as it goes."""

    def __init__(
        self,
        package: Optional[Package],
        assets_out: Optional[Dict[str, ImportedAsset]],
        collector: WarningCollector,
    ):
        super().__init__(convert_charrefs=True)
        self.package = package
        self.assets_out = assets_out
        self.collector = collector
        self.parts: List[str] = []

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if tag == "br":
            self.parts.append("\n")
        elif tag == "img":
            self._handle_img({k: v or "" for k, v in attrs})

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag: str) -> None:
        if tag in BLOCK_TAGS:
            self.parts.append("\n\n")

    def handle_data(self, data: str) -> None:
        self.parts.append(data)

    def _handle_img(self, attrs: Dict[str, str]) -> None:
        classes = attrs.get("class", "").split()
        if EQUATION_IMAGE_CLASS in classes:
            formula = attrs.get(EQUATION_CONTENT_ATTR, "")
            if _is_display_math(formula):
                self.parts.append(f"\\[{formula}\\]")
            else:
                self.parts.append(f"\\({formula}\\)")
            return

        zip_path = map_filebase_src_to_zip_path(attrs.get("src", ""))
        if zip_path is None:
            return
        name = zip_path.rsplit("/", 1)[-1]
        if self.package is not None and self.assets_out is not None:
            ensure_asset(self.package, zip_path, self.assets_out, self.collector)
        else:
            self.collector.add(
                WarningKind.MISSING_ASSET,
                f"Asset referenced but no package data provided: {zip_path}",
            )
        self.parts.append(f"[image: {name}]")


def normalize_html(
    html: str,
    package: Optional[Package] = None,
    assets_out: Optional[Dict[str, ImportedAsset]] = None,
    collector: Optional[WarningCollector] = None,
) -> str:
    """
    Convert item HTML to markup-plain text.

    Args:
        html: Item HTML (mattext content)
        package: Package holding referenced image blobs
        assets_out: Collected assets by package path, updated in place
        collector: Receives missing-asset warnings

    Example:
        >>> normalize_html("<p>2 &lt; 3<br/>ok</p>")
        '2 < 3\\nok'
    """
    if collector is None:
        collector = WarningCollector()
    parser = _PromptTextParser(package, assets_out, collector)
    parser.feed(html or "")
    parser.close()
    text = "".join(parser.parts)
    return _MULTI_NEWLINE_RE.sub("\n\n", text).strip()
