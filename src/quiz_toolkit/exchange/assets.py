"""
Module: exchange.assets

Purpose:
    Asset bookkeeping for exchange packages: mime detection, lookup of
    "[image: <name>]" placeholders, and conversion between package paths
    and the file-base URLs used inside item HTML.

Key Functions:
    - guess_mime(): Extension lookup, falling back to Pillow sniffing
    - make_asset(): Build an ImportedAsset from a package path and bytes
    - build_asset_name_lookup(): First-wins basename -> asset
    - encode_filebase_path() / map_filebase_src_to_zip_path(): URL <-> path
    - ensure_asset(): Collect a referenced blob from a package

Dependencies:
    - Pillow: Image format sniffing for extensionless blobs

Used By:
    - exchange.items_build, exchange.normalize, exchange.package_parse
"""

from __future__ import annotations

import io
import logging
import posixpath
from typing import Dict, Iterable, Optional
from urllib.parse import quote, unquote

from PIL import Image, UnidentifiedImageError

from quiz_toolkit.core.diagnostics import WarningCollector, WarningKind
from quiz_toolkit.core.models.package import WEB_RESOURCES_DIR, ImportedAsset, Package

logger = logging.getLogger(__name__)

FILEBASE_MARKER = "$IMS-CC-FILEBASE$/"
DEFAULT_MIME = "application/octet-stream"

MIME_BY_EXT = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}


def guess_mime(path: str, data: Optional[bytes] = None) -> str:
    """
    Guess the mime type of an asset.

    The extension decides when known. Otherwise the bytes are opened with
    Pillow and its detected format is mapped to a mime type; anything
    Pillow cannot identify is application/octet-stream.
    """
    ext = posixpath.splitext(path)[1].lower()
    if ext in MIME_BY_EXT:
        return MIME_BY_EXT[ext]
    if not data:
        return DEFAULT_MIME
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        logger.debug(f"Unrecognized asset bytes for {path}")
        return DEFAULT_MIME
    return Image.MIME.get(fmt, DEFAULT_MIME) if fmt else DEFAULT_MIME


def make_asset(zip_path: str, data: bytes) -> ImportedAsset:
    return ImportedAsset(
        zip_path=zip_path,
        data=data,
        mime=guess_mime(zip_path, data),
        suggested_name=posixpath.basename(zip_path),
    )


def build_asset_name_lookup(assets: Iterable[ImportedAsset]) -> Dict[str, ImportedAsset]:
    """Map suggested names to assets; the first asset with a name wins."""
    lookup: Dict[str, ImportedAsset] = {}
    for asset in assets:
        lookup.setdefault(asset.suggested_name, asset)
    return lookup


def encode_filebase_path(zip_path: str) -> str:
    """
    URL-encode a package path for use after the file-base marker.

    The leading ``web_resources/`` is dropped and each segment is
    percent-encoded separately.
    """
    prefix = f"{WEB_RESOURCES_DIR}/"
    rest = zip_path[len(prefix):] if zip_path.startswith(prefix) else zip_path
    return "/".join(quote(part, safe="") for part in rest.split("/"))


def map_filebase_src_to_zip_path(src: str) -> Optional[str]:
    """
    Resolve an ``<img src>`` using the file-base marker to a package path.

    Returns None for sources that are not file-base references.

    Example:
        >>> map_filebase_src_to_zip_path("$IMS-CC-FILEBASE$/img/a%20b.png")
        'web_resources/img/a b.png'
    """
    idx = src.find(FILEBASE_MARKER)
    if idx == -1:
        return None
    rest = src[idx + len(FILEBASE_MARKER):].lstrip("/")
    if not rest:
        return None
    return f"{WEB_RESOURCES_DIR}/{unquote(rest)}"


def ensure_asset(
    package: Package,
    zip_path: str,
    collected: Dict[str, ImportedAsset],
    collector: WarningCollector,
) -> Optional[ImportedAsset]:
    """Collect the blob at ``zip_path`` once; warn when the package lacks it."""
    existing = collected.get(zip_path)
    if existing is not None:
        return existing
    data = package.get(zip_path)
    if data is None:
        collector.add(
            WarningKind.MISSING_ASSET,
            f"Missing asset referenced in content: {zip_path}",
        )
        return None
    asset = make_asset(zip_path, data)
    collected[zip_path] = asset
    return asset
