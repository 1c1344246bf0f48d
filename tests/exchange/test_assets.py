"""
Unit Tests for Asset Bookkeeping

Tests for mime detection, placeholder lookup and file-base path mapping.
"""

import pytest

from quiz_toolkit.core.diagnostics import WarningCollector
from quiz_toolkit.core.models.package import ImportedAsset, Package
from quiz_toolkit.exchange.assets import (
    DEFAULT_MIME,
    build_asset_name_lookup,
    encode_filebase_path,
    ensure_asset,
    guess_mime,
    make_asset,
    map_filebase_src_to_zip_path,
)


class TestGuessMime:
    """Tests for guess_mime."""

    @pytest.mark.parametrize("path,expected", [
        ("a.PNG", "image/png"),
        ("dir/a.jpeg", "image/jpeg"),
        ("a.svg", "image/svg+xml"),
    ])
    def test_guess_when_known_extension_then_mapped(self, path, expected):
        assert guess_mime(path) == expected

    def test_guess_when_extensionless_png_then_sniffed(self, png_bytes):
        """Pillow should identify image bytes without an extension."""
        assert guess_mime("web_resources/blob", png_bytes) == "image/png"

    def test_guess_when_unrecognized_bytes_then_octet_stream(self):
        assert guess_mime("blob.bin", b"not an image") == DEFAULT_MIME
        assert guess_mime("blob") == DEFAULT_MIME


class TestFilebasePaths:
    """Tests for file-base URL <-> package path mapping."""

    def test_encode_when_spaces_then_percent_encoded(self):
        assert encode_filebase_path("web_resources/img/a b.png") == "img/a%20b.png"

    def test_map_when_filebase_src_then_decoded_path(self):
        src = "$IMS-CC-FILEBASE$/img/a%20b.png"
        assert map_filebase_src_to_zip_path(src) == "web_resources/img/a b.png"

    @pytest.mark.parametrize("src", ["http://example.com/a.png", "$IMS-CC-FILEBASE$/", ""])
    def test_map_when_not_filebase_then_none(self, src):
        assert map_filebase_src_to_zip_path(src) is None

    def test_encode_then_map_when_unicode_name_then_same_path(self):
        path = "web_resources/hình 1.png"
        assert map_filebase_src_to_zip_path("$IMS-CC-FILEBASE$/" + encode_filebase_path(path)) == path


class TestAssetLookup:
    """Tests for build_asset_name_lookup, make_asset and ensure_asset."""

    def test_lookup_when_duplicate_names_then_first_wins(self):
        first = ImportedAsset("web_resources/a/x.png", b"1", "image/png", "x.png")
        second = ImportedAsset("web_resources/b/x.png", b"2", "image/png", "x.png")
        assert build_asset_name_lookup([first, second])["x.png"] is first

    def test_make_asset_when_path_then_basename_suggested(self, png_bytes):
        asset = make_asset("web_resources/img/g.png", png_bytes)
        assert asset.suggested_name == "g.png"
        assert asset.mime == "image/png"

    def test_ensure_when_called_twice_then_collected_once(self, png_bytes):
        package = Package({"web_resources/g.png": png_bytes})
        collected = {}
        collector = WarningCollector()

        first = ensure_asset(package, "web_resources/g.png", collected, collector)
        second = ensure_asset(package, "web_resources/g.png", collected, collector)

        assert first is second
        assert len(collected) == 1
        assert len(collector) == 0

    def test_ensure_when_missing_then_none_and_warning(self):
        collector = WarningCollector()
        assert ensure_asset(Package(), "web_resources/g.png", {}, collector) is None
        assert len(collector) == 1
