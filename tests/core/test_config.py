"""
Unit Tests for ConversionOptions

Tests for option defaults and validation on construction.
"""

import pytest

from quiz_toolkit.config import ConversionOptions, DisplayLanguage, FillBlankExportMode
from quiz_toolkit.core.models.questions import QuestionLevel


class TestConversionOptions:
    """Tests for ConversionOptions."""

    def test_defaults_when_minimal_then_combined_mode(self, options):
        """Defaults should match the documented behavior."""
        assert options.fill_blank_export_mode == FillBlankExportMode.COMBINED
        assert options.combined_delimiter == "; "
        assert options.include_solutions is True
        assert options.uid_scheme == "latex"
        assert options.import_level == QuestionLevel.BASIC

    def test_create_when_string_enums_then_coerced(self):
        """String values for enum fields should be coerced."""
        opts = ConversionOptions(
            course_code="MAT3500", subject="s", level="advanced",
            fill_blank_export_mode="split_items",
        )
        assert opts.level is QuestionLevel.ADVANCED
        assert opts.fill_blank_export_mode is FillBlankExportMode.SPLIT

    @pytest.mark.parametrize("course_code", ["", "MAT:3500"])
    def test_create_when_invalid_course_code_then_raises(self, course_code):
        """Empty or colon-bearing course codes should raise."""
        with pytest.raises(ValueError, match="course_code"):
            ConversionOptions(course_code=course_code, subject="s")

    def test_create_when_unknown_export_mode_then_raises(self):
        """Unknown export modes should raise."""
        with pytest.raises(ValueError):
            ConversionOptions(course_code="C", subject="s", fill_blank_export_mode="zip")

    def test_create_when_negative_version_index_then_raises(self):
        """version_index must be non-negative."""
        with pytest.raises(ValueError, match="version_index"):
            ConversionOptions(course_code="C", subject="s", version_index=-1)

    def test_with_overrides_when_invalid_then_validated(self, options):
        """Copies should be validated like new instances."""
        assert options.with_overrides(topic="graph").topic == "graph"
        with pytest.raises(ValueError, match="combined_delimiter"):
            options.with_overrides(combined_delimiter="")

    def test_from_dict_when_unknown_key_then_raises(self):
        """Unknown keys should be rejected by name."""
        with pytest.raises(ValueError, match="Unknown option"):
            ConversionOptions.from_dict({"course_code": "C", "subject": "s", "colour": "red"})

    def test_display_language_when_str_then_value(self):
        """Enums should print as their wire values."""
        assert str(DisplayLanguage.EN) == "en"
        assert str(FillBlankExportMode.SPLIT) == "split_items"
