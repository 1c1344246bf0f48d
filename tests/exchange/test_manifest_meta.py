"""
Unit Tests for the Package Manifest and Assessment Metadata
"""

import pytest

from quiz_toolkit.core.models.package import ImportedAsset
from quiz_toolkit.exchange.manifest import QuizResource, build_manifest, parse_manifest
from quiz_toolkit.exchange.meta import build_assessment_meta, parse_assessment_meta


class TestManifest:
    """Tests for build_manifest and parse_manifest."""

    @pytest.fixture
    def manifest_xml(self) -> str:
        quizzes = [
            QuizResource("gaaa", "gaaa/gaaa.xml", "gaaa/assessment_meta.xml"),
            QuizResource("gbbb", "gbbb/gbbb.xml", "gbbb/assessment_meta.xml"),
        ]
        assets = [ImportedAsset("web_resources/img/a.png", b"x", "image/png", "a.png")]
        return build_manifest(quizzes, assets)

    def test_build_when_quizzes_then_declaration_and_namespace(self, manifest_xml):
        assert manifest_xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "imscp_v1p1" in manifest_xml
        assert 'identifier="webcontent_1"' in manifest_xml

    def test_parse_when_built_then_quiz_resources_in_order(self, manifest_xml):
        """Parsing should resolve each quiz's metadata through its dependency."""
        info = parse_manifest(manifest_xml)
        assert info.quiz_resources == [
            QuizResource("gaaa", "gaaa/gaaa.xml", "gaaa/assessment_meta.xml"),
            QuizResource("gbbb", "gbbb/gbbb.xml", "gbbb/assessment_meta.xml"),
        ]
        assert info.web_resources == ["web_resources/img/a.png"]

    def test_parse_when_no_dependency_then_meta_none(self):
        xml = (
            '<manifest><resources><resource identifier="q" type="imsqti_xmlv1p2">'
            '<file href="q.xml"/></resource></resources></manifest>'
        )
        assert parse_manifest(xml).quiz_resources == [QuizResource("q", "q.xml", None)]

    def test_parse_when_resource_without_file_then_skipped(self):
        xml = '<manifest><resources><resource identifier="q" type="imsqti_xmlv1p2"/></resources></manifest>'
        assert parse_manifest(xml).quiz_resources == []


class TestAssessmentMeta:
    """Tests for build_assessment_meta and parse_assessment_meta."""

    def test_parse_when_built_then_title_and_points(self):
        meta = parse_assessment_meta(build_assessment_meta("Quiz graph", 3))
        assert meta.title == "Quiz graph"
        assert meta.points_possible == 3.0
        assert meta.shuffle_answers is False
        assert meta.show_correct_answers is True
        assert meta.allowed_attempts == -1.0
        assert meta.scoring_policy == "keep_highest"
        assert meta.due_at is None

    def test_parse_when_values_not_coercible_then_none(self):
        """Non-numeric, non-finite and non-boolean values read as None."""
        xml = (
            "<quiz><points_possible>inf</points_possible><allowed_attempts>many</allowed_attempts>"
            "<shuffle_answers>yes</shuffle_answers><cant_go_back> TRUE </cant_go_back></quiz>"
        )
        meta = parse_assessment_meta(xml)
        assert meta.points_possible is None
        assert meta.allowed_attempts is None
        assert meta.shuffle_answers is None
        assert meta.cant_go_back is True
        assert meta.title is None
