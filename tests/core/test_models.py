"""
Unit Tests for Question and Answer Models

Tests for the immutable question union, QuizDocument, answers and Package.
"""

import pytest

from quiz_toolkit.core.models import (
    BLANK_SENTINEL,
    Choice,
    FillBlankAnswer,
    FillBlankQuestion,
    ImportedAsset,
    Package,
    QuestionKind,
    QuestionLevel,
    QuizDocument,
    SingleChoiceAnswer,
    SingleChoiceQuestion,
)
from quiz_toolkit.core.models.answers import answer_from_dict
from quiz_toolkit.core.models.questions import question_from_dict


def _choices(n):
    return tuple(Choice("ABCDE"[i], f"option {i}") for i in range(n))


def _single(uid="latex:MAT3500:graph:q01", n=3):
    return SingleChoiceQuestion(
        uid=uid, id="graph:q01", topic="graph", level=QuestionLevel.BASIC,
        number=1, prompt="P", choices=_choices(n), subject="discrete-math",
    )


def _fill(uid="latex:MAT3500:graph:q02"):
    return FillBlankQuestion(
        uid=uid, id="graph:q02", topic="graph", level="advanced",
        number=2, prompt=f"x = {BLANK_SENTINEL}", blank_count=1,
    )


class TestSingleChoiceQuestion:
    """Tests for SingleChoiceQuestion validation."""

    def test_create_when_valid_then_kind_is_single_choice(self):
        """Valid question should expose its kind and keys."""
        q = _single()
        assert q.kind == QuestionKind.SINGLE_CHOICE
        assert q.keys == ("A", "B", "C")

    @pytest.mark.parametrize("n", [1, 6])
    def test_create_when_choice_count_out_of_range_then_raises(self, n):
        """Fewer than 2 or more than 5 choices should raise."""
        choices = tuple(Choice("A", "x") for _ in range(n)) if n > 5 else _choices(n)
        with pytest.raises(ValueError, match="choices"):
            SingleChoiceQuestion(
                uid="u", id="graph:q01", topic="graph", level="basic",
                number=1, prompt="P", choices=choices,
            )

    def test_create_when_keys_not_contiguous_then_raises(self):
        """Keys must run A, B, ... in order."""
        with pytest.raises(ValueError, match="in order"):
            SingleChoiceQuestion(
                uid="u", id="graph:q01", topic="graph", level="basic",
                number=1, prompt="P", choices=(Choice("A", "x"), Choice("C", "y")),
            )

    def test_choice_when_key_invalid_then_raises(self):
        """Choice keys are limited to A-E."""
        with pytest.raises(ValueError, match="Invalid choice key"):
            Choice("F", "x")

    def test_create_when_empty_uid_then_raises(self):
        """Empty uid should raise."""
        with pytest.raises(ValueError, match="uid"):
            _single(uid="")


class TestFillBlankQuestion:
    """Tests for FillBlankQuestion validation."""

    def test_create_when_string_level_then_coerced_to_enum(self):
        """String levels should be coerced to QuestionLevel."""
        q = _fill()
        assert q.level is QuestionLevel.ADVANCED
        assert q.kind == QuestionKind.FILL_BLANK
        assert q.sentinel_count == 1

    def test_create_when_zero_blanks_then_raises(self):
        """blank_count must be at least 1."""
        with pytest.raises(ValueError, match="blank_count"):
            FillBlankQuestion(
                uid="u", id="graph:q02", topic="graph", level="basic",
                number=2, prompt="x", blank_count=0,
            )


class TestQuizDocument:
    """Tests for QuizDocument."""

    def test_create_when_duplicate_uids_then_raises(self):
        """Two questions with the same uid should raise."""
        with pytest.raises(ValueError, match="Duplicate question uid"):
            QuizDocument("v", 0, (_single(), _single()))

    def test_to_dict_when_round_tripped_then_equal(self):
        """to_dict/from_dict should preserve every question."""
        quiz = QuizDocument("latex:MAT3500:graph", 2, (_single(), _fill()))
        restored = QuizDocument.from_dict(quiz.to_dict())
        assert restored == quiz

    def test_with_version_when_called_then_questions_kept(self):
        """with_version should only change the version identity."""
        quiz = QuizDocument("old", 1, (_single(),))
        renamed = quiz.with_version("Quiz graph")
        assert renamed.version_id == "Quiz graph"
        assert renamed.version_index == 1
        assert renamed.questions == quiz.questions

    def test_topics_when_repeated_then_first_seen_order(self):
        """topics should list distinct topics in order."""
        quiz = QuizDocument("v", 0, (_single(), _fill()))
        assert quiz.topics == ("graph",)
        assert quiz.get(_fill().uid) == _fill()
        assert quiz.get("missing") is None

    def test_question_from_dict_when_unknown_type_then_raises(self):
        """Unknown type tags should be rejected."""
        with pytest.raises(ValueError):
            question_from_dict({"type": "essay"})


class TestAnswers:
    """Tests for answer records."""

    def test_single_choice_answer_when_invalid_key_then_raises(self):
        """correct_key must be one of A-E."""
        with pytest.raises(ValueError, match="Invalid correct key"):
            SingleChoiceAnswer("Z")

    def test_fill_blank_answer_when_none_then_answers_empty(self):
        """Unpopulated answers should read as an empty tuple."""
        answer = FillBlankAnswer(blank_count=2)
        assert answer.answers == ()
        assert not answer.is_consistent

    def test_fill_blank_answer_when_list_given_then_stored_as_tuple(self):
        """Accepted answers should be frozen into a tuple."""
        answer = FillBlankAnswer(blank_count=2, accepted_answers=["a", "b"])
        assert answer.accepted_answers == ("a", "b")
        assert answer.is_consistent

    def test_points_when_negative_then_raises(self):
        """Negative points should raise."""
        with pytest.raises(ValueError, match="points"):
            SingleChoiceAnswer("A", points=-1)

    def test_answer_from_dict_when_fill_blank_then_fields_restored(self):
        """Serialized fill-blank answers should deserialize fully."""
        answer = answer_from_dict({
            "type": "fill-blank", "blankCount": 1, "acceptedAnswers": ["5"],
            "points": 2, "notes": "alternative answers dropped",
        })
        assert answer == FillBlankAnswer(1, ("5",), 2, None, "alternative answers dropped")


class TestPackage:
    """Tests for the in-memory Package container."""

    def test_add_when_str_then_encoded_utf8(self):
        """String blobs should be stored as UTF-8 bytes."""
        package = Package()
        package.add("a.xml", "Đồ thị")
        assert package.get("a.xml") == "Đồ thị".encode("utf-8")
        assert package.read_text("a.xml") == "Đồ thị"

    def test_add_when_path_repeated_then_order_kept(self):
        """Re-adding a path replaces bytes but keeps insertion order."""
        package = Package({"a": b"1", "b": b"2"})
        package.add("a", b"3")
        assert package.paths == ("a", "b")
        assert package.get("a") == b"3"
        assert len(package) == 2

    def test_read_text_when_missing_then_none(self):
        """Missing paths should read as None."""
        assert Package().read_text("missing") is None
        assert "missing" not in Package()

    def test_imported_asset_when_empty_path_then_raises(self):
        """ImportedAsset requires a path."""
        with pytest.raises(ValueError, match="zip_path"):
            ImportedAsset("", b"", "image/png", "a.png")
