import pytest

from grade_compass.models import GradeComponent
from grade_compass.validation import (
    validate_component,
    validate_component_name,
    validate_course_name,
    validate_max_score,
    validate_score,
    validate_target_grade,
    validate_total_weight,
    validate_weight,
)


class TestNames:

    def test_course_name_when_blank_then_required(self):
        assert validate_course_name("   ") == "Course name is required"

    def test_course_name_when_too_long_then_error(self):
        assert validate_course_name("x" * 101) == "Course name must be less than 100 characters"

    def test_course_name_when_exactly_100_then_valid(self):
        assert validate_course_name("x" * 100) is None

    def test_component_name_when_valid_then_none(self):
        assert validate_component_name("Midterm") is None

    def test_component_name_when_empty_then_required(self):
        assert validate_component_name("") == "Component name is required"


class TestNumbers:

    @pytest.mark.parametrize(
        "weight, expected",
        [
            (0, None),
            (100, None),
            ("45.5", None),
            (-1, "Weight cannot be negative"),
            (100.5, "Weight cannot exceed 100%"),
            ("abc", "Weight must be a number"),
            (float("nan"), "Weight must be a number"),
        ],
    )
    def test_weight_when_value_then_expected(self, weight, expected):
        assert validate_weight(weight) == expected

    @pytest.mark.parametrize(
        "score, max_score, expected",
        [
            (None, 100, None),
            (0, 100, None),
            (50, 50, None),
            ("12", 20, None),
            (-0.5, 100, "Score cannot be negative"),
            (51, 50, "Score cannot exceed maximum score of 50"),
            ("n/a", 100, "Score must be a number"),
        ],
    )
    def test_score_when_value_then_expected(self, score, max_score, expected):
        assert validate_score(score, max_score) == expected

    def test_max_score_when_zero_then_error(self):
        assert validate_max_score(0) == "Maximum score must be greater than zero"

    def test_max_score_when_positive_then_valid(self):
        assert validate_max_score(20) is None

    @pytest.mark.parametrize(
        "target, expected",
        [
            (90, None),
            (-1, "Target grade cannot be negative"),
            (101, "Target grade cannot exceed 100%"),
            ("", "Target grade must be a number"),
        ],
    )
    def test_target_when_value_then_expected(self, target, expected):
        assert validate_target_grade(target) == expected


class TestComponents:

    def test_total_weight_when_over_100_then_error(self, partial_components):
        extra = GradeComponent(id="5", name="Bonus", weight=5)
        assert validate_total_weight(partial_components + [extra]) == "Total weight (105%) exceeds 100%"

    def test_total_weight_when_under_100_then_valid(self, partial_components):
        assert validate_total_weight(partial_components[:2]) is None

    def test_total_weight_when_decimal_weights_sum_to_100_then_valid(self):
        components = [
            GradeComponent(id=str(i), name=f"Part {i}", weight=w)
            for i, w in enumerate([16.8, 14.4, 34.1, 34.7])
        ]
        assert validate_total_weight(components) is None

    def test_component_when_valid_then_none(self, partial_components):
        assert all(validate_component(c) is None for c in partial_components)

    def test_component_when_score_too_high_then_reports_score(self):
        c = GradeComponent(id="x", name="Quiz", weight=10, score=12, max_score=10, is_completed=True)
        assert validate_component(c) == "Score cannot exceed maximum score of 10"

    def test_component_when_name_and_weight_bad_then_name_first(self):
        c = GradeComponent(id="x", name="", weight=-3)
        assert validate_component(c) == "Component name is required"
