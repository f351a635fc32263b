"""
Form validation for course and component input.

Every validator returns a human-readable error message, or None when the
value is acceptable. Nothing here raises on bad input; the grade engine
itself never validates, so the front end runs these before saving.
"""
import math
from typing import Iterable, Optional, Union

from grade_compass.config import MAX_NAME_LENGTH, WEIGHT_TOTAL_TOLERANCE
from grade_compass.models import GradeComponent

Number = Union[int, float, str]


def _to_float(value: Number) -> float:
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return float(value)


def _validate_name(name: str, label: str) -> Optional[str]:
    if not name or not name.strip():
        return f"{label} name is required"
    if len(name) > MAX_NAME_LENGTH:
        return f"{label} name must be less than {MAX_NAME_LENGTH} characters"
    return None


def validate_course_name(name: str) -> Optional[str]:
    return _validate_name(name, "Course")


def validate_component_name(name: str) -> Optional[str]:
    return _validate_name(name, "Component")


def validate_weight(weight: Number) -> Optional[str]:
    value = _to_float(weight)
    if math.isnan(value):
        return "Weight must be a number"
    if value < 0:
        return "Weight cannot be negative"
    if value > 100:
        return "Weight cannot exceed 100%"
    return None


def validate_score(score: Optional[Number], max_score: float) -> Optional[str]:
    # no score yet is fine, the component just isn't graded
    if score is None:
        return None

    value = _to_float(score)
    if math.isnan(value):
        return "Score must be a number"
    if value < 0:
        return "Score cannot be negative"
    if value > max_score:
        return f"Score cannot exceed maximum score of {max_score:g}"
    return None


def validate_max_score(max_score: Number) -> Optional[str]:
    value = _to_float(max_score)
    if math.isnan(value):
        return "Maximum score must be a number"
    if value <= 0:
        return "Maximum score must be greater than zero"
    return None


def validate_target_grade(target_grade: Number) -> Optional[str]:
    value = _to_float(target_grade)
    if math.isnan(value):
        return "Target grade must be a number"
    if value < 0:
        return "Target grade cannot be negative"
    if value > 100:
        return "Target grade cannot exceed 100%"
    return None


def validate_total_weight(components: Iterable[GradeComponent]) -> Optional[str]:
    total = sum(c.weight for c in components)
    if total > 100 and not math.isclose(total, 100.0, abs_tol=WEIGHT_TOTAL_TOLERANCE):
        return f"Total weight ({total:g}%) exceeds 100%"
    return None


def validate_component(component: GradeComponent) -> Optional[str]:
    """First problem found on a single component, checked field by field."""
    return (
        validate_component_name(component.name)
        or validate_weight(component.weight)
        or validate_max_score(component.max_score)
        or validate_score(component.score, component.max_score)
    )
