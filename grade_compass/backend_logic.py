from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional

import numpy as np

from grade_compass.config import (
    CHALLENGING_THRESHOLD,
    COMFORTABLE_THRESHOLD,
    EXCEEDING_THRESHOLD,
    WEIGHT_TOTAL_TOLERANCE,
)
from grade_compass.models import GradeComponent


class GradeStatus(str, Enum):
    ON_TRACK = "on-track"
    CHALLENGING = "challenging"
    EXCEEDING = "exceeding"
    IMPOSSIBLE = "impossible"


# Inclusive lower bounds, checked from the top down
LETTER_GRADES = [
    (97.0, "A+"),
    (93.0, "A"),
    (90.0, "A-"),
    (87.0, "B+"),
    (83.0, "B"),
    (80.0, "B-"),
    (77.0, "C+"),
    (73.0, "C"),
    (70.0, "C-"),
    (67.0, "D+"),
    (63.0, "D"),
    (60.0, "D-"),
]

LETTER_TO_PERCENTAGE = {letter: floor for floor, letter in LETTER_GRADES}
LETTER_TO_PERCENTAGE["F"] = 50.0


# ------------------------
# Helpers
# ------------------------
def round_1dp_half_up(x: float) -> float:
    return float(Decimal(str(x)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_percentage(value: Optional[float], decimals: int = 1) -> str:
    if value is None:
        return "N/A"
    return f"{value:.{decimals}f}%"


def _graded(components: List[GradeComponent]) -> List[GradeComponent]:
    return [c for c in components if c.counts_towards_grade]


def _weights(components: List[GradeComponent]) -> np.ndarray:
    return np.array([c.weight for c in components], dtype=float)


def _earned_points(graded: List[GradeComponent]) -> float:
    """
    Sum of (score / max_score) * weight over graded components.
    A zero max_score yields inf/nan rather than an exception; bounds are the
    validation layer's job.
    """
    if not graded:
        return 0.0
    scores = np.array([c.score for c in graded], dtype=float)
    max_scores = np.array([c.max_score for c in graded], dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        fractions = scores / max_scores
    return float(np.dot(fractions, _weights(graded)))


# ------------------------
# Core logic
# ------------------------
def compute_current_grade(components: Iterable[GradeComponent]) -> Optional[float]:
    """
    Weighted average over graded components only, as a percentage.

    Normalised by the weight of the graded components, not the course total,
    so ungraded work does not drag the grade down. None when nothing is
    graded or the graded weight sums to zero.
    """
    graded = _graded(list(components))
    if not graded:
        return None

    graded_weight = float(_weights(graded).sum())
    if graded_weight == 0:
        return None

    return _earned_points(graded) / graded_weight * 100.0


def compute_completed_weight(components: Iterable[GradeComponent]) -> float:
    completed = [c for c in components if c.is_completed]
    return float(_weights(completed).sum())


def compute_remaining_weight(components: Iterable[GradeComponent]) -> float:
    # empty input -> 0, not 100: nothing is allocated either way
    remaining = [c for c in components if not c.is_completed]
    return float(_weights(remaining).sum())


def compute_total_weight(components: Iterable[GradeComponent]) -> float:
    return float(_weights(list(components)).sum())


def is_all_completed(components: Iterable[GradeComponent]) -> bool:
    components = list(components)
    return len(components) > 0 and all(c.is_completed for c in components)


def compute_required_average(
    components: Iterable[GradeComponent],
    target_percent: float,
) -> Optional[float]:
    """
    Uniform percentage needed on every incomplete component so the overall
    weighted grade lands on target_percent.

    Returns None when there is no remaining weight. The raw value is
    returned: negative means the target is already secured, above 100
    means it is out of reach.
    """
    components = list(components)

    remaining_weight = compute_remaining_weight(components)
    if remaining_weight == 0:
        return None

    total_weight = compute_total_weight(components)
    target_points = (target_percent / 100.0) * total_weight
    earned_points = _earned_points(_graded(components))

    return (target_points - earned_points) / remaining_weight * 100.0


def is_achievable(components: Iterable[GradeComponent], target_percent: float) -> bool:
    components = list(components)
    required = compute_required_average(components, target_percent)

    if required is None:
        current = compute_current_grade(components)
        return current is not None and current >= target_percent

    return required <= 100.0


def classify_status(
    components: Iterable[GradeComponent],
    target_percent: float,
) -> GradeStatus:
    components = list(components)

    if not is_achievable(components, target_percent):
        return GradeStatus.IMPOSSIBLE

    required = compute_required_average(components, target_percent)
    if required is None:
        # everything graded and the target was met
        return GradeStatus.EXCEEDING

    current = compute_current_grade(components)
    if current is not None and current >= target_percent and required < EXCEEDING_THRESHOLD:
        return GradeStatus.EXCEEDING

    if required > CHALLENGING_THRESHOLD:
        return GradeStatus.CHALLENGING

    return GradeStatus.ON_TRACK


def generate_recommendations(
    components: Iterable[GradeComponent],
    target_percent: float,
) -> List[str]:
    components = list(components)
    recommendations: List[str] = []

    if not components:
        recommendations.append("Add your first grade component to get started.")
        return recommendations

    current = compute_current_grade(components)
    required = compute_required_average(components, target_percent)
    achievable = is_achievable(components, target_percent)

    if current is None:
        recommendations.append(
            "Enter scores for completed components to see your current grade."
        )
    elif is_all_completed(components):
        if current >= target_percent:
            recommendations.append(
                f"Congratulations! You've achieved your target grade of {target_percent:g}%."
            )
        else:
            recommendations.append(
                f"Your final grade ({current:.1f}%) is below your target of {target_percent:g}%."
            )
        return recommendations

    if required is not None:
        if achievable:
            recommendations.append(
                f"You need to score an average of {required:.1f}% on remaining "
                "assessments to reach your target."
            )
            if required > CHALLENGING_THRESHOLD:
                recommendations.append(
                    "This will be challenging. Consider adjusting your target "
                    "or seeking additional help."
                )
            elif required < COMFORTABLE_THRESHOLD:
                recommendations.append("You're in a good position to exceed your target!")
        else:
            recommendations.append(
                "Your target grade is not mathematically achievable with the "
                "remaining assessments."
            )
            recommendations.append("Consider adjusting your target to a more realistic goal.")

    total_weight = compute_total_weight(components)
    fully_allocated = np.isclose(total_weight, 100.0, rtol=0.0, atol=WEIGHT_TOTAL_TOLERANCE)
    if fully_allocated:
        return recommendations

    if total_weight < 100:
        recommendations.append(
            f"Your components only add up to {total_weight:g}% of the total grade. "
            f"Add the missing {100 - total_weight:g}%."
        )
    elif total_weight > 100:
        recommendations.append(
            f"Your components add up to {total_weight:g}%, which exceeds 100%. "
            "Please adjust the weights."
        )

    return recommendations


def letter_grade(percent: Optional[float]) -> str:
    if percent is None:
        return "N/A"
    for floor, letter in LETTER_GRADES:
        if percent >= floor:
            return letter
    return "F"


def letter_grade_to_percentage(letter: str) -> Optional[float]:
    return LETTER_TO_PERCENTAGE.get(letter.strip().upper())


# ------------------------
# Summaries & planning
# ------------------------
def grade_summary(
    components: Iterable[GradeComponent],
    target_percent: float,
) -> Dict[str, object]:
    """
    Everything the front end shows for one course, computed in one pass.
    """
    components = list(components)
    current = compute_current_grade(components)

    return {
        "current_grade": current,
        "current_grade_rounded": round_1dp_half_up(current) if current is not None else None,
        "letter_grade": letter_grade(current),
        "completed_weight": compute_completed_weight(components),
        "remaining_weight": compute_remaining_weight(components),
        "total_weight": compute_total_weight(components),
        "is_all_completed": is_all_completed(components),
        "required_average": compute_required_average(components, target_percent),
        "is_achievable": is_achievable(components, target_percent),
        "status": classify_status(components, target_percent),
        "recommendations": generate_recommendations(components, target_percent),
    }


def check_scenario(
    components: Iterable[GradeComponent],
    target_percent: float,
    suggested_scores: Mapping[str, float],
) -> Dict[str, object]:
    """
    Project the final grade if each incomplete component gets the suggested
    percentage.

    suggested_scores: component id -> percentage (0-100) for every
    incomplete component.
    """
    components = list(components)
    incomplete_ids = {c.id for c in components if not c.is_completed}

    unknown = set(suggested_scores) - incomplete_ids
    if unknown:
        raise ValueError(f"Not incomplete components of this course: {sorted(unknown)}")

    missing = incomplete_ids - set(suggested_scores)
    if missing:
        raise ValueError(f"Missing suggested scores for: {sorted(missing)}")

    projected = [
        replace(
            c,
            score=float(suggested_scores[c.id]) / 100.0 * c.max_score,
            is_completed=True,
        )
        if c.id in incomplete_ids
        else c
        for c in components
    ]

    final_grade = compute_current_grade(projected)
    if final_grade is None:
        meets_target = False
        delta = None
    else:
        meets_target = final_grade >= target_percent
        delta = final_grade - target_percent

    return {
        "final_grade": final_grade,
        "final_letter": letter_grade(final_grade),
        "target_grade": target_percent,
        "meets_target": meets_target,
        "delta_to_target": delta,
    }
