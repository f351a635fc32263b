import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional

from grade_compass.config import DEFAULT_MAX_SCORE, DEFAULT_TARGET_GRADE


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GradeComponent:
    """
    A single weighted, scorable part of a course grade (an exam, a lab, ...).

    weight     -> percentage points this component contributes to the course
    score      -> achieved score, None while ungraded
    max_score  -> denominator used to normalise score
    is_completed -> kept in sync with score by record_score / clear_score
    """
    id: str
    name: str
    weight: float
    score: Optional[float] = None
    max_score: float = DEFAULT_MAX_SCORE
    is_completed: bool = False

    @property
    def counts_towards_grade(self) -> bool:
        return self.is_completed and self.score is not None

    @property
    def percentage(self) -> Optional[float]:
        if self.score is None or not self.max_score:
            return None
        return self.score / self.max_score * 100.0

    def record_score(self, score: float) -> "GradeComponent":
        return replace(self, score=float(score), is_completed=True)

    def clear_score(self) -> "GradeComponent":
        return replace(self, score=None, is_completed=False)


@dataclass
class Course:
    id: str
    name: str
    components: List[GradeComponent] = field(default_factory=list)
    target_grade: float = DEFAULT_TARGET_GRADE
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


def create_component(name: str, weight: float) -> GradeComponent:
    return GradeComponent(
        id=new_id(),
        name=name,
        weight=float(weight),
        score=None,
        max_score=DEFAULT_MAX_SCORE,
        is_completed=False,
    )


def create_course(name: str) -> Course:
    now = utc_now()
    return Course(
        id=new_id(),
        name=name,
        components=[],
        target_grade=DEFAULT_TARGET_GRADE,
        created_at=now,
        updated_at=now,
    )
