import sys
from pathlib import Path

import pytest

# Add project root to sys.path so we can import grade_compass
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from grade_compass.models import GradeComponent  # noqa: E402


# Common test fixtures
@pytest.fixture
def partial_components():
    """Midterm and assignments graded, final and participation still open."""
    return [
        GradeComponent(id="1", name="Midterm", weight=30, score=85, max_score=100, is_completed=True),
        GradeComponent(id="2", name="Final Exam", weight=40, score=None, max_score=100, is_completed=False),
        GradeComponent(id="3", name="Assignments", weight=20, score=90, max_score=100, is_completed=True),
        GradeComponent(id="4", name="Participation", weight=10, score=None, max_score=100, is_completed=False),
    ]


@pytest.fixture
def all_completed_components(partial_components):
    """Same course with 80 filled in for every ungraded component."""
    return [c if c.is_completed else c.record_score(80) for c in partial_components]
