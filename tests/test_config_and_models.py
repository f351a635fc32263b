import logging
from pathlib import Path

import pytest

from grade_compass.config import Settings, configure_logging, load_settings
from grade_compass.models import GradeComponent, create_component, create_course


class TestSettings:

    def test_load_when_env_empty_then_defaults(self):
        assert load_settings({}) == Settings(data_file=None, log_level="WARNING")

    def test_load_when_env_set_then_values_used(self, tmp_path):
        env = {
            "GRADE_COMPASS_DATA_FILE": str(tmp_path / "courses.json"),
            "GRADE_COMPASS_LOG_LEVEL": "debug",
        }
        settings = load_settings(env)
        assert settings.data_file == Path(tmp_path / "courses.json")
        assert settings.log_level == "DEBUG"

    def test_load_when_level_unknown_then_warning(self):
        assert load_settings({"GRADE_COMPASS_LOG_LEVEL": "chatty"}).log_level == "WARNING"

    def test_configure_when_called_twice_then_single_handler(self):
        logger = configure_logging("INFO")
        configure_logging("INFO")
        assert logger.name == "grade_compass"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1


class TestModels:

    def test_create_component_when_called_then_ungraded_defaults(self):
        c = create_component("Essay", 25)
        assert c.score is None
        assert c.is_completed is False
        assert c.max_score == 100.0
        assert c.weight == 25.0
        assert c.id

    def test_create_course_when_called_then_empty_with_default_target(self):
        course = create_course("Art")
        assert course.components == []
        assert course.target_grade == 90.0
        assert course.created_at == course.updated_at
        assert course.created_at.tzinfo is not None

    def test_ids_when_created_then_unique(self):
        assert create_component("a", 1).id != create_component("a", 1).id

    def test_record_score_when_called_then_completed_copy(self):
        c = create_component("Quiz", 10)
        graded = c.record_score(8)
        assert graded.is_completed and graded.score == 8.0
        assert c.score is None

    def test_clear_score_when_called_then_back_to_ungraded(self):
        graded = create_component("Quiz", 10).record_score(8)
        cleared = graded.clear_score()
        assert cleared.score is None and not cleared.is_completed

    def test_percentage_when_scored_then_normalised(self):
        c = GradeComponent(id="x", name="Lab", weight=10, score=15, max_score=20, is_completed=True)
        assert c.percentage == pytest.approx(75.0)

    def test_component_when_frozen_then_immutable(self):
        c = create_component("Quiz", 10)
        with pytest.raises(AttributeError):
            c.weight = 20  # type: ignore
