import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# ------------------------
# Defaults
# ------------------------

DEFAULT_TARGET_GRADE = 90.0
DEFAULT_MAX_SCORE = 100.0
DEFAULT_COMPONENT_WEIGHT = 10.0

MAX_NAME_LENGTH = 100

# required average above this is flagged as challenging
CHALLENGING_THRESHOLD = 90.0
# ahead of target and needing less than this on the rest counts as exceeding
EXCEEDING_THRESHOLD = 70.0
# required average below this earns the "good position" note
COMFORTABLE_THRESHOLD = 50.0
# weight totals this close to 100 count as fully allocated
WEIGHT_TOTAL_TOLERANCE = 1e-9

GRADE_PRESETS = {
    "A": 93.0,
    "B": 83.0,
    "C": 73.0,
    "D": 63.0,
    "Pass": 60.0,
}

STORAGE_KEYS = {
    "courses": "gradeCompass_courses",
    "active_course_id": "gradeCompass_activeCourseId",
}

ENV_DATA_FILE = "GRADE_COMPASS_DATA_FILE"
ENV_LOG_LEVEL = "GRADE_COMPASS_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    data_file: Optional[Path] = None
    log_level: str = "WARNING"


def load_settings(environ=None) -> Settings:
    """
    Build Settings from environment variables.

    GRADE_COMPASS_DATA_FILE: path of the JSON file courses are kept in.
        Unset means courses only live for the browser session.
    GRADE_COMPASS_LOG_LEVEL: standard logging level name (default WARNING).
    """
    env = os.environ if environ is None else environ

    raw_path = env.get(ENV_DATA_FILE, "").strip()
    data_file = Path(raw_path).expanduser() if raw_path else None

    level = env.get(ENV_LOG_LEVEL, "WARNING").strip().upper() or "WARNING"
    if not isinstance(logging.getLevelName(level), int):
        level = "WARNING"

    return Settings(data_file=data_file, log_level=level)


def configure_logging(level: str = "WARNING") -> logging.Logger:
    root = logging.getLogger("grade_compass")
    root.setLevel(level)
    # Streamlit reruns the script on every interaction; only attach once
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    return root
