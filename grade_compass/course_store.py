"""
Course persistence.

CourseRepository keeps courses in a small string-keyed backend, the same
shape as browser local storage: one key holds the JSON list of courses,
another the id of the active course. Backends only move strings around, so
the app can swap session-only storage for a file without touching the
repository.
"""
import json
import logging
from dataclasses import asdict, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional

from grade_compass.config import STORAGE_KEYS
from grade_compass.models import Course, GradeComponent, create_course, utc_now

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""


class CourseNotFoundError(KeyError):
    pass


# ------------------------
# Serialisation
# ------------------------

def serialize_course(course: Course) -> Dict[str, Any]:
    data = asdict(course)
    data["created_at"] = course.created_at.isoformat()
    data["updated_at"] = course.updated_at.isoformat()
    return data


def deserialize_course(data: Dict[str, Any]) -> Course:
    try:
        return Course(
            id=data["id"],
            name=data["name"],
            components=[GradeComponent(**c) for c in data.get("components", [])],
            target_grade=float(data["target_grade"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError(f"Malformed course record: {e}") from e


# ------------------------
# Backends
# ------------------------

class MemoryBackend:
    def __init__(self, data: Optional[MutableMapping[str, str]] = None) -> None:
        self.data: MutableMapping[str, str] = {} if data is None else data

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SessionStateBackend(MemoryBackend):
    """Keeps values in st.session_state, namespaced under one entry."""

    def __init__(self, session_state: MutableMapping[str, Any], namespace: str = "grade_compass_store") -> None:
        if namespace not in session_state:
            session_state[namespace] = {}
        super().__init__(session_state[namespace])


class JsonFileBackend:
    """All keys stored as one JSON object in a file on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StorageError(f"Data file {self.path} is corrupted: {e}") from e
        except OSError as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Data file {self.path} does not hold a JSON object")
        bad_keys = sorted(k for k, v in data.items() if not isinstance(v, str))
        if bad_keys:
            raise StorageError(f"Data file {self.path} has non-string values for {bad_keys}")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        """Atomic write: temp sibling first, then replace."""
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            try:
                if temp_path.exists():
                    temp_path.unlink()
            except OSError:
                logger.warning("Could not remove temp file %s", temp_path)
            raise StorageError(f"Could not write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


# ------------------------
# Repository
# ------------------------

class CourseRepository:
    def __init__(self, backend) -> None:
        self.backend = backend
        self.courses_key = STORAGE_KEYS["courses"]
        self.active_key = STORAGE_KEYS["active_course_id"]

    def _save(self, courses: List[Course]) -> None:
        self.backend.set(self.courses_key, json.dumps([serialize_course(c) for c in courses]))

    def list_courses(self) -> List[Course]:
        raw = self.backend.get(self.courses_key)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise StorageError(f"Stored courses are not valid JSON: {e}") from e
        if not isinstance(records, list):
            raise StorageError("Stored courses are not a JSON list")
        return [deserialize_course(r) for r in records]

    def get_course(self, course_id: str) -> Course:
        for course in self.list_courses():
            if course.id == course_id:
                return course
        raise CourseNotFoundError(course_id)

    def add_course(self, name: str) -> Course:
        courses = self.list_courses()
        course = create_course(name)
        self._save(courses + [course])

        # first course becomes the active one
        if not courses:
            self.set_active_course_id(course.id)

        logger.debug("Added course %s (%s)", course.name, course.id)
        return course

    def update_course(self, course: Course) -> Course:
        courses = self.list_courses()
        for idx, existing in enumerate(courses):
            if existing.id == course.id:
                updated = replace(course, updated_at=utc_now())
                courses[idx] = updated
                self._save(courses)
                return updated
        raise CourseNotFoundError(course.id)

    def delete_course(self, course_id: str) -> None:
        courses = self.list_courses()
        remaining = [c for c in courses if c.id != course_id]
        if len(remaining) == len(courses):
            raise CourseNotFoundError(course_id)

        if self.get_active_course_id() == course_id:
            self.set_active_course_id(remaining[0].id if remaining else None)

        self._save(remaining)
        logger.debug("Deleted course %s", course_id)

    def get_active_course_id(self) -> Optional[str]:
        raw = self.backend.get(self.active_key)
        if raw is None:
            return None
        try:
            course_id = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise StorageError(f"Stored active course id is not valid JSON: {e}") from e
        if course_id is not None and not isinstance(course_id, str):
            raise StorageError(f"Stored active course id is not a string: {course_id!r}")
        return course_id

    def set_active_course_id(self, course_id: Optional[str]) -> None:
        self.backend.set(self.active_key, json.dumps(course_id))

    def get_active_course(self) -> Optional[Course]:
        course_id = self.get_active_course_id()
        if not course_id:
            return None
        try:
            return self.get_course(course_id)
        except CourseNotFoundError:
            logger.warning("Active course %s no longer exists", course_id)
            return None

    def clear_all(self) -> None:
        self.backend.delete(self.courses_key)
        self.backend.delete(self.active_key)
