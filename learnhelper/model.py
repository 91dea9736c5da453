"""
Central data model definitions used across the project.

This module defines the canonical structure of courses, semesters, content
records and the aggregate state so that:
- the fetch, reconcile, toggle and storage layers share the same field names
- every snapshot is immutable (frozen dataclasses, dicts never mutated)
- a state transition is always "old snapshot in, new snapshot out"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ContentType(str, Enum):
    NOTIFICATION = "notification"
    FILE = "file"
    HOMEWORK = "homework"
    DISCUSSION = "discussion"
    QUESTION = "question"

    @classmethod
    def all(cls) -> Tuple["ContentType", ...]:
        return (cls.NOTIFICATION, cls.FILE, cls.HOMEWORK, cls.DISCUSSION, cls.QUESTION)


class SemesterType(str, Enum):
    FALL = "fall"
    SPRING = "spring"
    SUMMER = "summer"
    UNKNOWN = "unknown"


# Primary timestamp of each category; a change in it marks the item as updated.
DATE_KEYS: Dict[ContentType, str] = {
    ContentType.NOTIFICATION: "publish_time",
    ContentType.FILE: "upload_time",
    ContentType.HOMEWORK: "deadline",
    ContentType.DISCUSSION: "publish_time",
    ContentType.QUESTION: "publish_time",
}

TIME_FIELDS = frozenset(
    {
        "publish_time",
        "upload_time",
        "deadline",
        "grade_time",
        "submit_time",
        "last_reply_time",
        "create_time",
        "expire_time",
        "late_submission_deadline",
    }
)


def parse_time(value: Any) -> Optional[datetime]:
    """
    Convert an ISO-8601 string or datetime into an aware datetime.

    Naive values are taken as UTC. None and "" give None.
    Raises ValueError for anything else.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    else:
        raise ValueError(f"Invalid time value: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class Semester:
    """
    One academic term, e.g. id "2025-2026-1".
    """

    id: str
    start_date: datetime
    end_date: datetime
    start_year: int
    end_year: int
    type: SemesterType = SemesterType.UNKNOWN

    @property
    def is_set(self) -> bool:
        return bool(self.id)


SEMESTER_PLACEHOLDER = Semester(
    id="",
    start_date=EPOCH,
    end_date=EPOCH,
    start_year=0,
    end_year=0,
    type=SemesterType.UNKNOWN,
)


@dataclass(frozen=True)
class Course:
    """
    Represents one course of the current semester as reported upstream.
    """

    id: str
    name: str
    english_name: str = ""
    teacher_name: str = ""
    course_number: str = ""


@dataclass(frozen=True)
class ContentRecord:
    """
    One item of course content (notification, file, homework, ...).

    `fields` carries every category-specific field of the fetched record
    unchanged; `date` is a copy of the category's primary timestamp.
    """

    id: str
    course_id: str
    course_name: str
    category: ContentType
    date: Optional[datetime]
    has_read: bool = False
    starred: bool = False
    ignored: bool = False
    title: str = ""
    fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def grade_time(self) -> Optional[datetime]:
        return self.fields.get("grade_time")


Store = Dict[str, ContentRecord]
IgnoreTable = Dict[str, Dict[ContentType, bool]]


def ignore_unset_all() -> Dict[ContentType, bool]:
    """Return a fresh per-category ignore map with every category unset."""
    return {t: False for t in ContentType.all()}


def empty_stores() -> Dict[ContentType, Store]:
    return {t: {} for t in ContentType.all()}


@dataclass(frozen=True)
class DataState:
    """
    The whole aggregate: semester markers, course registry, ignore settings
    and one content store per category.
    """

    semesters: Tuple[str, ...] = ()
    semester: Semester = SEMESTER_PLACEHOLDER
    fetched_semester: Semester = SEMESTER_PLACEHOLDER
    insist_semester: bool = False
    courses: Dict[str, Course] = field(default_factory=dict)
    stores: Dict[ContentType, Store] = field(default_factory=empty_stores)
    content_ignore: IgnoreTable = field(default_factory=dict)
    last_update_time: datetime = EPOCH
    update_finished: bool = False

    def store(self, category: ContentType) -> Store:
        return self.stores[ContentType(category)]


def initial_state() -> DataState:
    return DataState()
