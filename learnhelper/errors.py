"""
Exception hierarchy.

None of these is fatal: the caller always keeps the last good snapshot and
can retry the fetch -> sync -> reconcile sequence.
"""

from __future__ import annotations

from typing import Optional


class LearnHelperError(Exception):
    pass


class CourseNotFoundError(LearnHelperError):
    """
    Content references a course id that is not in the course registry.

    Usually means the course list was not synced before reconciling.
    """

    def __init__(self, course_id: str, category: Optional[str] = None) -> None:
        self.course_id = course_id
        self.category = category
        where = f" ({category})" if category else ""
        super().__init__(f"Course not found: {course_id!r}{where}")


class InvalidRecordError(LearnHelperError):
    pass


class SnapshotError(LearnHelperError):
    pass


class ConfigError(LearnHelperError):
    pass
