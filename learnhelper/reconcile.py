"""
Content reconciliation.

Merges a freshly fetched batch of one category against the stored records.

Rules:
- the fetch is the full truth: ids not fetched are dropped
- a record counts as updated when it is new or its change predicate fires
- an updated record goes back to unread; starred/ignored always survive
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from learnhelper.errors import CourseNotFoundError, InvalidRecordError
from learnhelper.model import DATE_KEYS, ContentRecord, ContentType, Course, Store

logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]
ChangePredicate = Callable[[ContentRecord, RawRecord, ContentType], bool]

# keys that are stored on ContentRecord itself rather than in `fields`
_RECORD_KEYS = ("id", "course_id", "title")


def _timestamp_changed(old: ContentRecord, fetched: RawRecord, category: ContentType) -> bool:
    # two missing timestamps compare equal
    return fetched.get(DATE_KEYS[category]) != old.date


def _homework_changed(old: ContentRecord, fetched: RawRecord, category: ContentType) -> bool:
    if _timestamp_changed(old, fetched, category):
        return True
    old_grade = old.grade_time
    new_grade = fetched.get("grade_time")
    if new_grade is not None and old_grade is None:
        # newly graded
        return True
    if new_grade is not None and old_grade is not None and new_grade != old_grade:
        # re-graded
        return True
    return False


CHANGE_PREDICATES: Dict[ContentType, ChangePredicate] = {
    ContentType.NOTIFICATION: _timestamp_changed,
    ContentType.FILE: _timestamp_changed,
    ContentType.HOMEWORK: _homework_changed,
    ContentType.DISCUSSION: _timestamp_changed,
    ContentType.QUESTION: _timestamp_changed,
}


def record_changed(old: Optional[ContentRecord], fetched: RawRecord, category: ContentType) -> bool:
    """
    Decide whether a fetched record counts as updated compared to `old`.
    """
    if old is None:
        return True
    category = ContentType(category)
    return CHANGE_PREDICATES[category](old, fetched, category)


def _merge(
    old: Optional[ContentRecord],
    fetched: RawRecord,
    course_id: str,
    course_name: str,
    category: ContentType,
) -> ContentRecord:
    updated = record_changed(old, fetched, category)
    fields = {k: v for k, v in fetched.items() if k not in _RECORD_KEYS}
    return ContentRecord(
        id=str(fetched["id"]),
        course_id=course_id,
        course_name=course_name,
        category=category,
        date=fetched.get(DATE_KEYS[category]),
        has_read=False if old is None else (not updated and old.has_read),
        starred=False if old is None else old.starred,
        ignored=False if old is None else old.ignored,
        title=str(fetched.get("title") or ""),
        fields=fields,
    )


def reconcile(
    old_store: Mapping[str, ContentRecord],
    fetched_by_course: Mapping[str, Sequence[RawRecord]],
    courses: Mapping[str, Course],
    category: ContentType,
) -> Store:
    """
    Merge `fetched_by_course` (course id -> raw records) into a new store.

    Raises CourseNotFoundError if a course id is missing from `courses`;
    in that case no store is produced at all.
    """
    category = ContentType(category)
    result: Store = {}

    for course_id, records in fetched_by_course.items():
        course = courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id, category.value)

        for raw in records:
            if not raw.get("id"):
                raise InvalidRecordError(f"{category.value} record without id in course {course_id!r}")
            old = old_store.get(str(raw["id"]))
            merged = _merge(old, raw, course_id, course.name, category)
            result[merged.id] = merged

    # counted on the final store: an id fetched under two courses counts once
    new_count = sum(1 for k in result if k not in old_store)
    updated_count = sum(1 for k, c in result.items() if k in old_store and old_store[k].has_read and not c.has_read)
    dropped = sum(1 for k in old_store if k not in result)
    logger.debug(
        "reconciled %s: %d items (%d new, %d marked unread, %d dropped)",
        category.value,
        len(result),
        new_count,
        updated_count,
        dropped,
    )
    return result
