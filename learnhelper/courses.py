"""
Course registry and per-course ignore settings.

Invariant kept by every function here:
    set(ignore table keys) == set(course registry keys)
Courses are always visited in ascending id order so that two runs with the
same input give the same (insertion-ordered) result.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Tuple

from learnhelper.errors import CourseNotFoundError
from learnhelper.model import ContentRecord, ContentType, Course, IgnoreTable, ignore_unset_all


def sync_courses(
    old_ignore: Mapping[str, Mapping[ContentType, bool]],
    fetched_courses: Iterable[Course],
) -> Tuple[Dict[str, Course], IgnoreTable]:
    """
    Rebuild the course registry from the fetched list and align the ignore table.

    - new courses get an all-false ignore map
    - known courses keep their settings
    - dropped courses lose their entry
    """
    courses: Dict[str, Course] = {}
    for c in sorted(fetched_courses, key=lambda c: c.id):
        courses[c.id] = c

    ignore: IgnoreTable = {}
    for cid in courses:
        old = old_ignore.get(cid)
        if old is None:
            ignore[cid] = ignore_unset_all()
        else:
            merged = ignore_unset_all()
            merged.update({ContentType(k): bool(v) for k, v in old.items()})
            ignore[cid] = merged
    return courses, ignore


def reset_ignore_settings(courses: Mapping[str, Course]) -> IgnoreTable:
    """
    Return an ignore table with every category unset for every course.
    """
    return {cid: ignore_unset_all() for cid in sorted(courses)}


def set_course_ignore(
    ignore: Mapping[str, Mapping[ContentType, bool]],
    course_id: str,
    category: ContentType,
    value: bool,
) -> IgnoreTable:
    if course_id not in ignore:
        raise CourseNotFoundError(course_id)
    new_ignore: IgnoreTable = {cid: dict(m) for cid, m in ignore.items()}
    new_ignore[course_id][ContentType(category)] = bool(value)
    return new_ignore


def is_ignored(ignore: Mapping[str, Mapping[ContentType, bool]], record: ContentRecord) -> bool:
    return bool(ignore.get(record.course_id, {}).get(record.category, False))
