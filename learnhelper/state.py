"""
Aggregate state transitions.

Each function takes the current DataState and returns a new one. The host
(CLI, refresh loop, ...) owns the single current snapshot and replaces it
after every call.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Optional, Sequence

from learnhelper import courses as course_sync
from learnhelper import toggle
from learnhelper.model import (
    EPOCH,
    ContentType,
    Course,
    DataState,
    Semester,
    empty_stores,
    initial_state,
)
from learnhelper.reconcile import RawRecord, reconcile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Semester lifecycle
# ---------------------------------------------------------------------------


def set_semester_list(state: DataState, semesters: Iterable[str]) -> DataState:
    return replace(state, semesters=tuple(semesters))


def set_fetched_semester(state: DataState, semester: Semester) -> DataState:
    # only remembered; switching is a separate decision
    return replace(state, fetched_semester=semester)


def set_insist_semester(state: DataState, insist: bool) -> DataState:
    return replace(state, insist_semester=bool(insist))


def switch_semester(state: DataState, semester: Semester) -> DataState:
    """
    Hard reset to a new semester. Only the semester list and the
    fetched semester survive.
    """
    logger.info("switching semester %r -> %r", state.semester.id, semester.id)
    return replace(
        initial_state(),
        semesters=state.semesters,
        fetched_semester=state.fetched_semester,
        semester=semester,
    )


def clear_all_data(state: DataState) -> DataState:
    return initial_state()


def clear_fetched_data(state: DataState) -> DataState:
    """
    Drop courses and content, keep configuration (semesters, ignore table,
    insist flag).
    """
    return replace(
        state,
        courses={},
        stores=empty_stores(),
        last_update_time=EPOCH,
    )


# ---------------------------------------------------------------------------
# Fetched data
# ---------------------------------------------------------------------------


def update_courses(state: DataState, fetched_courses: Iterable[Course]) -> DataState:
    courses, ignore = course_sync.sync_courses(state.content_ignore, fetched_courses)
    return replace(state, courses=courses, content_ignore=ignore)


def update_content(
    state: DataState,
    category: ContentType,
    fetched_by_course: Mapping[str, Sequence[RawRecord]],
    now: Optional[datetime] = None,
) -> DataState:
    """
    Reconcile one category. Raises CourseNotFoundError (state untouched)
    when content references an unknown course.
    """
    category = ContentType(category)
    store = reconcile(state.store(category), fetched_by_course, state.courses, category)
    stores = dict(state.stores)
    stores[category] = store
    return replace(
        state,
        stores=stores,
        last_update_time=now if now is not None else datetime.now(timezone.utc),
        update_finished=False,
    )


def finish_update(state: DataState) -> DataState:
    return replace(state, update_finished=True)


def needs_refresh(state: DataState, now: datetime, interval: timedelta) -> bool:
    """
    True when the last refresh did not finish or is older than `interval`.
    """
    if not state.update_finished:
        return True
    return now - state.last_update_time >= interval


# ---------------------------------------------------------------------------
# Ignore settings
# ---------------------------------------------------------------------------


def toggle_content_ignore(state: DataState, course_id: str, category: ContentType, value: bool) -> DataState:
    ignore = course_sync.set_course_ignore(state.content_ignore, course_id, category, value)
    return replace(state, content_ignore=ignore, update_finished=False)


def reset_content_ignore(state: DataState) -> DataState:
    ignore = course_sync.reset_ignore_settings(state.courses)
    return replace(state, content_ignore=ignore, update_finished=False)


# ---------------------------------------------------------------------------
# Per-record flags
# ---------------------------------------------------------------------------


def _replace_store(state: DataState, category: ContentType, store) -> DataState:
    stores = dict(state.stores)
    stores[ContentType(category)] = store
    return replace(state, stores=stores)


def set_read(state: DataState, category: ContentType, content_id: str, value: bool) -> DataState:
    return _replace_store(state, category, toggle.set_read(state.store(category), content_id, value))


def set_starred(state: DataState, category: ContentType, content_id: str, value: bool) -> DataState:
    return _replace_store(state, category, toggle.set_starred(state.store(category), content_id, value))


def set_ignored(state: DataState, category: ContentType, content_id: str, value: bool) -> DataState:
    return _replace_store(state, category, toggle.set_ignored(state.store(category), content_id, value))


def mark_all_read(state: DataState) -> DataState:
    return replace(state, stores={t: toggle.mark_all_read(s) for t, s in state.stores.items()})
