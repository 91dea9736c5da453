"""
One full refresh cycle.

Order (DO NOT CHANGE):
1. semester list + fetched semester
2. semester switch if we follow the platform
3. course sync (so content can resolve course names)
4. one reconciliation per category
5. mark the refresh as finished
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from learnhelper import state as st
from learnhelper.fetch import Snapshot
from learnhelper.model import ContentType, DataState

logger = logging.getLogger(__name__)


def should_switch(state: DataState, snapshot: Snapshot) -> bool:
    if snapshot.semester.id == state.semester.id:
        return False
    if not state.semester.is_set:
        return True
    return not state.insist_semester


def refresh(state: DataState, snapshot: Snapshot, now: Optional[datetime] = None) -> DataState:
    """
    Apply a fetched snapshot to `state` and return the new state.

    Any error (e.g. CourseNotFoundError) propagates; the caller keeps the
    state it passed in.
    """
    now = now or datetime.now(timezone.utc)

    new = st.set_semester_list(state, snapshot.semesters)
    new = st.set_fetched_semester(new, snapshot.semester)

    if should_switch(new, snapshot):
        new = st.switch_semester(new, snapshot.semester)
    elif snapshot.semester.id != new.semester.id:
        # insisting on an older semester: the snapshot belongs to another term
        logger.warning(
            "snapshot is for semester %r but %r is insisted on; content not merged",
            snapshot.semester.id,
            new.semester.id,
        )
        return new

    new = st.update_courses(new, snapshot.courses)
    for category in ContentType.all():
        new = st.update_content(new, category, snapshot.content.get(category, {}), now=now)

    new = st.finish_update(new)
    logger.info(
        "refresh finished: %d courses, %s",
        len(new.courses),
        ", ".join(f"{t.value}={len(new.store(t))}" for t in ContentType.all()),
    )
    return new
