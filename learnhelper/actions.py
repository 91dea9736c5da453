"""
Events understood by the reducer, and the reducer itself.

    new_state = reduce(old_state, action)

User actions (SetRead, SetStarred, ...) and fetch results (UpdateCourses,
UpdateContent, ...) go through the same entry point.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Tuple

from learnhelper import state as st
from learnhelper.model import ContentType, Course, DataState, Semester


@dataclass(frozen=True)
class SetRead:
    category: ContentType
    id: str
    value: bool = True


@dataclass(frozen=True)
class SetStarred:
    category: ContentType
    id: str
    value: bool = True


@dataclass(frozen=True)
class SetIgnored:
    category: ContentType
    id: str
    value: bool = True


@dataclass(frozen=True)
class MarkAllRead:
    pass


@dataclass(frozen=True)
class ToggleCourseIgnore:
    course_id: str
    category: ContentType
    value: bool


@dataclass(frozen=True)
class ResetIgnore:
    pass


@dataclass(frozen=True)
class UpdateSemesterList:
    semesters: Tuple[str, ...]


@dataclass(frozen=True)
class NewSemester:
    semester: Semester


@dataclass(frozen=True)
class InsistSemester:
    insist: bool


@dataclass(frozen=True)
class SwitchSemester:
    semester: Semester


@dataclass(frozen=True)
class UpdateCourses:
    courses: Tuple[Course, ...]


@dataclass(frozen=True)
class UpdateContent:
    category: ContentType
    content: Mapping[str, Sequence[Mapping[str, Any]]]
    now: Optional[datetime] = None


@dataclass(frozen=True)
class UpdateFinished:
    pass


@dataclass(frozen=True)
class ClearAllData:
    pass


@dataclass(frozen=True)
class ClearFetchedData:
    pass


def reduce(state: DataState, action: Any) -> DataState:
    """
    Apply one action to `state` and return the new state.
    Raises TypeError for objects that are not actions.
    """
    if isinstance(action, SetRead):
        return st.set_read(state, action.category, action.id, action.value)
    if isinstance(action, SetStarred):
        return st.set_starred(state, action.category, action.id, action.value)
    if isinstance(action, SetIgnored):
        return st.set_ignored(state, action.category, action.id, action.value)
    if isinstance(action, MarkAllRead):
        return st.mark_all_read(state)
    if isinstance(action, ToggleCourseIgnore):
        return st.toggle_content_ignore(state, action.course_id, action.category, action.value)
    if isinstance(action, ResetIgnore):
        return st.reset_content_ignore(state)

    if isinstance(action, UpdateSemesterList):
        return st.set_semester_list(state, action.semesters)
    if isinstance(action, NewSemester):
        return st.set_fetched_semester(state, action.semester)
    if isinstance(action, InsistSemester):
        return st.set_insist_semester(state, action.insist)
    if isinstance(action, SwitchSemester):
        return st.switch_semester(state, action.semester)

    if isinstance(action, UpdateCourses):
        return st.update_courses(state, action.courses)
    if isinstance(action, UpdateContent):
        return st.update_content(state, action.category, action.content, now=action.now)
    if isinstance(action, UpdateFinished):
        return st.finish_update(state)

    if isinstance(action, ClearAllData):
        return st.clear_all_data(state)
    if isinstance(action, ClearFetchedData):
        return st.clear_fetched_data(state)

    raise TypeError(f"Unknown action: {action!r}")
