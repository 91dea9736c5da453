"""
Persistent storage for the aggregate state.

This module manages the file:

    learnhelper/data/state.json   (or a path given by the caller)

File format:

    {"version": 2, "data": {...DataState...}}

Datetimes are stored as ISO-8601 strings. Loading never crashes the
application: a missing file gives the initial state, a broken one gives the
initial state plus a migration flag so the caller can tell the user.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping

from learnhelper.config import default_state_path
from learnhelper.model import (
    EPOCH,
    TIME_FIELDS,
    ContentRecord,
    ContentType,
    Course,
    DataState,
    Semester,
    SemesterType,
    empty_stores,
    initial_state,
    parse_time,
)

logger = logging.getLogger(__name__)

STORAGE_VERSION = 2


class Migration(str, Enum):
    NONE = "none"
    FETCHED_CLEARED = "fetched_cleared"
    ALL_CLEARED = "all_cleared"


@dataclass(frozen=True)
class LoadResult:
    state: DataState
    migration: Migration = Migration.NONE


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode_value(v) for v in value]
    return value


def _encode_semester(s: Semester) -> Dict[str, Any]:
    return _encode_value(asdict(s))


def _encode_record(c: ContentRecord) -> Dict[str, Any]:
    return {
        "id": c.id,
        "course_id": c.course_id,
        "course_name": c.course_name,
        "category": c.category.value,
        "date": _encode_value(c.date),
        "has_read": c.has_read,
        "starred": c.starred,
        "ignored": c.ignored,
        "title": c.title,
        "fields": _encode_value(dict(c.fields)),
    }


def state_to_dict(state: DataState) -> Dict[str, Any]:
    return {
        "semesters": list(state.semesters),
        "semester": _encode_semester(state.semester),
        "fetched_semester": _encode_semester(state.fetched_semester),
        "insist_semester": state.insist_semester,
        "courses": [asdict(c) for c in state.courses.values()],
        "stores": {t.value: [_encode_record(c) for c in s.values()] for t, s in state.stores.items()},
        "content_ignore": {
            cid: {t.value: bool(v) for t, v in m.items()} for cid, m in state.content_ignore.items()
        },
        "last_update_time": state.last_update_time.isoformat(),
        "update_finished": state.update_finished,
    }


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_semester(data: Mapping[str, Any]) -> Semester:
    return Semester(
        id=str(data["id"]),
        start_date=parse_time(data.get("start_date")) or EPOCH,
        end_date=parse_time(data.get("end_date")) or EPOCH,
        start_year=int(data.get("start_year", 0)),
        end_year=int(data.get("end_year", 0)),
        type=SemesterType(data.get("type", SemesterType.UNKNOWN.value)),
    )


def _decode_record(data: Mapping[str, Any]) -> ContentRecord:
    fields = dict(data.get("fields", {}))
    for key in TIME_FIELDS & fields.keys():
        fields[key] = parse_time(fields[key])
    return ContentRecord(
        id=str(data["id"]),
        course_id=str(data["course_id"]),
        course_name=str(data.get("course_name", "")),
        category=ContentType(data["category"]),
        date=parse_time(data.get("date")),
        has_read=bool(data.get("has_read", False)),
        starred=bool(data.get("starred", False)),
        ignored=bool(data.get("ignored", False)),
        title=str(data.get("title", "")),
        fields=fields,
    )


def _config_from_dict(data: Mapping[str, Any]) -> DataState:
    """
    Only the user configuration: semester markers, insist flag, ignore table.
    """
    return DataState(
        semesters=tuple(str(s) for s in data.get("semesters", [])),
        semester=_decode_semester(data["semester"]),
        fetched_semester=_decode_semester(data["fetched_semester"]),
        insist_semester=bool(data.get("insist_semester", False)),
        content_ignore={
            str(cid): {ContentType(k): bool(v) for k, v in m.items()}
            for cid, m in data.get("content_ignore", {}).items()
        },
    )


def state_from_dict(data: Mapping[str, Any]) -> DataState:
    config = _config_from_dict(data)

    courses: Dict[str, Course] = {}
    for c in data.get("courses", []):
        course = Course(**c)
        courses[course.id] = course

    stores = empty_stores()
    for key, records in data.get("stores", {}).items():
        category = ContentType(key)
        for r in records:
            record = _decode_record(r)
            stores[category][record.id] = record

    return DataState(
        semesters=config.semesters,
        semester=config.semester,
        fetched_semester=config.fetched_semester,
        insist_semester=config.insist_semester,
        courses=courses,
        stores=stores,
        content_ignore=config.content_ignore,
        last_update_time=parse_time(data.get("last_update_time")) or EPOCH,
        update_finished=bool(data.get("update_finished", False)),
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def load_state(path: str | Path | None = None) -> LoadResult:
    """
    Load the aggregate state from disk.

    - missing file            -> initial state, Migration.NONE
    - unreadable / corrupt    -> initial state, Migration.ALL_CLEARED
    - older storage version   -> configuration only, Migration.FETCHED_CLEARED
    """
    state_path = Path(path) if path is not None else default_state_path()

    # First run: nothing stored yet
    if not state_path.exists():
        return LoadResult(initial_state())

    try:
        payload = json.loads(state_path.read_text(encoding="utf-8"))
        version = int(payload.get("version", 0))
        data = payload["data"]
        if version == STORAGE_VERSION:
            return LoadResult(state_from_dict(data))
        if 0 < version < STORAGE_VERSION:
            logger.info("state file version %d is outdated, dropping fetched data", version)
            return LoadResult(_config_from_dict(data), Migration.FETCHED_CLEARED)
        logger.warning("unsupported state file version %r in %s", version, state_path)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("cannot read state file %s: %s", state_path, e)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("corrupt state file %s: %s", state_path, e)
    return LoadResult(initial_state(), Migration.ALL_CLEARED)


def save_state(state: DataState, path: str | Path | None = None) -> None:
    """
    Save the aggregate state as JSON. Creates parent directories if needed.
    """
    state_path = Path(path) if path is not None else default_state_path()
    state_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {"version": STORAGE_VERSION, "data": state_to_dict(state)}
    state_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
