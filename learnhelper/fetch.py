"""
Snapshot retrieval.

Reads one snapshot document (semester, course list, per-course content) from
a local JSON file or over HTTP and decodes it into typed values for the
refresh cycle. No retries: a failed fetch raises SnapshotError.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests

from learnhelper.errors import SnapshotError
from learnhelper.model import (
    EPOCH,
    TIME_FIELDS,
    ContentType,
    Course,
    Semester,
    SemesterType,
    parse_time,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Snapshot type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Snapshot:
    """
    Everything one fetch from the learning platform returned.

    content: category -> course id -> list of raw records (time fields decoded)
    """

    semesters: Tuple[str, ...]
    semester: Semester
    courses: Tuple[Course, ...]
    content: Dict[ContentType, Dict[str, List[Dict[str, Any]]]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _semester_from_dict(data: Mapping[str, Any]) -> Semester:
    try:
        return Semester(
            id=str(data["id"]),
            start_date=parse_time(data.get("start_date")) or EPOCH,
            end_date=parse_time(data.get("end_date")) or EPOCH,
            start_year=int(data.get("start_year", 0)),
            end_year=int(data.get("end_year", 0)),
            type=SemesterType(data.get("type", SemesterType.UNKNOWN.value)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"Invalid semester: {e}") from e


def _course_from_dict(data: Mapping[str, Any]) -> Course:
    cid = str(data.get("id", "")).strip()
    if not cid:
        raise SnapshotError("Course without id")
    return Course(
        id=cid,
        name=str(data.get("name", "")),
        english_name=str(data.get("english_name", "") or ""),
        teacher_name=str(data.get("teacher_name", "") or ""),
        course_number=str(data.get("course_number", "") or ""),
    )


def _decode_record(raw: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise SnapshotError(f"Content record must be an object, got {raw!r}")
    out = dict(raw)
    for key in TIME_FIELDS & out.keys():
        try:
            out[key] = parse_time(out[key])
        except ValueError as e:
            raise SnapshotError(f"Invalid {key} in record {raw.get('id')!r}: {e}") from e
    return out


def snapshot_from_dict(data: Mapping[str, Any]) -> Snapshot:
    """
    Decode and validate a snapshot document:

        {"semesters": [...], "semester": {...}, "courses": [...],
         "content": {"<category>": {"<course id>": [record, ...]}}}
    """
    if not isinstance(data, Mapping):
        raise SnapshotError("Snapshot must be a JSON object")

    semesters = data.get("semesters", [])
    if not isinstance(semesters, list):
        raise SnapshotError("'semesters' must be a list")

    if "semester" not in data:
        raise SnapshotError("Missing 'semester'")
    semester = _semester_from_dict(data["semester"])

    courses_raw = data.get("courses", [])
    if not isinstance(courses_raw, list):
        raise SnapshotError("'courses' must be a list")
    courses = tuple(_course_from_dict(c) for c in courses_raw)

    content: Dict[ContentType, Dict[str, List[Dict[str, Any]]]] = {}
    content_raw = data.get("content", {})
    if not isinstance(content_raw, Mapping):
        raise SnapshotError("'content' must be an object")
    for key, by_course in content_raw.items():
        try:
            category = ContentType(key)
        except ValueError as e:
            raise SnapshotError(f"Unknown content category: {key!r}") from e
        if not isinstance(by_course, Mapping):
            raise SnapshotError(f"'content.{key}' must be an object")
        content[category] = {
            str(cid): [_decode_record(r) for r in records] for cid, records in by_course.items()
        }

    return Snapshot(
        semesters=tuple(str(s) for s in semesters),
        semester=semester,
        courses=courses,
        content=content,
    )


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def load_snapshot(path: str | Path) -> Snapshot:
    """
    Read a snapshot document from a local JSON file.
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotError(f"Cannot read snapshot {p}: {e}") from e
    return snapshot_from_dict(data)


def fetch_snapshot(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> Snapshot:
    """
    Download a snapshot document over HTTP. No retries.
    """
    http = session or requests.Session()
    logger.info("fetching snapshot from %s", url)
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        raise SnapshotError(f"Fetching {url} failed: {e}") from e
    except ValueError as e:
        raise SnapshotError(f"Response from {url} is not JSON: {e}") from e
    return snapshot_from_dict(data)


def get_snapshot(source: str, session: Optional[requests.Session] = None) -> Snapshot:
    """
    Fetch from an http(s) URL, otherwise read `source` as a file path.
    """
    if source.startswith(("http://", "https://")):
        return fetch_snapshot(source, session=session)
    return load_snapshot(source)
