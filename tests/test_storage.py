"""
Unit tests for persistence of the aggregate state.

Storage contract:
- missing file -> initial state
- broken file -> initial state, ALL_CLEARED
- older version -> settings only, FETCHED_CLEARED
- current version -> lossless round trip
"""

import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from learnhelper import state as st
from learnhelper.model import ContentType, Course, Semester, SemesterType, initial_state
from learnhelper.storage import STORAGE_VERSION, Migration, load_state, save_state, state_to_dict

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 3, 1, tzinfo=timezone.utc)
S2 = Semester("2025-2026-2", T1 - timedelta(days=10), T1 + timedelta(days=120), 2025, 2026, SemesterType.SPRING)


def _state():
    s = st.set_semester_list(initial_state(), ["2025-2026-1", "2025-2026-2"])
    s = st.set_fetched_semester(s, S2)
    s = st.switch_semester(s, S2)
    s = st.update_courses(s, [Course("c1", "Linear Algebra", english_name="Linear Algebra I")])
    s = st.update_content(
        s,
        ContentType.HOMEWORK,
        {"c1": [{"id": "h1", "title": "HW 1", "deadline": T1, "grade_time": T1, "grade": 95, "tags": ["a"]}]},
        now=NOW,
    )
    s = st.update_content(s, ContentType.NOTIFICATION, {"c1": [{"id": "n1", "publish_time": None}]}, now=NOW)
    s = st.set_starred(s, ContentType.HOMEWORK, "h1", True)
    s = st.toggle_content_ignore(s, "c1", ContentType.FILE, True)
    s = st.set_insist_semester(s, True)
    return st.finish_update(s)


class TestStorage(unittest.TestCase):
    def test_load_missing_file_returns_initial_state(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            result = load_state(Path(d) / "missing.json")
            self.assertEqual(result.state, initial_state())
            self.assertEqual(result.migration, Migration.NONE)

    def test_save_and_load_roundtrip(self) -> None:
        s = _state()
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "state.json"
            save_state(s, p)
            result = load_state(p)

            self.assertEqual(result.migration, Migration.NONE)
            self.assertEqual(result.state, s)

            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertEqual(data["version"], STORAGE_VERSION)
            self.assertEqual(data["data"]["content_ignore"]["c1"]["file"], True)

    def test_corrupt_file_clears_everything(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            p.write_text("{{{", encoding="utf-8")
            result = load_state(p)
            self.assertEqual(result.state, initial_state())
            self.assertEqual(result.migration, Migration.ALL_CLEARED)

            p.write_text(json.dumps({"version": STORAGE_VERSION, "data": {"semester": {}}}), encoding="utf-8")
            self.assertEqual(load_state(p).migration, Migration.ALL_CLEARED)

    def test_old_version_keeps_settings_only(self) -> None:
        s = _state()
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "state.json"
            p.write_text(json.dumps({"version": 1, "data": state_to_dict(s)}), encoding="utf-8")
            result = load_state(p)

        self.assertEqual(result.migration, Migration.FETCHED_CLEARED)
        self.assertEqual(result.state.semester, S2)
        self.assertTrue(result.state.insist_semester)
        self.assertTrue(result.state.content_ignore["c1"][ContentType.FILE])
        self.assertEqual(result.state.courses, {})
        self.assertEqual(result.state.store(ContentType.HOMEWORK), {})


if __name__ == "__main__":
    unittest.main()
