"""
Unit tests for the full refresh cycle (sync courses first, then every category).
"""

import unittest
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from learnhelper import state as st
from learnhelper.errors import CourseNotFoundError
from learnhelper.fetch import Snapshot
from learnhelper.model import ContentType, Course, Semester, SemesterType, initial_state
from learnhelper.refresh import refresh

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 3, 1, tzinfo=timezone.utc)

S1 = Semester("2025-2026-1", T1 - timedelta(days=180), T1 - timedelta(days=60), 2025, 2026, SemesterType.FALL)
S2 = Semester("2025-2026-2", T1 - timedelta(days=10), T1 + timedelta(days=120), 2025, 2026, SemesterType.SPRING)


def _snapshot(semester: Semester = S2, **content) -> Snapshot:
    return Snapshot(
        semesters=(S1.id, S2.id),
        semester=semester,
        courses=(Course("c2", "Physics"), Course("c1", "Linear Algebra")),
        content={ContentType(k): v for k, v in content.items()},
    )


class TestRefresh(unittest.TestCase):
    def test_first_refresh_sets_semester_and_content(self) -> None:
        snap = _snapshot(
            notification={"c1": [{"id": "n1", "publish_time": T1}]},
            homework={"c2": [{"id": "h1", "deadline": T1}]},
        )
        s = refresh(initial_state(), snap, now=NOW)

        self.assertEqual(s.semester, S2)
        self.assertEqual(s.fetched_semester, S2)
        self.assertEqual(s.semesters, (S1.id, S2.id))
        self.assertEqual(list(s.courses), ["c1", "c2"])
        self.assertEqual(set(s.content_ignore), {"c1", "c2"})
        self.assertEqual(s.store(ContentType.NOTIFICATION)["n1"].course_name, "Linear Algebra")
        self.assertEqual(s.store(ContentType.HOMEWORK)["h1"].course_name, "Physics")
        self.assertEqual(s.store(ContentType.FILE), {})
        self.assertTrue(s.update_finished)
        self.assertEqual(s.last_update_time, NOW)

    def test_second_refresh_keeps_user_state(self) -> None:
        snap = _snapshot(notification={"c1": [{"id": "n1", "publish_time": T1}]})
        s = refresh(initial_state(), snap, now=NOW)
        s = st.set_read(s, ContentType.NOTIFICATION, "n1", True)
        s = st.set_starred(s, ContentType.NOTIFICATION, "n1", True)

        s = refresh(s, snap, now=NOW + timedelta(hours=1))
        rec = s.store(ContentType.NOTIFICATION)["n1"]
        self.assertTrue(rec.has_read)
        self.assertTrue(rec.starred)

    def test_new_platform_semester_switches_when_following(self) -> None:
        s = refresh(initial_state(), _snapshot(S1, file={"c1": [{"id": "f1", "upload_time": T1}]}), now=NOW)
        s = refresh(s, _snapshot(S2), now=NOW)
        self.assertEqual(s.semester, S2)
        self.assertEqual(s.store(ContentType.FILE), {})

    def test_insisted_semester_is_not_switched(self) -> None:
        s = refresh(initial_state(), _snapshot(S1, file={"c1": [{"id": "f1", "upload_time": T1}]}), now=NOW)
        s = st.set_insist_semester(s, True)

        new = refresh(s, _snapshot(S2), now=NOW)

        self.assertEqual(new.semester, S1)
        self.assertEqual(new.fetched_semester, S2)
        # content of the other semester is never merged
        self.assertIn("f1", new.store(ContentType.FILE))

    def test_content_for_unknown_course_propagates(self) -> None:
        snap = _snapshot(question={"c9": [{"id": "q1", "publish_time": T1}]})
        start = initial_state()
        with self.assertRaises(CourseNotFoundError):
            refresh(start, snap, now=NOW)
        self.assertEqual(start, initial_state())

    def test_same_semester_is_not_reset(self) -> None:
        s = refresh(initial_state(), _snapshot(notification={"c1": [{"id": "n1", "publish_time": T1}]}), now=NOW)
        s = st.toggle_content_ignore(s, "c1", ContentType.NOTIFICATION, True)
        s = refresh(s, _snapshot(replace(S2)), now=NOW)
        self.assertTrue(s.content_ignore["c1"][ContentType.NOTIFICATION])


if __name__ == "__main__":
    unittest.main()
