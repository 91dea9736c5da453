"""
Tests for CLI entry points.

These tests focus on:
- basic argument validation
- a refresh -> flag -> list round trip against a temporary state file
  (never touching the real state.json)
"""

import contextlib
import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from learnhelper.cli import main
from learnhelper.model import ContentType
from learnhelper.storage import load_state

SNAPSHOT = {
    "semesters": ["2025-2026-2"],
    "semester": {
        "id": "2025-2026-2",
        "start_date": "2026-02-23T00:00:00+08:00",
        "end_date": "2026-06-28T00:00:00+08:00",
        "start_year": 2025,
        "end_year": 2026,
        "type": "spring",
    },
    "courses": [{"id": "c1", "name": "Linear Algebra"}],
    "content": {
        "notification": {"c1": [{"id": "n1", "title": "Welcome", "publish_time": "2026-02-24T09:00:00+08:00"}]},
        "homework": {"c1": [{"id": "h1", "title": "HW 1", "deadline": "2026-03-01T23:59:00+08:00"}]},
    },
}


def _run(argv: list[str]) -> tuple[int, str]:
    out = io.StringIO()
    with contextlib.redirect_stdout(out), mock.patch.dict(os.environ, {}, clear=True):
        try:
            main(argv)
        except SystemExit as e:
            return int(e.code or 0), out.getvalue()
    return 0, out.getvalue()


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        d = Path(self._tmp.name)
        self.state_path = d / "state.json"
        self.snapshot_path = d / "snapshot.json"
        self.snapshot_path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")

    def _cli(self, *args: str) -> tuple[int, str]:
        return _run(["--state", str(self.state_path), *args])

    def test_cli_requires_command(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            code, _ = _run([])
        self.assertNotEqual(code, 0)

    def test_refresh_requires_source(self) -> None:
        code, out = self._cli("refresh")
        self.assertEqual(code, 1)
        self.assertIn("snapshot source", out)
        self.assertFalse(self.state_path.exists())

    def test_refresh_flag_and_list(self) -> None:
        code, out = self._cli("refresh", "--source", str(self.snapshot_path))
        self.assertEqual(code, 0)
        self.assertIn("2 unread", out)

        code, _ = self._cli("read", "homework", "h1")
        self.assertEqual(code, 0)
        code, _ = self._cli("star", "notification", "n1")
        self.assertEqual(code, 0)

        state = load_state(self.state_path).state
        self.assertTrue(state.store(ContentType.HOMEWORK)["h1"].has_read)
        self.assertTrue(state.store(ContentType.NOTIFICATION)["n1"].starred)
        self.assertFalse(state.store(ContentType.NOTIFICATION)["n1"].has_read)

        code, out = self._cli("list", "--unread")
        self.assertEqual(code, 0)
        self.assertIn("n1", out)
        self.assertNotIn("h1", out)

        # a refresh with the same snapshot keeps the read state
        code, _ = self._cli("refresh", "--source", str(self.snapshot_path), "--force")
        self.assertEqual(code, 0)
        state = load_state(self.state_path).state
        self.assertTrue(state.store(ContentType.HOMEWORK)["h1"].has_read)

    def test_recent_refresh_is_skipped(self) -> None:
        self._cli("refresh", "--source", str(self.snapshot_path))
        code, out = self._cli("refresh", "--source", str(self.snapshot_path))
        self.assertEqual(code, 0)
        self.assertIn("Up to date", out)

    def test_unknown_id_and_course(self) -> None:
        self._cli("refresh", "--source", str(self.snapshot_path))
        code, out = self._cli("read", "file", "nope")
        self.assertEqual(code, 1)
        self.assertIn("Not found", out)

        code, out = self._cli("ignore-course", "c9", "file")
        self.assertEqual(code, 1)

    def test_ignore_course_hides_content(self) -> None:
        self._cli("refresh", "--source", str(self.snapshot_path))
        code, _ = self._cli("ignore-course", "c1", "homework")
        self.assertEqual(code, 0)

        _, out = self._cli("list")
        self.assertNotIn("h1", out)
        _, out = self._cli("list", "--all")
        self.assertIn("h1", out)

    def test_broken_snapshot_keeps_state(self) -> None:
        self.snapshot_path.write_text("{broken", encoding="utf-8")
        code, out = self._cli("refresh", "--source", str(self.snapshot_path))
        self.assertEqual(code, 1)
        self.assertIn("Error", out)
        self.assertFalse(self.state_path.exists())

    def test_clear_fetched_keeps_semester(self) -> None:
        self._cli("refresh", "--source", str(self.snapshot_path))
        code, _ = self._cli("clear", "--fetched")
        self.assertEqual(code, 0)
        state = load_state(self.state_path).state
        self.assertEqual(state.courses, {})
        self.assertEqual(state.semester.id, "2025-2026-2")


if __name__ == "__main__":
    unittest.main()
