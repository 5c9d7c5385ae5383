import json
import os
import subprocess
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
PY = os.environ.get("PYTHON", "python3")
FIXTURE = REPO_ROOT / "tests" / "fixtures" / "day_fixture.json"


def _env():
    env = dict(os.environ)
    for k in ("STUDYGRID_FIRST_HOUR", "STUDYGRID_END_HOUR", "STUDYGRID_EXIT_DELAY_MS", "STUDYGRID_OBS_LOG"):
        env.pop(k, None)
    return env


class _ToolCase(unittest.TestCase):
    def _run(self, cmd, **kwargs):
        return subprocess.run(cmd, cwd=str(REPO_ROOT), text=True, capture_output=True, env=_env(), **kwargs)


class TestValidateSnapshotToolContract(_ToolCase):
    def test_fixture_is_valid(self):
        p = self._run([PY, "-m", "studygrid.tools.validate_snapshot", "--in", str(FIXTURE)])
        combined = (p.stdout or "") + "\n" + (p.stderr or "")
        self.assertEqual(p.returncode, 0, combined)
        self.assertIn("[studygrid-validate-snapshot] OK", combined)

    def test_bad_records_fail_with_rc3(self):
        with tempfile.TemporaryDirectory() as td:
            bad = Path(td) / "bad.json"
            bad.write_text(json.dumps([{"id": "2024-01-01-03", "subjectId": "math"}, {"id": "x", "subjectId": ""}]), encoding="utf-8")
            p = self._run([PY, "-m", "studygrid.tools.validate_snapshot", "--in", str(bad)])
            self.assertEqual(p.returncode, 3, p.stderr)
            self.assertIn("FAIL", p.stderr)
            self.assertIn("schedule[0].id hour 3 outside grid [8, 25)", p.stderr)
            self.assertIn("schedule[1].subjectId must be non-empty string", p.stderr)

    def test_first_hour_flag_widens_grid(self):
        with tempfile.TemporaryDirectory() as td:
            early = Path(td) / "early.json"
            early.write_text(json.dumps([{"id": "2024-01-01-06", "subjectId": "math"}]), encoding="utf-8")
            p = self._run([PY, "-m", "studygrid.tools.validate_snapshot", "--in", str(early), "--first-hour", "6"])
            self.assertEqual(p.returncode, 0, p.stderr)

    def test_missing_file_rc2(self):
        p = self._run([PY, "-m", "studygrid.tools.validate_snapshot", "--in", str(REPO_ROOT / "nope.json")])
        self.assertEqual(p.returncode, 2)
        self.assertIn("Missing JSON file", p.stderr)


class TestDayViewToolContract(_ToolCase):
    def test_json_view(self):
        p = self._run([PY, "-m", "studygrid.tools.day_view", "--in", str(FIXTURE), "--date", "2024-01-01", "--json"])
        self.assertEqual(p.returncode, 0, p.stderr)
        out = json.loads(p.stdout)
        self.assertEqual(out["date"], "2024-01-01")
        spans = [(b["start_hour"], b["end_hour"], b["subject_id"]) for b in out["blocks"]]
        self.assertEqual(spans, [(9, 11, "math"), (11, 12, "law"), (14, 15, "law")])
        self.assertEqual(out["blocks"][0]["label"], "09:00-11:00")
        self.assertEqual(out["blocks"][1]["subject_name"], "Civil Law")
        self.assertEqual(out["occupied_hours"], [9, 10, 11, 14])
        # isNew is not carried through a load
        self.assertFalse(any(b["has_entering"] for b in out["blocks"]))

    def test_text_view(self):
        p = self._run([PY, "-m", "studygrid.tools.day_view", "--in", str(FIXTURE), "--date", "2024-01-01"])
        self.assertEqual(p.returncode, 0, p.stderr)
        lines = p.stdout.splitlines()
        self.assertEqual(lines[0], "2024-01-01  blocks=3")
        self.assertEqual(lines[1].strip(), "09:00-11:00  Math  [0/1 done]")

    def test_bad_date_rc2(self):
        p = self._run([PY, "-m", "studygrid.tools.day_view", "--in", str(FIXTURE), "--date", "2024/01/01"])
        self.assertEqual(p.returncode, 2)
        self.assertIn("[studygrid-day-view] ERROR", p.stderr)


class TestGridOpsToolContract(_ToolCase):
    def _op(self, td, *args):
        out = Path(td) / "out.json"
        cmd = [PY, "-m", "studygrid.tools.grid_ops", "--in", str(FIXTURE), "--out", str(out), *args]
        p = self._run(cmd)
        doc = json.loads(out.read_text(encoding="utf-8")) if out.exists() else None
        return p, doc

    def test_move_rewrites_schedule_and_keeps_document(self):
        with tempfile.TemporaryDirectory() as td:
            p, doc = self._op(td, "--op", "move", "--key", "2024-01-01-10", "--target", "16")
            self.assertEqual(p.returncode, 0, p.stderr)
            self.assertIn("[studygrid-grid-ops] APPLIED op=move", p.stderr)
            ids = [r["id"] for r in doc["schedule"]]
            self.assertEqual(ids, ["2024-01-01-11", "2024-01-01-14", "2024-01-01-16", "2024-01-01-17", "2024-01-02-08"])
            self.assertEqual(doc["schedule"][2]["memo"], [{"id": "n1", "text": "limits", "completed": False}])
            self.assertEqual(doc["dailyGoal"], 4)
            self.assertEqual(len(doc["subjects"]), 2)

    def test_collision_is_rejected_rc3(self):
        with tempfile.TemporaryDirectory() as td:
            p, doc = self._op(td, "--op", "move", "--key", "2024-01-01-14", "--target", "10")
            self.assertEqual(p.returncode, 3, p.stderr)
            self.assertIn("REJECTED op=move reason=collision", p.stderr)
            self.assertEqual(len(doc["schedule"]), 5)

    def test_delete_completes_removal(self):
        with tempfile.TemporaryDirectory() as td:
            p, doc = self._op(td, "--op", "delete", "--key", "2024-01-01-09")
            self.assertEqual(p.returncode, 0, p.stderr)
            ids = [r["id"] for r in doc["schedule"]]
            self.assertNotIn("2024-01-01-09", ids)
            self.assertNotIn("2024-01-01-10", ids)
            self.assertEqual(len(ids), 3)

    def test_create_with_notes(self):
        with tempfile.TemporaryDirectory() as td:
            p, doc = self._op(td, "--op", "create", "--key", "2024-01-01-20", "--subject", "law", "--note", "torts", "--note", "contracts")
            self.assertEqual(p.returncode, 0, p.stderr)
            rec = [r for r in doc["schedule"] if r["id"] == "2024-01-01-20"][0]
            self.assertEqual(rec["subjectId"], "law")
            self.assertEqual([m["text"] for m in rec["memo"]], ["torts", "contracts"])
            self.assertNotIn("isNew", rec)

    def test_resize_requires_end(self):
        with tempfile.TemporaryDirectory() as td:
            p, doc = self._op(td, "--op", "resize", "--key", "2024-01-01-09")
            self.assertEqual(p.returncode, 2)
            self.assertIn("requires --end", p.stderr)
            self.assertIsNone(doc)


if __name__ == "__main__":
    unittest.main(verbosity=2)
