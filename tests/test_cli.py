import os
import sys
import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest import mock

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
import cli


class CLITest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.db = os.path.join(self.tmp.name, "cli.db")
        self.yaml = os.path.join(self.tmp.name, "cli.yaml")
        self.days = os.path.join(self.tmp.name, "days.json")
        with open(self.days, "w", encoding="utf-8") as f:
            json.dump([{"id": "push"}, {"id": "pull"}], f)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def run_cli(self, *args: str) -> str:
        out = io.StringIO()
        argv = ["cli.py", "--db", self.db, "--yaml", self.yaml, *args]
        with mock.patch.object(sys, "argv", argv), redirect_stdout(out):
            cli.main()
        return out.getvalue()

    def test_plan_compile_next_calendar(self) -> None:
        out = self.run_cli(
            "create-plan", "--name", "PP", "--start", "2024-01-01", "--days", self.days
        )
        self.assertIn("Created plan 1", out)
        out = self.run_cli("compile", "--plan", "1", "--weeks", "1")
        self.assertEqual(
            json.loads(out), {"2024-01-01": ["push"], "2024-01-02": ["pull"]}
        )
        self.run_cli("complete", "--plan", "1", "--workout", "push", "--date", "2024-01-01")
        out = self.run_cli("next", "--today", "2024-01-02")
        self.assertEqual(out.strip(), "2024-01-02  pull (overdue)")
        out = self.run_cli(
            "calendar", "--start", "2024-01-01", "--end", "2024-01-07", "--today", "2024-01-02"
        )
        lines = out.strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn("push [done]", lines[0])
        self.assertIn("pull [-]", lines[1])

    def test_error_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("compile", "--plan", "42")
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
