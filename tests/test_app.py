from __future__ import annotations

import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime, timezone
from pathlib import Path

from dotlife import __version__
from dotlife.app import format_grid_rows, format_year_rows, main
from dotlife.bucketing import TimeBucketingService
from dotlife.models import BucketSummary, YearDay


class AppTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp_dir.cleanup)
        self.db_file = Path(self._tmp_dir.name) / "dotlife.sqlite3"

    def run_main(self, *args: str) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(["--db", str(self.db_file), "--tz", "UTC", *args])
        return code, stdout.getvalue(), stderr.getvalue()

    def test_version(self) -> None:
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            self.assertEqual(main(["--version"]), 0)
        self.assertEqual(stdout.getvalue().strip(), __version__)

    def test_add_and_list(self) -> None:
        code, out, _ = self.run_main("add", "note", "Sunset walk", "--at", "2024-01-10T18:45:00+00:00")
        self.assertEqual(code, 0)
        experience_id, kind, stamp = out.split()
        self.assertEqual(kind, "note")
        self.assertEqual(stamp, "2024-01-10T18:45:00+00:00")

        code, out, _ = self.run_main("list", "--day", "2024-01-10")
        self.assertEqual(code, 0)
        self.assertIn("18:45 [now] note Sunset walk", out)
        self.assertIn(experience_id, out)

        code, out, _ = self.run_main("list", "--day", "2024-01-11")
        self.assertEqual(out.strip(), "No moments on 2024-01-11.")

    def test_delete(self) -> None:
        _, out, _ = self.run_main("add", "dot", "--moment", "today", "--at", "2024-01-10T09:00:00+00:00")
        experience_id = out.split()[0]

        code, out, _ = self.run_main("delete", experience_id)
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), f"Deleted {experience_id}")

        code, _, err = self.run_main("delete", experience_id)
        self.assertEqual(code, 1)
        self.assertIn("not found", err)

    def test_invalid_note_reports_error(self) -> None:
        code, _, err = self.run_main("add", "note")
        self.assertEqual(code, 1)
        self.assertTrue(err.startswith("error:"))

    def test_photo_needs_path(self) -> None:
        code, _, err = self.run_main("add", "photo")
        self.assertEqual(code, 2)
        self.assertIn("photo needs a file path", err)

    def test_bad_timestamp_is_rejected_by_parser(self) -> None:
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            main(["--db", str(self.db_file), "add", "dot", "--at", "yesterday"])

    def test_grid_today_hours(self) -> None:
        self.run_main("add", "dot", "--at", "2024-01-10T09:30:00+00:00")
        self.run_main("add", "dot", "--at", "2024-01-10T09:50:00+00:00")

        code, out, _ = self.run_main("grid", "--view", "today", "--scale", "hours", "--at", "2024-01-10T12:00:00+00:00")
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0], "wed 12am .. wed 11pm")
        self.assertEqual(len(lines), 25)
        self.assertEqual(lines[10], "     9am ● 2")
        self.assertEqual(lines[1], "    12am ○ 0")

    def test_grid_week_days(self) -> None:
        self.run_main("add", "dot", "--at", "2024-01-12T09:30:00+00:00")
        code, out, _ = self.run_main("grid", "--view", "week", "--scale", "days", "--at", "2024-01-10T12:00:00+00:00")
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0], "Mon, Jan 8 .. Sun, Jan 14")
        self.assertEqual(lines[5], "     Fri ● 1")

    def test_year(self) -> None:
        self.run_main("add", "dot", "--at", "2024-01-09T09:30:00+00:00")
        code, out, _ = self.run_main("year", "2024", "--at", "2024-01-10T12:00:00+00:00")
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0], "2024: 1/366 days with moments (14x27 grid)")
        self.assertEqual(len(lines), 1 + 27)
        first_row = lines[1].split(" ")
        self.assertEqual(first_row[7], "○")
        self.assertEqual(first_row[8], "●")
        self.assertEqual(first_row[9], "◉")
        self.assertEqual(first_row[10], "·")

    def test_grid_zoom_out_steps_to_next_scale(self) -> None:
        code, out, _ = self.run_main("grid", "--zoom", "out", "--at", "2024-01-10T12:00:00+00:00")
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0], "Mon, Jan 8 .. Sun, Jan 14")
        self.assertEqual(len(lines), 1 + 7)

    def test_grid_zoom_past_ladder_end(self) -> None:
        code, out, err = self.run_main("grid", "--view", "week", "--scale", "months", "--zoom", "out")
        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("cannot zoom out from months", err)

    def test_grid_rejects_scale_outside_view(self) -> None:
        code, _, err = self.run_main("grid", "--view", "week", "--scale", "hours")
        self.assertEqual(code, 2)
        self.assertIn("the week view shows days, months", err)

        code, _, err = self.run_main("grid", "--view", "today", "--scale", "weeks")
        self.assertEqual(code, 2)
        self.assertIn("not weeks", err)

    def test_year_out_of_range_is_rejected_by_parser(self) -> None:
        for value in ("0", "10000", "next"):
            with self.subTest(year=value), redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as caught:
                main(["--db", str(self.db_file), "year", value])
            self.assertEqual(caught.exception.code, 2)

    def test_year_at_range_limit(self) -> None:
        code, out, _ = self.run_main("year", "9999", "--at", "2024-01-10T12:00:00+00:00")
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("9999: 0/365 days with moments"))

    def test_year_without_room(self) -> None:
        code, out, _ = self.run_main("year", "2024", "--width", "0")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "Nothing to render.")


class FormattingTests(unittest.TestCase):
    def test_format_grid_rows(self) -> None:
        service = TimeBucketingService.utc()
        buckets = service.month_buckets_for_year(datetime(2024, 5, 1, tzinfo=timezone.utc))[:2]
        rows = format_grid_rows([BucketSummary(buckets[0], 3), BucketSummary.empty(buckets[1])])
        self.assertEqual(rows, ["     Jan ● 3", "     Feb ○ 0"])

    def test_format_year_rows_wraps_by_columns(self) -> None:
        day = datetime(2024, 1, 1, tzinfo=timezone.utc)
        days = [YearDay(day, 0, False, False)] * 5
        self.assertEqual(format_year_rows(days, 2), ["○ ○", "○ ○", "○"])


if __name__ == "__main__":
    unittest.main()
