from __future__ import annotations

import unittest

from dotlife.models import GridScale, VisualizeViewType
from dotlife.zoom import scales_for, zoom_in, zoom_out

TODAY = VisualizeViewType.TODAY
WEEK = VisualizeViewType.WEEK


class ZoomTests(unittest.TestCase):
    def test_today_ladder(self) -> None:
        self.assertEqual(scales_for(TODAY), (GridScale.HOURS, GridScale.DAYS, GridScale.MONTHS))
        self.assertEqual(zoom_out(GridScale.HOURS, TODAY), GridScale.DAYS)
        self.assertEqual(zoom_out(GridScale.DAYS, TODAY), GridScale.MONTHS)
        self.assertIsNone(zoom_out(GridScale.MONTHS, TODAY))
        self.assertEqual(zoom_in(GridScale.MONTHS, TODAY), GridScale.DAYS)
        self.assertIsNone(zoom_in(GridScale.HOURS, TODAY))

    def test_week_ladder(self) -> None:
        self.assertEqual(scales_for(WEEK), (GridScale.DAYS, GridScale.MONTHS))
        self.assertEqual(zoom_out(GridScale.DAYS, WEEK), GridScale.MONTHS)
        self.assertIsNone(zoom_out(GridScale.MONTHS, WEEK))
        self.assertIsNone(zoom_in(GridScale.DAYS, WEEK))

    def test_scale_outside_ladder(self) -> None:
        self.assertIsNone(zoom_out(GridScale.WEEKS, TODAY))
        self.assertIsNone(zoom_in(GridScale.HOURS, WEEK))

    def test_round_trip_returns_to_start(self) -> None:
        for view in (TODAY, WEEK):
            ladder = scales_for(view)
            for scale in ladder[:-1]:
                self.assertEqual(zoom_in(zoom_out(scale, view), view), scale)


if __name__ == "__main__":
    unittest.main()
