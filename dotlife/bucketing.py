from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable

from . import periods
from .models import BucketType, GridScale, TimeBucket, advance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeBucketingService:
    """Builds normalized buckets and the bucket sequences each grid scale needs.

    All normalization happens in ``time_zone``; weeks start on Monday.
    Generators skip dates the calendar cannot represent, so a sequence near
    the ends of the supported range may come back shorter than usual.
    """

    time_zone: tzinfo = field(default=periods.UTC)

    @classmethod
    def utc(cls) -> TimeBucketingService:
        return cls(periods.UTC)

    @classmethod
    def for_zone(cls, name: str | tzinfo | None) -> TimeBucketingService:
        return cls(periods.resolve_time_zone(name))

    def start_of_hour(self, instant: datetime) -> datetime:
        return periods.start_of_hour(instant, self.time_zone)

    def start_of_day(self, instant: datetime) -> datetime:
        return periods.start_of_day(instant, self.time_zone)

    def start_of_week(self, instant: datetime) -> datetime:
        return periods.start_of_week(instant, self.time_zone)

    def start_of_month(self, instant: datetime) -> datetime:
        return periods.start_of_month(instant, self.time_zone)

    def start_of_year(self, instant: datetime) -> datetime:
        return periods.start_of_year(instant, self.time_zone)

    def normalize(self, instant: datetime, bucket_type: BucketType) -> datetime:
        starts: dict[BucketType, Callable[[datetime], datetime]] = {
            BucketType.HOUR: self.start_of_hour,
            BucketType.DAY: self.start_of_day,
            BucketType.WEEK: self.start_of_week,
            BucketType.MONTH: self.start_of_month,
            BucketType.YEAR: self.start_of_year,
        }
        return starts[BucketType(bucket_type)](instant)

    def bucket(self, instant: datetime, bucket_type: BucketType) -> TimeBucket:
        bucket_type = BucketType(bucket_type)
        return TimeBucket(type=bucket_type, start=self.normalize(instant, bucket_type))

    def date_interval(self, instant: datetime, bucket_type: BucketType) -> tuple[datetime, datetime]:
        bucket = self.bucket(instant, bucket_type)
        return (bucket.start, bucket.end)

    def hour_buckets_for_day(self, instant: datetime) -> list[TimeBucket]:
        return self._sequence(self.start_of_day(instant), BucketType.HOUR, 24)

    def day_buckets_for_week(self, instant: datetime) -> list[TimeBucket]:
        return self._sequence(self.start_of_week(instant), BucketType.DAY, 7)

    def day_buckets_for_month(self, instant: datetime) -> list[TimeBucket]:
        month_start = self.start_of_month(instant)
        count = periods.days_in_month(month_start.year, month_start.month)
        return self._sequence(month_start, BucketType.DAY, count)

    def week_buckets_for_month(self, instant: datetime) -> list[TimeBucket]:
        """Weeks starting from the Monday on or before the 1st, while they start before the month ends."""
        month_start = self.start_of_month(instant)
        try:
            month_end = advance(month_start, BucketType.MONTH)
        except periods.CALENDAR_ERRORS:
            logger.warning("Cannot compute end of month starting %s", month_start)
            month_end = month_start

        buckets: list[TimeBucket] = []
        current = self.start_of_week(month_start)
        while current.timestamp() < month_end.timestamp():
            buckets.append(TimeBucket(type=BucketType.WEEK, start=current))
            try:
                following = advance(current, BucketType.WEEK)
            except periods.CALENDAR_ERRORS:
                break
            if following.timestamp() <= current.timestamp():
                break
            current = following
        return buckets

    def month_buckets_for_year(self, instant: datetime) -> list[TimeBucket]:
        return self._sequence(self.start_of_year(instant), BucketType.MONTH, 12)

    def day_buckets_for_year(self, instant: datetime) -> list[TimeBucket]:
        return self._sequence(self.start_of_year(instant), BucketType.DAY, self.number_of_days_in_year(instant))

    def number_of_days_in_year(self, instant: datetime) -> int:
        return periods.days_in_year(periods.to_zone(instant, self.time_zone).year)

    def is_leap_year(self, year: int) -> bool:
        return periods.is_leap_year(year)

    def buckets_for_today_view(self, instant: datetime, scale: GridScale) -> list[TimeBucket]:
        scale = GridScale(scale)
        if scale == GridScale.HOURS:
            return self.hour_buckets_for_day(instant)
        if scale == GridScale.DAYS:
            return self.day_buckets_for_week(instant)
        if scale == GridScale.WEEKS:
            return self.week_buckets_for_month(instant)
        return self.month_buckets_for_year(instant)

    def buckets_for_week_view(self, instant: datetime, scale: GridScale) -> list[TimeBucket]:
        # The week view has no hour granularity.
        if GridScale(scale) == GridScale.HOURS:
            return self.day_buckets_for_week(instant)
        return self.buckets_for_today_view(instant, scale)

    def _sequence(self, first: datetime, bucket_type: BucketType, count: int) -> list[TimeBucket]:
        buckets: list[TimeBucket] = []
        for offset in range(count):
            try:
                start = advance(first, bucket_type, offset)
            except periods.CALENDAR_ERRORS:
                logger.warning("Skipping %s bucket %d after %s", bucket_type.name, offset, first)
                continue
            buckets.append(TimeBucket(type=bucket_type, start=start))
        return buckets
