from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from . import periods
from .models import BucketType, TimeBucket

# Fixed English names; labels must not depend on the process locale.
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December")


def display_label(bucket: TimeBucket, time_zone: tzinfo | None = None) -> str:
    start = _local_start(bucket, time_zone)

    if bucket.type == BucketType.HOUR:
        return _hour(start)
    if bucket.type == BucketType.DAY:
        return _weekday(start)
    if bucket.type == BucketType.WEEK:
        return f"Week {start.isocalendar()[1]}"
    if bucket.type == BucketType.MONTH:
        return _month(start)[:3]
    return f"{start.year:04d}"


def extended_label(bucket: TimeBucket, time_zone: tzinfo | None = None) -> str:
    start = _local_start(bucket, time_zone)

    if bucket.type == BucketType.HOUR:
        return f"{_weekday(start)} {_hour(start)}".lower()
    if bucket.type == BucketType.DAY:
        return f"{_weekday(start)}, {_short_date(start)}"
    if bucket.type == BucketType.WEEK:
        last_day = start + timedelta(days=6)
        return f"Week {start.isocalendar()[1]}: {_short_date(start)} - {_short_date(last_day)}"
    if bucket.type == BucketType.MONTH:
        return f"{_month(start)} {start.year:04d}"
    return f"{start.year:04d}"


def _local_start(bucket: TimeBucket, time_zone: tzinfo | None) -> datetime:
    if time_zone is None:
        return bucket.start
    return periods.to_zone(bucket.start, time_zone)


def _hour(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    suffix = "am" if moment.hour < 12 else "pm"
    return f"{hour}{suffix}"


def _weekday(moment: datetime) -> str:
    return _WEEKDAYS[moment.weekday()]


def _month(moment: datetime) -> str:
    return _MONTHS[moment.month - 1]


def _short_date(moment: datetime) -> str:
    return f"{_month(moment)[:3]} {moment.day}"
