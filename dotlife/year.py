from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, tzinfo
from typing import Mapping

from . import periods
from .models import YearDay

logger = logging.getLogger(__name__)


def generate_year(
    year: int,
    experience_counts: Mapping[datetime, int],
    reference: datetime | None = None,
    time_zone: tzinfo = periods.UTC,
) -> list[YearDay]:
    """Build one ``YearDay`` per calendar day of ``year``, Jan 1 through Dec 31.

    ``reference`` decides which day is today; it defaults to the current
    time. Counts are looked up by day start, whatever zone the keys of
    ``experience_counts`` are expressed in, and missing days count zero.
    """
    if reference is None:
        reference = datetime.now(periods.UTC)

    try:
        day = date(year, 1, 1)
        last_day = date(year, 12, 31)
    except periods.CALENDAR_ERRORS:
        logger.warning("Cannot generate days for year %s", year)
        return []

    counts = _counts_by_day_start(experience_counts, time_zone)
    today = _day_key(periods.start_of_day(reference, time_zone))
    days: list[YearDay] = []

    while day <= last_day:
        try:
            current = periods.local_midnight(day, time_zone)
        except periods.CALENDAR_ERRORS:
            logger.warning("Cannot compute start of %s", day)
            break
        key = _day_key(current)
        days.append(
            YearDay(
                date=current,
                experience_count=counts.get(key, 0),
                is_today=key == today,
                is_future=key > today,
            )
        )
        if day == last_day:
            break
        day += timedelta(days=1)

    return days


def generate_current_year(
    experience_counts: Mapping[datetime, int],
    reference: datetime | None = None,
    time_zone: tzinfo = periods.UTC,
) -> list[YearDay]:
    if reference is None:
        reference = datetime.now(periods.UTC)
    year = periods.to_zone(reference, time_zone).year
    return generate_year(year, experience_counts, reference=reference, time_zone=time_zone)


def _counts_by_day_start(experience_counts: Mapping[datetime, int], time_zone: tzinfo) -> dict[int, int]:
    counts: dict[int, int] = {}
    for moment, count in experience_counts.items():
        key = _day_key(periods.start_of_day(moment, time_zone))
        counts[key] = counts.get(key, 0) + int(count)
    return counts


def _day_key(day_start: datetime) -> int:
    return math.floor(day_start.timestamp())
