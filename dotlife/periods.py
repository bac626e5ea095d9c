"""Calendar normalization helpers.

Every function maps an instant to the first instant of its containing
period in a given time zone. Weeks always start on Monday (ISO 8601),
independent of locale.

Instants are timezone-aware ``datetime`` objects. A naive datetime is read
as wall-clock time in the zone it is being normalized in. Results are
expressed in that zone.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

UTC = timezone.utc

# Raised by datetime arithmetic at the edges of the representable range.
CALENDAR_ERRORS = (OverflowError, ValueError)


def resolve_time_zone(value: str | tzinfo | None) -> tzinfo:
    if value is None:
        return UTC
    if isinstance(value, tzinfo):
        return value

    name = str(value).strip()
    if not name or name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Invalid timezone '{name}'. Use IANA timezone identifiers.") from exc


def to_zone(instant: datetime, tz: tzinfo) -> datetime:
    if instant.tzinfo is None:
        return _resolve(instant, tz)
    return instant.astimezone(tz)


def start_of_hour(instant: datetime, tz: tzinfo) -> datetime:
    try:
        local = to_zone(instant, tz)
        return _resolve(local.replace(minute=0, second=0, microsecond=0), tz)
    except CALENDAR_ERRORS:
        return _unchanged("hour", instant)


def start_of_day(instant: datetime, tz: tzinfo) -> datetime:
    try:
        return local_midnight(to_zone(instant, tz).date(), tz)
    except CALENDAR_ERRORS:
        return _unchanged("day", instant)


def start_of_week(instant: datetime, tz: tzinfo) -> datetime:
    """Monday at or before the instant's day: Mon 0 days back, ..., Sun 6."""
    try:
        day = to_zone(instant, tz).date()
        monday = day - timedelta(days=day.isoweekday() - 1)
        return local_midnight(monday, tz)
    except CALENDAR_ERRORS:
        return _unchanged("week", instant)


def start_of_month(instant: datetime, tz: tzinfo) -> datetime:
    try:
        return local_midnight(to_zone(instant, tz).date().replace(day=1), tz)
    except CALENDAR_ERRORS:
        return _unchanged("month", instant)


def start_of_year(instant: datetime, tz: tzinfo) -> datetime:
    try:
        return local_midnight(date(to_zone(instant, tz).year, 1, 1), tz)
    except CALENDAR_ERRORS:
        return _unchanged("year", instant)


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """First instant of ``day`` in ``tz``.

    When midnight itself is skipped by a DST transition this is the first
    wall-clock time that exists on that day.
    """
    return _resolve(datetime.combine(day, time()), tz)


def add_hours(instant: datetime, amount: int) -> datetime:
    tz = instant.tzinfo or UTC
    return (instant.astimezone(UTC) + timedelta(hours=amount)).astimezone(tz)


def add_days(instant: datetime, amount: int) -> datetime:
    tz = instant.tzinfo or UTC
    return _resolve(instant + timedelta(days=amount), tz)


def add_months(instant: datetime, amount: int) -> datetime:
    tz = instant.tzinfo or UTC
    year, month_index = divmod(instant.year * 12 + instant.month - 1 + amount, 12)
    month = month_index + 1
    day = min(instant.day, days_in_month(year, month))
    return _resolve(instant.replace(year=year, month=month, day=day), tz)


def add_years(instant: datetime, amount: int) -> datetime:
    return add_months(instant, amount * 12)


def _resolve(wall: datetime, tz: tzinfo) -> datetime:
    # Round-tripping through UTC moves non-existent wall times forward.
    return wall.replace(tzinfo=tz).astimezone(UTC).astimezone(tz)


def _unchanged(period: str, instant: datetime) -> datetime:
    logger.warning("Cannot compute start of %s for %s; returning it unchanged", period, instant)
    return instant
