from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from functools import total_ordering
from typing import TYPE_CHECKING

from . import periods

if TYPE_CHECKING:
    from .bucketing import TimeBucketingService

logger = logging.getLogger(__name__)


class BucketType(IntEnum):
    HOUR = 0
    DAY = 1
    WEEK = 2
    MONTH = 3
    YEAR = 4


class MomentType(IntEnum):
    """The capture intent: something happening now, earlier today, or this week."""

    NOW = 0
    TODAY = 1
    THIS_WEEK = 2

    @property
    def display_name(self) -> str:
        return {
            MomentType.NOW: "now",
            MomentType.TODAY: "today",
            MomentType.THIS_WEEK: "this week",
        }[self]


class ExperienceType(IntEnum):
    NOTE = 0
    PHOTO = 1
    LINK = 2
    DOT = 3

    @property
    def display_name(self) -> str:
        return self.name.lower()


class GridScale(IntEnum):
    HOURS = 0
    DAYS = 1
    WEEKS = 2
    MONTHS = 3

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


class VisualizeViewType(IntEnum):
    TODAY = 0
    WEEK = 1


def advance(instant: datetime, bucket_type: BucketType, amount: int = 1) -> datetime:
    """Move ``instant`` by ``amount`` periods of ``bucket_type``.

    Hours are elapsed time; every other period is wall-clock arithmetic in
    the instant's own zone. Raises ``OverflowError``/``ValueError`` outside
    the representable range.
    """
    if bucket_type == BucketType.HOUR:
        return periods.add_hours(instant, amount)
    if bucket_type == BucketType.DAY:
        return periods.add_days(instant, amount)
    if bucket_type == BucketType.WEEK:
        return periods.add_days(instant, amount * 7)
    if bucket_type == BucketType.MONTH:
        return periods.add_months(instant, amount)
    return periods.add_years(instant, amount)


@total_ordering
@dataclass(frozen=True, eq=False)
class TimeBucket:
    """One normalized period. ``start`` is never re-normalized here."""

    type: BucketType
    start: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None:
            raise ValueError("TimeBucket.start must be timezone-aware")

    @property
    def bucket_id(self) -> str:
        return f"{int(self.type)}_{self._epoch_seconds()}"

    @property
    def id(self) -> str:
        return self.bucket_id

    @property
    def end(self) -> datetime:
        try:
            return advance(self.start, self.type)
        except periods.CALENDAR_ERRORS:
            logger.warning("Cannot compute end of %s bucket at %s", self.type.name, self.start)
            return self.start

    def contains(self, instant: datetime) -> bool:
        moment = periods.to_zone(instant, self.start.tzinfo).timestamp()
        return self.start.timestamp() <= moment < self.end.timestamp()

    def _epoch_seconds(self) -> int:
        return math.floor(self.start.timestamp())

    def _key(self) -> tuple[int, int]:
        return (int(self.type), self._epoch_seconds())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeBucket):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: TimeBucket) -> bool:
        if not isinstance(other, TimeBucket):
            return NotImplemented
        return (self._epoch_seconds(), int(self.type)) < (other._epoch_seconds(), int(other.type))


@dataclass(frozen=True)
class BucketSummary:
    bucket: TimeBucket
    count: int

    @property
    def has_moments(self) -> bool:
        return self.count > 0

    @property
    def id(self) -> str:
        return self.bucket.bucket_id

    @classmethod
    def empty(cls, bucket: TimeBucket) -> BucketSummary:
        return cls(bucket=bucket, count=0)


@dataclass(frozen=True)
class YearDay:
    date: datetime
    experience_count: int
    is_today: bool
    is_future: bool

    @property
    def id(self) -> str:
        day = self.date
        return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"

    @property
    def has_experiences(self) -> bool:
        return self.experience_count > 0


@dataclass(frozen=True)
class ExperienceRecord:
    id: uuid.UUID
    timestamp: datetime
    created_at: datetime
    moment_type: MomentType
    experience_type: ExperienceType
    note_text: str | None = None
    link_url: str | None = None
    photo_local_path: str | None = None
    photo_thumbnail_path: str | None = None


@dataclass(frozen=True)
class ExperienceCreateRequest:
    """A new experience; build it with ``note``, ``link``, ``photo`` or ``dot``."""

    moment_type: MomentType
    experience_type: ExperienceType
    timestamp: datetime
    note_text: str | None = None
    link_url: str | None = None
    photo_data: bytes | None = None

    @classmethod
    def note(
        cls,
        text: str,
        moment_type: MomentType,
        timestamp: datetime | None = None,
    ) -> ExperienceCreateRequest:
        return cls(moment_type, ExperienceType.NOTE, _now_if_missing(timestamp), note_text=text)

    @classmethod
    def link(
        cls,
        url: str,
        moment_type: MomentType,
        timestamp: datetime | None = None,
    ) -> ExperienceCreateRequest:
        return cls(moment_type, ExperienceType.LINK, _now_if_missing(timestamp), link_url=url)

    @classmethod
    def photo(
        cls,
        data: bytes,
        moment_type: MomentType,
        timestamp: datetime | None = None,
    ) -> ExperienceCreateRequest:
        return cls(moment_type, ExperienceType.PHOTO, _now_if_missing(timestamp), photo_data=data)

    @classmethod
    def dot(cls, moment_type: MomentType, timestamp: datetime | None = None) -> ExperienceCreateRequest:
        return cls(moment_type, ExperienceType.DOT, _now_if_missing(timestamp))


@dataclass(frozen=True)
class ExperienceFetchRequest:
    start_date: datetime | None = None
    end_date: datetime | None = None
    moment_types: frozenset[MomentType] | None = None
    experience_types: frozenset[ExperienceType] | None = None
    limit: int | None = None
    offset: int | None = None

    @classmethod
    def for_bucket(cls, bucket: TimeBucket) -> ExperienceFetchRequest:
        return cls(start_date=bucket.start, end_date=bucket.end)

    @classmethod
    def for_day(cls, instant: datetime, service: TimeBucketingService) -> ExperienceFetchRequest:
        return cls.for_bucket(service.bucket(instant, BucketType.DAY))

    @classmethod
    def for_week(cls, instant: datetime, service: TimeBucketingService) -> ExperienceFetchRequest:
        return cls.for_bucket(service.bucket(instant, BucketType.WEEK))


def _now_if_missing(timestamp: datetime | None) -> datetime:
    if timestamp is None:
        return datetime.now(timezone.utc)
    return timestamp
