"""Contract between the bucketing core and an experience record store."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, Protocol, Sequence

from .models import (
    BucketSummary,
    ExperienceCreateRequest,
    ExperienceFetchRequest,
    ExperienceRecord,
    TimeBucket,
)


class ExperienceRepositoryError(Exception):
    """Base class for record store failures."""


class NotFoundError(ExperienceRepositoryError):
    def __init__(self, experience_id: uuid.UUID):
        super().__init__(f"Experience {experience_id} not found")
        self.experience_id = experience_id


class SaveFailedError(ExperienceRepositoryError):
    pass


class FetchFailedError(ExperienceRepositoryError):
    pass


class DeleteFailedError(ExperienceRepositoryError):
    pass


class PhotoStorageFailedError(ExperienceRepositoryError):
    pass


class InvalidDataError(ExperienceRepositoryError):
    pass


class ExperienceRepository(Protocol):
    def create(self, request: ExperienceCreateRequest) -> ExperienceRecord:
        ...

    def fetch(self, request: ExperienceFetchRequest) -> list[ExperienceRecord]:
        """Matching records, newest first. Filters combine; ``end_date`` is exclusive."""
        ...

    def fetch_by_id(self, experience_id: uuid.UUID) -> ExperienceRecord | None:
        ...

    def delete(self, experience_id: uuid.UUID) -> None:
        """Remove one record; raises ``NotFoundError`` for unknown ids."""
        ...

    def fetch_summaries(self, buckets: Sequence[TimeBucket]) -> list[BucketSummary]:
        """One summary per bucket, in the given order."""
        ...

    def fetch_count(self, bucket: TimeBucket) -> int:
        ...

    def fetch_counts_by_day(self, start: datetime, end: datetime) -> dict[datetime, int]:
        """Counts keyed by day start for the inclusive day range; absent days had no records."""
        ...


def summarize(buckets: Sequence[TimeBucket], timestamps: Iterable[datetime]) -> list[BucketSummary]:
    """Count ``timestamps`` into ``buckets`` by ``[start, end)``, keeping bucket order.

    Naive timestamps are wall-clock time in each bucket's zone, as in
    ``TimeBucket.contains``.
    """
    moments = list(timestamps)
    summaries: list[BucketSummary] = []
    for bucket in buckets:
        count = sum(1 for moment in moments if bucket.contains(moment))
        summaries.append(BucketSummary(bucket=bucket, count=count))
    return summaries
