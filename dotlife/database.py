from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from . import periods
from .bucketing import TimeBucketingService
from .models import (
    BucketSummary,
    BucketType,
    ExperienceCreateRequest,
    ExperienceFetchRequest,
    ExperienceRecord,
    ExperienceType,
    MomentType,
    TimeBucket,
)
from .photos import PhotoStorage
from .repository import (
    DeleteFailedError,
    FetchFailedError,
    InvalidDataError,
    NotFoundError,
    PhotoStorageFailedError,
    SaveFailedError,
)

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = (
    "id, timestamp, created_at, moment_type, experience_type, "
    "note_text, link_url, photo_path, thumbnail_path"
)


@contextmanager
def _failures(error_type: type[Exception], action: str):
    try:
        yield
    except sqlite3.Error as exc:
        raise error_type(f"{action} failed: {exc}") from exc


class ExperienceDatabase:
    """SQLite-backed experience store.

    Timestamps are stored as epoch seconds so range queries are zone-free;
    records come back expressed in the bucketing service's zone.
    """

    def __init__(
        self,
        db_file: Path,
        bucketing: TimeBucketingService | None = None,
        photo_storage: PhotoStorage | None = None,
    ):
        self._db_file = Path(db_file)
        self._db_file.parent.mkdir(parents=True, exist_ok=True)
        self._bucketing = bucketing or TimeBucketingService.utc()
        self._photo_storage = photo_storage
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def bucketing(self) -> TimeBucketingService:
        return self._bucketing

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @contextmanager
    def _connection(self):
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS experiences (
                    id TEXT PRIMARY KEY,
                    timestamp REAL NOT NULL,
                    created_at REAL NOT NULL,
                    moment_type INTEGER NOT NULL,
                    experience_type INTEGER NOT NULL,
                    note_text TEXT,
                    link_url TEXT,
                    photo_path TEXT,
                    thumbnail_path TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_experiences_timestamp
                ON experiences(timestamp);

                CREATE TABLE IF NOT EXISTS app_settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )
            conn.commit()

    def create(self, request: ExperienceCreateRequest) -> ExperienceRecord:
        _validate_payload(request)
        timestamp = periods.to_zone(request.timestamp, self._bucketing.time_zone)
        created_at = datetime.now(timezone.utc)
        experience_id = uuid.uuid4()

        photo_name: str | None = None
        thumbnail_name: str | None = None
        if request.experience_type == ExperienceType.PHOTO:
            if self._photo_storage is None:
                raise PhotoStorageFailedError("No photo storage configured")
            photo_name, thumbnail_name = self._photo_storage.store(request.photo_data or b"")

        try:
            with self._lock, self._connection() as conn:
                conn.execute(
                    f"INSERT INTO experiences({_RECORD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        str(experience_id),
                        timestamp.timestamp(),
                        created_at.timestamp(),
                        int(request.moment_type),
                        int(request.experience_type),
                        request.note_text,
                        request.link_url,
                        photo_name,
                        thumbnail_name,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            if photo_name is not None and self._photo_storage is not None:
                self._photo_storage.delete(photo_name, thumbnail_name)
            raise SaveFailedError(f"Saving experience failed: {exc}") from exc

        logger.debug("Created %s experience %s at %s", ExperienceType(request.experience_type).display_name, experience_id, timestamp)
        return ExperienceRecord(
            id=experience_id,
            timestamp=timestamp,
            created_at=created_at.astimezone(self._bucketing.time_zone),
            moment_type=MomentType(request.moment_type),
            experience_type=ExperienceType(request.experience_type),
            note_text=request.note_text,
            link_url=request.link_url,
            photo_local_path=photo_name,
            photo_thumbnail_path=thumbnail_name,
        )

    def fetch(self, request: ExperienceFetchRequest) -> list[ExperienceRecord]:
        clauses: list[str] = []
        params: list[object] = []

        if request.start_date is not None:
            clauses.append("timestamp >= ?")
            params.append(self._epoch(request.start_date))
        if request.end_date is not None:
            clauses.append("timestamp < ?")
            params.append(self._epoch(request.end_date))
        if request.moment_types:
            values = sorted(int(value) for value in request.moment_types)
            clauses.append(f"moment_type IN ({', '.join('?' for _ in values)})")
            params.extend(values)
        if request.experience_types:
            values = sorted(int(value) for value in request.experience_types)
            clauses.append(f"experience_type IN ({', '.join('?' for _ in values)})")
            params.extend(values)

        query = f"SELECT {_RECORD_COLUMNS} FROM experiences"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY timestamp DESC, created_at DESC"
        if request.limit is not None or request.offset is not None:
            query += " LIMIT ? OFFSET ?"
            params.append(-1 if request.limit is None else int(request.limit))
            params.append(int(request.offset or 0))

        with _failures(FetchFailedError, "Fetching experiences"):
            with self._lock, self._connection() as conn:
                rows = conn.execute(query, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def fetch_by_id(self, experience_id: uuid.UUID) -> ExperienceRecord | None:
        with _failures(FetchFailedError, f"Fetching experience {experience_id}"):
            with self._lock, self._connection() as conn:
                row = conn.execute(
                    f"SELECT {_RECORD_COLUMNS} FROM experiences WHERE id = ?",
                    (str(experience_id),),
                ).fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def delete(self, experience_id: uuid.UUID) -> None:
        with _failures(DeleteFailedError, f"Deleting experience {experience_id}"):
            with self._lock, self._connection() as conn:
                row = conn.execute(
                    "SELECT photo_path, thumbnail_path FROM experiences WHERE id = ?",
                    (str(experience_id),),
                ).fetchone()
                if row is None:
                    raise NotFoundError(experience_id)
                conn.execute("DELETE FROM experiences WHERE id = ?", (str(experience_id),))
                conn.commit()

        if row["photo_path"] and self._photo_storage is not None:
            self._photo_storage.delete(str(row["photo_path"]), row["thumbnail_path"])
        logger.debug("Deleted experience %s", experience_id)

    def fetch_summaries(self, buckets: Sequence[TimeBucket]) -> list[BucketSummary]:
        with _failures(FetchFailedError, "Summarizing buckets"):
            with self._lock, self._connection() as conn:
                return [BucketSummary(bucket=bucket, count=self._count(conn, bucket)) for bucket in buckets]

    def fetch_count(self, bucket: TimeBucket) -> int:
        with _failures(FetchFailedError, f"Counting bucket {bucket.bucket_id}"):
            with self._lock, self._connection() as conn:
                return self._count(conn, bucket)

    def fetch_counts_by_day(self, start: datetime, end: datetime) -> dict[datetime, int]:
        first_day = self._bucketing.start_of_day(start)
        last_day = self._bucketing.bucket(end, BucketType.DAY)
        with _failures(FetchFailedError, "Counting experiences by day"):
            with self._lock, self._connection() as conn:
                rows = conn.execute(
                    "SELECT timestamp FROM experiences WHERE timestamp >= ? AND timestamp < ?",
                    (first_day.timestamp(), last_day.end.timestamp()),
                ).fetchall()

        counts: dict[datetime, int] = {}
        for row in rows:
            day = self._bucketing.start_of_day(self._from_epoch(float(row["timestamp"])))
            counts[day] = counts.get(day, 0) + 1
        return counts

    def count_all(self) -> int:
        with _failures(FetchFailedError, "Counting experiences"):
            with self._lock, self._connection() as conn:
                row = conn.execute("SELECT COUNT(*) AS total FROM experiences").fetchone()
        return int(row["total"]) if row is not None else 0

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return default
        return str(row["value"])

    def set_setting(self, key: str, value: str) -> None:
        with self._lock, self._connection() as conn:
            conn.execute(
                """
                INSERT INTO app_settings(key, value)
                VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()

    @staticmethod
    def _count(conn: sqlite3.Connection, bucket: TimeBucket) -> int:
        row = conn.execute(
            "SELECT COUNT(*) AS total FROM experiences WHERE timestamp >= ? AND timestamp < ?",
            (bucket.start.timestamp(), bucket.end.timestamp()),
        ).fetchone()
        return int(row["total"]) if row is not None else 0

    def _epoch(self, moment: datetime) -> float:
        return periods.to_zone(moment, self._bucketing.time_zone).timestamp()

    def _from_epoch(self, value: float) -> datetime:
        return datetime.fromtimestamp(value, tz=self._bucketing.time_zone)

    def _row_to_record(self, row: sqlite3.Row) -> ExperienceRecord:
        try:
            moment_type = MomentType(int(row["moment_type"]))
            experience_type = ExperienceType(int(row["experience_type"]))
            experience_id = uuid.UUID(str(row["id"]))
        except ValueError as exc:
            raise InvalidDataError(f"Corrupt experience row {row['id']!r}: {exc}") from exc

        return ExperienceRecord(
            id=experience_id,
            timestamp=self._from_epoch(float(row["timestamp"])),
            created_at=self._from_epoch(float(row["created_at"])),
            moment_type=moment_type,
            experience_type=experience_type,
            note_text=row["note_text"],
            link_url=row["link_url"],
            photo_local_path=row["photo_path"],
            photo_thumbnail_path=row["thumbnail_path"],
        )


def _validate_payload(request: ExperienceCreateRequest) -> None:
    kind = ExperienceType(request.experience_type)
    if kind == ExperienceType.NOTE and not (request.note_text or "").strip():
        raise InvalidDataError("A note needs text")
    if kind == ExperienceType.LINK and not (request.link_url or "").strip():
        raise InvalidDataError("A link needs a URL")
    if kind == ExperienceType.PHOTO and not request.photo_data:
        raise InvalidDataError("A photo needs image data")
