"""Application settings.

Values come from the database ``app_settings`` table first, then from the
environment, then from defaults. A bad value is logged and replaced by its
default instead of aborting startup.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Mapping, Protocol

from . import periods
from .bucketing import TimeBucketingService
from .layout import YearGridLayoutCalculator
from .paths import data_directory

logger = logging.getLogger(__name__)

TIME_ZONE_SETTING_KEY = "time_zone"
SPACING_RATIO_SETTING_KEY = "year_spacing_ratio"
MIN_COLUMNS_SETTING_KEY = "year_min_columns"
MAX_COLUMNS_SETTING_KEY = "year_max_columns"

DEFAULT_SPACING_RATIO = 0.4
DEFAULT_MIN_COLUMNS = 10
DEFAULT_MAX_COLUMNS = 20


class SettingsSource(Protocol):
    def get_setting(self, key: str, default: str | None = None) -> str | None:
        ...


@dataclass(frozen=True)
class AppSettings:
    time_zone: tzinfo
    data_dir: Path
    spacing_ratio: float = DEFAULT_SPACING_RATIO
    min_columns: int = DEFAULT_MIN_COLUMNS
    max_columns: int = DEFAULT_MAX_COLUMNS

    def bucketing(self) -> TimeBucketingService:
        return TimeBucketingService(self.time_zone)

    def layout_calculator(self) -> YearGridLayoutCalculator:
        return YearGridLayoutCalculator(
            spacing_ratio=self.spacing_ratio,
            min_columns=self.min_columns,
            max_columns=self.max_columns,
        )


def load_settings(
    db: SettingsSource | None = None,
    env: Mapping[str, str] | None = None,
    time_zone_override: str | None = None,
) -> AppSettings:
    env = os.environ if env is None else env

    min_columns = _positive_int(_lookup(db, env, MIN_COLUMNS_SETTING_KEY), DEFAULT_MIN_COLUMNS)
    max_columns = _positive_int(_lookup(db, env, MAX_COLUMNS_SETTING_KEY), DEFAULT_MAX_COLUMNS)
    if min_columns > max_columns:
        logger.warning("Column bounds %d > %d; using defaults", min_columns, max_columns)
        min_columns, max_columns = DEFAULT_MIN_COLUMNS, DEFAULT_MAX_COLUMNS

    return AppSettings(
        time_zone=_time_zone(time_zone_override, db, env),
        data_dir=data_directory(env),
        spacing_ratio=_positive_float(_lookup(db, env, SPACING_RATIO_SETTING_KEY), DEFAULT_SPACING_RATIO),
        min_columns=min_columns,
        max_columns=max_columns,
    )


def _time_zone(override: str | None, db: SettingsSource | None, env: Mapping[str, str]) -> tzinfo:
    candidates = [
        override,
        db.get_setting(TIME_ZONE_SETTING_KEY) if db is not None else None,
        env.get("DOTLIFE_TIME_ZONE"),
        env.get("TZ"),
    ]
    for name in candidates:
        if not name:
            continue
        try:
            return periods.resolve_time_zone(name)
        except ValueError as exc:
            logger.warning("%s", exc)
    return periods.UTC


def _lookup(db: SettingsSource | None, env: Mapping[str, str], key: str) -> str | None:
    if db is not None:
        value = db.get_setting(key)
        if value is not None:
            return value
    return env.get(f"DOTLIFE_{key.upper()}")


def _positive_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric setting value %r", value)
        return default
    if parsed <= 0:
        return default
    return parsed


def _positive_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring non-integer setting value %r", value)
        return default
    if parsed <= 0:
        return default
    return parsed
