from __future__ import annotations

import argparse
import logging
import sys
import uuid
from datetime import date, datetime, time
from pathlib import Path
from typing import Sequence

from . import __version__, periods
from .config import AppSettings, load_settings
from .database import ExperienceDatabase
from .labels import display_label, extended_label
from .models import (
    BucketSummary,
    ExperienceCreateRequest,
    ExperienceFetchRequest,
    ExperienceRecord,
    GridScale,
    MomentType,
    VisualizeViewType,
    YearDay,
)
from .paths import data_directory, database_path, photos_directory, thumbnails_directory
from .photos import PhotoStorage
from .repository import ExperienceRepositoryError
from .year import generate_year
from .zoom import scales_for, zoom_in, zoom_out

logger = logging.getLogger(__name__)

FILLED_DOT = "●"
EMPTY_DOT = "○"
FUTURE_DOT = "·"
TODAY_DOT = "◉"

MOMENT_CHOICES = {
    "now": MomentType.NOW,
    "today": MomentType.TODAY,
    "this-week": MomentType.THIS_WEEK,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings, db = _open_store(args)
        return args.handler(args, settings, db)
    except ExperienceRepositoryError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dotlife", description="Capture moments and view them as dot grids")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--db", help="Path to the experience database")
    parser.add_argument("--tz", help="IANA time zone used for bucketing (e.g. Europe/Berlin)")
    commands = parser.add_subparsers(dest="command")

    add = commands.add_parser("add", help="Capture an experience")
    add.add_argument("kind", choices=["note", "link", "photo", "dot"])
    add.add_argument("value", nargs="?", help="Note text, URL, or photo file path")
    add.add_argument("--moment", choices=sorted(MOMENT_CHOICES), default="now")
    add.add_argument("--at", type=_parse_instant, help="ISO 8601 timestamp (default: now)")
    add.set_defaults(handler=_add_command)

    listing = commands.add_parser("list", help="List experiences of one day")
    listing.add_argument("--day", type=_parse_day, help="ISO date (default: today)")
    listing.set_defaults(handler=_list_command)

    delete = commands.add_parser("delete", help="Delete an experience")
    delete.add_argument("id", type=_parse_uuid)
    delete.set_defaults(handler=_delete_command)

    grid = commands.add_parser("grid", help="Show a dot row for a view and scale")
    grid.add_argument("--view", choices=["today", "week"], default="today")
    grid.add_argument("--scale", choices=[scale.name.lower() for scale in GridScale], help="Grid scale (default: finest for the view)")
    grid.add_argument("--zoom", choices=["in", "out"], help="Step one scale finer or coarser")
    grid.add_argument("--at", type=_parse_instant, help="Reference instant (default: now)")
    grid.set_defaults(handler=_grid_command)

    year = commands.add_parser("year", help="Show the year dot grid")
    year.add_argument("year", nargs="?", type=_parse_year, help="Calendar year (default: current)")
    year.add_argument("--width", type=float, default=370.0, help="Available width in points")
    year.add_argument("--height", type=float, default=700.0, help="Available height in points")
    year.add_argument("--at", type=_parse_instant, help="Reference instant deciding today")
    year.set_defaults(handler=_year_command)

    return parser


def _open_store(args: argparse.Namespace) -> tuple[AppSettings, ExperienceDatabase]:
    base = Path(args.db).expanduser().parent if args.db else data_directory()
    db_file = Path(args.db).expanduser() if args.db else database_path(base)
    logger.debug("Opening experience store at %s", db_file)
    settings = load_settings(ExperienceDatabase(db_file), time_zone_override=args.tz)
    photos = PhotoStorage(photos_directory(base), thumbnails_directory(base))
    return settings, ExperienceDatabase(db_file, settings.bucketing(), photos)


def _add_command(args: argparse.Namespace, settings: AppSettings, db: ExperienceDatabase) -> int:
    moment = MOMENT_CHOICES[args.moment]
    if args.kind == "dot":
        request = ExperienceCreateRequest.dot(moment, timestamp=args.at)
    elif args.kind == "note":
        request = ExperienceCreateRequest.note(args.value or "", moment, timestamp=args.at)
    elif args.kind == "link":
        request = ExperienceCreateRequest.link(args.value or "", moment, timestamp=args.at)
    else:
        if not args.value:
            print("error: photo needs a file path", file=sys.stderr)
            return 2
        request = ExperienceCreateRequest.photo(Path(args.value).read_bytes(), moment, timestamp=args.at)

    record = db.create(request)
    print(f"{record.id} {record.experience_type.display_name} {record.timestamp.isoformat()}")
    return 0


def _list_command(args: argparse.Namespace, settings: AppSettings, db: ExperienceDatabase) -> int:
    day = args.day or datetime.now(settings.time_zone).date()
    records = db.fetch(ExperienceFetchRequest.for_day(datetime.combine(day, time()), db.bucketing))
    if not records:
        print(f"No moments on {day.isoformat()}.")
        return 0
    for record in records:
        print(_format_record(record))
    return 0


def _delete_command(args: argparse.Namespace, settings: AppSettings, db: ExperienceDatabase) -> int:
    db.delete(args.id)
    print(f"Deleted {args.id}")
    return 0


def _grid_command(args: argparse.Namespace, settings: AppSettings, db: ExperienceDatabase) -> int:
    instant = args.at or datetime.now(settings.time_zone)
    view = VisualizeViewType[args.view.upper()]
    ladder = scales_for(view)
    scale = GridScale[args.scale.upper()] if args.scale else ladder[0]
    if scale not in ladder:
        allowed = ", ".join(option.name.lower() for option in ladder)
        print(f"error: the {args.view} view shows {allowed}, not {scale.name.lower()}", file=sys.stderr)
        return 2

    if args.zoom is not None:
        stepped = zoom_in(scale, view) if args.zoom == "in" else zoom_out(scale, view)
        if stepped is None:
            print(f"error: cannot zoom {args.zoom} from {scale.name.lower()}", file=sys.stderr)
            return 2
        scale = stepped

    service = db.bucketing
    if view == VisualizeViewType.TODAY:
        buckets = service.buckets_for_today_view(instant, scale)
    else:
        buckets = service.buckets_for_week_view(instant, scale)

    summaries = db.fetch_summaries(buckets)
    print(_grid_title(summaries))
    for line in format_grid_rows(summaries):
        print(line)
    return 0


def _year_command(args: argparse.Namespace, settings: AppSettings, db: ExperienceDatabase) -> int:
    reference = args.at or datetime.now(settings.time_zone)
    year = args.year
    if year is None:
        year = periods.to_zone(reference, settings.time_zone).year
    counts = db.fetch_counts_by_day(datetime(year, 1, 1), datetime(year, 12, 31))
    days = generate_year(year, counts, reference=reference, time_zone=settings.time_zone)

    layout = settings.layout_calculator().calculate_layout(args.width, args.height, len(days))
    if layout.is_empty:
        print("Nothing to render.")
        return 0

    filled = sum(1 for day in days if day.has_experiences)
    print(f"{year}: {filled}/{len(days)} days with moments ({layout.columns}x{layout.rows} grid)")
    for line in format_year_rows(days, layout.columns):
        print(line)
    return 0


def format_grid_rows(summaries: Sequence[BucketSummary]) -> list[str]:
    return [
        f"{display_label(summary.bucket):>8} {FILLED_DOT if summary.has_moments else EMPTY_DOT} {summary.count}"
        for summary in summaries
    ]


def format_year_rows(days: Sequence[YearDay], columns: int) -> list[str]:
    rows: list[str] = []
    for offset in range(0, len(days), max(1, columns)):
        rows.append(" ".join(_year_symbol(day) for day in days[offset:offset + columns]))
    return rows


def _year_symbol(day: YearDay) -> str:
    if day.is_today:
        return TODAY_DOT
    if day.is_future:
        return FUTURE_DOT
    return FILLED_DOT if day.has_experiences else EMPTY_DOT


def _grid_title(summaries: Sequence[BucketSummary]) -> str:
    if not summaries:
        return "No buckets."
    first, last = summaries[0].bucket, summaries[-1].bucket
    return f"{extended_label(first)} .. {extended_label(last)}"


def _format_record(record: ExperienceRecord) -> str:
    payload = record.note_text or record.link_url or record.photo_local_path or ""
    stamp = record.timestamp.strftime("%H:%M")
    return f"{stamp} [{record.moment_type.display_name}] {record.experience_type.display_name} {payload} ({record.id})"


def _parse_instant(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 timestamp: {value}") from exc


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value}") from exc


def _parse_year(value: str) -> int:
    try:
        year = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a year: {value}") from exc
    if not 1 <= year <= 9999:
        raise argparse.ArgumentTypeError(f"year must be between 1 and 9999: {value}")
    return year


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an experience id: {value}") from exc
