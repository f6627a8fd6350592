from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Sequence

from taskworks.config import SETTINGS
from taskworks.domain.errors import StorageError, ValidationError
from taskworks.domain.options import parse_iso_date
from taskworks.infra.logging import setup_logging
from taskworks.infra.snapshot import JsonSnapshotRepository
from taskworks.services.dashboard_service import HabitDashboardService
from taskworks.services.request_params import parse_window_request
from taskworks.services.window_service import BlockWindowService, TaskStore

logger = logging.getLogger(__name__)

EXIT_STORAGE_ERROR = 1
EXIT_VALIDATION_ERROR = 2


def _open_store(snapshot: str | None) -> TaskStore:
    if snapshot:
        return JsonSnapshotRepository(snapshot)

    from sqlalchemy.exc import SQLAlchemyError

    from taskworks.infra.db import init_db
    from taskworks.infra.repository import TaskRepository

    try:
        init_db()
    except (RuntimeError, SQLAlchemyError) as exc:
        raise StorageError(f"Database unavailable: {exc}") from exc
    return TaskRepository()


def _optional(value: object) -> str | None:
    return None if value is None else str(value)


def _run_windows(args: argparse.Namespace) -> object:
    params = {
        "date": args.date,
        "tz": args.tz,
        "focus_only": "false" if args.all else None,
        "merge": "false" if args.no_merge else None,
        "debug": "true" if args.debug else None,
        "pre_grace_min": _optional(args.pre_grace),
        "post_grace_min": _optional(args.post_grace),
        "duration_default_min": _optional(args.duration),
        "focus_tags": ",".join(args.focus_tag) if args.focus_tag else None,
    }
    request = parse_window_request(params, SETTINGS)
    service = BlockWindowService(_open_store(args.snapshot), SETTINGS)
    return service.build(request)


def _run_dashboard(args: argparse.Namespace) -> object:
    today = parse_iso_date(args.today) if args.today else None
    service = HabitDashboardService(_open_store(args.snapshot), SETTINGS)
    return service.fetch_month(args.year, args.month, today=today, timezone=args.tz).to_payload()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskworks", description="TaskWorks temporal rule engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    windows = subparsers.add_parser("windows", help="Print blocking windows for a date")
    windows.add_argument("--date", help="Target date (YYYY-MM-DD), default today in --tz")
    windows.add_argument("--tz", help="IANA timezone, unknown values fall back to UTC")
    windows.add_argument("--all", action="store_true", help="Include tasks without a focus tag")
    windows.add_argument("--no-merge", action="store_true", help="Keep overlapping windows separate")
    windows.add_argument("--pre-grace", type=int, help="Minutes added before each window")
    windows.add_argument("--post-grace", type=int, help="Minutes added after each window")
    windows.add_argument("--duration", type=int, help="Window length when a rule has no end time")
    windows.add_argument("--focus-tag", action="append", help="Focus tag (repeatable)")
    windows.add_argument("--debug", action="store_true", help="Include evaluation metadata")
    windows.add_argument("--snapshot", help="Read tasks and logs from a JSON snapshot instead of the database")
    windows.set_defaults(handler=_run_windows)

    dashboard = subparsers.add_parser("dashboard", help="Print the habit dashboard for a month")
    dashboard.add_argument("--year", type=int, required=True)
    dashboard.add_argument("--month", type=int, required=True, choices=range(1, 13), metavar="MONTH")
    dashboard.add_argument("--tz", help="IANA timezone, default DEFAULT_TIMEZONE")
    dashboard.add_argument("--today", help="Override today's date (YYYY-MM-DD)")
    dashboard.add_argument("--snapshot", help="Read tasks and logs from a JSON snapshot instead of the database")
    dashboard.set_defaults(handler=_run_dashboard)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        result = args.handler(args)
    except ValidationError as exc:
        logger.warning("Rejected request: %s", exc)
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    except StorageError as exc:
        logger.error("Store failure: %s", exc)
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return EXIT_STORAGE_ERROR

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
