from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from taskworks.config import SETTINGS, Settings
from taskworks.domain.entities import DayRecord, DayStat, HabitDashboard
from taskworks.domain.enums import TaskKind
from taskworks.engine.instants import InstantConverter
from taskworks.engine.stats import (
    build_day_totals,
    compute_day_stats,
    compute_streak,
    iterate_dates,
    month_bounds,
)

from .request_params import FALLBACK_TIMEZONE, sanitize_timezone, today_in
from .window_service import TaskStore

logger = logging.getLogger(__name__)


def _percentage(part: int, whole: int) -> int:
    return round(part / whole * 100)


class HabitDashboardService:
    def __init__(
        self,
        repo: TaskStore,
        settings: Settings = SETTINGS,
        converter: Optional[InstantConverter] = None,
    ) -> None:
        self._repo = repo
        self._settings = settings
        self._converter = converter if converter is not None else InstantConverter()

    def fetch_month(
        self,
        year: int,
        month: int,
        today: Optional[date] = None,
        timezone: Optional[str] = None,
    ) -> HabitDashboard:
        zone_name = sanitize_timezone(timezone or self._settings.default_timezone, self._converter.cache)
        zone_name = zone_name or FALLBACK_TIMEZONE
        today = today or today_in(zone_name, cache=self._converter.cache)

        month_start, month_end = month_bounds(year, month)
        is_current_month = today.year == year and today.month == month
        reference = today if is_current_month else month_end
        lookback_start = month_start - timedelta(days=self._settings.dashboard_lookback_days)
        range_end = max(month_end, reference)

        tasks = self._repo.list_tasks(kind=TaskKind.HABIT)
        logs = []
        if tasks:
            zone = self._converter.zone(zone_name)
            buffer = timedelta(days=self._settings.log_buffer_days)
            logs_start = datetime.combine(lookback_start - buffer, time.min, tzinfo=zone)
            logs_end = datetime.combine(range_end + buffer + timedelta(days=1), time.min, tzinfo=zone)
            logs = self._repo.list_execution_logs(logs_start, logs_end, [task.id for task in tasks])

        totals = build_day_totals(logs, tasks, zone_name, self._converter)
        day_stats = compute_day_stats(tasks, totals, lookback_start, range_end)

        days = [
            DayRecord(date=day, done=day_stats[day].done and day_stats[day].required > 0)
            for day in iterate_dates(month_start, month_end)
        ]
        tracked_days = sum(1 for day in days if day_stats[day.date].required > 0)
        done_days = sum(1 for day in days if day.done)

        today_stat = day_stats.get(today, DayStat(required=0, completed_count=0, done=False))
        today_percentage = (
            100 if today_stat.required == 0 else _percentage(today_stat.completed_count, today_stat.required)
        )

        logger.info(
            "Dashboard %04d-%02d: %d habit tasks, %d logs, %d/%d days done",
            year, month, len(tasks), len(logs), done_days, tracked_days,
        )

        return HabitDashboard(
            year=year,
            month=month,
            days=days,
            day_stats=day_stats,
            completion_rate=0 if tracked_days == 0 else _percentage(done_days, tracked_days),
            tracked_days=tracked_days,
            done_days=done_days,
            remaining_days=max(tracked_days - done_days, 0),
            today_required=today_stat.required,
            today_completed=today_stat.completed_count,
            today_percentage=today_percentage,
            streak=compute_streak(day_stats, reference),
            timezone=zone_name,
            task_count=len(tasks),
            is_current_month=is_current_month,
        )
