"""Per-day completion statistics and streaks for the habit dashboard.

Days on which nothing is due (``required == 0``) are transparent: they neither
break a streak nor extend it.
"""

from __future__ import annotations

import calendar
import logging
import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Iterator, Mapping, Optional

from taskworks.domain.entities import DayStat, ExecutionLog, StreakStats, TaskDefinition

from .cadence import target_for_date, task_timezone
from .instants import InstantConverter

logger = logging.getLogger(__name__)

DayTotals = dict[date, dict[str, float]]


def iterate_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def build_day_totals(
    logs: Iterable[ExecutionLog],
    tasks: Iterable[TaskDefinition],
    default_timezone: str,
    converter: Optional[InstantConverter] = None,
) -> DayTotals:
    """Sum logged quantity per local date and task.

    Each log is bucketed in its task's timezone (first recurrence rule, else
    ``default_timezone``); a missing quantity counts as one.
    """

    converter = converter if converter is not None else InstantConverter()
    zones = {task.id: task_timezone(task, default_timezone) for task in tasks}
    totals: DayTotals = defaultdict(lambda: defaultdict(float))

    for log in logs:
        quantity = 1.0 if log.quantity is None else float(log.quantity)
        if not math.isfinite(quantity):
            logger.warning("Ignoring log for task %s with non-finite quantity", log.task_id)
            continue
        zone_name = zones.get(log.task_id, default_timezone)
        local_day = converter.local_date(log.happened_at, zone_name)
        if local_day is None:
            logger.warning("Timezone %r unresolved for task %s; bucketing in UTC", zone_name, log.task_id)
            local_day = converter.local_date(log.happened_at, "UTC")
        totals[local_day][log.task_id] += quantity

    return {day: dict(per_task) for day, per_task in totals.items()}


def compute_day_stat(day: date, tasks: Iterable[TaskDefinition], totals: Mapping[str, float]) -> DayStat:
    required = 0
    completed = 0
    for task in tasks:
        target = target_for_date(task, day)
        if target <= 0:
            continue
        required += 1
        if totals.get(task.id, 0) >= target:
            completed += 1

    done = True if required == 0 else completed == required
    return DayStat(required=required, completed_count=completed, done=done)


def compute_day_stats(
    tasks: Iterable[TaskDefinition],
    day_totals: Mapping[date, Mapping[str, float]],
    start: date,
    end: date,
) -> dict[date, DayStat]:
    tasks = list(tasks)
    return {
        day: compute_day_stat(day, tasks, day_totals.get(day, {}))
        for day in iterate_dates(start, end)
    }


def compute_streak(day_stats: Mapping[date, DayStat], reference: date) -> StreakStats:
    """Current and longest streak of fully completed days up to ``reference``."""

    entries = sorted((day, stat) for day, stat in day_stats.items() if day <= reference)

    current = 0
    break_date: Optional[date] = None
    for day, stat in reversed(entries):
        if stat.transparent:
            continue
        if not stat.done:
            break_date = day
            break
        current += 1

    longest = 0
    running = 0
    for _, stat in entries:
        if stat.transparent:
            continue
        if stat.done:
            running += 1
            longest = max(longest, running)
        else:
            running = 0

    return StreakStats(current=current, longest=longest, break_date=break_date)
