from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from .enums import Cadence, PeriodUnit, PolicyMode, Severity, TaskKind


def format_instant(instant: datetime) -> str:
    """ISO-8601 with an explicit numeric offset, never ``Z``."""

    return instant.isoformat(timespec="seconds")


@dataclass(frozen=True)
class RecurrenceRule:
    id: str
    cadence: Cadence
    times_per_period: Optional[int] = None
    period: PeriodUnit = PeriodUnit.DAY
    days: tuple[int, ...] = ()
    week_start: Optional[int] = None
    timezone: str = "UTC"


@dataclass(frozen=True)
class TimeRule:
    id: str
    start_time: time | str | None = None
    end_time: time | str | None = None
    anytime: bool = False


@dataclass(frozen=True)
class TaskDefinition:
    id: str
    title: str
    description: Optional[str] = None
    kind: TaskKind = TaskKind.SINGLE
    active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    period_rules: tuple[RecurrenceRule, ...] = ()
    time_rules: tuple[TimeRule, ...] = ()
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExecutionLog:
    task_id: str
    happened_at: datetime
    quantity: Optional[float] = None


@dataclass(frozen=True)
class BlockingWindow:
    start_at: datetime
    end_at: datetime
    reason: str
    severity: Severity
    timezone: str
    redirect_url: str

    def to_payload(self) -> dict:
        return {
            "start_at": format_instant(self.start_at),
            "end_at": format_instant(self.end_at),
            "reason": self.reason,
            "policy": {
                "mode": PolicyMode.BLOCKLIST.value,
                "redirect_url": self.redirect_url,
                "severity": self.severity.value,
            },
        }


@dataclass(frozen=True)
class DayStat:
    required: int
    completed_count: int
    done: bool

    @property
    def transparent(self) -> bool:
        return self.required == 0


@dataclass(frozen=True)
class StreakStats:
    current: int
    longest: int
    break_date: Optional[date]


@dataclass(frozen=True)
class DayRecord:
    date: date
    done: bool


@dataclass(frozen=True)
class HabitDashboard:
    year: int
    month: int
    days: list[DayRecord]
    day_stats: dict[date, DayStat]
    completion_rate: int
    tracked_days: int
    done_days: int
    remaining_days: int
    today_required: int
    today_completed: int
    today_percentage: int
    streak: StreakStats
    timezone: str
    task_count: int
    is_current_month: bool = False

    def to_payload(self) -> dict:
        return {
            "summary": {
                "year": self.year,
                "month": self.month,
                "days": [{"date": day.date.isoformat(), "done": day.done} for day in self.days],
            },
            "day_stats": {
                day.isoformat(): {
                    "required": stat.required,
                    "completed": stat.completed_count,
                    "done": stat.done,
                }
                for day, stat in sorted(self.day_stats.items())
            },
            "completion_rate": self.completion_rate,
            "totals": {
                "tracked_days": self.tracked_days,
                "done_days": self.done_days,
                "remaining_days": self.remaining_days,
            },
            "today": {
                "required": self.today_required,
                "completed": self.today_completed,
                "percentage": self.today_percentage,
            },
            "streak": {
                "current": self.streak.current,
                "longest": self.streak.longest,
                "break_date": self.streak.break_date.isoformat() if self.streak.break_date else None,
            },
            "timezone": self.timezone,
            "task_count": self.task_count,
            "is_current_month": self.is_current_month,
        }
