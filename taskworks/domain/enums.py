from __future__ import annotations

from enum import StrEnum


class TaskKind(StrEnum):
    SINGLE = "single"
    HABIT = "habit"


class Cadence(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    INTERVAL = "interval"


class PeriodUnit(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Severity(StrEnum):
    STRICT = "strict"
    LENIENT = "lenient"


class PolicyMode(StrEnum):
    BLOCKLIST = "blocklist"
