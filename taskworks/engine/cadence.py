"""Recurrence matching: which tasks are due on a date and how many times."""

from __future__ import annotations

from datetime import date
from typing import Callable

from taskworks.domain.entities import RecurrenceRule, TaskDefinition
from taskworks.domain.enums import Cadence, PeriodUnit

DEFAULT_RULE_TIMEZONE = "UTC"


def day_of_week(day: date) -> int:
    """0=Sunday .. 6=Saturday."""

    return day.isoweekday() % 7


def _match_daily(rule: RecurrenceRule, day: date) -> bool:
    return True


def _match_weekly(rule: RecurrenceRule, day: date) -> bool:
    if not rule.days:
        return True
    return day_of_week(day) in rule.days


def _match_monthly(rule: RecurrenceRule, day: date) -> bool:
    if not rule.days:
        return day.day == 1
    return day.day in rule.days


def _match_interval(rule: RecurrenceRule, day: date) -> bool:
    # no anchor date is stored for interval rules yet
    return False


MATCHERS: dict[Cadence, Callable[[RecurrenceRule, date], bool]] = {
    Cadence.DAILY: _match_daily,
    Cadence.WEEKLY: _match_weekly,
    Cadence.MONTHLY: _match_monthly,
    Cadence.INTERVAL: _match_interval,
}


def rule_matches(rule: RecurrenceRule, day: date) -> bool:
    return MATCHERS[rule.cadence](rule, day)


def task_timezone(task: TaskDefinition, fallback: str) -> str:
    explicit = next((rule.timezone for rule in task.period_rules if rule.timezone), None)
    return explicit or fallback


def default_period_rule(task: TaskDefinition) -> RecurrenceRule:
    return RecurrenceRule(
        id=f"{task.id}-default-period",
        cadence=Cadence.DAILY,
        times_per_period=1,
        period=PeriodUnit.DAY,
        timezone=task_timezone(task, DEFAULT_RULE_TIMEZONE),
    )


def effective_period_rules(task: TaskDefinition) -> tuple[RecurrenceRule, ...]:
    if task.period_rules:
        return task.period_rules
    return (default_period_rule(task),)


def is_active_on(task: TaskDefinition, day: date) -> bool:
    if not task.active:
        return False
    if task.start_date and day < task.start_date:
        return False
    if task.end_date and day > task.end_date:
        return False
    return True


def target_for_date(task: TaskDefinition, day: date) -> int:
    """Number of occurrences ``task`` demands on ``day``.

    Matching rules are additive, so stacking two daily rules doubles the target.
    """

    if not is_active_on(task, day):
        return 0

    total = 0
    for rule in effective_period_rules(task):
        if rule_matches(rule, day):
            count = rule.times_per_period
            total += 1 if count is None else max(int(count), 0)
    return total
