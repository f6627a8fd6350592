from __future__ import annotations

from datetime import date, timedelta

from taskworks.domain.entities import RecurrenceRule, TaskDefinition
from taskworks.domain.enums import Cadence, PeriodUnit
from taskworks.engine.cadence import (
    day_of_week,
    effective_period_rules,
    target_for_date,
    task_timezone,
)


def _task(*rules: RecurrenceRule, **kwargs) -> TaskDefinition:
    return TaskDefinition(id="t1", title="Read", period_rules=rules, **kwargs)


def _rule(cadence: Cadence, days: tuple[int, ...] = (), times: int | None = None, tz: str = "UTC") -> RecurrenceRule:
    return RecurrenceRule(id=f"r-{cadence}", cadence=cadence, times_per_period=times, days=days, timezone=tz)


def test_day_of_week_starts_on_sunday() -> None:
    assert day_of_week(date(2024, 6, 9)) == 0
    assert day_of_week(date(2024, 6, 10)) == 1
    assert day_of_week(date(2024, 6, 15)) == 6


def test_weekly_monday_rule_matches_only_monday() -> None:
    task = _task(_rule(Cadence.WEEKLY, days=(1,)))

    assert target_for_date(task, date(2024, 6, 10)) == 1
    assert target_for_date(task, date(2024, 6, 11)) == 0


def test_weekly_rule_without_days_matches_every_day() -> None:
    task = _task(_rule(Cadence.WEEKLY))

    week = [date(2024, 6, 9) + timedelta(days=offset) for offset in range(7)]
    assert all(target_for_date(task, day) == 1 for day in week)


def test_monthly_rule_without_days_matches_first_only() -> None:
    task = _task(_rule(Cadence.MONTHLY))

    assert target_for_date(task, date(2024, 7, 1)) == 1
    assert target_for_date(task, date(2024, 7, 2)) == 0
    assert target_for_date(task, date(2024, 7, 31)) == 0


def test_monthly_rule_with_days_uses_day_of_month() -> None:
    task = _task(_rule(Cadence.MONTHLY, days=(15, 31)))

    assert target_for_date(task, date(2024, 7, 15)) == 1
    assert target_for_date(task, date(2024, 7, 31)) == 1
    assert target_for_date(task, date(2024, 7, 1)) == 0


def test_interval_rule_never_matches() -> None:
    task = _task(_rule(Cadence.INTERVAL))

    assert target_for_date(task, date(2024, 6, 10)) == 0


def test_inactive_task_is_never_due() -> None:
    task = _task(_rule(Cadence.DAILY), active=False)

    for offset in range(40):
        assert target_for_date(task, date(2024, 1, 1) + timedelta(days=offset)) == 0


def test_single_day_task_is_due_only_on_that_day() -> None:
    day = date(2024, 6, 10)
    task = _task(start_date=day, end_date=day)

    assert target_for_date(task, day) > 0
    assert target_for_date(task, day - timedelta(days=1)) == 0
    assert target_for_date(task, day + timedelta(days=1)) == 0


def test_matching_rules_are_additive() -> None:
    task = _task(
        _rule(Cadence.DAILY, times=2),
        _rule(Cadence.WEEKLY, days=(1,)),
        _rule(Cadence.MONTHLY, days=(11,), times=5),
    )

    assert target_for_date(task, date(2024, 6, 10)) == 3
    assert target_for_date(task, date(2024, 6, 11)) == 7


def test_zero_times_per_period_contributes_nothing() -> None:
    task = _task(_rule(Cadence.DAILY, times=0))

    assert target_for_date(task, date(2024, 6, 10)) == 0


def test_task_without_rules_uses_implicit_daily_rule() -> None:
    task = _task()

    rules = effective_period_rules(task)
    assert len(rules) == 1
    assert rules[0].cadence == Cadence.DAILY
    assert rules[0].period == PeriodUnit.DAY
    assert task.period_rules == ()
    assert target_for_date(task, date(2024, 6, 10)) == 1


def test_task_timezone_prefers_first_rule() -> None:
    task = _task(_rule(Cadence.DAILY, tz="Asia/Tokyo"), _rule(Cadence.WEEKLY, tz="Europe/Berlin"))

    assert task_timezone(task, "UTC") == "Asia/Tokyo"
    assert task_timezone(_task(), "America/New_York") == "America/New_York"
