from __future__ import annotations

import logging
from datetime import time

from taskworks.domain.entities import TaskDefinition, TimeRule
from taskworks.domain.options import GraceConfig
from taskworks.engine.time_of_day import (
    MinuteInterval,
    effective_time_rules,
    parse_time_of_day,
    resolve_minutes,
)


def test_parse_time_of_day_accepts_common_forms() -> None:
    assert parse_time_of_day("09:30") == 570
    assert parse_time_of_day("09:30:15") == 570
    assert parse_time_of_day("7:05") == 425
    assert parse_time_of_day("24:00") == 1440
    assert parse_time_of_day(time(18, 45)) == 1125


def test_parse_time_of_day_rejects_garbage() -> None:
    assert parse_time_of_day("9am") is None
    assert parse_time_of_day("25:00") is None
    assert parse_time_of_day("10:75") is None
    assert parse_time_of_day(None) is None


def test_grace_widens_explicit_interval() -> None:
    rule = TimeRule(id="r", start_time="09:00", end_time="10:00")
    grace = GraceConfig(pre_grace_minutes=5, post_grace_minutes=5)

    assert resolve_minutes(rule, grace) == MinuteInterval(start=8 * 60 + 55, end=10 * 60 + 5)


def test_anytime_rule_covers_whole_day() -> None:
    rule = TimeRule(id="r", anytime=True, start_time="09:00")

    assert resolve_minutes(rule, GraceConfig()) == MinuteInterval(start=0, end=1440)


def test_missing_end_uses_default_duration_from_ungraced_start() -> None:
    rule = TimeRule(id="r", start_time="09:00")
    grace = GraceConfig(pre_grace_minutes=3, post_grace_minutes=3, duration_default_minutes=60)

    assert resolve_minutes(rule, grace) == MinuteInterval(start=537, end=603)


def test_interval_is_clamped_to_the_day() -> None:
    rule = TimeRule(id="r", start_time="00:02", end_time="23:58")
    grace = GraceConfig(pre_grace_minutes=10, post_grace_minutes=10)

    assert resolve_minutes(rule, grace) == MinuteInterval(start=0, end=1440)


def test_empty_interval_is_skipped() -> None:
    rule = TimeRule(id="r", start_time="23:59")
    grace = GraceConfig(pre_grace_minutes=0, post_grace_minutes=0, duration_default_minutes=0)

    assert resolve_minutes(rule, grace) is None


def test_unparseable_time_is_skipped_and_logged(caplog) -> None:
    rule = TimeRule(id="broken", start_time="nine o'clock", end_time="10:00")

    with caplog.at_level(logging.WARNING):
        assert resolve_minutes(rule, GraceConfig()) is None
    assert "broken" in caplog.text


def test_task_without_time_rules_gets_implicit_anytime_rule() -> None:
    task = TaskDefinition(id="t1", title="Stretch")

    rules = effective_time_rules(task)
    assert len(rules) == 1
    assert rules[0].anytime is True
    assert task.time_rules == ()
