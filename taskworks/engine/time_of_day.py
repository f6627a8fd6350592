from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import time
from typing import Optional

from taskworks.domain.entities import TaskDefinition, TimeRule
from taskworks.domain.options import GraceConfig

logger = logging.getLogger(__name__)

MINUTES_IN_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")


@dataclass(frozen=True)
class MinuteInterval:
    start: int
    end: int


def clamp_minute(value: int) -> int:
    if value < 0:
        return 0
    if value > MINUTES_IN_DAY:
        return MINUTES_IN_DAY
    return value


def parse_time_of_day(value: time | str | None) -> Optional[int]:
    """Minutes since midnight for ``HH:MM[:SS]`` or a ``time``; ``None`` if unparseable.

    ``24:00`` is accepted as the end of the day.
    """

    if value is None:
        return None
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    match = _TIME_RE.match(str(value).strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes):
        return None
    return hours * 60 + minutes


def default_time_rule(task: TaskDefinition) -> TimeRule:
    return TimeRule(id=f"{task.id}-anytime", anytime=True)


def effective_time_rules(task: TaskDefinition) -> tuple[TimeRule, ...]:
    if task.time_rules:
        return task.time_rules
    return (default_time_rule(task),)


def resolve_minutes(rule: TimeRule, grace: GraceConfig) -> Optional[MinuteInterval]:
    """Local minute-of-day interval for ``rule`` widened by the grace periods."""

    if rule.anytime or not rule.start_time:
        return MinuteInterval(
            start=clamp_minute(0 - grace.pre_grace_minutes),
            end=clamp_minute(MINUTES_IN_DAY + grace.post_grace_minutes),
        )

    raw_start = parse_time_of_day(rule.start_time)
    if raw_start is None:
        logger.warning("Skipping time rule %s: unparseable start time %r", rule.id, rule.start_time)
        return None

    start = clamp_minute(raw_start - grace.pre_grace_minutes)
    if rule.end_time:
        raw_end = parse_time_of_day(rule.end_time)
        if raw_end is None:
            logger.warning("Skipping time rule %s: unparseable end time %r", rule.id, rule.end_time)
            return None
        end = clamp_minute(raw_end + grace.post_grace_minutes)
    else:
        end = clamp_minute(raw_start + grace.duration_default_minutes + grace.post_grace_minutes)

    if end <= start:
        logger.debug("Skipping time rule %s: empty interval %s-%s", rule.id, start, end)
        return None
    return MinuteInterval(start=start, end=end)
