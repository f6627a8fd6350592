from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from taskworks.domain.entities import BlockingWindow, TaskDefinition
from taskworks.domain.enums import Severity
from taskworks.domain.options import DEFAULT_FOCUS_TAGS, WindowOptions

from .cadence import target_for_date, task_timezone
from .instants import InstantConverter
from .time_of_day import effective_time_rules, resolve_minutes

logger = logging.getLogger(__name__)

REASON_SEPARATOR = " / "


def _absolute(instant: datetime) -> datetime:
    # same-zone datetimes compare by wall clock, which misorders repeated hours
    return instant.astimezone(timezone.utc)


@dataclass
class WindowCandidate:
    start: datetime
    end: datetime
    timezone: str
    redirect_url: str
    severity: Severity
    reasons: list[str] = field(default_factory=list)

    def sort_key(self) -> tuple:
        # start/end first; the rest only makes equal intervals order-stable
        return (
            _absolute(self.start),
            _absolute(self.end),
            self.severity.value,
            self.redirect_url,
            self.timezone,
            tuple(self.reasons),
        )

    def policy_key(self) -> tuple[str, str, Severity]:
        return (self.timezone, self.redirect_url, self.severity)

    def absorb(self, other: WindowCandidate) -> None:
        self.end = max(self.end, other.end, key=_absolute)
        for reason in other.reasons:
            if reason not in self.reasons:
                self.reasons.append(reason)

    def to_window(self) -> BlockingWindow:
        return BlockingWindow(
            start_at=self.start,
            end_at=self.end,
            reason=REASON_SEPARATOR.join(self.reasons),
            severity=self.severity,
            timezone=self.timezone,
            redirect_url=self.redirect_url,
        )


def sanitize_tag(tag: str) -> str:
    lowered = tag.strip().lower()
    return lowered[1:] if lowered.startswith("#") else lowered


def build_reason(task: TaskDefinition) -> str:
    tag_suffix = " ".join(f"#{tag}" for tag in task.tags)
    return f"Task: {task.title} {tag_suffix}".strip()


def merge_windows(candidates: Iterable[WindowCandidate]) -> list[BlockingWindow]:
    """Collapse overlapping or touching candidates that share the same policy.

    Candidates differing in timezone, redirect target or severity stay separate
    even when their intervals overlap. Each candidate is compared with the most
    recent window of its own policy, so a window of another policy sitting in
    between does not split an otherwise continuous span.
    """

    merged: list[WindowCandidate] = []
    latest: dict[tuple[str, str, Severity], WindowCandidate] = {}
    for candidate in sorted(candidates, key=WindowCandidate.sort_key):
        key = candidate.policy_key()
        last = latest.get(key)
        if last is not None and _absolute(candidate.start) <= _absolute(last.end):
            last.absorb(candidate)
            continue
        window = WindowCandidate(
            start=candidate.start,
            end=candidate.end,
            timezone=candidate.timezone,
            redirect_url=candidate.redirect_url,
            severity=candidate.severity,
            reasons=list(candidate.reasons),
        )
        merged.append(window)
        latest[key] = window
    return [window.to_window() for window in merged]


def collect_candidates(
    tasks: Iterable[TaskDefinition],
    options: WindowOptions,
    converter: InstantConverter,
) -> list[WindowCandidate]:
    day = options.target_date
    focus_names = {sanitize_tag(tag) for tag in options.focus_tags} or set(DEFAULT_FOCUS_TAGS)
    candidates: list[WindowCandidate] = []

    for task in tasks:
        if target_for_date(task, day) <= 0:
            continue

        has_focus_tag = any(sanitize_tag(tag) in focus_names for tag in task.tags)
        if options.focus_only and not has_focus_tag:
            continue

        severity = Severity.STRICT if has_focus_tag else Severity.LENIENT
        zone_name = task_timezone(task, options.timezone)
        reason = build_reason(task)

        for rule in effective_time_rules(task):
            interval = resolve_minutes(rule, options.grace)
            if interval is None:
                continue
            start = converter.to_instant(day, interval.start, zone_name)
            end = converter.to_instant(day, interval.end, zone_name)
            if start is None or end is None:
                logger.warning("Skipping task %s: timezone %r could not be resolved", task.id, zone_name)
                continue
            if _absolute(end) <= _absolute(start):
                logger.debug("Skipping task %s rule %s: empty absolute interval", task.id, rule.id)
                continue
            candidates.append(
                WindowCandidate(
                    start=start,
                    end=end,
                    timezone=zone_name,
                    redirect_url=options.redirect_url,
                    severity=severity,
                    reasons=[reason],
                )
            )
    return candidates


def build_windows(
    tasks: Iterable[TaskDefinition],
    options: WindowOptions,
    converter: Optional[InstantConverter] = None,
) -> list[BlockingWindow]:
    """Blocking windows for ``options.target_date``, ascending by start."""

    converter = converter if converter is not None else InstantConverter()
    candidates = collect_candidates(tasks, options, converter)
    if not options.merge_overlaps:
        return [candidate.to_window() for candidate in sorted(candidates, key=WindowCandidate.sort_key)]

    windows = merge_windows(candidates)
    logger.debug(
        "Built %d windows from %d candidates for %s", len(windows), len(candidates), options.target_date
    )
    return windows
