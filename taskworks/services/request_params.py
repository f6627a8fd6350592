"""Boundary validation of window requests.

Everything the engine should never see malformed is checked here: dates and
numeric options raise ``ValidationError``, an unknown timezone falls back to UTC.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Mapping, Optional

from taskworks.config import SETTINGS, Settings
from taskworks.domain.errors import ValidationError
from taskworks.domain.options import GraceConfig, WindowOptions, parse_iso_date
from taskworks.engine.instants import ZoneCache, is_valid_timezone

logger = logging.getLogger(__name__)

FALLBACK_TIMEZONE = "UTC"
TRUE_VALUES = {"true", "1", "yes", "y"}
FALSE_VALUES = {"false", "0", "no", "n"}


@dataclass(frozen=True)
class WindowRequest:
    target_date: date
    timezone: str
    focus_only: bool = True
    merge_overlaps: bool = True
    debug: bool = False
    pre_grace_min: int = 3
    post_grace_min: int = 3
    duration_default_min: int = 60
    focus_tags: tuple[str, ...] = ("focus",)

    def to_options(self, redirect_url: str) -> WindowOptions:
        return WindowOptions(
            target_date=self.target_date,
            redirect_url=redirect_url,
            timezone=self.timezone,
            grace=GraceConfig(
                pre_grace_minutes=self.pre_grace_min,
                post_grace_minutes=self.post_grace_min,
                duration_default_minutes=self.duration_default_min,
            ),
            focus_tags=self.focus_tags,
            focus_only=self.focus_only,
            merge_overlaps=self.merge_overlaps,
        )


def resolve_boolean(value: Optional[str], fallback: bool) -> bool:
    if value is None:
        return fallback
    lowered = str(value).strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return fallback


def parse_minutes_param(name: str, value: Optional[str], fallback: int) -> int:
    if value is None or str(value).strip() == "":
        return fallback
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"{name} must be a whole number of minutes") from exc
    if parsed < 0:
        raise ValidationError(f"{name} must be non-negative")
    return parsed


def sanitize_timezone(value: Optional[str], cache: Optional[ZoneCache] = None) -> str:
    if not value:
        return ""
    trimmed = value.strip()
    if not trimmed or not is_valid_timezone(trimmed, cache):
        return ""
    return trimmed


def today_in(zone_name: str, now: Optional[datetime] = None, cache: Optional[ZoneCache] = None) -> date:
    cache = cache if cache is not None else ZoneCache()
    zone = cache.get(zone_name) or cache.get(FALLBACK_TIMEZONE)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(zone).date()


def resolve_focus_tags(value: Optional[str], fallback: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return fallback
    tags = tuple(part.strip() for part in value.split(",") if part.strip())
    return tags or fallback


def parse_window_request(
    params: Mapping[str, Optional[str]],
    settings: Settings = SETTINGS,
    now: Optional[datetime] = None,
    cache: Optional[ZoneCache] = None,
) -> WindowRequest:
    raw_tz = params.get("tz")
    if raw_tz is None:
        raw_tz = settings.default_timezone
    zone_name = sanitize_timezone(raw_tz, cache)
    if not zone_name:
        logger.info("Unknown timezone %r requested; falling back to %s", raw_tz, FALLBACK_TIMEZONE)
        zone_name = FALLBACK_TIMEZONE

    raw_date = params.get("date")
    if raw_date:
        target_date = parse_iso_date(raw_date)
    else:
        target_date = today_in(zone_name, now=now, cache=cache)

    return WindowRequest(
        target_date=target_date,
        timezone=zone_name,
        focus_only=resolve_boolean(params.get("focus_only"), True),
        merge_overlaps=resolve_boolean(params.get("merge"), True),
        debug=resolve_boolean(params.get("debug"), False),
        pre_grace_min=parse_minutes_param("pre_grace_min", params.get("pre_grace_min"), settings.pre_grace_min),
        post_grace_min=parse_minutes_param("post_grace_min", params.get("post_grace_min"), settings.post_grace_min),
        duration_default_min=parse_minutes_param(
            "duration_default_min", params.get("duration_default_min"), settings.duration_default_min
        ),
        focus_tags=resolve_focus_tags(params.get("focus_tags"), settings.focus_tags),
    )
