from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from .errors import ValidationError

ISO_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
DEFAULT_FOCUS_TAGS = ("focus",)


def parse_iso_date(value: date | str) -> date:
    """Return ``value`` as a ``date``; strings must be ``YYYY-MM-DD``."""

    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not ISO_DATE_RE.match(text):
        raise ValidationError(f"Invalid date format {value!r}. Expected YYYY-MM-DD")
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid calendar date {value!r}") from exc


@dataclass(frozen=True)
class GraceConfig:
    pre_grace_minutes: int = 3
    post_grace_minutes: int = 3
    duration_default_minutes: int = 60

    def __post_init__(self) -> None:
        for name in ("pre_grace_minutes", "post_grace_minutes", "duration_default_minutes"):
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} must be non-negative")


@dataclass(frozen=True)
class WindowOptions:
    target_date: date
    redirect_url: str
    timezone: str = "UTC"
    grace: GraceConfig = field(default_factory=GraceConfig)
    focus_tags: tuple[str, ...] = DEFAULT_FOCUS_TAGS
    focus_only: bool = True
    merge_overlaps: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_date", parse_iso_date(self.target_date))
