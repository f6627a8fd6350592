"""Local (date, minute-of-day, zone) to absolute instant conversion.

A naive ``local - offset`` is wrong when the offset taken at the provisional
instant differs from the offset in force at the corrected one, which happens
on daylight-saving transition days. ``InstantConverter.to_instant`` re-checks
the offset after the first correction and re-applies it once if it moved.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, time, timedelta, timezone
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


class ZoneCache:
    """Read-through cache of resolved zones keyed by IANA identifier.

    Entries are written once and never invalidated, so a single instance may be
    shared between threads. Unknown identifiers are not cached.
    """

    def __init__(self, seed: Optional[Mapping[str, ZoneInfo]] = None) -> None:
        self._zones: dict[str, ZoneInfo] = dict(seed or {})
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        return name in self._zones

    def __len__(self) -> int:
        return len(self._zones)

    def get(self, name: str) -> Optional[ZoneInfo]:
        zone = self._zones.get(name)
        if zone is not None:
            return zone
        with self._lock:
            zone = self._zones.get(name)
            if zone is None:
                zone = _load_zone(name)
                if zone is not None:
                    self._zones[name] = zone
        return zone


def _load_zone(name: str) -> Optional[ZoneInfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def is_valid_timezone(name: str | None, cache: Optional[ZoneCache] = None) -> bool:
    if not name:
        return False
    if cache is not None:
        return cache.get(name) is not None
    return _load_zone(name) is not None


class InstantConverter:
    def __init__(self, cache: Optional[ZoneCache] = None) -> None:
        self.cache = cache if cache is not None else ZoneCache()

    def zone(self, name: str) -> Optional[ZoneInfo]:
        return self.cache.get(name)

    def offset_at(self, instant: datetime, zone: ZoneInfo) -> timedelta:
        return instant.astimezone(zone).utcoffset() or timedelta(0)

    def to_instant(self, day: date, minute_of_day: int, zone_name: str) -> Optional[datetime]:
        """Absolute instant for ``minute_of_day`` on ``day`` in ``zone_name``.

        The result is an aware datetime expressed in the target zone, so its
        ``utcoffset()`` is the offset actually in force at that instant.
        """

        zone = self.zone(zone_name)
        if zone is None:
            logger.debug("Unknown timezone %r; cannot convert %s +%d min", zone_name, day, minute_of_day)
            return None

        provisional = datetime.combine(day, time.min, tzinfo=timezone.utc) + timedelta(minutes=minute_of_day)
        initial_offset = self.offset_at(provisional, zone)
        corrected = provisional - initial_offset

        final_offset = self.offset_at(corrected, zone)
        if final_offset != initial_offset:
            corrected = provisional - final_offset

        return corrected.astimezone(zone)

    def local_date(self, instant: datetime, zone_name: str) -> Optional[date]:
        zone = self.zone(zone_name)
        if zone is None:
            return None
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(zone).date()
