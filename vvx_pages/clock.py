"""Local wall-clock helpers pinned to the panel's civil time zone.

All date and hour decisions are made in the configured zone (Europe/London
by default), never in the host's zone or in UTC, so the refresh hours keep
lining up across daylight-saving changes.
"""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Callable, Optional
from zoneinfo import ZoneInfo

ACTIVE_WINDOW_START_HOUR = 6
ACTIVE_WINDOW_END_HOUR = 22  # inclusive


@dataclass(frozen=True)
class ClockReading:
    """Single wall-clock sample handed to the refresh predicates."""
    today: str  # YYYY-MM-DD, local
    hour: int
    is_active_window: bool


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Clock:
    """Resolve local date/hour in a fixed zone.

    `now_fn` must return an aware datetime; tests inject a fixed instant.
    """

    def __init__(self, tz_name: str = "Europe/London", now_fn: Optional[Callable[[], dt.datetime]] = None) -> None:
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)
        self._now_fn = now_fn or _utc_now

    def now(self) -> dt.datetime:
        """Current instant expressed in the local zone."""
        return self._now_fn().astimezone(self.tz)

    def today(self) -> str:
        return self.now().strftime("%Y-%m-%d")

    def hour_of_day(self) -> int:
        return self.now().hour

    def is_active_window(self) -> bool:
        return is_active_hour(self.hour_of_day())

    def reading(self) -> ClockReading:
        """Take one sample so today/hour cannot straddle midnight."""
        local = self.now()
        return ClockReading(
            today=local.strftime("%Y-%m-%d"),
            hour=local.hour,
            is_active_window=is_active_hour(local.hour),
        )

    def local_date_of(self, ts: dt.datetime) -> str:
        """Local calendar day of an aware timestamp."""
        return ts.astimezone(self.tz).strftime("%Y-%m-%d")

    def local_midnight(self, days: int = 0) -> dt.datetime:
        """Local midnight of today plus `days`, as an aware datetime."""
        day = self.now().date() + dt.timedelta(days=days)
        return dt.datetime.combine(day, dt.time(0, 0), tzinfo=self.tz)

    def tomorrow(self) -> str:
        return self.local_midnight(1).strftime("%Y-%m-%d")

    # -- display formatting ------------------------------------------------

    def format_date(self) -> str:
        """e.g. '18 Oct 2026'."""
        return self.now().strftime("%d %b %Y")

    def format_time(self, ts: Optional[dt.datetime] = None) -> str:
        """24h 'HH:MM' in the local zone; defaults to now."""
        ts = ts or self.now()
        return ts.astimezone(self.tz).strftime("%H:%M")

    def day_label(self, ymd: str) -> str:
        """'2026-10-18' -> 'Sun 18 Oct'."""
        day = dt.date.fromisoformat(ymd)
        return day.strftime("%a %d %b")


def is_active_hour(hour: int) -> bool:
    """True for local hours 06..22 inclusive."""
    return ACTIVE_WINDOW_START_HOUR <= hour <= ACTIVE_WINDOW_END_HOUR


_MERIDIEM = re.compile(r"\s*(AM|PM)$", re.IGNORECASE)


def strip_meridiem(value: str) -> str:
    """'07:31 AM' -> '07:31'."""
    return _MERIDIEM.sub("", value or "")
