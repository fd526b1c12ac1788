"""Per-source decisions on whether to call the upstream API this run.

The build runs every 30 minutes. Weather is refreshed on every run inside
the active window; astronomy and tides change once a day and are refreshed
only during their pinned local hour, guarded by the record's day stamp so
the second run in that hour does not fetch again. A run that misses the
pinned hour leaves yesterday's data in place until the next day.
"""

from __future__ import annotations

from typing import Optional

from vvx_pages.clock import ClockReading
from vvx_pages.models import AstronomyRecord, TideRecord, WeatherRecord

ASTRONOMY_REFRESH_HOUR = 6
TIDES_REFRESH_HOUR = 2


def should_fetch_weather(now: ClockReading, entry: Optional[WeatherRecord]) -> bool:
    return now.is_active_window or entry is None


def should_fetch_astronomy(now: ClockReading, entry: Optional[AstronomyRecord], force: bool = False) -> bool:
    if force or entry is None:
        return True
    return now.hour == ASTRONOMY_REFRESH_HOUR and entry.day_stamp != now.today


def should_fetch_tides(now: ClockReading, entry: Optional[TideRecord], force: bool = False) -> bool:
    if force or entry is None:
        return True
    return now.hour == TIDES_REFRESH_HOUR and entry.day_stamp != now.today
