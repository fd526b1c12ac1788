"""Record schemas for the three data sources and the persisted cache.

Each source owns one record type. Astronomy and tide records carry a
`day_stamp` (local YYYY-MM-DD) that the refresh policy compares with today;
the weather record deliberately has none. The placeholder builders at the
bottom produce the fixed values shown before a source has ever succeeded.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _RecordModel(BaseModel):
    """Base model that rejects unknown keys so stale cache shapes read as absent."""

    model_config = ConfigDict(extra="forbid")


class WeatherIcon(str, Enum):
    """Closed set of weather icon tags (file names under svg/weather/)."""
    CLEAR_DAY = "clear-day"
    PARTLY_CLOUDY = "partly-cloudy"
    CLOUDY = "cloudy"
    RAIN = "rain"
    FOG = "fog"
    SNOW = "snow"
    THUNDERSTORM = "thunderstorm"


class TideKind(str, Enum):
    HIGH = "high"
    LOW = "low"


DEFAULT_MOON_ICON = "full-moon"
NO_TIME = "--:--"
NO_LABEL = "—"


class WeatherRecord(_RecordModel):
    """Current conditions, already converted to both unit systems."""
    c: int
    f: int
    kmh: int
    mph: int
    winddir: int = Field(ge=0, le=359)
    icon: WeatherIcon
    weather_code: Optional[int] = None
    captured_at: Optional[dt.datetime] = None


class AstronomyRecord(_RecordModel):
    sunrise: str
    sunset: str
    phase_name: str
    phase_icon: str
    moon_illumination: Optional[int] = None
    day_stamp: str


class TideEvent(_RecordModel):
    """One high- or low-water extreme."""
    kind: TideKind
    time: dt.datetime
    height: float  # metres


class TideRecord(_RecordModel):
    """Tide extremes bucketed into the local today and tomorrow."""
    day_stamp: str
    today_key: str
    tomorrow_key: str
    today: List[TideEvent] = Field(default_factory=list)
    tomorrow: List[TideEvent] = Field(default_factory=list)


class CacheStore(BaseModel):
    """Root of data/cache.json. `None` means the source has no usable entry."""

    model_config = ConfigDict(populate_by_name=True)

    weather: Optional[WeatherRecord] = None
    tides: Optional[TideRecord] = Field(None, validation_alias=AliasChoices("tides", "tides2d"))
    astronomy: Optional[AstronomyRecord] = None


# Field name -> record type; shared by the cache reader and the orchestrator.
SOURCE_RECORD_TYPES = {
    "weather": WeatherRecord,
    "tides": TideRecord,
    "astronomy": AstronomyRecord,
}


def placeholder_weather() -> WeatherRecord:
    return WeatherRecord(c=0, f=32, kmh=0, mph=0, winddir=0, icon=WeatherIcon.CLEAR_DAY)


def placeholder_astronomy(today: str) -> AstronomyRecord:
    return AstronomyRecord(
        sunrise=NO_TIME,
        sunset=NO_TIME,
        phase_name=NO_LABEL,
        phase_icon=DEFAULT_MOON_ICON,
        day_stamp=today,
    )


def placeholder_tides(today: str, tomorrow: str) -> TideRecord:
    return TideRecord(day_stamp=today, today_key=today, tomorrow_key=tomorrow)
