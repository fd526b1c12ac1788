"""Current weather from the Open-Meteo forecast API (no key required)."""
from __future__ import annotations

import datetime as dt
import math
from typing import Optional

import requests

from vvx_pages.models import WeatherIcon, WeatherRecord
from vvx_pages.sources.base import Failed, Fetched, FetchOutcome
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="sources/open_meteo")

session = requests.Session()

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"

CURRENT_VARS = ["temperature_2m", "wind_speed_10m", "wind_direction_10m", "weather_code"]

EXPECTED_UNITS = {
    "temperature_2m": "°C",
    "wind_speed_10m": "km/h",
    "wind_direction_10m": "°",
}

# Acceptable alternative spellings that should not trigger warnings.
ALLOWED_UNIT_SYNONYMS = {
    "temperature_2m": {"°C"},
    "wind_speed_10m": {"km/h", "kmh"},
    "wind_direction_10m": {"°", "deg", "degrees"},
}

# WMO weather interpretation codes -> icon tag. Anything missing is clear-day.
WEATHER_CODE_ICONS = {
    0: WeatherIcon.CLEAR_DAY,
    1: WeatherIcon.PARTLY_CLOUDY,
    2: WeatherIcon.CLOUDY,
    3: WeatherIcon.RAIN,
    45: WeatherIcon.FOG,
    48: WeatherIcon.FOG,
    51: WeatherIcon.RAIN,
    53: WeatherIcon.RAIN,
    55: WeatherIcon.RAIN,
    61: WeatherIcon.RAIN,
    63: WeatherIcon.RAIN,
    65: WeatherIcon.RAIN,
    71: WeatherIcon.SNOW,
    73: WeatherIcon.SNOW,
    75: WeatherIcon.SNOW,
    77: WeatherIcon.SNOW,
    80: WeatherIcon.RAIN,
    81: WeatherIcon.RAIN,
    82: WeatherIcon.RAIN,
    85: WeatherIcon.SNOW,
    86: WeatherIcon.SNOW,
    95: WeatherIcon.THUNDERSTORM,
    96: WeatherIcon.THUNDERSTORM,
    99: WeatherIcon.THUNDERSTORM,
}


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3, -2.5 -> -2) instead of to even."""
    return int(math.floor(value + 0.5))


def celsius_to_fahrenheit(c: float) -> int:
    return round_half_up(c * 9 / 5 + 32)


def kmh_to_mph(kmh: float) -> int:
    return round_half_up(kmh * 0.621371)


def icon_for_code(code: Optional[int]) -> WeatherIcon:
    """Map a WMO code to an icon tag, defaulting to clear-day."""
    if code is None:
        return WeatherIcon.CLEAR_DAY
    return WEATHER_CODE_ICONS.get(code, WeatherIcon.CLEAR_DAY)


def _warn_on_unexpected_units(units: dict, *, context: str):
    """Log a warning if Open-Meteo returns units we did not request."""
    if not units:
        return
    for field, expected in EXPECTED_UNITS.items():
        actual = units.get(field)
        if actual and actual != expected and actual not in ALLOWED_UNIT_SYNONYMS.get(field, set()):
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected},
            )


def _number(current: dict, field: str) -> float:
    value = current.get(field)
    if value is None:
        return 0.0
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{field} is not finite: {value!r}")
    return number


def parse_current_weather(data: dict, *, captured_at: dt.datetime) -> WeatherRecord:
    """Normalize a `current=` forecast payload. Raises KeyError/TypeError/ValueError on bad shape."""
    if not isinstance(data, dict):
        raise TypeError("payload is not an object")
    current = data["current"]
    if not isinstance(current, dict):
        raise TypeError("'current' is not an object")
    units = data.get("current_units")
    if isinstance(units, dict):
        _warn_on_unexpected_units(units, context="weather_current")

    temp_c = _number(current, "temperature_2m")
    wind_kmh = _number(current, "wind_speed_10m")
    wind_dir = _number(current, "wind_direction_10m")
    raw_code = current.get("weather_code")
    code = int(raw_code) if raw_code is not None else None

    return WeatherRecord(
        c=round_half_up(temp_c),
        f=celsius_to_fahrenheit(temp_c),
        kmh=round_half_up(wind_kmh),
        mph=kmh_to_mph(wind_kmh),
        winddir=round_half_up(wind_dir) % 360,
        icon=icon_for_code(code),
        weather_code=code,
        captured_at=captured_at,
    )


def fetch_weather_current(latitude: float,
                          longitude: float,
                          *,
                          timezone: str = "Europe/London",
                          timeout: float = 10.0,
                          ) -> FetchOutcome[WeatherRecord]:
    """Fetch current conditions for the given coordinates."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(CURRENT_VARS),
        "timezone": timezone,
        "temperature_unit": "celsius",
        "wind_speed_unit": "kmh",
    }

    try:
        resp = session.get(OPEN_METEO_WEATHER_URL, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.exceptions.RequestException as exc:
        logger.warning("Open-Meteo request failed: %s", exc)
        return Failed(cause=f"request error: {exc}")
    except ValueError as exc:
        logger.warning("Open-Meteo returned non-JSON response: %s", exc)
        return Failed(cause="non-JSON response")

    try:
        record = parse_current_weather(data, captured_at=dt.datetime.now(dt.timezone.utc))
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as exc:
        logger.warning("Open-Meteo payload malformed: %r", exc)
        return Failed(cause=f"malformed payload: {exc!r}")

    logger.info("Fetched weather: %s°C, %s km/h, icon=%s", record.c, record.kmh, record.icon.value)
    return Fetched(record)
