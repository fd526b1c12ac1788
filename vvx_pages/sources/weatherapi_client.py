"""Sunrise, sunset and moon phase from the WeatherAPI astronomy endpoint."""
from __future__ import annotations

import re
from typing import Optional

import requests

from vvx_pages.clock import Clock
from vvx_pages.models import DEFAULT_MOON_ICON, NO_LABEL, NO_TIME, AstronomyRecord
from vvx_pages.sources.base import Failed, Fetched, FetchOutcome, Unavailable
from utils.logging_utils import get_tagged_logger, mask_url
logger = get_tagged_logger(__name__, tag="sources/weatherapi")

session = requests.Session()

WEATHERAPI_ASTRONOMY_URL = "https://api.weatherapi.com/v1/astronomy.json"

# Icons shipped under svg/moon/.
KNOWN_MOON_ICONS = {
    "new-moon",
    "waxing-crescent",
    "first-quarter",
    "waxing-gibbous",
    "full-moon",
    "waning-gibbous",
    "last-quarter",
    "waning-crescent",
}

_WHITESPACE = re.compile(r"\s+")


def moon_icon_for(phase_name: Optional[str]) -> str:
    """'Waxing Gibbous' -> 'waxing-gibbous'; unknown or empty -> default icon."""
    slug = _WHITESPACE.sub("-", (phase_name or "").strip().lower())
    if slug in KNOWN_MOON_ICONS:
        return slug
    return DEFAULT_MOON_ICON


def _illumination(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def parse_astronomy(data: dict, *, day_stamp: str) -> AstronomyRecord:
    """Normalize an astronomy.json payload. Raises KeyError/TypeError on bad shape."""
    astro = data["astronomy"]["astro"]
    if not isinstance(astro, dict):
        raise TypeError("astronomy.astro is not an object")
    phase_name = astro.get("moon_phase") or NO_LABEL
    return AstronomyRecord(
        sunrise=astro.get("sunrise") or NO_TIME,
        sunset=astro.get("sunset") or NO_TIME,
        phase_name=phase_name,
        phase_icon=moon_icon_for(phase_name),
        moon_illumination=_illumination(astro.get("moon_illumination")),
        day_stamp=day_stamp,
    )


def fetch_astronomy(api_key: Optional[str],
                    query: str,
                    *,
                    clock: Clock,
                    timeout: float = 10.0,
                    ) -> FetchOutcome[AstronomyRecord]:
    """Fetch today's astronomy for `query`; Unavailable without an API key."""
    if not api_key:
        return Unavailable(reason="WEATHERAPI_KEY not set")

    today = clock.today()
    params = {"key": api_key, "q": query, "dt": today}

    try:
        resp = session.get(WEATHERAPI_ASTRONOMY_URL, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.exceptions.RequestException as exc:
        # HTTPError messages embed the request URL, key included.
        url = getattr(getattr(exc, "request", None), "url", None) or WEATHERAPI_ASTRONOMY_URL
        logger.warning("WeatherAPI request failed for %s: %s", mask_url(url), type(exc).__name__)
        return Failed(cause=f"request error: {type(exc).__name__}")
    except ValueError as exc:
        logger.warning("WeatherAPI returned non-JSON response: %s", exc)
        return Failed(cause="non-JSON response")

    try:
        record = parse_astronomy(data, day_stamp=today)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("WeatherAPI payload malformed: %r", exc)
        return Failed(cause=f"malformed payload: {exc!r}")

    logger.info("Fetched astronomy for %s: sunrise=%s sunset=%s phase=%s",
                today, record.sunrise, record.sunset, record.phase_name)
    return Fetched(record)
