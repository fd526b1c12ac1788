"""Bind the three source adapters to the configured location and keys."""

from __future__ import annotations

from functools import partial

from vvx_pages import config
from vvx_pages.clock import Clock
from vvx_pages.sources.base import CallableSourceFetchers, SourceFetchers
from vvx_pages.sources.open_meteo_client import fetch_weather_current
from vvx_pages.sources.stormglass_client import fetch_tides
from vvx_pages.sources.weatherapi_client import fetch_astronomy
from utils.logging_utils import get_tagged_logger, mask_secret

logger = get_tagged_logger(__name__, tag="sources/factory")


def build_fetchers(settings: config.Settings | None = None, clock: Clock | None = None) -> SourceFetchers:
    """Return fetchers for Open-Meteo, WeatherAPI and Stormglass."""
    settings = settings or config.settings
    clock = clock or Clock(settings.timezone)
    timeout = settings.request_timeout_seconds
    tide_lat, tide_lng = settings.tide_coordinates

    logger.info(
        "Using weather at %s,%s; tides at %s,%s; weatherapi key %s; stormglass key %s",
        settings.latitude, settings.longitude, tide_lat, tide_lng,
        mask_secret(settings.weatherapi_key), mask_secret(settings.stormglass_key),
    )

    return CallableSourceFetchers(
        weather=partial(
            fetch_weather_current,
            settings.latitude,
            settings.longitude,
            timezone=settings.timezone,
            timeout=timeout,
        ),
        astronomy=partial(
            fetch_astronomy,
            settings.weatherapi_key,
            settings.resolved_astronomy_query,
            clock=clock,
            timeout=timeout,
        ),
        tides=partial(
            fetch_tides,
            settings.stormglass_key,
            tide_lat,
            tide_lng,
            clock=clock,
            timeout=timeout,
        ),
    )
