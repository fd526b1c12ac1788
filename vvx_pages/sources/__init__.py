"""Upstream data sources: Open-Meteo, WeatherAPI and Stormglass."""

from .base import CallableSourceFetchers, Failed, Fetched, FetchOutcome, SourceFetchers, Unavailable
from .factory import build_fetchers
from .open_meteo_client import fetch_weather_current
from .stormglass_client import fetch_tides
from .weatherapi_client import fetch_astronomy

__all__ = [
    "build_fetchers",
    "CallableSourceFetchers",
    "SourceFetchers",
    "FetchOutcome",
    "Fetched",
    "Unavailable",
    "Failed",
    "fetch_weather_current",
    "fetch_astronomy",
    "fetch_tides",
]
