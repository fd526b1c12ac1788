"""Fetch outcomes and the fetcher interface used by the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Protocol, TypeVar, Union

from vvx_pages.models import AstronomyRecord, TideRecord, WeatherRecord

R = TypeVar("R")


@dataclass(frozen=True)
class Fetched(Generic[R]):
    """The source returned a usable record."""
    record: R


@dataclass(frozen=True)
class Unavailable:
    """The source cannot be queried (e.g. no API key); no request was made."""
    reason: str


@dataclass(frozen=True)
class Failed:
    """The request was made but produced nothing usable."""
    cause: str


FetchOutcome = Union[Fetched[R], Unavailable, Failed]


class SourceFetchers(Protocol):
    """Anything that can fetch the three records for the configured location."""

    def fetch_weather(self) -> FetchOutcome[WeatherRecord]:
        ...

    def fetch_astronomy(self) -> FetchOutcome[AstronomyRecord]:
        ...

    def fetch_tides(self) -> FetchOutcome[TideRecord]:
        ...


@dataclass
class CallableSourceFetchers(SourceFetchers):
    """Wrap three zero-argument callables so tests can swap any of them."""

    weather: Callable[[], FetchOutcome[WeatherRecord]]
    astronomy: Callable[[], FetchOutcome[AstronomyRecord]]
    tides: Callable[[], FetchOutcome[TideRecord]]

    def fetch_weather(self) -> FetchOutcome[WeatherRecord]:
        return self.weather()

    def fetch_astronomy(self) -> FetchOutcome[AstronomyRecord]:
        return self.astronomy()

    def fetch_tides(self) -> FetchOutcome[TideRecord]:
        return self.tides()
