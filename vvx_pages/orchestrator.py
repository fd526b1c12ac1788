"""One build run: decide, fetch, merge, fall back, persist."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from vvx_pages.cache_store import PersistentCache
from vvx_pages.clock import Clock, ClockReading
from vvx_pages.config import Settings
from vvx_pages.models import (
    AstronomyRecord,
    CacheStore,
    TideRecord,
    WeatherRecord,
    placeholder_astronomy,
    placeholder_tides,
    placeholder_weather,
)
from vvx_pages.refresh_policy import should_fetch_astronomy, should_fetch_tides, should_fetch_weather
from vvx_pages.sources.base import Failed, Fetched, FetchOutcome, SourceFetchers, Unavailable
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="orchestrator")


@dataclass
class DisplayRecords:
    """What the renderer shows: cached entries or placeholders, never None."""
    weather: WeatherRecord
    tides: TideRecord
    astronomy: AstronomyRecord
    placeholders: List[str] = field(default_factory=list)


@dataclass
class RunResult:
    """Outcome of a single run."""
    store: CacheStore
    records: DisplayRecords
    reading: ClockReading
    fetched: List[str] = field(default_factory=list)
    outcomes: Dict[str, FetchOutcome] = field(default_factory=dict)


class RefreshOrchestrator:
    """Own the cache for one run and apply each source's refresh policy."""

    def __init__(self, settings: Settings, clock: Clock, cache: PersistentCache, fetchers: SourceFetchers) -> None:
        self.settings = settings
        self.clock = clock
        self.cache = cache
        self.fetchers = fetchers

    def run(self) -> RunResult:
        store = self.cache.read()
        reading = self.clock.reading()
        logger.info("Run at local %s hour %02d (active window: %s)", reading.today, reading.hour,
                    reading.is_active_window)

        decisions = [
            ("weather", should_fetch_weather(reading, store.weather), self.fetchers.fetch_weather),
            ("astronomy", should_fetch_astronomy(reading, store.astronomy, self.settings.force_astronomy),
             self.fetchers.fetch_astronomy),
            ("tides", should_fetch_tides(reading, store.tides, self.settings.force_tides),
             self.fetchers.fetch_tides),
        ]
        outcomes: Dict[str, FetchOutcome] = {}
        for name, due, fetch in decisions:
            if not due:
                logger.info("%s: cached entry still current; skipping fetch", name)
                continue
            outcomes[name] = self._refresh(store, name, fetch)

        records = self._display_records(store, reading)
        # Written every run, even when nothing changed.
        self.cache.write(store)
        return RunResult(store=store, records=records, reading=reading,
                         fetched=list(outcomes), outcomes=outcomes)

    @staticmethod
    def _refresh(store: CacheStore, name: str, fetch: Callable[[], FetchOutcome]) -> FetchOutcome:
        outcome = fetch()
        if isinstance(outcome, Fetched):
            setattr(store, name, outcome.record)
            logger.info("%s: cache entry replaced", name)
        elif isinstance(outcome, Unavailable):
            logger.info("%s: source unavailable (%s); keeping previous entry", name, outcome.reason)
        elif isinstance(outcome, Failed):
            logger.warning("%s: fetch failed (%s); keeping previous entry", name, outcome.cause)
        else:
            raise TypeError(f"Unexpected fetch outcome for {name}: {outcome!r}")
        return outcome

    def _display_records(self, store: CacheStore, reading: ClockReading) -> DisplayRecords:
        placeholders: List[str] = []
        today = reading.today

        weather: Optional[WeatherRecord] = store.weather
        if weather is None:
            weather = placeholder_weather()
            placeholders.append("weather")
        astronomy: Optional[AstronomyRecord] = store.astronomy
        if astronomy is None:
            astronomy = placeholder_astronomy(today)
            placeholders.append("astronomy")
        tides: Optional[TideRecord] = store.tides
        if tides is None:
            tides = placeholder_tides(today, self.clock.tomorrow())
            placeholders.append("tides")

        if placeholders:
            logger.warning("Showing placeholder data for: %s", ", ".join(placeholders))
        return DisplayRecords(weather=weather, tides=tides, astronomy=astronomy, placeholders=placeholders)
