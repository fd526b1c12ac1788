"""Tide extremes for today and tomorrow from the Stormglass API.

The primary query covers local midnight today through the end of local
tomorrow. If that fails or comes back empty, one rolling query (12 hours
back, 48 hours ahead) is tried. An empty-but-successful result is still
returned as a record, so the day stamp advances and the next run does not
hit the API again.
"""
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional, Tuple

import requests

from vvx_pages.clock import Clock
from vvx_pages.models import TideEvent, TideKind, TideRecord
from vvx_pages.sources.base import Failed, Fetched, FetchOutcome, Unavailable
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="sources/stormglass")

session = requests.Session()

STORMGLASS_EXTREMES_URL = "https://api.stormglass.io/v2/tide/extremes/point"

MAX_EVENTS_PER_DAY = 4
FALLBACK_HOURS_BACK = 12
FALLBACK_HOURS_AHEAD = 48


class TideQueryError(Exception):
    """A tide window query did not return a usable payload."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _iso_utc(ts: dt.datetime) -> str:
    return ts.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_time(value: str) -> dt.datetime:
    parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def parse_extremes(data: dict) -> List[TideEvent]:
    """Turn the `data` list into TideEvents. Raises on malformed entries."""
    items = data.get("data")
    if items is None:
        return []
    if not isinstance(items, list):
        raise TypeError("'data' is not a list")
    events = []
    for item in items:
        kind = str(item["type"]).lower()
        if kind not in {k.value for k in TideKind}:
            logger.debug("Skipping tide event of type %r", item["type"])
            continue
        events.append(
            TideEvent(
                kind=TideKind(kind),
                time=_parse_time(item["time"]),
                height=float(item.get("height") or 0.0),
            )
        )
    return events


def bucket_events(events: Iterable[TideEvent], clock: Clock) -> TideRecord:
    """Split events by their own local day into today/tomorrow, sorted and capped."""
    today_key = clock.today()
    tomorrow_key = clock.tomorrow()
    today: List[TideEvent] = []
    tomorrow: List[TideEvent] = []
    for event in events:
        day = clock.local_date_of(event.time)
        if day == today_key:
            today.append(event)
        elif day == tomorrow_key:
            tomorrow.append(event)

    def _ordered(bucket: List[TideEvent]) -> List[TideEvent]:
        return sorted(bucket, key=lambda e: e.time)[:MAX_EVENTS_PER_DAY]

    return TideRecord(
        day_stamp=today_key,
        today_key=today_key,
        tomorrow_key=tomorrow_key,
        today=_ordered(today),
        tomorrow=_ordered(tomorrow),
    )


def primary_window(clock: Clock) -> Tuple[dt.datetime, dt.datetime]:
    """Local midnight today through local midnight the day after tomorrow."""
    return clock.local_midnight(0), clock.local_midnight(2)


def fallback_window(clock: Clock) -> Tuple[dt.datetime, dt.datetime]:
    now = clock.now()
    return now - dt.timedelta(hours=FALLBACK_HOURS_BACK), now + dt.timedelta(hours=FALLBACK_HOURS_AHEAD)


def _query_window(api_key: str, lat: float, lng: float,
                  start: dt.datetime, end: dt.datetime, *, timeout: float) -> List[TideEvent]:
    params = {"lat": lat, "lng": lng, "start": _iso_utc(start), "end": _iso_utc(end)}
    try:
        resp = session.get(
            STORMGLASS_EXTREMES_URL,
            params=params,
            headers={"Authorization": api_key},
            timeout=timeout,
        )
    except requests.exceptions.RequestException as exc:
        raise TideQueryError(f"request error: {type(exc).__name__}: {exc}") from exc

    if not 200 <= resp.status_code < 300:
        raise TideQueryError(f"HTTP {resp.status_code}", status_code=resp.status_code)

    try:
        data = resp.json()
    except ValueError as exc:
        raise TideQueryError("non-JSON response") from exc
    if not isinstance(data, dict):
        raise TideQueryError("payload is not an object")
    try:
        return parse_extremes(data)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TideQueryError(f"malformed payload: {exc!r}") from exc


def fetch_tides(api_key: Optional[str],
                latitude: float,
                longitude: float,
                *,
                clock: Clock,
                timeout: float = 10.0,
                ) -> FetchOutcome[TideRecord]:
    """Fetch and bucket tide extremes; Unavailable without an API key."""
    if not api_key:
        return Unavailable(reason="STORMGLASS_KEY not set")

    start, end = primary_window(clock)
    try:
        events = _query_window(api_key, latitude, longitude, start, end, timeout=timeout)
    except TideQueryError as exc:
        logger.warning("Primary tide window failed (%s); trying rolling window", exc)
        events = []
    else:
        if not events:
            logger.info("Primary tide window returned no events; trying rolling window")

    if not events:
        start, end = fallback_window(clock)
        try:
            events = _query_window(api_key, latitude, longitude, start, end, timeout=timeout)
        except TideQueryError as exc:
            if exc.status_code is None:
                logger.warning("Rolling tide window failed: %s", exc)
                return Failed(cause=str(exc))
            logger.warning("Rolling tide window returned %s; storing empty tide record", exc)
            events = []

    record = bucket_events(events, clock)
    logger.info("Fetched tides: %d today, %d tomorrow", len(record.today), len(record.tomorrow))
    return Fetched(record)
