import datetime as dt
import unittest
from zoneinfo import ZoneInfo

import requests

from vvx_pages.clock import Clock
from vvx_pages.models import TideKind
from vvx_pages.sources import stormglass_client
from vvx_pages.sources.base import Failed, Fetched, Unavailable

UTC = dt.timezone.utc
NOW = dt.datetime(2026, 10, 18, 10, 0, tzinfo=ZoneInfo("Europe/London"))


class DummyResp:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload


class QueueSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _event(kind, time, height):
    return {"type": kind, "time": time, "height": height}


def _extremes(*events):
    return DummyResp({"data": list(events), "meta": {"station": {"name": "newlyn"}}})


class TestStormglassClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = stormglass_client.session
        self.clock = Clock("Europe/London", now_fn=lambda: NOW)

    def tearDown(self):
        stormglass_client.session = self._orig_session

    def _fetch(self, session, key="sg-key"):
        stormglass_client.session = session
        return stormglass_client.fetch_tides(key, 50.1, -5.5, clock=self.clock, timeout=5)

    def test_missing_key_is_unavailable_without_request(self):
        session = QueueSession()
        outcome = self._fetch(session, key=None)
        self.assertIsInstance(outcome, Unavailable)
        self.assertEqual(session.calls, [])

    def test_primary_window_request(self):
        session = QueueSession(_extremes(_event("high", "2026-10-18T05:00:00+00:00", 4.81)))
        outcome = self._fetch(session)
        self.assertIsInstance(outcome, Fetched)
        self.assertEqual(len(session.calls), 1)
        call = session.calls[0]
        self.assertEqual(call["headers"], {"Authorization": "sg-key"})
        self.assertEqual(call["timeout"], 5)
        self.assertEqual(call["params"]["lat"], 50.1)
        self.assertEqual(call["params"]["lng"], -5.5)
        # local midnight (BST) through end of local tomorrow
        self.assertEqual(call["params"]["start"], "2026-10-17T23:00:00Z")
        self.assertEqual(call["params"]["end"], "2026-10-19T23:00:00Z")

    def test_empty_primary_falls_back_and_buckets_by_local_day(self):
        session = QueueSession(
            _extremes(),
            _extremes(
                _event("low", "2026-10-19T11:00:00+00:00", 0.9),
                _event("high", "2026-10-18T23:30:00+00:00", 5.1),  # 00:30 BST on the 19th
                _event("high", "2026-10-18T05:00:00+00:00", 4.8),
            ),
        )
        outcome = self._fetch(session)

        self.assertIsInstance(outcome, Fetched)
        self.assertEqual(len(session.calls), 2)
        self.assertEqual(session.calls[1]["params"]["start"], "2026-10-17T21:00:00Z")
        self.assertEqual(session.calls[1]["params"]["end"], "2026-10-20T09:00:00Z")

        record = outcome.record
        self.assertEqual(record.day_stamp, "2026-10-18")
        self.assertEqual(record.today_key, "2026-10-18")
        self.assertEqual(record.tomorrow_key, "2026-10-19")
        self.assertEqual([e.time for e in record.today], [dt.datetime(2026, 10, 18, 5, 0, tzinfo=UTC)])
        self.assertEqual(
            [e.time for e in record.tomorrow],
            [dt.datetime(2026, 10, 18, 23, 30, tzinfo=UTC), dt.datetime(2026, 10, 19, 11, 0, tzinfo=UTC)],
        )
        self.assertEqual([e.kind for e in record.tomorrow], [TideKind.HIGH, TideKind.LOW])
        self.assertEqual(record.tomorrow[1].height, 0.9)

    def test_buckets_are_capped_sorted_and_other_days_dropped(self):
        events = [_event("high" if i % 2 else "low", f"2026-10-18T{h:02d}:00:00+00:00", 1.0 + i)
                  for i, h in enumerate([20, 2, 14, 8, 5, 11])]
        events.append(_event("low", "2026-10-21T09:00:00+00:00", 1.0))
        outcome = self._fetch(QueueSession(_extremes(*events)))
        record = outcome.record
        self.assertEqual([e.time.hour for e in record.today], [2, 5, 8, 11])
        self.assertEqual(record.tomorrow, [])

    def test_primary_http_error_falls_back(self):
        session = QueueSession(
            DummyResp({"errors": {"key": "invalid"}}, status_code=500),
            _extremes(_event("low", "2026-10-18T12:00:00+00:00", 1.2)),
        )
        record = self._fetch(session).record
        self.assertEqual(len(record.today), 1)
        self.assertEqual(len(session.calls), 2)

    def test_primary_network_error_falls_back(self):
        session = QueueSession(
            requests.ConnectionError("reset"),
            _extremes(_event("low", "2026-10-18T12:00:00+00:00", 1.2)),
        )
        self.assertIsInstance(self._fetch(session), Fetched)

    def test_no_events_anywhere_returns_empty_record(self):
        outcome = self._fetch(QueueSession(_extremes(), _extremes()))
        self.assertIsInstance(outcome, Fetched)
        self.assertEqual(outcome.record.day_stamp, "2026-10-18")
        self.assertEqual(outcome.record.today, [])
        self.assertEqual(outcome.record.tomorrow, [])

    def test_fallback_http_error_returns_empty_record(self):
        outcome = self._fetch(QueueSession(_extremes(), DummyResp({}, status_code=402)))
        self.assertIsInstance(outcome, Fetched)
        self.assertEqual(outcome.record.today, [])

    def test_fallback_network_error_is_failure(self):
        outcome = self._fetch(QueueSession(requests.Timeout("slow"), requests.Timeout("slow")))
        self.assertIsInstance(outcome, Failed)

    def test_fallback_malformed_payload_is_failure(self):
        outcome = self._fetch(QueueSession(_extremes(), DummyResp({"data": [{"type": "high"}]})))
        self.assertIsInstance(outcome, Failed)

    def test_unknown_event_types_are_skipped(self):
        session = QueueSession(_extremes(
            _event("high", "2026-10-18T06:00:00+00:00", 4.8),
            _event("slack", "2026-10-18T09:00:00+00:00", 2.5),
            _event("low", "2026-10-18T12:00:00+00:00", 1.0),
        ))
        outcome = self._fetch(session)
        self.assertIsInstance(outcome, Fetched)
        self.assertEqual([e.kind for e in outcome.record.today], [TideKind.HIGH, TideKind.LOW])
        self.assertEqual(len(session.calls), 1)


if __name__ == "__main__":
    unittest.main()
