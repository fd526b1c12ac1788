import datetime as dt
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from vvx_pages.cache_store import PersistentCache
from vvx_pages.models import (
    AstronomyRecord,
    CacheStore,
    TideEvent,
    TideKind,
    TideRecord,
    WeatherIcon,
    WeatherRecord,
)

UTC = dt.timezone.utc


def _weather():
    return WeatherRecord(c=12, f=54, kmh=20, mph=12, winddir=200, icon=WeatherIcon.RAIN, weather_code=61,
                         captured_at=dt.datetime(2026, 10, 18, 9, 0, tzinfo=UTC))


def _astronomy():
    return AstronomyRecord(sunrise="07:31 AM", sunset="06:12 PM", phase_name="Waxing Gibbous",
                           phase_icon="waxing-gibbous", moon_illumination=78, day_stamp="2026-10-18")


def _tides():
    return TideRecord(
        day_stamp="2026-10-18",
        today_key="2026-10-18",
        tomorrow_key="2026-10-19",
        today=[TideEvent(kind=TideKind.HIGH, time=dt.datetime(2026, 10, 18, 5, 12, tzinfo=UTC), height=4.8)],
        tomorrow=[TideEvent(kind=TideKind.LOW, time=dt.datetime(2026, 10, 19, 11, 40, tzinfo=UTC), height=0.9)],
    )


class TestPersistentCache(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.cache = PersistentCache(self.dir / "data" / "cache.json")

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_file_reads_as_cold_start(self):
        self.assertEqual(self.cache.read(), CacheStore())

    def test_round_trip(self):
        stores = [
            CacheStore(),
            CacheStore(weather=_weather()),
            CacheStore(tides=_tides()),
            CacheStore(weather=_weather(), tides=_tides(), astronomy=_astronomy()),
        ]
        for store in stores:
            with self.subTest(store=store):
                self.cache.write(store)
                self.assertEqual(self.cache.read(), store)

    def test_write_creates_directory_and_all_three_keys(self):
        self.cache.write(CacheStore(weather=_weather()))
        data = json.loads(self.cache.path.read_text(encoding="utf-8"))
        self.assertEqual(set(data), {"weather", "tides", "astronomy"})
        self.assertIsNone(data["tides"])
        self.assertEqual(data["weather"]["icon"], "rain")

    def test_write_overwrites_whole_file(self):
        self.cache.write(CacheStore(weather=_weather(), tides=_tides(), astronomy=_astronomy()))
        self.cache.write(CacheStore())
        self.assertEqual(self.cache.read(), CacheStore())
        self.assertEqual([p.name for p in self.cache.path.parent.iterdir()], ["cache.json"])

    def test_corrupt_json_reads_as_cold_start(self):
        self.cache.path.parent.mkdir(parents=True)
        self.cache.path.write_text("{not json", encoding="utf-8")
        self.assertEqual(self.cache.read(), CacheStore())

    def test_non_object_root_reads_as_cold_start(self):
        self.cache.path.parent.mkdir(parents=True)
        self.cache.path.write_text("[1, 2, 3]", encoding="utf-8")
        self.assertEqual(self.cache.read(), CacheStore())

    def test_bad_entry_only_drops_that_entry(self):
        self.cache.write(CacheStore(weather=_weather(), astronomy=_astronomy()))
        data = json.loads(self.cache.path.read_text(encoding="utf-8"))
        data["weather"] = {"c": "warm"}
        self.cache.path.write_text(json.dumps(data), encoding="utf-8")

        store = self.cache.read()
        self.assertIsNone(store.weather)
        self.assertEqual(store.astronomy, _astronomy())

    def test_unknown_fields_treated_as_absent(self):
        self.cache.path.parent.mkdir(parents=True)
        legacy = {"weather": {"c": 1, "f": 34, "kmh": 0, "mph": 0, "winddir": 0, "icon": "clear-day", "_ts": "x"}}
        self.cache.path.write_text(json.dumps(legacy), encoding="utf-8")
        self.assertIsNone(self.cache.read().weather)

    def test_legacy_tides2d_key_is_accepted(self):
        self.cache.path.parent.mkdir(parents=True)
        payload = {"weather": None, "astronomy": None, "tides2d": _tides().model_dump(mode="json")}
        self.cache.path.write_text(json.dumps(payload), encoding="utf-8")
        self.assertEqual(self.cache.read().tides, _tides())

    def test_unwritable_location_raises(self):
        blocker = self.dir / "blocker"
        blocker.write_text("", encoding="utf-8")
        cache = PersistentCache(blocker / "cache.json")
        with self.assertRaises(OSError):
            cache.write(CacheStore())

    def test_failed_replace_keeps_previous_file(self):
        self.cache.write(CacheStore(weather=_weather()))
        before = self.cache.path.read_text(encoding="utf-8")
        with patch("vvx_pages.cache_store.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                self.cache.write(CacheStore())
        self.assertEqual(self.cache.path.read_text(encoding="utf-8"), before)
        self.assertEqual(list(self.cache.path.parent.glob(".cache.json.*")), [])
        self.assertEqual(self.cache.read().weather, _weather())


if __name__ == "__main__":
    unittest.main()
