"""Render the four carousel pages as static HTML.

Each page meta-refreshes to the next one, closing the loop
weather -> tides -> moon -> sun -> weather. Styling lives in the external
stylesheet; only the thermometer fill and wind arrow are computed here.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from vvx_pages.clock import Clock, strip_meridiem
from vvx_pages.models import NO_LABEL, AstronomyRecord, TideEvent, TideKind, TideRecord, WeatherRecord
from vvx_pages.orchestrator import DisplayRecords
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="renderer")

THERMO_MIN_C = -5
THERMO_MAX_C = 30
THERMO_HEIGHT = 80


@dataclass(frozen=True)
class PageSpec:
    filename: str
    title: str


PAGE_CYCLE: List[PageSpec] = [
    PageSpec("page1-weather.html", "Weather"),
    PageSpec("page2-tides.html", "Tide Times"),
    PageSpec("page3-moon.html", "Moon"),
    PageSpec("page4-sun.html", "Sunrise & Sunset"),
]


def next_page(index: int) -> str:
    return PAGE_CYCLE[(index + 1) % len(PAGE_CYCLE)].filename


def _e(value) -> str:
    return html.escape(str(value), quote=True)


def thermometer_fill(c: int) -> tuple[int, int]:
    """Return (fill_y, fill_height) for the thermometer SVG."""
    frac = (c - THERMO_MIN_C) / (THERMO_MAX_C - THERMO_MIN_C)
    frac = max(0.0, min(1.0, frac))
    fill_h = int(round(THERMO_HEIGHT * frac))
    return 90 - fill_h, fill_h


def weather_body(weather: WeatherRecord) -> str:
    fill_y, fill_h = thermometer_fill(weather.c)
    wind_dir = weather.winddir % 360
    return f"""
<section class="weather">
  <div class="row">
    <div class="text-lg">{weather.c}°C / {weather.f}°F</div>
    <img class="icon-30" src="svg/weather/{_e(weather.icon.value)}.svg" alt="Weather icon" />
  </div>
  <div class="text-md">Wind: {weather.mph} mph / {weather.kmh} km/h</div>
  <div class="row">
    <div class="thermo row" style="gap:6px;">
      <svg viewBox="0 0 20 100" width="18" height="95" aria-label="Thermometer">
        <rect x="8" y="10" width="4" height="80" fill="#ddd" />
        <rect x="8" y="{fill_y}" width="4" height="{fill_h}" fill="#FD9803" />
        <circle cx="10" cy="94" r="6" fill="#FD9803"/>
        <rect x="7" y="10" width="6" height="84" fill="none" stroke="#666" stroke-width="1"/>
      </svg>
      <div class="text-sm">Feels ~{weather.c}°C</div>
    </div>
    <div class="wind">
      <div class="text-sm">Dir</div>
      <svg viewBox="0 0 100 100" width="36" height="36" aria-label="Wind direction" style="transform:rotate({wind_dir}deg);">
        <polygon points="50,8 60,35 50,30 40,35" fill="#112656"></polygon>
        <rect x="47" y="30" width="6" height="50" fill="#112656"></rect>
        <circle cx="50" cy="85" r="6" fill="#112656"></circle>
      </svg>
      <div class="text-xs">{wind_dir}°</div>
    </div>
  </div>
</section>"""


def tide_row(event: TideEvent, clock: Clock) -> str:
    label = "↑ High" if event.kind == TideKind.HIGH else "↓ Low"
    return f"{label} {clock.format_time(event.time)} — {event.height:.1f}m"


def _tide_list(label: str, events: List[TideEvent], clock: Clock) -> str:
    rows = [tide_row(e, clock) for e in events] or [NO_LABEL]
    items = "".join(f"<li>{_e(row)}</li>" for row in rows)
    return f"""
  <section class="tides-day">
    <div class="label">{_e(label)}</div>
    <ul class="list-compact">
      {items}
    </ul>
  </section>"""


def tides_body(tides: TideRecord, clock: Clock) -> str:
    today = _tide_list(f"Today • {clock.day_label(tides.today_key)}", tides.today, clock)
    tomorrow = _tide_list(f"Tomorrow • {clock.day_label(tides.tomorrow_key)}", tides.tomorrow, clock)
    return f"{today}\n{tomorrow}"


def moon_body(astronomy: AstronomyRecord) -> str:
    illumination = ""
    if astronomy.moon_illumination is not None:
        illumination = f'\n    <div class="text-sm">{astronomy.moon_illumination}% lit</div>'
    return f"""
<section class="moon row">
  <div class="stack">
    <div class="label text-md">Phase</div>
    <div class="text-md">{_e(astronomy.phase_name)}</div>{illumination}
  </div>
  <img class="icon-32" src="svg/moon/{_e(astronomy.phase_icon)}.svg" alt="Moon phase" />
</section>"""


def sun_body(astronomy: AstronomyRecord) -> str:
    sunrise = strip_meridiem(astronomy.sunrise)
    sunset = strip_meridiem(astronomy.sunset)
    return f"""
<section class="sun row">
  <div class="stack" style="text-align:center;">
    <img class="icon-28" src="svg/sunset/sunrise.svg" alt="Sunrise" />
    <div class="text-md" style="font-weight:bold;">{_e(sunrise)}</div>
  </div>
  <div class="stack" style="text-align:center;">
    <img class="icon-28" src="svg/sunset/sunset.svg" alt="Sunset" />
    <div class="text-md" style="font-weight:bold;">{_e(sunset)}</div>
  </div>
</section>"""


def wrap_page(title: str, body: str, next_filename: str, *, clock: Clock,
              refresh_seconds: int, stylesheet_href: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>{_e(title)}</title>
  <meta http-equiv="refresh" content="{refresh_seconds}; url='{_e(next_filename)}'" />
  <link rel="stylesheet" href="{_e(stylesheet_href)}" />
</head>
<body>
  <div class="vvx-page">
    <header class="page-header" role="banner">
      <div class="brand">
        <img class="logo" src="images/logo.svg" alt="ndyl" />
      </div>
      <div class="heading">
        <div class="title">{_e(title)}</div>
        <div class="date">{_e(clock.format_date())}</div>
      </div>
    </header>
    <main class="content" role="main">
      {body}
    </main>
    <footer class="updated" role="contentinfo">Updated: {_e(clock.format_time())}</footer>
  </div>
</body>
</html>"""


def render_pages(records: DisplayRecords, clock: Clock, *,
                 refresh_seconds: int = 10, stylesheet_href: str = "css/vvx.css?v=1") -> Dict[str, str]:
    """Return {filename: html} for all four pages, in cycle order."""
    bodies = [
        weather_body(records.weather),
        tides_body(records.tides, clock),
        moon_body(records.astronomy),
        sun_body(records.astronomy),
    ]
    pages: Dict[str, str] = {}
    for index, (page, body) in enumerate(zip(PAGE_CYCLE, bodies)):
        pages[page.filename] = wrap_page(
            page.title,
            body,
            next_page(index),
            clock=clock,
            refresh_seconds=refresh_seconds,
            stylesheet_href=stylesheet_href,
        )
    return pages


def write_pages(output_dir: str | Path, pages: Dict[str, str]) -> List[Path]:
    """Write each page into `output_dir`, creating it if needed."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    written = []
    for filename, content in pages.items():
        path = out / filename
        path.write_text(content, encoding="utf-8")
        written.append(path)
    logger.info("Wrote %d pages to %s", len(written), out)
    return written
