"""Entry point: refresh the cache and rebuild the four carousel pages."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List, Optional

from vvx_pages import config
from vvx_pages.cache_store import PersistentCache
from vvx_pages.clock import Clock
from vvx_pages.orchestrator import RefreshOrchestrator, RunResult
from vvx_pages.renderer import render_pages, write_pages
from vvx_pages.sources import SourceFetchers, build_fetchers
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="build")


def build_pages(settings: config.Settings | None = None,
                *,
                clock: Optional[Clock] = None,
                fetchers: Optional[SourceFetchers] = None) -> tuple[RunResult, List[Path]]:
    """Run one refresh cycle and write the pages. Raises OSError if output can't be written."""
    settings = settings or config.settings
    clock = clock or Clock(settings.timezone)
    fetchers = fetchers or build_fetchers(settings, clock)

    orchestrator = RefreshOrchestrator(
        settings=settings,
        clock=clock,
        cache=PersistentCache(settings.cache_path),
        fetchers=fetchers,
    )
    result = orchestrator.run()

    pages = render_pages(
        result.records,
        clock,
        refresh_seconds=settings.page_refresh_seconds,
        stylesheet_href=settings.stylesheet_href,
    )
    written = write_pages(settings.output_dir, pages)
    return result, written


def main() -> int:
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="vvx_build")
    try:
        result, written = build_pages()
    except OSError:
        logger.exception("Build aborted: could not persist cache or pages")
        return 1
    logger.info(
        "Built %d pages | local %s hour %02d | fetched: %s",
        len(written),
        result.reading.today,
        result.reading.hour,
        ", ".join(result.fetched) or "none",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
