"""
Logging configuration shared by the page builder and its fetchers.

Usage
-----
In the entrypoint:

    from utils.logging_utils import setup_logging

    def main() -> None:
        setup_logging(level="INFO", job_name="vvx_build")
        ...

In a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="sources/stormglass")

Every record carries a `job_name` and a `tag` so the cron output of a
single run can be grepped by source.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, Optional


# ---------------------------------------------------------------------------
# Bootstrap config (anything logged before setup_logging())
# ---------------------------------------------------------------------------

BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)


DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SENSITIVE_PARAM_TOKENS = ("key", "token", "secret", "pass", "auth")

_CONFIGURED: bool = False


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

class MaxLevelFilter(logging.Filter):
    """Pass only records at or below `max_level` (keeps stdout free of warnings)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Guarantee a `tag` attribute on every record.

    Records coming through a tagged adapter already have one; plain loggers
    (e.g. urllib3) get the last segment of their logger name.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Stamp a fixed `job_name` on every record that lacks one."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def build_logging_config(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
) -> Mapping[str, Any]:
    """
    Build a dictConfig-style logging configuration.

    DEBUG/INFO go to stdout, WARNING and above go to stderr, so a cron
    wrapper that mails stderr only reports fetch failures.

    Parameters
    ----------
    level:
        Root logger level (e.g., "DEBUG", "INFO", logging.INFO).
    job_name:
        Optional name for this process (e.g. "vvx_build"), stamped on every
        record as `job_name`.

    Returns
    -------
    dict suitable for logging.config.dictConfig().
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": DEFAULT_LOG_FORMAT,
                "datefmt": DEFAULT_DATE_FORMAT,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """
    Configure process-wide logging once.

    Parameters
    ----------
    level:
        Root logger level (e.g., "DEBUG", "INFO").
    job_name:
        Name for this process. Appears in `%(job_name)s`.
    override_existing:
        If False (default), repeated calls are no-ops after the first.
        If True, the configuration is reapplied.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name))
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter that always carries a `tag` field.

    Parameters
    ----------
    name:
        Base logger name (usually __name__).
    tag:
        Component tag, e.g. "sources/stormglass". If omitted, defaults to the
        last segment of the logger name.
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


# ---------------------------------------------------------------------------
# Secret masking
# ---------------------------------------------------------------------------


def mask_secret(value: Optional[str], *, visible: int = 4) -> str:
    """Mask an API key for logging, keeping only the last `visible` chars."""
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "***"
    return f"***{value[-visible:]}"


def mask_url(url: str) -> str:
    """Return `url` with sensitive query parameter values replaced by ***.

    Examples
    --------
    - https://api.weatherapi.com/v1/astronomy.json?key=abc&q=Cornwall
      -> https://api.weatherapi.com/v1/astronomy.json?key=%2A%2A%2A&q=Cornwall
    - https://api.open-meteo.com/v1/forecast?latitude=50.4 -> unchanged
    """
    from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    if not parsed.query:
        return url

    pairs = []
    masked_any = False
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        if any(token in key.lower() for token in SENSITIVE_PARAM_TOKENS):
            pairs.append((key, "***"))
            masked_any = True
        else:
            pairs.append((key, value))
    if not masked_any:
        return url
    return urlunparse(parsed._replace(query=urlencode(pairs)))
