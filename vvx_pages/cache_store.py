"""On-disk JSON cache shared by the three sources."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vvx_pages.models import CacheStore, SOURCE_RECORD_TYPES
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_store")


class PersistentCache:
    """Read and write the whole cache file as one snapshot."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def read(self) -> CacheStore:
        """Return the stored cache, or an all-absent store on any problem."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No cache file yet; starting cold", extra={"path": str(self.path)})
            return CacheStore()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cache file unreadable (%s); starting cold", exc)
            return CacheStore()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Cache file is not valid JSON (%s); starting cold", exc)
            return CacheStore()
        if not isinstance(data, dict):
            logger.warning("Cache root is %s, expected object; starting cold", type(data).__name__)
            return CacheStore()

        return CacheStore(**{name: self._load_entry(data, name) for name in SOURCE_RECORD_TYPES})

    @staticmethod
    def _load_entry(data: dict[str, Any], name: str):
        """Validate one source entry; a mismatch only drops that entry."""
        raw = data.get(name)
        if raw is None and name == "tides":
            raw = data.get("tides2d")
        if raw is None:
            return None
        try:
            return SOURCE_RECORD_TYPES[name].model_validate(raw)
        except ValidationError as exc:
            logger.warning("Discarding cached %s entry: %d validation error(s)", name, exc.error_count())
            return None

    def write(self, store: CacheStore) -> None:
        """Replace the cache file atomically. Raises OSError if the location is unwritable."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(store.model_dump(mode="json"), indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Cache written", extra={"path": str(self.path)})
