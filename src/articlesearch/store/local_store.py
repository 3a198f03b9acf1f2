"""Disk-backed store for the last fetched article set.

Rows are kept under a single key in a :class:`diskcache.Cache` directory,
one dict per article with the columns ``headline``, ``abstract``,
``byline`` and ``media_image_url``.  :meth:`LocalStore.replace_all` swaps
the whole table inside a diskcache transaction, so a read that starts
after it returns sees either the complete new set or, if it started
earlier, the complete old one.

Entries never expire; there is no eviction beyond replacement.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import diskcache

from articlesearch.exceptions import StoreError
from articlesearch.models import Record

logger = logging.getLogger(__name__)

_ROWS_KEY = "articles"
_SUBDIR = "articles"


def _record_to_row(record: Record) -> dict[str, str]:
    return {
        "headline": record.title,
        "abstract": record.summary,
        "byline": record.author,
        "media_image_url": record.image_url,
    }


def _row_to_record(row: dict[str, Any]) -> Record:
    return Record(
        title=row.get("headline") or "",
        summary=row.get("abstract") or "",
        author=row.get("byline") or "",
        image_url=row.get("media_image_url") or "",
    )


class LocalStore:
    """Single-table article store.

    Args:
        cache_dir: Root directory for the store.  An ``articles/``
            subdirectory is created inside it.

    Example::

        store = LocalStore(get_cache_dir())
        store.replace_all(records)
        assert store.get_all() == records
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._dir = Path(cache_dir) / _SUBDIR
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._dir))

    def replace_all(self, records: Iterable[Record]) -> None:
        """Replace the stored set with *records*, preserving their order."""
        rows = [_record_to_row(r) for r in records]
        cache = self._require_open()
        with cache.transact():
            cache.set(_ROWS_KEY, rows)
        logger.debug("Stored %d articles in %s", len(rows), self._dir)

    def get_all(self) -> list[Record]:
        """Return the stored set, or an empty list if nothing was stored yet.

        Raises:
            StoreError: If the stored value is not a list of rows.
        """
        rows = self._require_open().get(_ROWS_KEY, default=[])
        if not isinstance(rows, list):
            raise StoreError(f"Corrupt article store at {self._dir}")
        try:
            return [_row_to_record(row) for row in rows]
        except (AttributeError, ValueError) as exc:
            raise StoreError(f"Corrupt article store at {self._dir}: {exc}") from exc

    def is_empty(self) -> bool:
        return not self._require_open().get(_ROWS_KEY, default=[])

    def clear(self) -> None:
        """Remove the stored set."""
        self._require_open().clear()

    def stats(self) -> dict[str, Any]:
        """Return ``directory`` and the number of stored ``articles``."""
        rows = self._require_open().get(_ROWS_KEY, default=[])
        return {
            "directory": str(self._dir),
            "articles": len(rows) if isinstance(rows, list) else 0,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def __enter__(self) -> LocalStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _require_open(self) -> diskcache.Cache:
        if self._cache is None:
            raise StoreError("Article store is closed")
        return self._cache
