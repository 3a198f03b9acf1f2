"""Client-side title filtering for the displayed article list."""

from __future__ import annotations

from typing import Iterable

from articlesearch.models import Record


def filter_records(records: Iterable[Record], query: str) -> list[Record]:
    """Return the records whose title contains *query*, ignoring case.

    The relative order of *records* is preserved.  An empty query matches
    every title, so it returns the full set.
    """
    needle = query.casefold()
    return [record for record in records if needle in record.title.casefold()]
