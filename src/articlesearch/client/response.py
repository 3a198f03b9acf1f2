"""Response decoding -- maps an :class:`httpx.Response` to article records.

The search envelope is validated with
:class:`~articlesearch.models.SearchResponse`, which tolerates missing and
``null`` fields at every level.  Only a body that is not JSON at all, or a
JSON value whose shape contradicts the envelope (e.g. ``docs`` being a
string), is treated as a parse failure.
"""

from __future__ import annotations

from typing import Any, Iterable

import httpx
from pydantic import ValidationError

from articlesearch.exceptions import ParseFailedError
from articlesearch.models import DEFAULT_MEDIA_BASE_URL, Record, SearchResponse


def decode_body(response: httpx.Response) -> Any:
    """Decode the response body as JSON.

    Raises:
        ParseFailedError: If the body is empty or not valid JSON.
    """
    if not response.content:
        raise ParseFailedError("Empty response body")
    try:
        return response.json()
    except ValueError as exc:
        raise ParseFailedError(f"Response is not valid JSON: {exc}") from exc


def parse_search_response(payload: Any, base_url: str = DEFAULT_MEDIA_BASE_URL) -> list[Record]:
    """Convert a decoded search envelope into records, in API order.

    Args:
        payload: The decoded JSON body.
        base_url: Prefix for relative multimedia paths.

    Raises:
        ParseFailedError: If *payload* does not match the envelope shape.
    """
    try:
        envelope = SearchResponse.model_validate(payload)
    except ValidationError as exc:
        raise ParseFailedError(
            f"Unexpected search response shape ({exc.error_count()} errors)"
        ) from exc
    return [Record.from_doc(doc, base_url) for doc in envelope.docs]


def keep_media_bearing(records: Iterable[Record]) -> list[Record]:
    """Drop records without a usable image URL, preserving order."""
    return [record for record in records if record.has_media]
