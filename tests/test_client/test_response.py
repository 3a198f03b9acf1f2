"""Tests for search response decoding."""

from __future__ import annotations

import httpx
import pytest

from articlesearch.client.response import decode_body, keep_media_bearing, parse_search_response
from articlesearch.exceptions import ParseFailedError
from articlesearch.models import DEFAULT_MEDIA_BASE_URL


class TestDecodeBody:
    def test_json_body(self) -> None:
        response = httpx.Response(200, json={"response": {"docs": []}})
        assert decode_body(response) == {"response": {"docs": []}}

    def test_empty_body(self) -> None:
        with pytest.raises(ParseFailedError):
            decode_body(httpx.Response(200, content=b""))

    def test_non_json_body(self) -> None:
        with pytest.raises(ParseFailedError):
            decode_body(httpx.Response(200, text="<html>oops</html>"))


class TestParseSearchResponse:
    def test_parses_all_docs_in_order(self, search_payload) -> None:
        records = parse_search_response(search_payload)
        assert len(records) == 5
        assert records[0].title == "Congress Strikes Budget Deal"
        assert records[0].image_url == (
            f"{DEFAULT_MEDIA_BASE_URL}images/2024/03/01/budget/budget-articleLarge.jpg"
        )
        assert records[2].author == ""
        assert records[2].image_url == "https://static01.nyt.com/images/2024/03/01/sports/final.jpg"
        assert records[3].title == ""

    @pytest.mark.parametrize(
        "payload",
        [
            [1, 2, 3],
            "not an envelope",
            {"response": {"docs": "nope"}},
            {"response": {"docs": [{"multimedia": "not-a-list"}]}},
        ],
    )
    def test_wrong_shape_raises(self, payload) -> None:
        with pytest.raises(ParseFailedError):
            parse_search_response(payload)

    def test_null_list_entries_tolerated(self) -> None:
        payload = {
            "response": {
                "docs": [
                    None,
                    {"headline": {"main": "Null Media First"}, "multimedia": [None, {"url": "x.jpg"}]},
                ]
            }
        }
        records = parse_search_response(payload)
        assert [r.title for r in records] == ["Null Media First"]
        assert records[0].image_url == f"{DEFAULT_MEDIA_BASE_URL}x.jpg"


class TestKeepMediaBearing:
    def test_filters_and_preserves_order(self, search_payload) -> None:
        kept = keep_media_bearing(parse_search_response(search_payload))
        assert [r.title for r in kept] == [
            "Congress Strikes Budget Deal",
            "Overtime Thriller Decides the Championship",
            "Why Sleep Helps You Remember",
        ]

    def test_empty(self) -> None:
        assert keep_media_bearing([]) == []
