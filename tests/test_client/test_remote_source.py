"""Tests for the asynchronous remote source."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from articlesearch.client import RemoteSource
from articlesearch.exceptions import ConfigError, FetchFailedError, ParseFailedError
from articlesearch.models import ApiConfig
from articlesearch.output import OutputManager, set_output


ENDPOINT = "https://api.example.com/svc/search/v2/articlesearch.json"


def _config(**overrides) -> ApiConfig:
    return ApiConfig(endpoint=ENDPOINT, **overrides)


def _fetch(source: RemoteSource):
    return asyncio.run(source.fetch())


@pytest.fixture(autouse=True)
def _clean_output():
    set_output(OutputManager(no_color=True, quiet=True))


class TestRequest:
    def test_single_get_with_api_key_param(self, search_payload) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=search_payload)

        source = RemoteSource(_config(), api_key="secret", transport=httpx.MockTransport(handler))
        records = _fetch(source)

        assert len(seen) == 1
        assert seen[0].method == "GET"
        assert seen[0].url.params["api-key"] == "secret"
        assert str(seen[0].url).startswith(ENDPOINT)
        assert len(records) == 5

    def test_api_key_resolved_from_source(self, monkeypatch, search_payload) -> None:
        monkeypatch.setenv("MY_NYT_KEY", "from-env")

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["api-key"] == "from-env"
            return httpx.Response(200, json=search_payload)

        source = RemoteSource(
            _config(api_key_source="env:MY_NYT_KEY"), transport=httpx.MockTransport(handler)
        )
        assert len(_fetch(source)) == 5

    def test_missing_api_key_is_config_error(self, monkeypatch) -> None:
        monkeypatch.delenv("MY_NYT_KEY", raising=False)
        source = RemoteSource(
            _config(api_key_source="env:MY_NYT_KEY"),
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})),
        )
        with pytest.raises(ConfigError):
            _fetch(source)

    def test_reuses_client_inside_context_manager(self, search_payload) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=search_payload)

        async def _run() -> None:
            transport = httpx.MockTransport(handler)
            async with RemoteSource(_config(), api_key="k", transport=transport) as source:
                client = source._client
                await source.fetch()
                await source.fetch()
                assert source._client is client

        asyncio.run(_run())
        assert len(seen) == 2


class TestErrors:
    @pytest.mark.parametrize("status", [400, 401, 403, 404, 429, 500, 503])
    def test_non_2xx_is_fetch_failed_with_status(self, status: int) -> None:
        transport = httpx.MockTransport(
            lambda r: httpx.Response(status, json={"fault": {"faultstring": "Invalid ApiKey"}})
        )
        source = RemoteSource(_config(), api_key="k", transport=transport)
        with pytest.raises(FetchFailedError) as exc_info:
            _fetch(source)
        assert exc_info.value.status_code == status
        assert f"HTTP {status}" in str(exc_info.value)

    def test_fault_message_included(self) -> None:
        transport = httpx.MockTransport(
            lambda r: httpx.Response(401, json={"fault": {"faultstring": "Invalid ApiKey"}})
        )
        with pytest.raises(FetchFailedError, match="Invalid ApiKey"):
            _fetch(RemoteSource(_config(), api_key="k", transport=transport))

    def test_transport_error_has_no_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        source = RemoteSource(_config(), api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(FetchFailedError) as exc_info:
            _fetch(source)
        assert exc_info.value.status_code is None

    def test_timeout_is_fetch_failed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        source = RemoteSource(_config(timeout=1.0), api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(FetchFailedError, match="Timed out"):
            _fetch(source)

    def test_malformed_body_is_parse_failed(self) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(200, text="not json"))
        with pytest.raises(ParseFailedError):
            _fetch(RemoteSource(_config(), api_key="k", transport=transport))

    def test_unexpected_shape_is_parse_failed(self) -> None:
        transport = httpx.MockTransport(
            lambda r: httpx.Response(200, json={"response": {"docs": 42}})
        )
        with pytest.raises(ParseFailedError):
            _fetch(RemoteSource(_config(), api_key="k", transport=transport))

    def test_redirect_loop_is_fetch_failed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": str(request.url)})

        source = RemoteSource(_config(), api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(FetchFailedError, match="redirects") as exc_info:
            _fetch(source)
        assert exc_info.value.status_code is None

    def test_undecodable_content_encoding_is_parse_failed(self) -> None:
        async def _body():
            yield b"not gzip"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=_body())

        source = RemoteSource(_config(), api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(ParseFailedError, match="decode"):
            _fetch(source)
