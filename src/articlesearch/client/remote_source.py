"""Asynchronous client for the article search endpoint.

:class:`RemoteSource` issues exactly one ``GET <endpoint>?api-key=<KEY>``
per :meth:`~RemoteSource.fetch` call.  There is no retry
loop: a failed fetch is reported to the caller and the user re-triggers
it with a refresh or a connectivity restore.

Errors are mapped to the sync taxonomy:

* non-2xx status                -> :class:`~articlesearch.exceptions.FetchFailedError` (with status)
* transport, timeout, redirects -> :class:`~articlesearch.exceptions.FetchFailedError` (status ``None``)
* undecodable or malformed body -> :class:`~articlesearch.exceptions.ParseFailedError`
"""

from __future__ import annotations

from typing import Optional

import httpx

from articlesearch import __version__
from articlesearch.client.response import decode_body, parse_search_response
from articlesearch.config import resolve_credential
from articlesearch.exceptions import FetchFailedError, ParseFailedError
from articlesearch.models import ApiConfig, Record
from articlesearch.output import get_output


class RemoteSource:
    """Fetches one page of search results and parses it into records.

    Can be used as an async context manager to reuse one connection pool
    across fetches (watch mode); otherwise each :meth:`fetch` opens and
    closes its own :class:`httpx.AsyncClient`.

    Args:
        config: Endpoint, API key source, media base URL and timeout.
        api_key: Explicit API key.  When ``None`` the key is resolved from
            ``config.api_key_source`` on the first fetch, so offline
            cache reads never need a key.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).

    Example::

        async with RemoteSource(config.api) as remote:
            records = await remote.fetch()
    """

    def __init__(
        self,
        config: ApiConfig,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._api_key = api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RemoteSource:
        self._client = self._new_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def fetch(self) -> list[Record]:
        """Fetch and parse the search results.

        Returns:
            All records from the response, in API order.  Filtering to
            media-bearing records is the caller's job.

        Raises:
            FetchFailedError: On a non-2xx status, a transport error or a
                redirect loop.
            ParseFailedError: If the body cannot be decoded or is not a
                valid search envelope.
            ConfigError: If the API key cannot be resolved.
        """
        params = {self._config.api_key_param: self._resolve_api_key()}
        get_output().debug(f"GET {self._config.endpoint}")

        if self._client is not None:
            response = await self._get(self._client, params)
        else:
            async with self._new_client() as client:
                response = await self._get(client, params)

        self._map_response_error(response)
        payload = decode_body(response)
        return parse_search_response(payload, self._config.media_base_url)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._config.timeout,
            follow_redirects=True,
            transport=self._transport,
            headers={
                "Accept": "application/json",
                "User-Agent": f"articlesearch/{__version__}",
            },
        )

    def _resolve_api_key(self) -> str:
        if self._api_key is None:
            self._api_key = resolve_credential(self._config.api_key_source)
        return self._api_key

    async def _get(self, client: httpx.AsyncClient, params: dict[str, str]) -> httpx.Response:
        try:
            return await client.get(self._config.endpoint, params=params)
        except httpx.TimeoutException as exc:
            raise FetchFailedError(
                f"Timed out after {self._config.timeout}s: {exc}"
            ) from exc
        except httpx.DecodingError as exc:
            raise ParseFailedError(f"Could not decode response body: {exc}") from exc
        except httpx.TooManyRedirects as exc:
            raise FetchFailedError(f"Too many redirects: {exc}") from exc
        except httpx.RequestError as exc:
            raise FetchFailedError(f"Connection failed: {exc}") from exc

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise :class:`FetchFailedError` for any non-2xx status."""
        status = response.status_code
        if 200 <= status < 300:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                fault = detail.get("fault")
                msg = (
                    (fault.get("faultstring") if isinstance(fault, dict) else None)
                    or detail.get("message")
                    or detail.get("error")
                    or ""
                )
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        raise FetchFailedError(f"{prefix}: {msg}" if msg else prefix, status_code=status)
