"""Remote source for articlesearch.

Provides :class:`RemoteSource`, an asynchronous client for the article
search endpoint backed by :class:`httpx.AsyncClient`, and the helpers in
:mod:`articlesearch.client.response` that turn the JSON envelope into
:class:`~articlesearch.models.Record` instances.

Example::

    from articlesearch.client import RemoteSource

    async with RemoteSource(config.api) as remote:
        records = await remote.fetch()
"""

from articlesearch.client.remote_source import RemoteSource
from articlesearch.client.response import keep_media_bearing, parse_search_response

__all__ = ["RemoteSource", "keep_media_bearing", "parse_search_response"]
