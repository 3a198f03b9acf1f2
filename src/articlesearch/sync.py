"""Offline-aware synchronisation between the search API and the local store.

:class:`SyncCoordinator` is invoked once per :class:`~articlesearch.models.Trigger`
and decides where the next record set comes from:

1. ``MANUAL_REFRESH`` while offline -- show the "no connection" notice and
   return the state unchanged.
2. Cache disabled, store empty, ``MANUAL_REFRESH`` or
   ``CONNECTIVITY_RESTORED`` -- fetch from the remote source.
3. Otherwise -- present the stored set, announcing it once when the
   process started offline.

A successful fetch keeps only media-bearing records, replaces the store
contents when the cache is enabled, and presents the new set.  A failed
fetch is logged and announced; the previously displayed records stay in
the returned state.

Only one fetch runs at a time.  A trigger arriving while a fetch is in
flight is dropped with :attr:`~articlesearch.models.Notice.SYNC_IN_PROGRESS`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from articlesearch.client.response import keep_media_bearing
from articlesearch.exceptions import FetchFailedError, ParseFailedError
from articlesearch.models import Notice, SyncState, Trigger
from articlesearch.output import notice as output_notice

if TYPE_CHECKING:
    from articlesearch.client import RemoteSource
    from articlesearch.store import LocalStore

logger = logging.getLogger(__name__)

_ALWAYS_FETCH = frozenset({Trigger.MANUAL_REFRESH, Trigger.CONNECTIVITY_RESTORED})


class SyncCoordinator:
    """Chooses between the local store and the remote source for each trigger.

    The coordinator holds no display state of its own; every call takes a
    :class:`~articlesearch.models.SyncState` and returns a new one.

    Args:
        remote: Source of fresh records (``await remote.fetch()``).
        store: Local store holding the last fetched set.
        notify: Receives user-facing notices.  Defaults to the global
            output manager.
    """

    def __init__(
        self,
        remote: RemoteSource,
        store: LocalStore,
        notify: Callable[[Notice], None] = output_notice,
    ) -> None:
        self._remote = remote
        self._store = store
        self._notify = notify
        self._fetch_lock = asyncio.Lock()

    @property
    def is_fetching(self) -> bool:
        return self._fetch_lock.locked()

    async def sync(self, state: SyncState, trigger: Trigger, online: bool) -> SyncState:
        """Run one synchronisation pass.

        Args:
            state: What is currently displayed.
            trigger: Why the pass runs.
            online: Current reachability.

        Returns:
            The state to display next.  Equal to *state* when nothing
            changed (offline refresh, dropped trigger, failed fetch).

        Raises:
            ConfigError: If the API key cannot be resolved.
            StoreError: If the local store is unreadable.
        """
        if trigger is Trigger.MANUAL_REFRESH and not online:
            logger.info("Manual refresh skipped: no connectivity")
            self._notify(Notice.NO_CONNECTION)
            return state

        if self._needs_fetch(state, trigger):
            return await self._fetch(state, trigger)
        return self._load_cached(state)

    def _needs_fetch(self, state: SyncState, trigger: Trigger) -> bool:
        return (
            not state.cache_enabled
            or trigger in _ALWAYS_FETCH
            or self._store.is_empty()
        )

    def _load_cached(self, state: SyncState) -> SyncState:
        records = self._store.get_all()
        logger.debug("Loaded %d articles from the local store", len(records))
        if state.was_offline:
            self._notify(Notice.SHOWING_CACHED)
        return state.evolve(records=records, data_loaded_offline=state.was_offline)

    async def _fetch(self, state: SyncState, trigger: Trigger) -> SyncState:
        if self._fetch_lock.locked():
            logger.info("Dropping %s trigger: a fetch is already in flight", trigger.value)
            self._notify(Notice.SYNC_IN_PROGRESS)
            return state

        async with self._fetch_lock:
            try:
                fetched = await self._remote.fetch()
            except FetchFailedError as exc:
                logger.error("Failed to fetch articles (status %s): %s", exc.status_code, exc)
                self._notify(Notice.FETCH_FAILED)
                return state
            except ParseFailedError as exc:
                logger.error("Failed to parse articles: %s", exc)
                self._notify(Notice.PARSE_FAILED)
                return state

            records = keep_media_bearing(fetched)
            logger.info(
                "Fetched %d articles, %d with media (%s)",
                len(fetched), len(records), trigger.value,
            )
            if state.cache_enabled:
                self._store.replace_all(records)
            return state.evolve(records=records, data_loaded_offline=False)
