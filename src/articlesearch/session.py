"""Application shell tying the coordinator, connectivity and settings together.

:class:`ArticleSession` is the one place that holds the current
:class:`~articlesearch.models.SyncState`.  CLI commands drive it:

* ``show``    -> :meth:`ArticleSession.start`
* ``refresh`` -> :meth:`ArticleSession.refresh`
* ``watch``   -> :meth:`ArticleSession.start`, then :meth:`ArticleSession.watch`

Every notice the session emits, directly or through the coordinator and
the monitor, is also kept in :attr:`ArticleSession.notices` so callers can
map the outcome of a command to an exit code.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Optional

from articlesearch.connectivity import ConnectivityMonitor, Probe, Transition
from articlesearch.filtering import filter_records
from articlesearch.models import Notice, Record, SyncState, Trigger
from articlesearch.output import notice as output_notice
from articlesearch.sync import SyncCoordinator

if TYPE_CHECKING:
    from articlesearch.client import RemoteSource
    from articlesearch.store import LocalStore

logger = logging.getLogger(__name__)


class ArticleSession:
    """Owns the displayed state and reacts to user and network events.

    Builds its own :class:`~articlesearch.sync.SyncCoordinator` and
    :class:`~articlesearch.connectivity.ConnectivityMonitor` so that their
    notices flow through :meth:`emit`.

    Args:
        remote: Source of fresh records.
        store: Local store holding the last fetched set.
        probe: Reachability check for the connectivity monitor.
        cache_enabled: Initial value of the cache switch.
        persist_cache_enabled: Called with the new value whenever the
            switch is toggled, so it survives restarts.
        notify: Receives user-facing notices.
    """

    def __init__(
        self,
        remote: RemoteSource,
        store: LocalStore,
        probe: Probe,
        cache_enabled: bool = True,
        persist_cache_enabled: Optional[Callable[[bool], object]] = None,
        notify: Callable[[Notice], None] = output_notice,
    ) -> None:
        self._persist_cache_enabled = persist_cache_enabled
        self._notify = notify
        self.coordinator = SyncCoordinator(remote, store, notify=self.emit)
        self.monitor = ConnectivityMonitor(probe, notify=self.emit)
        self.state = SyncState(cache_enabled=cache_enabled)
        self.query = ""
        self.notices: list[Notice] = []

    @property
    def records(self) -> tuple[Record, ...]:
        return self.state.records

    @property
    def visible_records(self) -> list[Record]:
        """The current records narrowed by the current search query."""
        return filter_records(self.state.records, self.query)

    # ------------------------------------------------------------------ #
    # Triggers
    # ------------------------------------------------------------------ #

    async def start(self) -> SyncState:
        """Probe connectivity once and run the app-start sync."""
        online = self.monitor.start(await self.monitor.probe())
        self.state = self.state.evolve(was_offline=not online)
        self.state = await self.coordinator.sync(self.state, Trigger.APP_START, online)
        return self.state

    async def refresh(self) -> SyncState:
        """Run a manual refresh against the monitor's current state."""
        if self.monitor.state is None:
            self.monitor.start(await self.monitor.probe())
        online = self.monitor.is_online
        self.state = await self.coordinator.sync(self.state, Trigger.MANUAL_REFRESH, online)
        return self.state

    async def handle_connectivity(self, online: bool) -> bool:
        """Apply an observed reachability signal.

        Returns:
            ``True`` if an automatic ``CONNECTIVITY_RESTORED`` sync ran.
        """
        return await self._apply(self.monitor.update(online))

    async def poll_connectivity(self) -> bool:
        """Re-probe the network and react to any transition."""
        return await self._apply(await self.monitor.poll())

    async def watch(
        self,
        interval: float,
        iterations: Optional[int] = None,
        on_change: Optional[Callable[[list[Record]], None]] = None,
    ) -> None:
        """Poll connectivity every *interval* seconds.

        Args:
            interval: Seconds between probes.
            iterations: Stop after this many probes; ``None`` runs until
                cancelled.
            on_change: Called with the visible records after every
                automatic refresh that changed them.
        """
        count = 0
        while iterations is None or count < iterations:
            await asyncio.sleep(interval)
            count += 1
            before = self.state.records
            if await self.poll_connectivity() and on_change is not None:
                if self.state.records != before:
                    on_change(self.visible_records)

    # ------------------------------------------------------------------ #
    # User settings
    # ------------------------------------------------------------------ #

    def set_cache_enabled(self, enabled: bool) -> None:
        """Toggle the cache switch and persist it."""
        self.state = self.state.evolve(cache_enabled=enabled)
        if self._persist_cache_enabled is not None:
            self._persist_cache_enabled(enabled)

    def emit(self, item: Notice) -> None:
        """Record *item* and forward it to the notice sink."""
        self.notices.append(item)
        self._notify(item)

    def search(self, query: str) -> list[Record]:
        """Set the search query and return the matching records."""
        self.query = query
        return self.visible_records

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _apply(self, transition: Optional[Transition]) -> bool:
        if transition is Transition.LOST:
            self.state = self.state.evolve(was_offline=True)
            return False

        if transition is Transition.RESTORED:
            if self.state.was_offline and self.state.data_loaded_offline:
                self.emit(Notice.CONNECTIVITY_RESTORED)
                self.state = self.state.evolve(was_offline=False)
                self.state = await self.coordinator.sync(
                    self.state, Trigger.CONNECTIVITY_RESTORED, True
                )
                return True
            logger.debug("Connectivity restored; displayed data is current, no refresh")
        return False
