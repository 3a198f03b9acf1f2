"""Network reachability monitoring.

:class:`ConnectivityMonitor` is a two-state machine (``ONLINE`` /
``OFFLINE``) fed by a *probe*: any zero-argument callable returning
``True`` when the network is usable.  The default probe,
:func:`tcp_probe`, opens a TCP connection to the search API host.

The monitor only tracks the state and reports transitions.  What a
transition means for the displayed data (the automatic refresh after a
restore) is decided by :class:`~articlesearch.session.ArticleSession`.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import socket
from typing import Callable, Optional

import httpx

from articlesearch.models import ConnectivityConfig, Notice

logger = logging.getLogger(__name__)

Probe = Callable[[], bool]


class ConnectionState(str, enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class Transition(str, enum.Enum):
    """A change between connection states."""

    LOST = "lost"
    RESTORED = "restored"


def tcp_probe(host: str, port: int = 443, timeout: float = 3.0) -> Probe:
    """Build a probe that reports whether ``host:port`` accepts TCP connections."""

    def _probe() -> bool:
        try:
            with socket.create_connection((host, port), timeout=timeout):
                return True
        except OSError as exc:
            logger.debug("Reachability probe to %s:%s failed: %s", host, port, exc)
            return False

    return _probe


def probe_from_config(config: ConnectivityConfig, endpoint: str) -> Probe:
    """Build the default probe, targeting the endpoint host unless overridden."""
    host = config.probe_host or httpx.URL(endpoint).host
    return tcp_probe(host, config.probe_port, config.probe_timeout)


class ConnectivityMonitor:
    """Tracks reachability and reports ``LOST`` / ``RESTORED`` transitions.

    Args:
        probe: Reachability check, called once by :meth:`start` and on
            every :meth:`poll`.
        notify: Receives :attr:`Notice.CONNECTION_LOST` when the network
            goes away.

    Example::

        monitor = ConnectivityMonitor(tcp_probe("api.nytimes.com"), output.notice)
        online = monitor.start(await monitor.probe())
        ...
        transition = await monitor.poll()   # None when nothing changed
    """

    def __init__(self, probe: Probe, notify: Optional[Callable[[Notice], None]] = None) -> None:
        self._probe = probe
        self._notify = notify
        self._state: Optional[ConnectionState] = None

    @property
    def state(self) -> Optional[ConnectionState]:
        """Current state, or ``None`` before :meth:`start`."""
        return self._state

    @property
    def is_online(self) -> bool:
        if self._state is None:
            return self.start()
        return self._state is ConnectionState.ONLINE

    def start(self, online: Optional[bool] = None) -> bool:
        """Set the initial state, probing synchronously unless *online* is given.

        No transition is reported for the initial state.
        """
        if online is None:
            online = self._probe()
        self._state = ConnectionState.ONLINE if online else ConnectionState.OFFLINE
        logger.debug("Initial connectivity: %s", self._state.value)
        return online

    async def probe(self) -> bool:
        """Run the probe in a worker thread and return its answer."""
        return await asyncio.to_thread(self._probe)

    async def poll(self) -> Optional[Transition]:
        """Re-probe and report a transition if the state changed."""
        return self.update(await self.probe())

    def update(self, online: bool) -> Optional[Transition]:
        """Feed an externally observed reachability signal.

        Returns:
            ``Transition.LOST`` or ``Transition.RESTORED`` when the state
            changed, ``None`` otherwise (including the very first signal
            when :meth:`start` was never called).
        """
        new_state = ConnectionState.ONLINE if online else ConnectionState.OFFLINE
        previous, self._state = self._state, new_state
        if previous is None or previous is new_state:
            return None

        if new_state is ConnectionState.OFFLINE:
            logger.info("Connection lost")
            if self._notify is not None:
                self._notify(Notice.CONNECTION_LOST)
            return Transition.LOST

        logger.info("Connection restored")
        return Transition.RESTORED
