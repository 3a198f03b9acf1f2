"""Tests for the connectivity monitor state machine and probes."""

from __future__ import annotations

import asyncio
import socket
import threading

from articlesearch.connectivity import (
    ConnectionState,
    ConnectivityMonitor,
    Transition,
    probe_from_config,
    tcp_probe,
)
from articlesearch.models import ConnectivityConfig, Notice


class SequenceProbe:
    """Probe returning the queued values in order, repeating the last one."""

    def __init__(self, *values: bool) -> None:
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


class TestStateMachine:
    def test_start_sets_initial_state_without_notice(self, notices) -> None:
        monitor = ConnectivityMonitor(SequenceProbe(False), notify=notices)
        assert monitor.state is None
        assert monitor.start() is False
        assert monitor.state is ConnectionState.OFFLINE
        assert notices == []

    def test_lost_transition_emits_notice(self, notices) -> None:
        monitor = ConnectivityMonitor(SequenceProbe(True, False), notify=notices)
        monitor.start()
        assert asyncio.run(monitor.poll()) is Transition.LOST
        assert notices == [Notice.CONNECTION_LOST]

    def test_restored_transition(self, notices) -> None:
        monitor = ConnectivityMonitor(SequenceProbe(False, True), notify=notices)
        monitor.start()
        assert asyncio.run(monitor.poll()) is Transition.RESTORED
        assert monitor.is_online
        assert notices == []

    def test_no_change_reports_nothing(self, notices) -> None:
        monitor = ConnectivityMonitor(SequenceProbe(True), notify=notices)
        monitor.start()
        assert asyncio.run(monitor.poll()) is None
        assert monitor.update(True) is None
        assert notices == []

    def test_update_before_start_only_sets_state(self, notices) -> None:
        monitor = ConnectivityMonitor(SequenceProbe(True), notify=notices)
        assert monitor.update(False) is None
        assert monitor.state is ConnectionState.OFFLINE
        assert notices == []

    def test_is_online_probes_lazily(self) -> None:
        probe = SequenceProbe(True)
        monitor = ConnectivityMonitor(probe)
        assert monitor.is_online
        assert monitor.is_online
        assert probe.calls == 1

    def test_notify_optional(self) -> None:
        monitor = ConnectivityMonitor(SequenceProbe(True, False))
        monitor.start()
        assert asyncio.run(monitor.poll()) is Transition.LOST

    def test_start_accepts_observed_value(self) -> None:
        probe = SequenceProbe(True)
        monitor = ConnectivityMonitor(probe)
        assert monitor.start(False) is False
        assert monitor.state is ConnectionState.OFFLINE
        assert probe.calls == 0

    def test_probe_runs_off_the_event_loop_thread(self) -> None:
        threads = []

        def probe() -> bool:
            threads.append(threading.get_ident())
            return True

        monitor = ConnectivityMonitor(probe)

        async def _run() -> bool:
            loop_thread = threading.get_ident()
            online = await monitor.probe()
            assert threads and threads[0] != loop_thread
            return online

        assert asyncio.run(_run()) is True


class TestProbes:
    def test_tcp_probe_success(self, monkeypatch) -> None:
        opened = []

        class _Conn:
            def __enter__(self):
                return self

            def __exit__(self, *args):
                return False

        def fake_connect(address, timeout=None):
            opened.append((address, timeout))
            return _Conn()

        monkeypatch.setattr(socket, "create_connection", fake_connect)
        assert tcp_probe("api.example.com", 443, 1.5)() is True
        assert opened == [(("api.example.com", 443), 1.5)]

    def test_tcp_probe_failure(self, monkeypatch) -> None:
        def fake_connect(address, timeout=None):
            raise OSError("Network is unreachable")

        monkeypatch.setattr(socket, "create_connection", fake_connect)
        assert tcp_probe("api.example.com")() is False

    def test_probe_from_config_uses_endpoint_host(self, monkeypatch) -> None:
        seen = []
        monkeypatch.setattr(
            "articlesearch.connectivity.tcp_probe",
            lambda host, port, timeout: seen.append((host, port, timeout)) or (lambda: True),
        )
        probe_from_config(ConnectivityConfig(), "https://api.nytimes.com/svc/search/v2/articlesearch.json")
        probe_from_config(ConnectivityConfig(probe_host="1.1.1.1", probe_port=53), "https://x.test/")
        assert seen == [("api.nytimes.com", 443, 3.0), ("1.1.1.1", 53, 3.0)]
