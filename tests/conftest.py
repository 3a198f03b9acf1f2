"""Shared test fixtures for articlesearch.

Provides reusable fixtures for loading the search response fixture,
creating isolated config environments, faking the remote source,
managing output state, and running CLI commands.  These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import pytest

from articlesearch.models import Record
from articlesearch.output import OutputFormat, OutputManager, reset_output, set_output
from articlesearch.store import LocalStore


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Search response fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def search_payload() -> dict[str, Any]:
    """Raw search envelope with five docs, three of which carry media."""
    with open(FIXTURES_DIR / "articlesearch_response.json") as f:
        return json.load(f)


@pytest.fixture
def sample_records() -> list[Record]:
    return [
        Record(title="Congress Strikes Budget Deal", summary="Deal.", author="By Jane Doe",
               image_url="https://www.nytimes.com/images/budget.jpg"),
        Record(title="Overtime Thriller Decides the Championship", summary="Sports.",
               author="", image_url="https://static01.nyt.com/images/final.jpg"),
        Record(title="Why Sleep Helps You Remember", summary="Science.", author="By Ann Lee",
               image_url="https://www.nytimes.com/images/sleep.jpg"),
    ]


# ---------------------------------------------------------------------------
# Fake remote source
# ---------------------------------------------------------------------------


class FakeRemote:
    """Stand-in for :class:`~articlesearch.client.RemoteSource`.

    Returns *records* (or raises *error*) and counts calls.  When *gate* is
    set, each fetch waits for it, which lets tests overlap triggers.
    """

    def __init__(
        self,
        records: Optional[list[Record]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.records = list(records or [])
        self.error = error
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self) -> list[Record]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def fake_remote(sample_records: list[Record]) -> FakeRemote:
    return FakeRemote(records=sample_records)


@pytest.fixture
def store(tmp_path: Path) -> LocalStore:
    """An empty local store under tmp_path."""
    s = LocalStore(tmp_path / "store")
    yield s
    s.close()


class NoticeLog(list):
    """Callable list collecting notices, usable as a ``notify`` sink."""

    def __call__(self, item: Any) -> None:
        self.append(item)


@pytest.fixture
def notices() -> NoticeLog:
    return NoticeLog()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME at
    subdirectories of tmp_path, forces the XDG code path, clears all
    ARTICLESEARCH_* variables, and sets a dummy NYT_API_KEY.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("articlesearch.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("NYT_API_KEY", "test-key")

    for var in [
        "ARTICLESEARCH_ENDPOINT",
        "ARTICLESEARCH_CACHE_ENABLED",
        "ARTICLESEARCH_API_KEY_SOURCE",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format output manager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
