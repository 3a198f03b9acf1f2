"""Typer application factory and CLI entry point for articlesearch.

This module wires together the top-level Typer application, the article
commands (``show``, ``refresh``, ``search``, ``watch``), and the
``config`` and ``cache`` sub-command groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs signal handlers, registers commands and
invokes the Typer app.  Unhandled exceptions are written to a crash log
under the data directory.

See Also:
    :mod:`articlesearch.session`: The application shell driven by these commands.
    :mod:`articlesearch.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from articlesearch import __version__
from articlesearch.client import RemoteSource
from articlesearch.config import get_cache_dir, resolve_config, set_cache_enabled
from articlesearch.connectivity import probe_from_config
from articlesearch.exceptions import (
    ArticleSearchError,
    FetchFailedError,
    NoConnectivityError,
    ParseFailedError,
)
from articlesearch.exit_codes import EXIT_GENERIC_FAILURE
from articlesearch.filtering import filter_records
from articlesearch.models import GlobalConfig, Notice
from articlesearch.session import ArticleSession
from articlesearch.store import LocalStore


app = typer.Typer(
    name="articlesearch",
    help="Search, cache and browse news articles from the terminal.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

# Notices that make a command fail, most specific first.
_FAILURE_NOTICES: tuple[tuple[Notice, type[ArticleSearchError]], ...] = (
    (Notice.NO_CONNECTION, NoConnectivityError),
    (Notice.PARSE_FAILED, ParseFailedError),
    (Notice.FETCH_FAILED, FetchFailedError),
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"articlesearch {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route package logs to stderr with ``--verbose``; keep them silent otherwise.

    Package loggers never fall through to the last-resort handler, so
    errors already reported as notices are not printed twice.
    """
    from rich.logging import RichHandler

    logger = logging.getLogger("articlesearch")
    logger.handlers.clear()
    logger.propagate = False
    if verbose:
        logger.setLevel(logging.DEBUG)
        logger.addHandler(RichHandler(show_path=False, markup=False))
    else:
        logger.addHandler(logging.NullHandler())


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~articlesearch.output.OutputManager`
    and logging from CLI flags and stores shared options in ``ctx.obj``.
    """
    from articlesearch.config import load_global_config
    from articlesearch.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(load_global_config().output.format)
        except ValueError:
            fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Session plumbing
# ------------------------------------------------------------------ #


def _build_session(config: GlobalConfig, store: LocalStore, remote: RemoteSource) -> ArticleSession:
    """Create a session wired to the real probe and persisted settings."""
    return ArticleSession(
        remote=remote,
        store=store,
        probe=probe_from_config(config.connectivity, config.api.endpoint),
        cache_enabled=config.cache_enabled,
        persist_cache_enabled=set_cache_enabled,
    )


def _exit_code_for(session: ArticleSession) -> Optional[int]:
    """Map the failure notices a command produced to an exit code."""
    for item, error_cls in _FAILURE_NOTICES:
        if item in session.notices:
            return error_cls.exit_code
    return None


def _render(session: ArticleSession, title: str) -> None:
    from articlesearch.output import info, print_records

    visible = session.visible_records
    print_records(visible, title=title)
    if session.query:
        info(f"{len(visible)} of {len(session.records)} articles match '{session.query}'")
    else:
        info(f"{len(visible)} articles")


def _finish(session: ArticleSession) -> None:
    code = _exit_code_for(session)
    if code is not None:
        raise typer.Exit(code=code)


# ------------------------------------------------------------------ #
# Article commands
# ------------------------------------------------------------------ #


@app.command("show")
def show_command(
    search: str = typer.Option("", "--search", "-s", help="Only show titles containing this text."),
    cache: Optional[bool] = typer.Option(
        None, "--cache/--no-cache", help="Turn the local article cache on or off (persisted)."
    ),
) -> None:
    """Show articles, from the local store when possible.

    Fetches from the API when the cache is disabled or still empty;
    otherwise shows the stored articles, which also works offline.

    Example::

        articlesearch show
        articlesearch show --search election --no-cache
    """
    config = resolve_config()

    async def _run() -> ArticleSession:
        with LocalStore(get_cache_dir()) as store:
            async with RemoteSource(config.api) as remote:
                session = _build_session(config, store, remote)
                if cache is not None:
                    session.set_cache_enabled(cache)
                await session.start()
                session.search(search)
                return session

    session = asyncio.run(_run())
    _render(session, title="Articles")
    _finish(session)


@app.command("refresh")
def refresh_command(
    search: str = typer.Option("", "--search", "-s", help="Only show titles containing this text."),
) -> None:
    """Fetch the latest articles from the API.

    Requires a network connection; when offline the command reports it
    and exits without touching the local store.

    Example::

        articlesearch refresh
    """
    config = resolve_config()

    async def _run() -> ArticleSession:
        with LocalStore(get_cache_dir()) as store:
            async with RemoteSource(config.api) as remote:
                session = _build_session(config, store, remote)
                await session.refresh()
                session.search(search)
                return session

    session = asyncio.run(_run())
    if session.records:
        _render(session, title="Articles")
    _finish(session)


@app.command("search")
def search_command(
    query: str = typer.Argument(help="Text to look for in article titles (case-insensitive)."),
) -> None:
    """Filter the stored articles by title without touching the network.

    Example::

        articlesearch search "climate"
    """
    from articlesearch.output import info, print_records, warning

    with LocalStore(get_cache_dir()) as store:
        records = store.get_all()
    if not records:
        warning("No stored articles yet. Run 'articlesearch show' while online.")
        return
    matches = filter_records(records, query)
    print_records(matches, title=f"Articles matching '{query}'")
    info(f"{len(matches)} of {len(records)} articles match '{query}'")


@app.command("watch")
def watch_command(
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", help="Seconds between connectivity checks."
    ),
    iterations: Optional[int] = typer.Option(
        None, "--iterations", "-n", help="Stop after this many checks (default: run until Ctrl-C)."
    ),
    search: str = typer.Option("", "--search", "-s", help="Only show titles containing this text."),
) -> None:
    """Show articles and keep watching the network.

    When the connection comes back while stored articles are displayed,
    the list is refreshed from the API automatically.  Like ``show``, the
    exit code reports any fetch failure seen during the run.

    Example::

        articlesearch watch --interval 5
    """
    from articlesearch.output import print_records

    config = resolve_config()
    poll_interval = interval if interval is not None else config.connectivity.poll_interval

    async def _run() -> ArticleSession:
        with LocalStore(get_cache_dir()) as store:
            async with RemoteSource(config.api) as remote:
                session = _build_session(config, store, remote)
                await session.start()
                session.search(search)
                _render(session, title="Articles")
                await session.watch(
                    poll_interval,
                    iterations=iterations,
                    on_change=lambda records: print_records(records, title="Articles (refreshed)"),
                )
                return session

    session = asyncio.run(_run())
    _finish(session)


# ------------------------------------------------------------------ #
# Process plumbing
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from articlesearch.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def _register_subcommands() -> None:
    from articlesearch.commands.cache import cache_app
    from articlesearch.commands.config import config_app

    app.add_typer(config_app, name="config", help="Configuration management.")
    app.add_typer(cache_app, name="cache", help="Local article store management.")


_register_subcommands()


def main() -> None:
    """CLI entry point invoked by the ``articlesearch`` console script.

    :class:`~articlesearch.exceptions.ArticleSearchError` instances cause a
    clean exit with the error's ``exit_code``.  All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from articlesearch.output import error

        if isinstance(exc, ArticleSearchError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
