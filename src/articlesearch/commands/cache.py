"""Cache commands -- inspect and clear the local article store."""

from __future__ import annotations

import typer

from articlesearch.output import info, print_json, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("stats")
def cache_stats() -> None:
    """Show where articles are stored and how many there are.

    Example::

        articlesearch cache stats
    """
    from articlesearch.config import get_cache_dir, load_global_config
    from articlesearch.store import LocalStore

    with LocalStore(get_cache_dir()) as store:
        stats = store.stats()
    stats["cache_enabled"] = load_global_config().cache_enabled
    print_json(stats)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Delete the stored articles.

    The next ``articlesearch show`` fetches from the API again.
    Asks for confirmation unless ``--force`` is active.
    """
    from articlesearch.config import get_cache_dir
    from articlesearch.store import LocalStore

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force and not typer.confirm("Delete all stored articles?"):
        info("Cancelled.")
        raise typer.Exit()

    with LocalStore(get_cache_dir()) as store:
        store.clear()
    success("Stored articles cleared.")
