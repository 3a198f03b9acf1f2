"""articlesearch -- offline-aware terminal client for the NYT Article Search API.

This package fetches articles from a news search endpoint, keeps the most
recent result set in a local store, and renders it as a list in the
terminal. When the network is unavailable the cached set is shown instead,
and the list can be narrowed by a case-insensitive title search.

Typical workflow::

    export NYT_API_KEY=...
    articlesearch show                # cached set, or fetch if empty
    articlesearch refresh             # always fetch (requires network)
    articlesearch search "climate"    # filter the stored set offline

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and settings persistence.
    sync: The coordinator deciding between cache reads and remote fetches.
    session: Application shell owning the current sync state.
    connectivity: Reachability probing and lost/restored transitions.
    filtering: Client-side title filtering.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
