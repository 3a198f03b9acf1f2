"""Local article store for articlesearch.

This package provides :class:`LocalStore`, which keeps the most recently
fetched record set on disk using :mod:`diskcache`.  The store holds
exactly one set at a time: every successful fetch replaces it wholesale.

The store is read by :class:`~articlesearch.sync.SyncCoordinator` on app
start and written after each successful fetch while ``cache_enabled``
is on.
"""

from articlesearch.store.local_store import LocalStore

__all__ = ["LocalStore"]
