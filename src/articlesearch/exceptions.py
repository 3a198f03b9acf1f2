"""Exception hierarchy for articlesearch.

All exceptions inherit from :class:`ArticleSearchError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`articlesearch.exit_codes`.  The sync errors
(:class:`NoConnectivityError`, :class:`FetchFailedError`,
:class:`ParseFailedError`) are recovered inside
:class:`~articlesearch.sync.SyncCoordinator` and surface as notices; the
rest reach :func:`articlesearch.app.main`, which prints them and exits
with the appropriate code.

Subclass hierarchy::

    ArticleSearchError (exit 1)
    +-- FetchFailedError     (exit 5)
    +-- NoConnectivityError  (exit 6)
    +-- ParseFailedError     (exit 7)
    +-- ConfigError          (exit 1)
    +-- StoreError           (exit 1)
"""

from __future__ import annotations

from typing import Optional

from articlesearch.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_FETCH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_PARSE_ERROR,
)


class ArticleSearchError(Exception):
    """Base exception for all articlesearch errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class NoConnectivityError(ArticleSearchError):
    """The network was unreachable when a refresh was requested."""

    exit_code = EXIT_CONNECTION_ERROR


class FetchFailedError(ArticleSearchError):
    """Raised when the search request fails at the HTTP or transport level.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the failed response, or ``None`` when
            no response was received (DNS failure, refused connection,
            timeout).
    """

    exit_code = EXIT_FETCH_FAILURE

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseFailedError(ArticleSearchError):
    """Raised when the response body is not valid JSON or has an unexpected shape."""

    exit_code = EXIT_PARSE_ERROR


class ConfigError(ArticleSearchError):
    """Raised for configuration problems (invalid JSON, unresolvable API key)."""

    exit_code = EXIT_GENERIC_FAILURE


class StoreError(ArticleSearchError):
    """Raised when the local article store cannot be opened or decoded."""

    exit_code = EXIT_GENERIC_FAILURE
