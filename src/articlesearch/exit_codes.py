"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~articlesearch.exceptions.ArticleSearchError`
subclass.  Shell wrappers can inspect the exit code to tell a missing
network apart from a rejected API key without parsing stderr.

Example::

    $ articlesearch refresh
    No internet connection. Please try again later.
    $ echo $?
    6   # EXIT_CONNECTION_ERROR
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_FETCH_FAILURE = 5
"""The search API returned a non-2xx status or the transport failed."""

EXIT_CONNECTION_ERROR = 6
"""The network was unreachable when a refresh was requested."""

EXIT_PARSE_ERROR = 7
"""The search API response could not be decoded into articles."""
