"""Built-in sub-command groups (``config`` and ``cache``) for the articlesearch CLI."""
