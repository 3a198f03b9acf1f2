"""Canonical Pydantic models shared across all articlesearch modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ApiConfig`, :class:`OutputConfig`, :class:`ConnectivityConfig`,
    and :class:`GlobalConfig`.

**Search API envelope** -- the subset of the Article Search response that the
client reads:
    :class:`Multimedia`, :class:`Headline`, :class:`Byline`,
    :class:`ArticleDoc`, :class:`SearchBody`, and :class:`SearchResponse`.
    Every field is optional and unknown keys are ignored, so partial or
    evolving payloads still decode.

**Domain models** -- what the rest of the package works with:
    :class:`Record`, :class:`Trigger`, :class:`Notice`, and the immutable
    :class:`SyncState` threaded through
    :meth:`~articlesearch.sync.SyncCoordinator.sync`.
"""

from __future__ import annotations

import enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_ENDPOINT = "https://api.nytimes.com/svc/search/v2/articlesearch.json"
DEFAULT_MEDIA_BASE_URL = "https://www.nytimes.com/"


# --- Configuration ---


class ApiConfig(BaseModel):
    """Where and how to reach the search API."""

    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="Search endpoint URL")
    api_key_source: str = Field(
        default="env:NYT_API_KEY",
        description="Credential source for the API key: env:VAR or file:/path",
    )
    api_key_param: str = Field(
        default="api-key", description="Query parameter carrying the API key"
    )
    media_base_url: str = Field(
        default=DEFAULT_MEDIA_BASE_URL,
        description="Base URL prepended to relative multimedia paths",
    )
    timeout: float = Field(default=30.0, description="Fetch timeout in seconds")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class ConnectivityConfig(BaseModel):
    """Reachability probe settings.

    When ``probe_host`` is unset the host of :attr:`ApiConfig.endpoint` is
    probed.
    """

    probe_host: Optional[str] = None
    probe_port: int = 443
    probe_timeout: float = Field(default=3.0, description="Probe timeout in seconds")
    poll_interval: float = Field(
        default=10.0, description="Seconds between probes in watch mode"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/articlesearch/config.json``.

    ``cache_enabled`` is the user-controlled switch that decides whether
    fetched articles are written to (and served from) the local store.
    Loaded and saved by :func:`~articlesearch.config.load_global_config` and
    :func:`~articlesearch.config.save_global_config`.
    """

    cache_enabled: bool = Field(default=True, description="Persist and reuse fetched articles")
    api: ApiConfig = Field(default_factory=ApiConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    connectivity: ConnectivityConfig = Field(default_factory=ConnectivityConfig)


# --- Search API envelope ---


class Multimedia(BaseModel):
    url: Optional[str] = None


class Headline(BaseModel):
    main: Optional[str] = None


class Byline(BaseModel):
    original: Optional[str] = None


class ArticleDoc(BaseModel):
    """One entry of ``response.docs`` as returned by the search API."""

    abstract: Optional[str] = None
    headline: Optional[Headline] = None
    byline: Optional[Byline] = None
    multimedia: Optional[list[Optional[Multimedia]]] = None


class SearchBody(BaseModel):
    docs: Optional[list[Optional[ArticleDoc]]] = None


class SearchResponse(BaseModel):
    """Top-level search envelope: ``{"response": {"docs": [...]}}``."""

    response: Optional[SearchBody] = None

    @property
    def docs(self) -> list[ArticleDoc]:
        if self.response is None or self.response.docs is None:
            return []
        return [doc for doc in self.response.docs if doc is not None]


# --- Domain ---


def resolve_image_url(
    candidates: Optional[Iterable[Optional[Multimedia]]],
    base_url: str = DEFAULT_MEDIA_BASE_URL,
) -> str:
    """Pick the display image for an article.

    The first candidate with a non-empty ``url`` wins; ``null`` entries
    are skipped.  Absolute URLs (anything starting with ``http``) are
    returned unchanged; relative paths are appended to *base_url*.

    Args:
        candidates: Multimedia entries in API order, or ``None``.
        base_url: Prefix for relative paths.

    Returns:
        The resolved URL, or ``""`` when no candidate has a usable URL.
    """
    for media in candidates or ():
        if media is not None and media.url:
            if media.url.startswith("http"):
                return media.url
            return f"{base_url}{media.url}"
    return ""


class Record(BaseModel):
    """A single displayable article."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    summary: str = ""
    author: str = ""
    image_url: str = ""

    @property
    def has_media(self) -> bool:
        return bool(self.image_url)

    @classmethod
    def from_doc(cls, doc: ArticleDoc, base_url: str = DEFAULT_MEDIA_BASE_URL) -> Record:
        """Flatten an :class:`ArticleDoc`, replacing missing fields with ``""``."""
        return cls(
            title=(doc.headline.main if doc.headline else None) or "",
            summary=doc.abstract or "",
            author=(doc.byline.original if doc.byline else None) or "",
            image_url=resolve_image_url(doc.multimedia, base_url),
        )


class Trigger(str, enum.Enum):
    """Events that make the coordinator choose between the store and the API."""

    APP_START = "app_start"
    MANUAL_REFRESH = "manual_refresh"
    CONNECTIVITY_RESTORED = "connectivity_restored"


class Notice(str, enum.Enum):
    """Transient user-facing messages, shown once and never blocking."""

    NO_CONNECTION = "no_connection"
    SHOWING_CACHED = "showing_cached"
    CONNECTIVITY_RESTORED = "connectivity_restored"
    CONNECTION_LOST = "connection_lost"
    FETCH_FAILED = "fetch_failed"
    PARSE_FAILED = "parse_failed"
    SYNC_IN_PROGRESS = "sync_in_progress"

    @property
    def message(self) -> str:
        return _NOTICE_MESSAGES[self]


_NOTICE_MESSAGES = {
    Notice.NO_CONNECTION: "No internet connection. Please try again later.",
    Notice.SHOWING_CACHED: "No internet connectivity, showing previously fetched data",
    Notice.CONNECTIVITY_RESTORED: "Internet connectivity restored",
    Notice.CONNECTION_LOST: "Internet connection lost",
    Notice.FETCH_FAILED: "Failed to fetch articles",
    Notice.PARSE_FAILED: "Could not read the article search response",
    Notice.SYNC_IN_PROGRESS: "A refresh is already in progress",
}


class SyncState(BaseModel):
    """Immutable snapshot of what the user is looking at.

    Coordinator calls never mutate a state; they return a new one built
    with :meth:`evolve`.

    Attributes:
        records: The record set currently displayed, in API order.
        cache_enabled: Whether fetched sets are persisted and reused.
        was_offline: The network was down at startup or has been lost since.
        data_loaded_offline: ``records`` came from the store while offline.
    """

    model_config = ConfigDict(frozen=True)

    records: tuple[Record, ...] = ()
    cache_enabled: bool = True
    was_offline: bool = False
    data_loaded_offline: bool = False

    def evolve(self, **changes: object) -> SyncState:
        """Return a copy with *changes* applied."""
        if "records" in changes:
            changes["records"] = tuple(changes["records"])  # type: ignore[arg-type]
        return self.model_copy(update=changes)
