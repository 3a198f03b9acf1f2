"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for articlesearch:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.articlesearch/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~articlesearch.models.GlobalConfig`
  JSON file holding the ``cache_enabled`` switch, API settings, output
  defaults, and connectivity probe settings.
* **Precedence resolution** -- :func:`resolve_config` merges environment
  variables and the config file into the effective configuration.  Output
  flags (``--json``, ``--plain``) and ``show --cache/--no-cache`` are
  applied by the CLI on top of it.
* **Credential resolution** -- :func:`resolve_credential` reads the API key
  from an env var or a file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so a crash never leaves a half-written config.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from articlesearch.exceptions import ConfigError
from articlesearch.models import GlobalConfig

_APP_NAME = "articlesearch"
_CONFIG_FILENAME = "config.json"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/articlesearch/`` (default
    ``~/.config/articlesearch/``).  On macOS/Windows: ``~/.articlesearch/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory holding the local article store.

    On Linux/BSD: ``$XDG_CACHE_HOME/articlesearch/`` (default
    ``~/.cache/articlesearch/``).  On macOS/Windows: ``~/.articlesearch/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/articlesearch/`` (default
    ``~/.local/share/articlesearch/``).  On macOS/Windows: ``~/.articlesearch/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX systems.  On any failure the temp file is
    removed and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~articlesearch.models.GlobalConfig`, or a
        default instance when no file exists yet.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


def set_cache_enabled(enabled: bool) -> GlobalConfig:
    """Flip the persisted ``cache_enabled`` switch and return the saved config."""
    config = load_global_config()
    config.cache_enabled = enabled
    save_global_config(config)
    return config


# --- Precedence resolution ---


def parse_bool(value: str) -> bool:
    """Parse a user-supplied boolean such as ``yes``/``no`` or ``1``/``0``.

    Raises:
        ConfigError: If *value* is not a recognised boolean spelling.
    """
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Expected a boolean, got: {value!r}")


def resolve_config() -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. Environment variables (``ARTICLESEARCH_ENDPOINT``,
           ``ARTICLESEARCH_CACHE_ENABLED``, ``ARTICLESEARCH_API_KEY_SOURCE``)
        2. User config (``~/.config/articlesearch/config.json``)
        3. Defaults

    Env overrides apply to the returned object only; they are never
    written back to disk.
    """
    config = load_global_config()

    env_endpoint = os.environ.get("ARTICLESEARCH_ENDPOINT")
    if env_endpoint:
        config.api.endpoint = env_endpoint
    env_key_source = os.environ.get("ARTICLESEARCH_API_KEY_SOURCE")
    if env_key_source:
        config.api.api_key_source = env_key_source
    env_cache = os.environ.get("ARTICLESEARCH_CACHE_ENABLED")
    if env_cache:
        config.cache_enabled = parse_bool(env_cache)

    return config


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if not value:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
