"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for specdash:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.specdash/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`, :func:`get_store_dir`.
* **Global config** -- A single :class:`~specdash.models.GlobalConfig`
  JSON file storing fetch, cache, output, and storage settings.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

All file writes, including stored specifications, go through
:func:`atomic_write` so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from specdash.exceptions import ConfigError
from specdash.models import GlobalConfig

_APP_NAME = "specdash"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "specdash.json"

ENV_TIMEOUT = "SPECDASH_TIMEOUT"
ENV_STORE_DIR = "SPECDASH_STORE_DIR"
ENV_NO_CACHE = "SPECDASH_NO_CACHE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/specdash/`` (default ``~/.config/specdash/``).
    On macOS/Windows: ``~/.specdash/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the external ``$ref`` cache. Safe to delete at any time.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (stored specs, crash logs), creating it if necessary."""
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_store_dir(config: Optional[GlobalConfig] = None) -> Path:
    """Return the directory holding stored specifications.

    Uses ``config.storage.directory`` when set, otherwise ``<data dir>/specs``.
    """
    if config is not None and config.storage.directory:
        path = Path(config.storage.directory).expanduser()
    else:
        path = get_data_dir() / "specs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original exception propagates.
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
        fd = None
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
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~specdash.models.GlobalConfig`, or a
        default instance when the file does not exist.

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
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./specdash.json``.

    The file holds a partial :class:`~specdash.models.GlobalConfig` (for
    example ``{"fetch": {"timeout_seconds": 5}}``) that is layered over the
    user config.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_timeout: Optional[float] = None,
    cli_store_dir: Optional[str] = None,
    cli_format: Optional[str] = None,
    cli_no_cache: bool = False,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``SPECDASH_TIMEOUT``,
           ``SPECDASH_STORE_DIR``, ``SPECDASH_NO_CACHE``)
        3. Project config (``./specdash.json``)
        4. User config (``~/.config/specdash/config.json``)
        5. Defaults

    Returns:
        The effective :class:`~specdash.models.GlobalConfig`.

    Raises:
        ConfigError: If any layer is malformed.
    """
    # 5 + 4
    global_cfg = load_global_config()

    # 3
    project = load_project_config()
    if project is not None:
        try:
            global_cfg = GlobalConfig.model_validate(
                _deep_merge(global_cfg.model_dump(mode="json"), project)
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid project config: {exc}") from exc

    # 2
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            global_cfg.fetch.timeout_seconds = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_TIMEOUT} must be a number of seconds, got: {env_timeout}"
            ) from exc
    env_store = os.environ.get(ENV_STORE_DIR)
    if env_store:
        global_cfg.storage.directory = env_store
    if os.environ.get(ENV_NO_CACHE):
        global_cfg.cache.enabled = False

    # 1
    if cli_timeout is not None:
        global_cfg.fetch.timeout_seconds = cli_timeout
    if cli_store_dir is not None:
        global_cfg.storage.directory = cli_store_dir
    if cli_format is not None:
        global_cfg.output.format = cli_format
    if cli_no_cache:
        global_cfg.cache.enabled = False

    return global_cfg
