"""Configuration resolution with XDG paths and a precedence chain.

This module handles all configuration for specdex:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.specdex/`` on macOS and Windows.  Only the data directory is used,
  for crash logs (see :func:`get_data_dir`).
* **Project config** -- an optional ``./specdex.json`` file with the same
  keys as :class:`~specdex.models.SpecdexConfig`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, the project file, and defaults into the effective
  :class:`~specdex.models.SpecdexConfig`.

Environment variables::

    OPENAPI_SPEC_URL          URL or file path of the document (required)
    OPENAPI_API_KEY           sent as X-API-Key when fetching
    SPEC_CACHE_TTL            cache freshness window in seconds (default 300)
    SPECDEX_REQUEST_TIMEOUT   HTTP timeout in seconds (default 30)
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specdex.exceptions import ConfigError
from specdex.models import SpecdexConfig

_APP_NAME = "specdex"
_PROJECT_CONFIG_FILENAME = "specdex.json"

ENV_SPEC_URL = "OPENAPI_SPEC_URL"
ENV_API_KEY = "OPENAPI_API_KEY"
ENV_CACHE_TTL = "SPEC_CACHE_TTL"
ENV_REQUEST_TIMEOUT = "SPECDEX_REQUEST_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specdex/`` (default ``~/.local/share/specdex/``).
    On macOS/Windows: ``~/.specdex/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./specdex.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

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


# --- Precedence resolution ---


def _env_number(name: str) -> Optional[float]:
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds (got {value!r})") from None


def resolve_config(
    cli_spec_url: Optional[str] = None,
    cli_api_key: Optional[str] = None,
    cli_ttl: Optional[float] = None,
) -> SpecdexConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_spec_url``, ``cli_api_key``, ``cli_ttl``)
        2. Environment variables (see module docstring)
        3. Project config (``./specdex.json``)
        4. Defaults

    Returns:
        The effective :class:`~specdex.models.SpecdexConfig`.

    Raises:
        ConfigError: If no spec source is configured anywhere, or a value
            fails validation.
    """
    # 4 + 3. Defaults come from the model; layer in the project file
    values: dict[str, Any] = dict(load_project_config() or {})

    # 2. Environment variables
    env_layer = {
        "spec_url": os.environ.get(ENV_SPEC_URL) or None,
        "api_key": os.environ.get(ENV_API_KEY) or None,
        "cache_ttl_seconds": _env_number(ENV_CACHE_TTL),
        "request_timeout": _env_number(ENV_REQUEST_TIMEOUT),
    }
    values.update({k: v for k, v in env_layer.items() if v is not None})

    # 1. CLI flags (highest precedence)
    cli_layer = {
        "spec_url": cli_spec_url,
        "api_key": cli_api_key,
        "cache_ttl_seconds": cli_ttl,
    }
    values.update({k: v for k, v in cli_layer.items() if v is not None})

    if not values.get("spec_url"):
        raise ConfigError(
            f"Required environment variable {ENV_SPEC_URL} is not set "
            "(or pass --spec, or add spec_url to ./specdex.json)"
        )

    try:
        return SpecdexConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
