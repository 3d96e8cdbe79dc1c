"""
User configuration file support.

Reads/writes ``~/.libreprobe/config.json``.  User values are merged over
``DEFAULTS`` key by key (the nested ``test`` block included), so a config
file only needs the keys it changes.

Supported keys::

    servers = [{"name": "...", "url": "...", "username": "", "password": ""}]
    test = {
        "download_size_mb": 50, "upload_size_mb": 10,
        "small_upload_size_mb": 1, "ping_count": 10,
        "download_timeout": 60, "upload_timeout": 60, "ping_timeout": 5,
    }
    database_url = "sqlite:///~/.libreprobe/results.db"
    save_failed = true       # store rows for servers where every test failed
    log_level = "INFO"
    log_file = ""            # rotating log file, empty to disable
"""
from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import (
    DEFAULT_DOWNLOAD_SIZE_MB,
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_PING_COUNT,
    DEFAULT_PING_TIMEOUT,
    DEFAULT_SMALL_UPLOAD_SIZE_MB,
    DEFAULT_UPLOAD_SIZE_MB,
    DEFAULT_UPLOAD_TIMEOUT,
    MAX_PING_COUNT,
    MAX_SIZE_MB,
    MIN_PING_COUNT,
)
from .models import ServerConfig, TestSettings

_CONFIG_DIR = os.path.join(Path.home(), ".libreprobe")
_CONFIG_FILE = "config.json"
_DATABASE_FILE = "results.db"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "servers": [],
    "test": {
        "download_size_mb": DEFAULT_DOWNLOAD_SIZE_MB,
        "upload_size_mb": DEFAULT_UPLOAD_SIZE_MB,
        "small_upload_size_mb": DEFAULT_SMALL_UPLOAD_SIZE_MB,
        "ping_count": DEFAULT_PING_COUNT,
        "download_timeout": DEFAULT_DOWNLOAD_TIMEOUT,
        "upload_timeout": DEFAULT_UPLOAD_TIMEOUT,
        "ping_timeout": DEFAULT_PING_TIMEOUT,
    },
    "database_url": "sqlite:///" + os.path.join(_CONFIG_DIR, _DATABASE_FILE),
    "save_failed": True,
    "log_level": "INFO",
    "log_file": "",
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def _merge(config: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in user.items():
        if key == "test" and isinstance(value, dict):
            config["test"].update(value)
        else:
            config[key] = value
    return config


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys.

    An explicit *path* must exist; the default location may be absent.
    """
    if path is not None and not os.path.isfile(path):
        raise FileNotFoundError(f"Missing configuration file at {path}")

    path = path or _config_path()
    config = copy.deepcopy(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            _merge(config, user)
    except (json.JSONDecodeError, IOError):
        pass  # corrupt file; use defaults

    return config


def save_config(config: Dict[str, Any], path: Optional[str] = None) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = path or _config_path()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()


# ---------------------------------------------------------------------------
# Typed views
# ---------------------------------------------------------------------------

# ckSize and the ping loop need integers.
_WHOLE_NUMBER_FIELDS = ("download_size_mb", "ping_count")
_NUMBER_FIELDS = (
    "upload_size_mb",
    "small_upload_size_mb",
    "download_timeout",
    "upload_timeout",
    "ping_timeout",
)


def validate_settings(settings: TestSettings) -> None:
    """Raise ``ValueError`` if any parameter is out of range."""
    for name in _WHOLE_NUMBER_FIELDS:
        value = getattr(settings, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name} must be a whole number")
    for name in _NUMBER_FIELDS:
        value = getattr(settings, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name} must be a number")
    for name in ("download_size_mb", "upload_size_mb", "small_upload_size_mb"):
        value = getattr(settings, name)
        if not 0 < value <= MAX_SIZE_MB:
            raise ValueError(f"{name} must be between 0 and {MAX_SIZE_MB} MB")
    if settings.small_upload_size_mb > settings.upload_size_mb:
        raise ValueError("small_upload_size_mb must not exceed upload_size_mb")
    if not MIN_PING_COUNT <= settings.ping_count <= MAX_PING_COUNT:
        raise ValueError(
            f"ping_count must be between {MIN_PING_COUNT} and {MAX_PING_COUNT}"
        )
    for name in ("download_timeout", "upload_timeout", "ping_timeout"):
        if getattr(settings, name) <= 0:
            raise ValueError(f"{name} must be positive")


def build_settings(config: Dict[str, Any]) -> TestSettings:
    test = config.get("test", {})
    unknown = set(test) - set(DEFAULTS["test"])
    if unknown:
        raise ValueError(f"Unknown test setting(s): {', '.join(sorted(unknown))}")
    settings = TestSettings(**test)
    validate_settings(settings)
    return settings


def build_servers(config: Dict[str, Any]) -> List[ServerConfig]:
    servers = []
    for index, entry in enumerate(config.get("servers", []), start=1):
        if not isinstance(entry, dict) or not entry.get("url"):
            raise ValueError(f"Server #{index} has no url")
        servers.append(ServerConfig.from_dict(entry))
    return servers
