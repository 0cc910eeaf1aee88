"""Configuration management for StreamVault."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .favourites import FAVOURITES_KEY
from .fetcher import DEFAULT_RELAY_URL
from .logging_utils import get_logger

CONFIG_PATH = Path.home() / ".config" / "streamvault" / "config.yaml"
DEFAULT_PLAYLIST_URL = "https://iptv-org.github.io/iptv/index.m3u"

log = get_logger(__name__)


@dataclass(slots=True)
class AppConfig:
    """Top level application configuration."""

    playlist_url: str = DEFAULT_PLAYLIST_URL
    relay_url: str = DEFAULT_RELAY_URL
    favourites_key: str = FAVOURITES_KEY
    storage_path: Optional[str] = None
    fetch_timeout: Optional[float] = None
    user_agent: Optional[str] = None

    def resolved_storage_path(self) -> Optional[Path]:
        """Return the storage path as a :class:`Path`, if configured."""

        if not self.storage_path:
            return None
        return Path(self.storage_path).expanduser()


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _clean_scalar(value: str) -> str:
    value = value.strip()
    if value.startswith(("'", '"')) and value.endswith(("'", '"')):
        value = value[1:-1]
    return value


def _parse_config(raw: str) -> dict[str, object]:
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        pass
    else:
        return data if isinstance(data, dict) else {}

    result: dict[str, object] = {}
    for line in raw.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        key, separator, remainder = line.partition(":")
        if not separator:
            log.warning("Ignoring malformed configuration line: %s", line)
            continue
        result[key.strip()] = _clean_scalar(remainder)
    return result


def _dump_config(data: AppConfig) -> str:
    lines: list[str] = [
        "playlist_url: " + data.playlist_url,
        "relay_url: " + data.relay_url,
        "favourites_key: " + data.favourites_key,
    ]
    if data.storage_path:
        lines.append("storage_path: " + data.storage_path)
    if data.fetch_timeout is not None:
        lines.append(f"fetch_timeout: {data.fetch_timeout:g}")
    if data.user_agent:
        lines.append("user_agent: " + data.user_agent)
    lines.append("")
    return "\n".join(lines)


def _optional_text(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_timeout(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            log.warning("Ignoring invalid fetch_timeout %r", value)
            return None
    else:
        return None
    if number <= 0:
        log.warning("Ignoring non-positive fetch_timeout %r", value)
        return None
    return number


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load configuration from *path* or return the defaults."""

    config_path = path or CONFIG_PATH
    if not config_path.exists():
        log.info("Configuration file missing at %s; using defaults", config_path)
        return AppConfig()
    log.debug("Loading configuration from %s", config_path)
    data = _parse_config(config_path.read_text(encoding="utf8"))

    config = AppConfig()
    playlist_url = _optional_text(data.get("playlist_url"))
    if playlist_url and _is_http_url(playlist_url):
        config.playlist_url = playlist_url
    elif playlist_url:
        log.warning("Ignoring invalid playlist_url %s", playlist_url)
    relay_url = _optional_text(data.get("relay_url"))
    if relay_url and _is_http_url(relay_url):
        config.relay_url = relay_url
    elif relay_url:
        log.warning("Ignoring invalid relay_url %s", relay_url)
    config.favourites_key = _optional_text(data.get("favourites_key")) or FAVOURITES_KEY
    config.storage_path = _optional_text(data.get("storage_path"))
    config.fetch_timeout = _parse_timeout(data.get("fetch_timeout"))
    config.user_agent = _optional_text(data.get("user_agent"))
    log.info("Loaded configuration from %s (playlist=%s)", config_path, config.playlist_url)
    return config


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    """Persist *config* to disk at *path*."""

    config_path = path or CONFIG_PATH
    _ensure_parent(config_path)
    config_path.write_text(_dump_config(config), encoding="utf8")
    log.info("Configuration saved to %s", config_path)


__all__ = [
    "AppConfig",
    "CONFIG_PATH",
    "DEFAULT_PLAYLIST_URL",
    "load_config",
    "save_config",
]
