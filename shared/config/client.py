"""
Client configuration loader.

Settings come from an optional JSON file (shared/config/client.json, or the
path in BASICCHAT_CONFIG) followed by environment overrides.

Design rules:
- Import-safe (no side effects)
- Invalid shapes are ignored per-key with a warning, not globally
- Environment wins over the JSON file
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from shared.logging.logger import get_logger

log = get_logger("shared.config.client")

_CONFIG_PATH = Path(__file__).parent / "client.json"


@dataclass
class ServerConfig:
    base_url: str = "http://127.0.0.1:8080"
    username: str = ""
    password: str = ""
    request_timeout: float = 10.0


@dataclass
class FeedConfig:
    subscribe_path: str = "/events"
    publish_path: str = "/publish"
    poll_timeout_seconds: int = 45
    reattempt_wait_seconds: float = 30.0
    logging_enabled: bool = False
    # Events retained (and rendered) per chat room.
    history_size: int = 250


@dataclass
class ListsConfig:
    rooms_path: str = "/last-chats"
    users_path: str = "/users"
    poll_interval_seconds: float = 30.0
    max_notifications: int = 50


@dataclass
class ClientConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    lists: ListsConfig = field(default_factory=ListsConfig)

    def url(self, path: str) -> str:
        return self.server.base_url.rstrip("/") + "/" + path.lstrip("/")


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        log.debug(f"client config not found at {path}; using defaults")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except Exception as e:
        log.warning(f"Failed to load client config ({e}); using defaults")
        return {}

    if not isinstance(data, dict):
        log.warning("client config root is not an object; ignoring file")
        return {}
    return data


def _as_str(raw: Dict[str, Any], key: str, default: str) -> str:
    value = raw.get(key, default)
    if isinstance(value, str):
        return value
    log.warning(f"{key} must be a string; using default")
    return default


def _as_number(raw: Dict[str, Any], key: str, default, cast=float):
    value = raw.get(key, default)
    if isinstance(value, bool):
        log.warning(f"{key} must be a number; using default")
        return default
    try:
        number = cast(value)
    except (TypeError, ValueError):
        log.warning(f"{key} must be a number; using default")
        return default
    if number <= 0:
        log.warning(f"{key} must be positive; using default")
        return default
    return number


def _as_bool(raw: Dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if isinstance(value, bool):
        return value
    log.warning(f"{key} must be boolean; using default")
    return default


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw.get(name, {})
    if isinstance(section, dict):
        return section
    log.warning(f"client config section '{name}' is not an object; ignoring")
    return {}


def _load_server(raw: Dict[str, Any]) -> ServerConfig:
    defaults = ServerConfig()
    return ServerConfig(
        base_url=_as_str(raw, "base_url", defaults.base_url),
        username=_as_str(raw, "username", defaults.username),
        password=_as_str(raw, "password", defaults.password),
        request_timeout=_as_number(raw, "request_timeout", defaults.request_timeout),
    )


def _load_feed(raw: Dict[str, Any]) -> FeedConfig:
    defaults = FeedConfig()
    return FeedConfig(
        subscribe_path=_as_str(raw, "subscribe_path", defaults.subscribe_path),
        publish_path=_as_str(raw, "publish_path", defaults.publish_path),
        poll_timeout_seconds=_as_number(raw, "poll_timeout_seconds", defaults.poll_timeout_seconds, int),
        reattempt_wait_seconds=_as_number(raw, "reattempt_wait_seconds", defaults.reattempt_wait_seconds),
        logging_enabled=_as_bool(raw, "logging_enabled", defaults.logging_enabled),
        history_size=_as_number(raw, "history_size", defaults.history_size, int),
    )


def _load_lists(raw: Dict[str, Any]) -> ListsConfig:
    defaults = ListsConfig()
    return ListsConfig(
        rooms_path=_as_str(raw, "rooms_path", defaults.rooms_path),
        users_path=_as_str(raw, "users_path", defaults.users_path),
        poll_interval_seconds=_as_number(raw, "poll_interval_seconds", defaults.poll_interval_seconds),
        max_notifications=_as_number(raw, "max_notifications", defaults.max_notifications, int),
    )


def _apply_env(config: ClientConfig, env: Mapping[str, str]) -> ClientConfig:
    if env.get("BASICCHAT_URL"):
        config.server.base_url = env["BASICCHAT_URL"]
    if env.get("BASICCHAT_USERNAME"):
        config.server.username = env["BASICCHAT_USERNAME"]
    if env.get("BASICCHAT_PASSWORD"):
        config.server.password = env["BASICCHAT_PASSWORD"]

    interval = env.get("BASICCHAT_POLL_INTERVAL")
    if interval:
        config.lists.poll_interval_seconds = _as_number(
            {"BASICCHAT_POLL_INTERVAL": interval},
            "BASICCHAT_POLL_INTERVAL",
            config.lists.poll_interval_seconds,
        )

    logging_flag = env.get("BASICCHAT_LOGGING")
    if logging_flag:
        config.feed.logging_enabled = logging_flag.strip().lower() in {"1", "true", "yes", "on"}

    return config


def load_client_config(
    raw: Optional[Dict[str, Any]] = None,
    *,
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    environ = os.environ if env is None else env

    if raw is None:
        config_path = path or Path(environ.get("BASICCHAT_CONFIG") or _CONFIG_PATH)
        raw = _load_json(Path(config_path))

    config = ClientConfig(
        server=_load_server(_section(raw, "server")),
        feed=_load_feed(_section(raw, "feed")),
        lists=_load_lists(_section(raw, "lists")),
    )
    return _apply_env(config, environ)


__all__ = [
    "ClientConfig",
    "ServerConfig",
    "FeedConfig",
    "ListsConfig",
    "load_client_config",
]
