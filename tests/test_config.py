from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.context import SessionContext
from shared.config.client import ClientConfig, load_client_config


def test_defaults_without_file(tmp_path: Path) -> None:
    config = load_client_config(path=tmp_path / "missing.json", env={})
    assert config.server.base_url == "http://127.0.0.1:8080"
    assert config.feed.poll_timeout_seconds == 45
    assert config.lists.poll_interval_seconds == 30.0
    assert config.url("/events") == "http://127.0.0.1:8080/events"


def test_file_values_and_invalid_keys(tmp_path: Path) -> None:
    path = tmp_path / "client.json"
    path.write_text(
        json.dumps(
            {
                "server": {"base_url": "https://chat.example.com/", "username": "alice"},
                "feed": {"poll_timeout_seconds": "soon", "logging_enabled": True},
                "lists": "not-an-object",
            }
        ),
        encoding="utf-8",
    )
    config = load_client_config(path=path, env={})
    assert config.url("last-chats") == "https://chat.example.com/last-chats"
    assert config.server.username == "alice"
    assert config.feed.poll_timeout_seconds == 45
    assert config.feed.logging_enabled is True
    assert config.lists.rooms_path == "/last-chats"


def test_environment_overrides_file() -> None:
    config = load_client_config(
        raw={"server": {"username": "alice"}},
        env={
            "BASICCHAT_URL": "http://chat:9000",
            "BASICCHAT_USERNAME": "bob",
            "BASICCHAT_PASSWORD": "secret",
            "BASICCHAT_POLL_INTERVAL": "5",
            "BASICCHAT_LOGGING": "yes",
        },
    )
    assert config.server.base_url == "http://chat:9000"
    assert config.server.username == "bob"
    assert config.lists.poll_interval_seconds == 5.0
    assert config.feed.logging_enabled is True

    session = SessionContext.from_config(config)
    assert session.auth == ("bob", "secret")
    assert session.notification_category == "_____@bob"


def test_session_requires_username_and_valid_room() -> None:
    with pytest.raises(RuntimeError):
        SessionContext(username="  ", config=ClientConfig())
    with pytest.raises(RuntimeError):
        SessionContext(username="alice", config=ClientConfig(), room="_____@bob")
    assert SessionContext(username="alice", config=ClientConfig()).auth is None
