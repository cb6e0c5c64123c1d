import os

# Keep test runs from writing log files.
os.environ.setdefault("BASICCHAT_LOG_TO_FILE", "0")

import pytest  # noqa: E402

from core.context import SessionContext  # noqa: E402
from shared.config.client import ClientConfig  # noqa: E402


@pytest.fixture
def room_session() -> SessionContext:
    return SessionContext(username="alice", config=ClientConfig(), room="general")


@pytest.fixture
def home_session() -> SessionContext:
    return SessionContext(username="alice", config=ClientConfig())
