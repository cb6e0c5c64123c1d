from dataclasses import dataclass
from typing import Optional

from shared.chat.events import mention_category
from shared.config.client import ClientConfig


@dataclass
class SessionContext:
    # -------------------------------------------------
    # VIEWER
    # -------------------------------------------------
    username: str
    config: ClientConfig

    # Room category for chat-room sessions; None on the home view.
    room: Optional[str] = None

    # -------------------------------------------------

    @property
    def notification_category(self) -> str:
        return mention_category(self.username)

    @property
    def auth(self) -> Optional[tuple]:
        server = self.config.server
        if server.username and server.password:
            return (server.username, server.password)
        return None

    # -------------------------------------------------

    def __post_init__(self):
        self.username = (self.username or "").strip()
        if not self.username:
            raise RuntimeError("SessionContext username is REQUIRED")

        if self.room is not None:
            if not self.room.strip():
                raise RuntimeError(f"[{self.username}] room category must not be empty")
            if self.room.startswith("_____@"):
                raise RuntimeError(f"[{self.username}] room category is reserved: {self.room}")

    @classmethod
    def from_config(cls, config: ClientConfig, *, room: Optional[str] = None) -> "SessionContext":
        return cls(username=config.server.username, config=config, room=room)
