"""Outgoing-message composer for a chat room."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from core.context import SessionContext
from services.feed.client import FeedClient
from shared.logging.logger import get_logger

log = get_logger("chat.composer")

# Same limit the server enforces on published messages.
MAX_MESSAGE_CHARS = 16 * 1024


class MessageValidationError(ValueError):
    """Raised before any network call when an outgoing message is rejected."""


def validate_message(message: str) -> str:
    if not message:
        raise MessageValidationError("message cannot be empty")
    if len(message) > MAX_MESSAGE_CHARS:
        raise MessageValidationError(
            f"message must be at most {MAX_MESSAGE_CHARS} characters, got {len(message)}"
        )
    return message


class ChatComposer:
    """
    Holds the draft being typed and drives publishing it.

    The send control is disabled while a publish is in flight; that flag is
    the only guard against overlapping sends and callers can bypass it.
    On failure the draft is kept so the user can retry.
    """

    def __init__(
        self,
        session: SessionContext,
        feed: FeedClient,
        *,
        on_state_change: Optional[Callable[["ChatComposer"], None]] = None,
    ):
        if not session.room:
            raise RuntimeError(f"[{session.username}] ChatComposer requires a room")

        self.session = session
        self._feed = feed
        self._on_state_change = on_state_change

        self.text = ""
        self.in_flight = False
        self.error: Optional[str] = None

    # ------------------------------------------------------------

    @property
    def send_enabled(self) -> bool:
        return bool(self.text) and not self.in_flight

    def set_text(self, text: str) -> None:
        self.text = text or ""
        self._notify()

    def send(self) -> Optional[asyncio.Task]:
        """
        Validate and publish the current draft.

        Returns the publish task, or None when the draft was rejected or a
        publish is already in flight.
        """
        if self.in_flight:
            log.debug(f"[{self.session.room}] send ignored, publish in flight")
            return None

        try:
            message = validate_message(self.text)
        except MessageValidationError as e:
            self.error = str(e)
            log.warning(f"[{self.session.room}] message rejected: {e}")
            self._notify()
            return None

        self.in_flight = True
        self.error = None
        self._notify()

        return self._feed.publish(
            self.session.room,
            {"username": self.session.username, "msg": message},
            self._on_success,
            self._on_failure,
        )

    # ------------------------------------------------------------

    def _on_success(self) -> None:
        self.text = ""
        self.in_flight = False
        self.error = None
        self._notify()

    def _on_failure(self, status: int, body: str) -> None:
        self.in_flight = False
        self.error = f"publish failed. status: {status}, resp: {body}"
        log.error(f"[{self.session.room}] {self.error}")
        self._notify()

    def _notify(self) -> None:
        if self._on_state_change:
            self._on_state_change(self)


__all__ = [
    "ChatComposer",
    "MessageValidationError",
    "validate_message",
    "MAX_MESSAGE_CHARS",
]
