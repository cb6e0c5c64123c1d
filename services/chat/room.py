"""Live chat-room conversation view."""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Deque, List, Optional, Set, Tuple

from core.context import SessionContext
from services.feed.client import FULL_HISTORY, FeedClient
from services.feed.cursor import Subscription
from shared.chat.events import ChatEvent
from shared.logging.logger import get_logger
from shared.render.message import render_chat_message
from shared.render.policy import DEFAULT_POLICY, FormattingPolicy

log = get_logger("chat.room")


class ChatRoomView:
    """
    Subscribes to one room and renders every arriving message once.

    Only events are retained; markup is rebuilt from them on every
    render_all() call so formatting changes apply to the whole history.
    """

    def __init__(
        self,
        session: SessionContext,
        feed: FeedClient,
        *,
        on_message: Optional[Callable[[str], None]] = None,
        policy: FormattingPolicy = DEFAULT_POLICY,
        history_size: Optional[int] = None,
    ):
        if not session.room:
            raise RuntimeError(f"[{session.username}] ChatRoomView requires a room")

        self.session = session
        self.policy = policy
        self._feed = feed
        self._on_message = on_message

        size = history_size or session.config.feed.history_size
        self._events: Deque[ChatEvent] = deque(maxlen=size)
        self._rendered_keys: Set[Tuple[Any, ...]] = set()
        self._subscription: Optional[Subscription] = None

    # ------------------------------------------------------------

    @property
    def events(self) -> List[ChatEvent]:
        return list(self._events)

    def start(self, since_time: int = FULL_HISTORY) -> Subscription:
        if self._subscription and self._subscription.running:
            log.warning(f"[{self.session.room}] room view already started — skipping")
            return self._subscription

        self._subscription = self._feed.subscribe(self.session.room, since_time, self.handle_event)
        return self._subscription

    async def stop(self) -> None:
        if self._subscription:
            await self._subscription.aclose()
            self._subscription = None

    # ------------------------------------------------------------

    def handle_event(self, event: ChatEvent) -> Optional[str]:
        """Render a newly delivered event; repeats are ignored."""
        message = event.message
        if message is None:
            log.warning(f"[{self.session.room}] ignoring non-chat event at {event.timestamp}")
            return None

        key = event.dedup_key
        if key in self._rendered_keys:
            log.debug(f"[{self.session.room}] duplicate event at {event.timestamp} skipped")
            return None

        if len(self._events) == self._events.maxlen:
            self._rendered_keys.discard(self._events[0].dedup_key)
        self._events.append(event)
        self._rendered_keys.add(key)

        markup = self.render_event(event)
        if self._on_message:
            self._on_message(markup)
        return markup

    def render_event(self, event: ChatEvent, now: Optional[int] = None) -> str:
        message = event.message
        return render_chat_message(
            event.timestamp,
            message.username if message else "",
            message.msg if message else "",
            self.session.username,
            policy=self.policy,
            now=now,
        )

    def render_all(self, now: Optional[int] = None) -> List[str]:
        return [self.render_event(event, now=now) for event in self._events]


__all__ = ["ChatRoomView"]
