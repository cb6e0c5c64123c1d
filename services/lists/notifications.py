"""Personal @mention notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set, Tuple

from core.context import SessionContext
from core.scheduler import PeriodicTask
from services.feed.client import FULL_HISTORY, FeedClient
from services.feed.cursor import Subscription
from shared.chat.events import ChatEvent, UserMention
from shared.logging.logger import get_logger
from shared.render.message import render_notification_item

log = get_logger("lists.notifications")


@dataclass(frozen=True)
class Notification:
    timestamp: int
    mention: UserMention
    key: Tuple[Any, ...]


class NotificationView:
    """
    Mentions of the viewer, newest first.

    Notifications arrive on the viewer's mention category of the feed. A
    periodic repaint keeps the relative timestamps current between arrivals.
    """

    name = "notifications"

    def __init__(
        self,
        session: SessionContext,
        feed: FeedClient,
        *,
        on_change: Optional[Callable[[List[str]], None]] = None,
        max_items: Optional[int] = None,
        interval: Optional[float] = None,
    ):
        self.session = session
        self._feed = feed
        self._on_change = on_change
        self.max_items = max_items or session.config.lists.max_notifications
        self.interval = interval or session.config.lists.poll_interval_seconds

        self.entries: List[Notification] = []
        self.items: List[str] = []
        self._keys: Set[Tuple[Any, ...]] = set()

        self._subscription: Optional[Subscription] = None
        self._repaint_task: Optional[PeriodicTask] = None

    # ------------------------------------------------------------

    def start(self, since_time: int = FULL_HISTORY) -> Subscription:
        if self._subscription and self._subscription.running:
            return self._subscription

        self._subscription = self._feed.subscribe(
            self.session.notification_category,
            since_time,
            self.handle_event,
        )
        self._repaint_task = PeriodicTask(
            self.name,
            self.interval,
            self.repaint,
            run_immediately=False,
        ).start()
        return self._subscription

    async def stop(self) -> None:
        if self._repaint_task:
            await self._repaint_task.stop()
            self._repaint_task = None
        if self._subscription:
            await self._subscription.aclose()
            self._subscription = None

    # ------------------------------------------------------------

    def handle_event(self, event: ChatEvent) -> bool:
        if event.message is not None:
            log.warning(f"[{event.category}] chat message on mention category ignored")
            return False

        key = event.dedup_key
        if key in self._keys:
            return False

        mention = UserMention.from_dict(event.data_dict())
        self.entries.append(Notification(event.timestamp, mention, key))
        self.entries.sort(key=lambda n: n.timestamp, reverse=True)
        self._keys.add(key)

        # Evicted entries release their keys; replays are dropped by the feed cursor.
        for dropped in self.entries[self.max_items:]:
            self._keys.discard(dropped.key)
        del self.entries[self.max_items:]

        log.info(
            f"[{self.session.username}] mentioned by {mention.sender} "
            f"in '{mention.room_original}'"
        )
        self.repaint()
        return True

    def repaint(self, now: Optional[int] = None) -> List[str]:
        self.items = [
            render_notification_item(n.timestamp, n.mention, now=now)
            for n in self.entries
        ]
        if self._on_change:
            self._on_change(list(self.items))
        return self.items


__all__ = ["Notification", "NotificationView"]
