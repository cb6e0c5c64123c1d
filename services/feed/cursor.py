"""Per-category subscription cursor and the handle returned by subscribe()."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Set, Tuple

from shared.chat.events import ChatEvent


@dataclass
class FeedCursor:
    """
    Monotonic replay position for one category.

    ``since_time`` only moves forward. Events at exactly ``since_time`` are
    kept in ``_seen_at_cursor`` so that a replayed boundary event is dropped
    while a distinct event sharing the same timestamp still gets through.
    """

    since_time: int
    last_id: Optional[str] = None
    _seen_at_cursor: Set[Tuple[Any, ...]] = field(default_factory=set)

    def accept(self, event: ChatEvent) -> bool:
        """Return True and advance if the event has not been delivered yet."""
        if event.timestamp < self.since_time:
            return False

        key = event.dedup_key
        if event.timestamp == self.since_time:
            if key in self._seen_at_cursor:
                return False
        else:
            self.since_time = event.timestamp
            self._seen_at_cursor = set()

        self._seen_at_cursor.add(key)
        if event.event_id:
            self.last_id = event.event_id
        return True


class Subscription:
    """Cancellable handle for one running long-poll loop."""

    def __init__(self, category: str, cursor: FeedCursor) -> None:
        self.category = category
        self.cursor = cursor
        self.delivered = 0
        self._task: Optional[asyncio.Task] = None

    def _attach(self, task: asyncio.Task) -> None:
        self._task = task

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()

    async def aclose(self) -> None:
        self.cancel()
        if self._task:
            await asyncio.gather(self._task, return_exceptions=True)


__all__ = ["FeedCursor", "Subscription"]
