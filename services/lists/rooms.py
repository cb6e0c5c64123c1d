from typing import List, Optional

from services.lists.base import SnapshotListView
from shared.chat.events import RoomSummary
from shared.render.message import render_room_item


class RoomListView(SnapshotListView[RoomSummary]):
    """Recent rooms, most recent activity first."""

    name = "rooms"

    async def fetch(self) -> List[RoomSummary]:
        return await self._snapshots.fetch_rooms()

    def sort(self, entries: List[RoomSummary]) -> List[RoomSummary]:
        return sorted(entries, key=lambda room: room.last_activity, reverse=True)

    def render_entry(self, entry: RoomSummary, now: Optional[int] = None) -> str:
        return render_room_item(entry, self.session.username, policy=self.policy, now=now)
