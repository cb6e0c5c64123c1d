from typing import List, Optional

from services.lists.base import SnapshotListView
from shared.chat.events import UserActivity
from shared.render.message import render_user_item


class UserListView(SnapshotListView[UserActivity]):
    """Known users, most recently seen first."""

    name = "users"

    async def fetch(self) -> List[UserActivity]:
        return await self._snapshots.fetch_users()

    def sort(self, entries: List[UserActivity]) -> List[UserActivity]:
        return sorted(entries, key=lambda user: user.last_seen, reverse=True)

    def render_entry(self, entry: UserActivity, now: Optional[int] = None) -> str:
        return render_user_item(entry, self.session.username, policy=self.policy, now=now)
