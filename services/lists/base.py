from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, TypeVar

from core.context import SessionContext
from core.scheduler import PeriodicTask
from services.snapshots.client import SnapshotClient, SnapshotError
from shared.logging.logger import get_logger
from shared.render.policy import PREVIEW_POLICY, FormattingPolicy

log = get_logger("lists.base")

T = TypeVar("T")


class SnapshotListView(ABC, Generic[T]):
    """
    Base class for lists rebuilt wholesale from a snapshot endpoint.

    Every tick fetches the full list, sorts it, re-renders every item and
    replaces the previous items. A failed fetch keeps the previous items
    and waits for the next tick.
    """

    name = "list"

    def __init__(
        self,
        session: SessionContext,
        snapshots: SnapshotClient,
        *,
        on_change: Optional[Callable[[List[str]], None]] = None,
        interval: Optional[float] = None,
        policy: FormattingPolicy = PREVIEW_POLICY,
    ):
        self.session = session
        self.policy = policy
        self._snapshots = snapshots
        self._on_change = on_change
        self.interval = interval or session.config.lists.poll_interval_seconds

        self.entries: List[T] = []
        self.items: List[str] = []
        self.last_error: Optional[str] = None
        self._task: Optional[PeriodicTask] = None

    @abstractmethod
    async def fetch(self) -> List[T]:
        """Return the current entries from the snapshot endpoint."""
        raise NotImplementedError

    @abstractmethod
    def sort(self, entries: List[T]) -> List[T]:
        raise NotImplementedError

    @abstractmethod
    def render_entry(self, entry: T, now: Optional[int] = None) -> str:
        raise NotImplementedError

    # ------------------------------------------------------------

    async def refresh(self) -> bool:
        try:
            entries = await self.fetch()
        except SnapshotError as e:
            self.last_error = str(e)
            log.warning(f"[{self.name}] snapshot skipped this tick: {e}")
            return False

        self.last_error = None
        self.entries = self.sort(entries)
        self.repaint()
        return True

    def repaint(self, now: Optional[int] = None) -> List[str]:
        self.items = [self.render_entry(entry, now=now) for entry in self.entries]
        if self._on_change:
            self._on_change(list(self.items))
        return self.items

    def start(self) -> PeriodicTask:
        if self._task and self._task.running:
            return self._task
        self._task = PeriodicTask(self.name, self.interval, self.refresh).start()
        return self._task

    async def stop(self) -> None:
        if self._task:
            await self._task.stop()
            self._task = None
