"""
Self-rearming periodic tasks.

Each tick runs the callback to completion, then waits ``interval`` seconds
before the next one, so a slow tick delays everything after it. A failing
tick is logged and skipped; the chain keeps going until cancelled.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, Union

from shared.logging.logger import get_logger

log = get_logger("core.scheduler")

TickCallback = Callable[[], Union[None, Awaitable[None]]]


class PeriodicTask:
    def __init__(
        self,
        name: str,
        interval: float,
        callback: TickCallback,
        *,
        run_immediately: bool = True,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.name = name
        self.interval = interval
        self._callback = callback
        self._run_immediately = run_immediately

        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

        self.ticks = 0
        self.failures = 0

    # ------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "PeriodicTask":
        """Start the chain on the running loop and return this handle."""
        if self.running:
            log.warning(f"[{self.name}] periodic task already running — skipping")
            return self

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=f"periodic:{self.name}")
        log.debug(f"[{self.name}] periodic task started (interval={self.interval}s)")
        return self

    def cancel(self) -> None:
        self._stop_event.set()
        if self._task and not self._task.done():
            self._task.cancel()

    async def stop(self) -> None:
        self.cancel()
        if self._task:
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        log.debug(f"[{self.name}] periodic task stopped")

    # ------------------------------------------------------------

    async def tick(self) -> bool:
        """Run the callback once. Returns False when the tick failed."""
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failures += 1
            log.warning(f"[{self.name}] tick failed, retrying next interval: {e}")
            return False
        finally:
            self.ticks += 1
        return True

    async def _run(self) -> None:
        try:
            if not self._run_immediately:
                await self._wait()

            while not self._stop_event.is_set():
                await self.tick()
                await self._wait()
        except asyncio.CancelledError:
            log.debug(f"[{self.name}] periodic task cancelled")
            raise

    async def _wait(self) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass
