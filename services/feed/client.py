import asyncio
import inspect
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from core.context import SessionContext
from runtime.version import user_agent
from services.feed.cursor import FeedCursor, Subscription
from shared.chat.events import ChatEvent
from shared.logging.logger import get_logger

log = get_logger("feed.client")

# Cursor value asking the server for every retained event.
FULL_HISTORY = 1

EventCallback = Callable[[ChatEvent], Union[None, Awaitable[None]]]
SuccessCallback = Callable[[], Union[None, Awaitable[None]]]
FailureCallback = Callable[[int, str], Union[None, Awaitable[None]]]


class FeedError(Exception):
    """
    Raised when a long-poll request fails (HTTP status, bad JSON, or an
    explicit ``error`` response). The subscription loop logs it and retries
    after the reattempt delay.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class PublishResult:
    ok: bool
    status: int
    body: str


async def _invoke(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class FeedClient:
    """
    Long-poll client for a golongpoll-compatible event feed.

    Responsibilities:
    - Poll the subscribe endpoint per category, advancing a monotonic cursor
    - Drop replayed events so each one reaches on_event once
    - Retry failed polls after a fixed delay (never fatal)
    - Publish payloads and report the outcome through callbacks
    """

    def __init__(
        self,
        session: SessionContext,
        *,
        client: Optional[httpx.AsyncClient] = None,
        subscribe_url: Optional[str] = None,
        publish_url: Optional[str] = None,
        poll_timeout_seconds: Optional[int] = None,
        reattempt_wait_seconds: Optional[float] = None,
        logging_enabled: Optional[bool] = None,
    ):
        config = session.config
        feed_cfg = config.feed

        self.session = session
        self.subscribe_url = subscribe_url or config.url(feed_cfg.subscribe_path)
        self.publish_url = publish_url or config.url(feed_cfg.publish_path)
        self.poll_timeout_seconds = poll_timeout_seconds or feed_cfg.poll_timeout_seconds
        self.reattempt_wait_seconds = (
            reattempt_wait_seconds
            if reattempt_wait_seconds is not None
            else feed_cfg.reattempt_wait_seconds
        )
        self.logging_enabled = (
            logging_enabled if logging_enabled is not None else feed_cfg.logging_enabled
        )

        request_timeout = config.server.request_timeout

        # Allow caller to supply a shared client; otherwise own lifecycle
        self._client = client or httpx.AsyncClient(
            auth=session.auth,
            headers={"User-Agent": user_agent(), "Accept": "application/json"},
            timeout=httpx.Timeout(
                request_timeout,
                read=self.poll_timeout_seconds + request_timeout,
            ),
        )
        self._client_owned = client is None

        self._subscriptions: List[Subscription] = []
        self._publishes: List[asyncio.Task] = []

    # ------------------------------------------------------------------ #
    # Subscribe
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        category: str,
        since_time: int,
        on_event: EventCallback,
    ) -> Subscription:
        """
        Start a long-poll loop for ``category`` on the running event loop.

        Events with ``timestamp >= since_time`` are handed to ``on_event`` in
        arrival order. Use FULL_HISTORY to replay everything the server keeps.
        """
        if not category:
            raise ValueError("category is required")

        subscription = Subscription(category, FeedCursor(since_time=int(since_time)))
        task = asyncio.create_task(
            self._poll_loop(subscription, on_event),
            name=f"feed:{category}",
        )
        subscription._attach(task)
        self._subscriptions.append(subscription)
        task.add_done_callback(lambda _: self._forget_subscription(subscription))

        log.info(f"[{self.session.username}] subscribed to '{category}' since {since_time}")
        return subscription

    async def poll_once(self, category: str, cursor: FeedCursor) -> List[ChatEvent]:
        """Issue one long-poll request and return the events the cursor accepts."""
        params: Dict[str, Any] = {
            "timeout": self.poll_timeout_seconds,
            "category": category,
            "since_time": cursor.since_time,
        }
        if cursor.last_id:
            params["last_id"] = cursor.last_id

        response = await self._client.get(self.subscribe_url, params=params)
        if response.status_code != 200:
            raise FeedError(
                f"subscribe request failed [{response.status_code}]",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise FeedError(f"subscribe response is not JSON: {e}", 200, response.text) from e

        if not isinstance(data, dict):
            raise FeedError("subscribe response root is not an object", 200, response.text)

        if "error" in data:
            raise FeedError(f"subscribe error: {data.get('error')}", 200, response.text)

        raw_events = data.get("events")
        if raw_events and not isinstance(raw_events, list):
            raise FeedError("subscribe response 'events' is not a list", 200, response.text)
        if not raw_events:
            if self.logging_enabled:
                log.debug(f"[{category}] poll timeout, cursor={cursor.since_time}")
            return []

        accepted: List[ChatEvent] = []
        for raw in raw_events:
            try:
                event = ChatEvent.from_dict(raw)
            except ValueError as e:
                log.warning(f"[{category}] skipping malformed event: {e}")
                continue

            if event.category != category:
                log.warning(f"[{category}] skipping event for category '{event.category}'")
                continue

            if cursor.accept(event):
                accepted.append(event)
            elif self.logging_enabled:
                log.debug(f"[{category}] dropped replayed event at {event.timestamp}")

        if self.logging_enabled:
            log.debug(
                f"[{category}] poll complete "
                f"(received={len(raw_events)}, delivered={len(accepted)}, "
                f"cursor={cursor.since_time})"
            )
        return accepted

    async def _poll_loop(self, subscription: Subscription, on_event: EventCallback) -> None:
        category = subscription.category

        while True:
            try:
                events = await self.poll_once(category, subscription.cursor)

            except asyncio.CancelledError:
                log.debug(f"[{category}] subscription cancelled")
                raise

            except (FeedError, httpx.HTTPError) as e:
                log.warning(
                    f"[{category}] poll failed: {e} — retrying in "
                    f"{self.reattempt_wait_seconds}s"
                )
                await asyncio.sleep(self.reattempt_wait_seconds)
                continue

            except Exception as e:
                log.error(
                    f"[{category}] unexpected poll error: {e} — retrying in "
                    f"{self.reattempt_wait_seconds}s"
                )
                await asyncio.sleep(self.reattempt_wait_seconds)
                continue

            for event in events:
                try:
                    await _invoke(on_event, event)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    log.error(f"[{category}] on_event handler error: {e}")
                subscription.delivered += 1

    # ------------------------------------------------------------------ #
    # Publish
    # ------------------------------------------------------------------ #

    async def publish_async(self, category: str, payload: Dict[str, Any]) -> PublishResult:
        if not category:
            raise ValueError("category is required")

        try:
            response = await self._client.post(
                self.publish_url,
                json={"category": category, "data": payload},
            )
        except httpx.HTTPError as e:
            log.error(f"[{category}] publish transport error: {e}")
            return PublishResult(ok=False, status=0, body=str(e))

        ok = 200 <= response.status_code < 300
        if not ok:
            log.error(f"[{category}] publish failed [{response.status_code}]")
        return PublishResult(ok=ok, status=response.status_code, body=response.text)

    def publish(
        self,
        category: str,
        payload: Dict[str, Any],
        on_success: Optional[SuccessCallback] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> asyncio.Task:
        """Fire-and-forget publish; the outcome arrives through the callbacks."""

        async def _run() -> PublishResult:
            result = await self.publish_async(category, payload)
            try:
                if result.ok:
                    await _invoke(on_success)
                else:
                    await _invoke(on_failure, result.status, result.body)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error(f"[{category}] publish callback error: {e}")
            return result

        task = asyncio.create_task(_run(), name=f"publish:{category}")
        self._publishes.append(task)
        task.add_done_callback(self._forget_publish)
        return task

    def _forget_subscription(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _forget_publish(self, task: asyncio.Task) -> None:
        if task in self._publishes:
            self._publishes.remove(task)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def subscriptions(self) -> List[Subscription]:
        return list(self._subscriptions)

    async def aclose(self) -> None:
        for subscription in list(self._subscriptions):
            await subscription.aclose()
        self._subscriptions.clear()

        if self._publishes:
            await asyncio.gather(*self._publishes, return_exceptions=True)

        if self._client_owned:
            await self._client.aclose()

        log.info(f"[{self.session.username}] feed client closed")


__all__ = [
    "FeedClient",
    "FeedError",
    "PublishResult",
    "FULL_HISTORY",
]
