from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from services.lists.notifications import NotificationView
from services.lists.rooms import RoomListView
from services.lists.users import UserListView
from services.snapshots.client import SnapshotClient, SnapshotError, parse_rooms, parse_users
from shared.chat.events import ChatEvent
from shared.render.policy import FormattingPolicy

NOW = 1_700_000_000_000


def _room(ts: int, category: str, sender: str = "bob", msg: str = "hi") -> Dict[str, Any]:
    return {"timestamp": ts, "category": category, "data": {"username": sender, "msg": msg}}


ROOMS = {
    "old": _room(NOW - 3_600_000, "old"),
    "new": _room(NOW - 1_000, "new", sender="alice"),
    "_____@bob": _room(NOW, "_____@bob"),
    "mid": _room(NOW - 60_000, "mid"),
}


def test_parse_rooms_sorts_and_skips_mention_categories() -> None:
    rooms = parse_rooms(ROOMS)
    assert [r.room_id for r in rooms] == ["new", "mid", "old"]


def test_parse_rooms_rejects_malformed_entries() -> None:
    with pytest.raises(SnapshotError):
        parse_rooms({"x": {"timestamp": "yesterday", "category": "x", "data": {}}})
    with pytest.raises(SnapshotError):
        parse_rooms(["not", "a", "mapping"])


def test_parse_users_sorts_by_last_seen() -> None:
    users = parse_users({"carol": 0, "bob": NOW - 10, "dave": NOW})
    assert [u.username for u in users] == ["dave", "bob", "carol"]
    with pytest.raises(SnapshotError):
        parse_users({"bob": "now"})


def test_room_list_replaces_items_and_skips_failed_ticks(home_session) -> None:
    responses = [
        httpx.Response(200, json=ROOMS),
        httpx.Response(502, text="bad gateway"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"solo": _room(NOW, "solo")}),
    ]
    changes: List[List[str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/last-chats"
        return responses.pop(0)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            view = RoomListView(home_session, SnapshotClient(home_session, client=http), on_change=changes.append)
            results = [await view.refresh() for _ in range(4)]
            return view, results

    view, results = asyncio.run(scenario())
    assert results == [True, False, False, True]
    assert len(changes) == 2
    assert len(changes[0]) == 3
    assert 'href="./chat?room=new"' in changes[0][0]
    assert "chat-from-me" in changes[0][0]
    assert len(view.items) == 1
    assert view.last_error is None


def test_failed_tick_keeps_previous_list(home_session) -> None:
    responses = [
        httpx.Response(200, json={"bob": NOW, "carol": 0}),
        httpx.Response(500, text="oops"),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/users"
        return responses.pop(0)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            view = UserListView(home_session, SnapshotClient(home_session, client=http))
            await view.refresh()
            before = list(view.items)
            ok = await view.refresh()
            return view, before, ok

    view, before, ok = asyncio.run(scenario())
    assert not ok
    assert view.items == before
    assert "500" in view.last_error
    assert [u.username for u in view.entries] == ["bob", "carol"]


def test_list_view_polls_until_stopped(home_session) -> None:
    calls: List[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"bob": NOW})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            view = UserListView(
                home_session, SnapshotClient(home_session, client=http), interval=0.01
            )
            task = view.start()
            while len(calls) < 3:
                await asyncio.sleep(0.01)
            await view.stop()
            return task

    task = asyncio.run(scenario())
    assert not task.running
    assert len(calls) >= 3


def _mention_event(ts: int, event_id: str, room: str = "general") -> ChatEvent:
    return ChatEvent.from_dict(
        {
            "timestamp": ts,
            "category": "_____@alice",
            "id": event_id,
            "data": {
                "room": room,
                "room_link": "./chat?room=" + room,
                "room_original": room,
                "sender": "bob",
                "msg": f"bob mentioned you in room: {room}",
                "original_msg": "hey @alice",
            },
        }
    )


class _StubFeed:
    def __init__(self) -> None:
        self.subscribed = []

    def subscribe(self, category, since_time, on_event):
        self.subscribed.append((category, since_time))
        return None


def test_notifications_newest_first_capped_and_deduplicated(home_session) -> None:
    changes: List[List[str]] = []
    view = NotificationView(home_session, _StubFeed(), on_change=changes.append, max_items=2)

    assert view.handle_event(_mention_event(NOW - 3000, "n1", room="one"))
    assert view.handle_event(_mention_event(NOW - 1000, "n3", room="three"))
    assert view.handle_event(_mention_event(NOW - 2000, "n2", room="two"))
    assert not view.handle_event(_mention_event(NOW - 1000, "n3", room="three"))

    assert [n.mention.room_original for n in view.entries] == ["three", "two"]
    items = view.repaint(now=NOW)
    assert ">three</a>" in items[0]
    assert "Less than a minute ago" in items[0]
    assert len(changes) == 4


def test_notifications_ignore_chat_payloads(home_session) -> None:
    view = NotificationView(home_session, _StubFeed())
    event = ChatEvent.from_dict(
        {"timestamp": NOW, "category": "_____@alice", "data": {"username": "bob", "msg": "hi"}}
    )
    assert not view.handle_event(event)
    assert view.entries == []


def test_notifications_subscribe_to_personal_category(home_session) -> None:
    feed = _StubFeed()

    async def scenario():
        view = NotificationView(home_session, feed, interval=0.01)
        view.start()
        await view.stop()

    asyncio.run(scenario())
    assert feed.subscribed == [("_____@alice", 1)]


def test_notifications_forget_keys_of_evicted_entries(home_session) -> None:
    view = NotificationView(home_session, _StubFeed(), max_items=2)

    view.handle_event(_mention_event(NOW - 3000, "n1", room="one"))
    view.handle_event(_mention_event(NOW - 2000, "n2", room="two"))
    view.handle_event(_mention_event(NOW - 1000, "n3", room="three"))

    assert [n.mention.room_original for n in view.entries] == ["three", "two"]
    assert view._keys == {n.key for n in view.entries}


def test_user_list_renders_with_its_policy(home_session) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"b`ob": NOW})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            view = UserListView(
                home_session,
                SnapshotClient(home_session, client=http),
                policy=FormattingPolicy(strict_escaping=False),
            )
            await view.refresh()
            return view.items

    items = asyncio.run(scenario())
    assert "b`ob" in items[0]
