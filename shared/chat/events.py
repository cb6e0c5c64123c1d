"""Chat feed event schema and helpers.

Events arrive from a golongpoll-compatible feed as
``{"timestamp": <epoch ms>, "category": str, "data": {...}, "id": str}``.
Chat rooms carry ``{"username", "msg"}`` payloads; personal mention
notifications carry the UserMention shape published by the server.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

MENTION_CATEGORY_PREFIX = "_____@"

# Sentinel used by the users endpoint for accounts that were never seen.
NEVER = 0


def mention_category(username: str) -> str:
    """Return the feed category carrying @mention notifications for a user."""
    if not username:
        raise ValueError("username is required")
    return MENTION_CATEGORY_PREFIX + username.lower()


def is_mention_category(category: str) -> bool:
    return (category or "").startswith(MENTION_CATEGORY_PREFIX)


def _coerce_timestamp(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid event timestamp: {value!r}")
    try:
        ts = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid event timestamp: {value!r}") from e
    if ts < 0:
        raise ValueError(f"Invalid event timestamp: {value!r}")
    return ts


@dataclass(frozen=True)
class ChatMessage:
    username: str
    msg: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            username=str(data.get("username") or ""),
            msg=str(data.get("msg") or ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"username": self.username, "msg": self.msg}


@dataclass(frozen=True)
class UserMention:
    """Notification published to a user's mention category."""

    sender: str
    room_original: str
    original_msg: str
    msg: str = ""
    room: str = ""
    room_link: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserMention":
        return cls(
            sender=str(data.get("sender") or ""),
            room_original=str(data.get("room_original") or ""),
            original_msg=str(data.get("original_msg") or ""),
            msg=str(data.get("msg") or ""),
            room=str(data.get("room") or ""),
            room_link=str(data.get("room_link") or ""),
        )


@dataclass(frozen=True)
class ChatEvent:
    timestamp: int
    category: str
    data: Union[ChatMessage, Dict[str, Any]]
    event_id: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ChatEvent":
        if not isinstance(payload, dict):
            raise ValueError("event payload must be an object")

        category = payload.get("category")
        if not isinstance(category, str) or not category:
            raise ValueError("event category is required")

        raw_data = payload.get("data")
        data: Union[ChatMessage, Dict[str, Any]]
        if isinstance(raw_data, dict) and "username" in raw_data and "msg" in raw_data:
            data = ChatMessage.from_dict(raw_data)
        elif isinstance(raw_data, dict):
            data = dict(raw_data)
        else:
            data = {"value": raw_data}

        event_id = payload.get("id")
        return cls(
            timestamp=_coerce_timestamp(payload.get("timestamp")),
            category=category,
            data=data,
            event_id=str(event_id) if event_id else None,
        )

    @property
    def message(self) -> Optional[ChatMessage]:
        return self.data if isinstance(self.data, ChatMessage) else None

    def data_dict(self) -> Dict[str, Any]:
        if isinstance(self.data, ChatMessage):
            return self.data.to_dict()
        return dict(self.data)

    @property
    def dedup_key(self) -> Tuple[Any, ...]:
        # Timestamps are not unique per category; prefer the server id.
        if self.event_id:
            return ("id", self.event_id)
        canonical = json.dumps(self.data_dict(), sort_keys=True, default=str)
        return ("content", self.timestamp, self.category, canonical)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "category": self.category,
            "data": self.data_dict(),
        }
        if self.event_id:
            payload["id"] = self.event_id
        return payload


@dataclass(frozen=True)
class RoomSummary:
    room_id: str
    last_event: ChatEvent
    last_activity: int

    @classmethod
    def from_snapshot_entry(cls, room_id: str, entry: Dict[str, Any]) -> "RoomSummary":
        payload = dict(entry)
        payload.setdefault("category", room_id)
        event = ChatEvent.from_dict(payload)
        return cls(room_id=room_id, last_event=event, last_activity=event.timestamp)


@dataclass(frozen=True)
class UserActivity:
    username: str
    last_seen: int = NEVER

    @property
    def never_seen(self) -> bool:
        return self.last_seen == NEVER


@dataclass(frozen=True)
class RenderedMessage:
    """Transient view-model for one chat message; rebuilt on every render."""

    timestamp_label: str
    sender_label: str
    body_markup: str
    is_own: bool
    mentions: Tuple[str, ...] = field(default_factory=tuple)


__all__ = [
    "MENTION_CATEGORY_PREFIX",
    "NEVER",
    "ChatMessage",
    "ChatEvent",
    "UserMention",
    "RoomSummary",
    "UserActivity",
    "RenderedMessage",
    "mention_category",
    "is_mention_category",
]
