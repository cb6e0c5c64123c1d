"""
Markup templates for chat messages and recency-list items.

Every user-controlled string passes through ``sanitize`` exactly once here
(or through ``format_chat_body``, which sanitizes internally) before being
embedded in a template.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from shared.chat.events import RenderedMessage, RoomSummary, UserActivity, UserMention
from shared.render.content import format_chat_body
from shared.render.mentions import find_mentions
from shared.render.policy import DEFAULT_POLICY, PREVIEW_POLICY, FormattingPolicy
from shared.render.sanitize import sanitize
from shared.render.timestamps import chat_timestamp, now_ms, time_ago_timestamp

OWN_CLASS = "chat-from-me"
OTHER_CLASS = "chat-from-other"

ONLINE_WINDOW_MS = 5 * 60 * 1000
IDLE_WINDOW_MS = 30 * 60 * 1000


def is_own(sender: str, viewer: str) -> bool:
    return (sender or "").lower() == (viewer or "").lower()


def sender_class(sender: str, viewer: str) -> str:
    return OWN_CLASS if is_own(sender, viewer) else OTHER_CLASS


def room_link(category: str) -> str:
    """Relative chat-room link with the category percent-encoded."""
    # Same character set encodeURIComponent leaves alone.
    return "./chat?room=" + quote(category, safe="-_.!~*'()")


# ----------------------------------------------------------------------
# Chat messages
# ----------------------------------------------------------------------

def render_message(
    timestamp: int,
    sender_raw: str,
    msg_raw: str,
    viewer: str,
    *,
    policy: FormattingPolicy = DEFAULT_POLICY,
    now: Optional[int] = None,
) -> RenderedMessage:
    return RenderedMessage(
        timestamp_label=sanitize(chat_timestamp(timestamp, now=now), strict=policy.strict_escaping),
        sender_label=sanitize(sender_raw, strict=policy.strict_escaping),
        body_markup=format_chat_body(msg_raw, policy),
        is_own=is_own(sender_raw, viewer),
        mentions=tuple(find_mentions(msg_raw)),
    )


def message_html(rendered: RenderedMessage) -> str:
    css = OWN_CLASS if rendered.is_own else OTHER_CLASS
    return (
        '<div class="chat-msg">'
        f'<span class="chat-timestamp">{rendered.timestamp_label} </span>'
        f'<span class="chat-username {css}">{rendered.sender_label}</span>'
        f' <span class="chat-body">{rendered.body_markup}</span>'
        "</div>"
    )


def render_chat_message(
    timestamp: int,
    sender_raw: str,
    msg_raw: str,
    viewer: str,
    *,
    policy: FormattingPolicy = DEFAULT_POLICY,
    now: Optional[int] = None,
) -> str:
    """Render one chat message to markup. Pure apart from the wall clock."""
    return message_html(
        render_message(timestamp, sender_raw, msg_raw, viewer, policy=policy, now=now)
    )


# ----------------------------------------------------------------------
# Recency lists
# ----------------------------------------------------------------------

def render_room_item(
    summary: RoomSummary,
    viewer: str,
    *,
    policy: FormattingPolicy = PREVIEW_POLICY,
    now: Optional[int] = None,
) -> str:
    event = summary.last_event
    message = event.message
    sender = message.username if message else ""
    body = message.msg if message else ""
    href = sanitize(room_link(event.category))

    return (
        '<div class="active-room-item"><div>'
        f'<span class="room-timestamp">{time_ago_timestamp(summary.last_activity, now=now)}</span>'
        f'<a href="{href}">{sanitize(summary.room_id, strict=policy.strict_escaping)}</a>'
        "</div><div>"
        f'<span class="chat-username {sender_class(sender, viewer)}">'
        f"{sanitize(sender, strict=policy.strict_escaping)}</span>"
        f' <div class="chat-body truncate">{format_chat_body(body, policy)}</div>'
        "</div></div>"
    )


def user_status(activity: UserActivity, now: Optional[int] = None) -> str:
    if activity.never_seen:
        return "offline"
    current = now_ms() if now is None else now
    elapsed = current - activity.last_seen
    if elapsed < ONLINE_WINDOW_MS:
        return "online"
    if elapsed < IDLE_WINDOW_MS:
        return "idle"
    return "offline"


def render_user_item(
    activity: UserActivity,
    viewer: str,
    *,
    policy: FormattingPolicy = PREVIEW_POLICY,
    now: Optional[int] = None,
) -> str:
    status = user_status(activity, now=now)
    return (
        f'<div class="user-item user-{status}">'
        f'<span class="chat-username {sender_class(activity.username, viewer)}">'
        f"{sanitize(activity.username, strict=policy.strict_escaping)}</span>"
        f' <span class="user-last-seen">{time_ago_timestamp(activity.last_seen, now=now)}</span>'
        "</div>"
    )


def render_notification_item(
    timestamp: int,
    mention: UserMention,
    *,
    policy: FormattingPolicy = PREVIEW_POLICY,
    now: Optional[int] = None,
) -> str:
    # The server's "room" field is already escaped; escape the original once.
    href = sanitize(room_link(mention.room_original))
    return (
        '<div class="notification-item"><div>'
        f'<span class="notification-timestamp">{time_ago_timestamp(timestamp, now=now)}</span>'
        f'<a href="{href}">{sanitize(mention.room_original, strict=policy.strict_escaping)}</a>'
        "</div><div>"
        f'<span class="chat-username {OTHER_CLASS}">'
        f"{sanitize(mention.sender, strict=policy.strict_escaping)}</span>"
        f' <div class="chat-body truncate">{format_chat_body(mention.original_msg, policy)}</div>'
        "</div></div>"
    )


__all__ = [
    "render_message",
    "render_chat_message",
    "message_html",
    "render_room_item",
    "render_user_item",
    "render_notification_item",
    "room_link",
    "user_status",
    "is_own",
]
