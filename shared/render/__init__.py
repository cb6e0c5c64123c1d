"""Chat message rendering pipeline."""

from shared.render.content import classify, format_chat_body
from shared.render.mentions import annotate_mentions, find_mentions
from shared.render.message import (
    message_html,
    render_chat_message,
    render_message,
    render_notification_item,
    render_room_item,
    render_user_item,
)
from shared.render.policy import DEFAULT_POLICY, PREVIEW_POLICY, FormattingPolicy
from shared.render.sanitize import sanitize
from shared.render.timestamps import chat_timestamp, time_ago_timestamp
from shared.render.whitespace import preserve_spaces

__all__ = [
    "annotate_mentions",
    "chat_timestamp",
    "classify",
    "DEFAULT_POLICY",
    "find_mentions",
    "format_chat_body",
    "FormattingPolicy",
    "message_html",
    "PREVIEW_POLICY",
    "preserve_spaces",
    "render_chat_message",
    "render_message",
    "render_notification_item",
    "render_room_item",
    "render_user_item",
    "sanitize",
    "time_ago_timestamp",
]
