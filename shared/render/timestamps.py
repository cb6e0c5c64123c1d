"""
Timestamp humanization.

Two independent policies:
- chat_timestamp: clock time for recent messages, date + time otherwise
  (in-conversation message stamps)
- time_ago_timestamp: coarse relative buckets (recency lists, notifications)

Both read the wall clock at call time unless ``now`` is given. All instants
are epoch milliseconds, matching the feed's event timestamps.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Optional

NEVER_LABEL = "Never"

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR


def now_ms() -> int:
    return int(time.time() * 1000)


def chat_timestamp(timestamp: int, now: Optional[int] = None) -> str:
    current = now_ms() if now is None else now
    moment = datetime.fromtimestamp(timestamp / 1000.0)
    delta_hours = (current - timestamp) // (1000 * _HOUR)
    if delta_hours < 24:
        return moment.strftime("%X")
    return moment.strftime("%x %X")


def time_ago_timestamp(timestamp: int, now: Optional[int] = None) -> str:
    if timestamp == 0:
        return NEVER_LABEL

    current = now_ms() if now is None else now
    elapsed = (current - timestamp) // 1000

    if elapsed < _MINUTE:
        return "Less than a minute ago"
    if elapsed < 2 * _MINUTE:
        return "1 minute ago"
    if elapsed < _HOUR:
        return f"{elapsed // _MINUTE} minutes ago"
    if elapsed < 2 * _HOUR:
        return "1 hour ago"
    if elapsed < _DAY:
        return f"{elapsed // _HOUR} hours ago"
    if elapsed < 2 * _DAY:
        return "1 day ago"
    return f"{elapsed // _DAY} days ago"


__all__ = ["chat_timestamp", "time_ago_timestamp", "now_ms", "NEVER_LABEL"]
