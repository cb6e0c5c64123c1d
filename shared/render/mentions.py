"""@mention detection for sanitized chat text."""

from __future__ import annotations

import re
from typing import List

MENTION_CLASS = "chat-mention"

_MENTION = re.compile(r"(^|\s)@(\w+)")


def annotate_mentions(text: str, *, css_class: str = MENTION_CLASS) -> str:
    """
    Wrap ``@name`` tokens in a mention span.

    Only tokens at the start of the text or after whitespace match, so an
    address like ``user@host`` is left alone. Must run before whitespace is
    converted to markup.
    """

    def _wrap(match: re.Match) -> str:
        return f'{match.group(1)}<span class="{css_class}">@{match.group(2)}</span>'

    return _MENTION.sub(_wrap, text)


def find_mentions(text: str) -> List[str]:
    """Return mentioned usernames, lowercased, in order of first appearance."""
    seen: List[str] = []
    for match in _MENTION.finditer(text or ""):
        name = match.group(2).lower()
        if name not in seen:
            seen.append(name)
    return seen


__all__ = ["annotate_mentions", "find_mentions", "MENTION_CLASS"]
