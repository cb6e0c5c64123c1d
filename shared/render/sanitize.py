"""Markup escaping for untrusted chat text."""

from __future__ import annotations

import html

_BACKTICK_ENTITY = "&#x60;"


def sanitize(raw: str, *, strict: bool = True) -> str:
    """
    Escape a raw string so it cannot be interpreted as markup.

    Always escapes ``& < > " '``; strict mode also escapes the backtick.
    Call exactly once per raw string: escaping already-escaped output turns
    ``&amp;`` into ``&amp;amp;``.
    """
    escaped = html.escape(raw or "", quote=True)
    if strict:
        escaped = escaped.replace("`", _BACKTICK_ENTITY)
    return escaped


__all__ = ["sanitize"]
