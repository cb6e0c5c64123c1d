"""
Special-content detection for chat message bodies.

Bodies starting with ``code:`` render as a preformatted block, bodies
starting with ``link:`` render as an anchor when the remainder looks like a
single http(s) URL. Everything else gets mention annotation followed by
whitespace preservation.
"""

from __future__ import annotations

from typing import Optional

from shared.render.mentions import annotate_mentions
from shared.render.policy import DEFAULT_POLICY, FormattingPolicy
from shared.render.sanitize import sanitize
from shared.render.whitespace import preserve_spaces

CODE_PREFIX = "code:"
LINK_PREFIX = "link:"
PREFIX_LEN = 5

CODE_CLASS = "chat-msg-code"
LINK_CLASS = "chat-msg-link"


def _has_prefix(body: str, prefix: str) -> bool:
    return body[:PREFIX_LEN].lower() == prefix


def resolve_link(candidate: str) -> Optional[str]:
    """Return the URL for a ``link:`` remainder, or None if it is not one."""
    candidate = candidate.strip()
    if "\n" in candidate or "\r" in candidate:
        return None
    if candidate.startswith("www."):
        candidate = "http://" + candidate
    lowered = candidate.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return candidate
    return None


def format_generic(sanitized_body: str, policy: FormattingPolicy = DEFAULT_POLICY) -> str:
    text = sanitized_body
    if policy.annotate_mentions:
        text = annotate_mentions(text)
    return preserve_spaces(text, keep_single_spaces=policy.keep_single_spaces)


def classify(sanitized_body: str, policy: FormattingPolicy = DEFAULT_POLICY) -> str:
    """Turn an already-sanitized body into display markup."""

    if _has_prefix(sanitized_body, CODE_PREFIX):
        remainder = sanitized_body[PREFIX_LEN:].strip()
        formatted = preserve_spaces(remainder, keep_single_spaces=policy.keep_single_spaces)
        return f'<div class="{CODE_CLASS}">{formatted}</div>'

    if _has_prefix(sanitized_body, LINK_PREFIX):
        url = resolve_link(sanitized_body[PREFIX_LEN:])
        if url is not None:
            return (
                f'<a class="{LINK_CLASS}" target="_blank" rel="noopener noreferrer" '
                f'href="{url}">{url}</a>'
            )

    # Failed link checks fall through with the prefix kept as literal text.
    return format_generic(sanitized_body, policy)


def format_chat_body(raw: str, policy: FormattingPolicy = DEFAULT_POLICY) -> str:
    """Sanitize a raw message body once and classify it."""
    return classify(sanitize(raw, strict=policy.strict_escaping), policy)


__all__ = [
    "classify",
    "format_chat_body",
    "format_generic",
    "resolve_link",
    "CODE_CLASS",
    "LINK_CLASS",
]
