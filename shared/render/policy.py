"""Single formatting policy shared by every view that renders chat text."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FormattingPolicy:
    # Escape the backtick in addition to & < > " '
    strict_escaping: bool = True
    annotate_mentions: bool = True
    # Keep lone spaces breakable so long lines still wrap.
    keep_single_spaces: bool = True


DEFAULT_POLICY = FormattingPolicy()

# Previews in recency lists: same escaping, no mention spans.
PREVIEW_POLICY = FormattingPolicy(annotate_mentions=False)


__all__ = ["FormattingPolicy", "DEFAULT_POLICY", "PREVIEW_POLICY"]
