"""Whitespace-preserving conversion of sanitized text into markup."""

from __future__ import annotations

import re

NBSP = "&nbsp;"
LINE_BREAK = "<br>"

_BLANK_LINE_RUN = re.compile(r"\n\s*\n\s*\n")
_NEWLINE = re.compile(r"\r\n|\r|\n")
_TAG = re.compile(r"(<[^>]*>)")
_WHITESPACE_RUN = re.compile(r"\s{2,}")
_WHITESPACE = re.compile(r"\s")


def _outside_tags(text: str, transform) -> str:
    # Input is sanitized, so any '<' left in it belongs to markup we emitted.
    parts = _TAG.split(text)
    return "".join(
        part if part.startswith("<") else transform(part)
        for part in parts
    )


def _nbsp_run(match: re.Match) -> str:
    return NBSP * len(match.group(0))


def preserve_spaces(text: str, *, keep_single_spaces: bool = True) -> str:
    """
    Convert newlines, tabs and space runs of sanitized text to markup.

    Order matters: blank-line runs are collapsed before newlines become
    ``<br>``, and tabs are expanded before the remaining whitespace runs.
    """
    text = _BLANK_LINE_RUN.sub("\n\n", text)
    text = _NEWLINE.sub(LINE_BREAK, text)
    text = _outside_tags(text, lambda part: part.replace("\t", NBSP * 4))

    if keep_single_spaces:
        return _outside_tags(text, lambda part: _WHITESPACE_RUN.sub(_nbsp_run, part))
    return _outside_tags(text, lambda part: _WHITESPACE.sub(NBSP, part))


__all__ = ["preserve_spaces", "NBSP", "LINE_BREAK"]
