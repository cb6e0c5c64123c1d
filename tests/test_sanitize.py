from __future__ import annotations

import html
import re

from shared.render.sanitize import sanitize

HOSTILE = "<script>alert(\"x\")</script> & 'quoted' `tick`"


def test_sanitize_escapes_every_markup_character() -> None:
    escaped = sanitize(HOSTILE)
    for ch in "<>\"'`":
        assert ch not in escaped
    # Every remaining ampersand starts an entity.
    assert re.findall(r"&(?!(amp|lt|gt|quot|#x27|#x60);)", escaped) == []


def test_sanitize_round_trips_through_entity_decoder() -> None:
    assert html.unescape(sanitize(HOSTILE)) == HOSTILE


def test_non_strict_keeps_backtick() -> None:
    assert sanitize("`x` <b>", strict=False) == "`x` &lt;b&gt;"


def test_sanitize_is_not_idempotent() -> None:
    once = sanitize("a & b")
    assert once == "a &amp; b"
    assert sanitize(once) == "a &amp;amp; b"


def test_sanitize_leaves_slashes_alone() -> None:
    assert sanitize("http://example.com/a") == "http://example.com/a"


def test_sanitize_handles_empty_input() -> None:
    assert sanitize("") == ""
