from __future__ import annotations

from shared.render.content import classify, format_chat_body, format_generic, resolve_link
from shared.render.mentions import annotate_mentions, find_mentions
from shared.render.policy import FormattingPolicy
from shared.render.sanitize import sanitize
from shared.render.whitespace import preserve_spaces

ANCHOR = (
    '<a class="chat-msg-link" target="_blank" rel="noopener noreferrer" '
    'href="{url}">{url}</a>'
)


# ----------------------------------------------------------------------
# Whitespace
# ----------------------------------------------------------------------

def test_blank_line_runs_collapse_to_one_blank_line() -> None:
    assert preserve_spaces("a\n\n\n\nb") == "a<br><br>b"
    assert preserve_spaces("a \n \n \n b") == "a <br><br> b"


def test_every_newline_style_becomes_a_break() -> None:
    assert preserve_spaces("a\r\nb\rc\nd") == "a<br>b<br>c<br>d"


def test_tabs_expand_to_four_nbsp() -> None:
    assert preserve_spaces("\tx") == "&nbsp;&nbsp;&nbsp;&nbsp;x"


def test_space_runs_become_nbsp_and_single_spaces_stay() -> None:
    assert preserve_spaces("a  b c") == "a&nbsp;&nbsp;b c"


def test_strict_whitespace_converts_single_spaces() -> None:
    assert preserve_spaces("a b", keep_single_spaces=False) == "a&nbsp;b"


# ----------------------------------------------------------------------
# Mentions
# ----------------------------------------------------------------------

def test_mention_wraps_token_not_leading_space() -> None:
    assert annotate_mentions("hi @bob how are you") == (
        'hi <span class="chat-mention">@bob</span> how are you'
    )


def test_mention_at_start_of_text() -> None:
    assert annotate_mentions("@bob hi").startswith('<span class="chat-mention">@bob</span>')


def test_email_like_text_is_not_a_mention() -> None:
    assert annotate_mentions("mail user@host now") == "mail user@host now"


def test_find_mentions_lowercases_and_dedups() -> None:
    assert find_mentions("@Bob and @carol, also @bob") == ["bob", "carol"]


# ----------------------------------------------------------------------
# Classification
# ----------------------------------------------------------------------

def test_code_prefix_renders_preformatted_remainder() -> None:
    assert classify(sanitize("code: foo\nbar")) == '<div class="chat-msg-code">foo<br>bar</div>'


def test_code_prefix_is_case_insensitive_and_skips_mentions() -> None:
    out = classify(sanitize("CoDe: hi @bob link: www.x.com"))
    assert out.startswith('<div class="chat-msg-code">')
    assert "chat-mention" not in out
    assert "<a " not in out


def test_link_with_www_gets_http_prefix() -> None:
    url = "http://www.example.com"
    assert classify(sanitize("link: www.example.com")) == ANCHOR.format(url=url)


def test_link_prefix_is_case_insensitive() -> None:
    url = "HTTPS://Example.com/path"
    assert classify(sanitize("Link:   HTTPS://Example.com/path  ")) == ANCHOR.format(url=url)


def test_link_that_is_not_a_url_falls_through_untouched() -> None:
    body = sanitize("link: not a url")
    assert classify(body) == format_generic(body)
    assert classify(body) == "link: not a url"


def test_multiline_link_falls_through() -> None:
    body = sanitize("link: http://a.com\nmore")
    assert classify(body) == "link: http://a.com<br>more"


def test_resolve_link_rejects_other_schemes() -> None:
    assert resolve_link(" javascript:alert(1) ") is None
    assert resolve_link("ftp://files") is None


def test_link_href_cannot_break_out_of_attribute() -> None:
    out = format_chat_body('link: http://x.com/"onmouseover="alert(1)')
    # Only the template's own attribute quotes remain.
    assert out.count('"') == 8
    assert "&quot;onmouseover=&quot;" in out


def test_generic_body_annotates_then_preserves_spacing() -> None:
    assert format_chat_body("hey  @bob") == (
        'hey&nbsp;&nbsp;<span class="chat-mention">@bob</span>'
    )


def test_strict_spacing_does_not_touch_mention_markup() -> None:
    policy = FormattingPolicy(keep_single_spaces=False)
    assert format_chat_body("hi @bob", policy) == (
        'hi&nbsp;<span class="chat-mention">@bob</span>'
    )


def test_policy_can_disable_mentions() -> None:
    policy = FormattingPolicy(annotate_mentions=False)
    assert format_chat_body("hi @bob", policy) == "hi @bob"


def test_markup_in_body_is_escaped() -> None:
    out = format_chat_body('<img src=x onerror="alert(1)">')
    assert "<img" not in out
    assert out.startswith("&lt;img")
