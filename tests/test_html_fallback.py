import httpx
import pytest

from job_digest.config import Settings
from job_digest.errors import FeedFetchError
from job_digest.scrapers import html_fallback
from job_digest.scrapers.common import strip_tags
from job_digest.scrapers.html_fallback import extract_snippet, fetch_page, resolve_href, scrape_anchors


def test_relative_href_is_resolved_against_page_url() -> None:
    result = scrape_anchors("https://example.com", '<ul><li><a href="/jobs/5">Full Stack Azure Role</a></li></ul>')

    assert result.anchor_count == 1
    [anchor] = result.candidates
    assert anchor.href == "https://example.com/jobs/5"
    assert anchor.text == "Full Stack Azure Role"


def test_absolute_href_is_kept() -> None:
    assert resolve_href("https://example.com/board", "https://jobs.example.org/7") == "https://jobs.example.org/7"
    assert resolve_href("https://example.com/board/list", "detail?id=3") == "https://example.com/board/detail?id=3"


def test_anchor_pattern_tolerates_attributes_quotes_and_nested_markup() -> None:
    document = (
        "<div>\n"
        "<A class=\"job\"\n data-id='1' HREF='https://jobs.example.com/7'>"
        "<span>C&#35; &amp; .NET</span>\n   Engineer</A>\n"
        "</div>"
    )

    [anchor] = scrape_anchors("https://example.com", document).candidates
    assert anchor.href == "https://jobs.example.com/7"
    assert anchor.text == "C# & .NET Engineer"


def test_anchor_is_skipped_only_when_text_and_href_are_empty() -> None:
    document = '<a href="">   </a><a href="">Angular lead</a><a href="/about"></a>'

    result = scrape_anchors("https://example.com", document)

    assert result.anchor_count == 3
    assert [(anchor.text, anchor.href) for anchor in result.candidates] == [
        ("Angular lead", ""),
        ("", "https://example.com/about"),
    ]


def test_snippet_is_a_clipped_plain_text_window_around_the_anchor() -> None:
    document = "<div>" + "A" * 300 + "<a href='/x'>Role</a>" + "B" * 300 + "</div>"

    [anchor] = scrape_anchors("https://example.com", document).candidates

    assert anchor.offset == 305
    assert anchor.snippet == "A" * 150 + " Role " + "B" * 129


def test_snippet_is_clipped_to_document_bounds() -> None:
    document = '<a href="/jobs/1">SQL &amp; Azure</a> apply now'
    assert extract_snippet(document, 0) == "SQL & Azure apply now"


def test_extract_snippet_rejects_offset_outside_document() -> None:
    with pytest.raises(ValueError):
        extract_snippet("short", 99)


def test_strip_tags_drops_tag_fragments_at_window_edges() -> None:
    assert strip_tags("ef='/x'>Role</a> tail <sp") == "Role tail"


def test_failing_anchor_is_skipped_without_aborting_the_rest(monkeypatch) -> None:
    real_extract = html_fallback.extract_snippet
    calls = {"count": 0}

    def flaky_extract(document: str, offset: int, radius: int = 150) -> str:
        calls["count"] += 1
        if calls["count"] == 1:
            raise ValueError("bad offset")
        return real_extract(document, offset, radius)

    monkeypatch.setattr(html_fallback, "extract_snippet", flaky_extract)

    result = scrape_anchors("https://example.com", '<a href="/1">First</a> <a href="/2">Second</a>')

    assert result.anchor_count == 2
    assert [anchor.text for anchor in result.candidates] == ["Second"]


def test_fetch_page_raises_with_status_code_on_block() -> None:
    settings = Settings(sendgrid_api_key="SG.test", email_from="alerts@example.com", email_to=["me@example.com"])
    transport = httpx.MockTransport(lambda request: httpx.Response(429, text="slow down"))

    with httpx.Client(transport=transport) as client:
        with pytest.raises(FeedFetchError) as exc_info:
            fetch_page("https://example.com/jobs", settings, client=client)
    assert exc_info.value.reason == "HTTP 429"


def test_fetch_page_returns_raw_text() -> None:
    settings = Settings(sendgrid_api_key="SG.test", email_from="alerts@example.com", email_to=["me@example.com"])
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<a href='/1'>x</a>"))

    with httpx.Client(transport=transport) as client:
        assert fetch_page("https://example.com/jobs", settings, client=client) == "<a href='/1'>x</a>"


def test_bare_angle_brackets_in_link_text_are_kept() -> None:
    document = (
        '<a href="/jobs/7">Angular dev > 5 yrs remote</a>\n'
        '<a href="/jobs/8">Pay < 50k, Azure role</a>'
    )

    result = scrape_anchors("https://example.com", document)

    assert [anchor.text for anchor in result.candidates] == [
        "Angular dev > 5 yrs remote",
        "Pay < 50k, Azure role",
    ]
