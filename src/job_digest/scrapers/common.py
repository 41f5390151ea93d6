from __future__ import annotations

import html
import re
import warnings
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from job_digest.config import Settings

TRUNCATION_MARKER = "..."
_TAG_RE = re.compile(r"<[^>]*>", re.S)
_LEADING_TAG_TAIL_RE = re.compile(r"^[^<>]*>")
_TRAILING_TAG_HEAD_RE = re.compile(r"<[^>]*$", re.S)
_STATUS_CODE_RE = re.compile(r"\b([45]\d{2})\b")
_MAX_REASON_LENGTH = 80

warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def build_client(settings: Settings) -> httpx.Client:
    return httpx.Client(
        timeout=settings.request_timeout_seconds,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    )


def clean_spaces(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def strip_markup(markup: str) -> str:
    """Remove complete tags and decode entities; bare "<" or ">" in text is kept."""
    return clean_spaces(html.unescape(_TAG_RE.sub(" ", markup or "")))


def strip_tags(fragment: str) -> str:
    """Remove tags from a markup fragment and decode entities.

    The fragment may be cut out of a larger document, so a tag tail at the
    start or an unterminated tag at the end is dropped as well.
    """
    text = _TAG_RE.sub(" ", fragment or "")
    text = _LEADING_TAG_TAIL_RE.sub(" ", text)
    text = _TRAILING_TAG_HEAD_RE.sub(" ", text)
    return clean_spaces(html.unescape(text))


def html_to_text(markup: str) -> str:
    if not markup:
        return ""
    if "<" not in markup:
        return clean_spaces(html.unescape(markup))
    soup = BeautifulSoup(markup, "html.parser")
    return clean_spaces(soup.get_text(" ", strip=True))


def truncate(text: str, max_length: int, marker: str = TRUNCATION_MARKER) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + marker


def is_absolute_uri(value: str) -> bool:
    if not value or any(char.isspace() for char in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"

    message = str(exc).strip()
    # only httpx messages carry status codes; parser messages carry line numbers
    match = _STATUS_CODE_RE.search(message) if isinstance(exc, httpx.HTTPError) else None
    if match:
        return f"HTTP {match.group(1)}"
    if not message:
        return type(exc).__name__
    return message[:_MAX_REASON_LENGTH]
