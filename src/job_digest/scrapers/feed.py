from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone

import feedparser
import httpx

from job_digest.config import Settings
from job_digest.errors import FeedFetchError
from job_digest.models import ParsedFeed, RawFeedItem
from job_digest.scrapers.common import build_client, describe_error, is_absolute_uri

logger = logging.getLogger(__name__)


def _entry_value(entry, key: str) -> str:
    value = entry.get(key)
    return value if isinstance(value, str) else ""


def _published_at(entry) -> datetime | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if not parsed:
            continue
        timestamp = calendar.timegm(parsed)
        if timestamp <= 0:
            return None
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return None


def _entry_link(entry) -> str:
    link = _entry_value(entry, "link").strip()
    if link:
        return link

    for candidate in entry.get("links") or []:
        href = (candidate.get("href") or "").strip()
        if href:
            return href

    entry_id = _entry_value(entry, "id").strip()
    if is_absolute_uri(entry_id):
        return entry_id
    return ""


def normalize_entry(entry) -> RawFeedItem:
    summary = _entry_value(entry, "summary") or _entry_value(entry, "description")
    return RawFeedItem(
        published_at=_published_at(entry),
        title=_entry_value(entry, "title"),
        summary=summary,
        link=_entry_link(entry),
    )


def parse_feed(content: bytes | str) -> ParsedFeed:
    """Parse a syndication document; an empty ``items`` list means the feed had no entries."""
    feed = feedparser.parse(content)
    if feed.bozo and not feed.entries:
        raise FeedFetchError(describe_error(feed.get("bozo_exception") or ValueError("malformed feed")))

    return ParsedFeed(title=feed.feed.get("title", ""), items=[normalize_entry(entry) for entry in feed.entries])


def fetch_feed(url: str, settings: Settings, client: httpx.Client | None = None) -> ParsedFeed:
    logger.info("Fetching feed: %s", url)
    owns_client = client is None
    http = client or build_client(settings)
    try:
        response = http.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise FeedFetchError(describe_error(exc)) from exc
    finally:
        if owns_client:
            http.close()

    parsed = parse_feed(response.content)
    logger.info("Feed %r returned %d items", parsed.title or url, len(parsed.items))
    return parsed
