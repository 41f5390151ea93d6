from __future__ import annotations

import html
import logging
import re
from urllib.parse import urljoin

import httpx

from job_digest.config import Settings
from job_digest.errors import FeedFetchError
from job_digest.models import RawAnchor, ScrapeResult
from job_digest.scrapers.common import build_client, describe_error, is_absolute_uri, strip_markup, strip_tags

logger = logging.getLogger(__name__)

ANCHOR_RE = re.compile(
    r"""<a\b[^>]*?\bhref\s*=\s*["']([^"']*)["'][^>]*>(.*?)</a\s*>""",
    re.IGNORECASE | re.DOTALL,
)
DEFAULT_SNIPPET_RADIUS = 150


def fetch_page(url: str, settings: Settings, client: httpx.Client | None = None) -> str:
    logger.info("Fetching page for fallback scrape: %s", url)
    owns_client = client is None
    http = client or build_client(settings)
    try:
        response = http.get(url)
        response.raise_for_status()
        return response.text
    except httpx.HTTPError as exc:
        raise FeedFetchError(describe_error(exc)) from exc
    finally:
        if owns_client:
            http.close()


def resolve_href(base_url: str, href: str) -> str:
    if not href or is_absolute_uri(href):
        return href
    try:
        return urljoin(base_url, href)
    except ValueError:
        return href


def extract_snippet(document: str, offset: int, radius: int = DEFAULT_SNIPPET_RADIUS) -> str:
    if offset < 0 or offset > len(document):
        raise ValueError(f"offset {offset} outside document of length {len(document)}")
    start = max(0, offset - radius)
    end = min(len(document), offset + radius)
    return strip_tags(document[start:end])


def scrape_anchors(url: str, document: str, snippet_radius: int = DEFAULT_SNIPPET_RADIUS) -> ScrapeResult:
    candidates: list[RawAnchor] = []
    anchor_count = 0

    for match in ANCHOR_RE.finditer(document or ""):
        anchor_count += 1
        try:
            text = strip_markup(match.group(2))
            href = html.unescape(match.group(1)).strip()
            if not text and not href:
                continue

            candidates.append(
                RawAnchor(
                    href=resolve_href(url, href),
                    text=text,
                    offset=match.start(),
                    snippet=extract_snippet(document, match.start(), snippet_radius),
                )
            )
        except Exception as exc:
            logger.warning("Skipping anchor at offset %d in %s: %s", match.start(), url, exc)

    logger.info("Fallback scrape of %s: %d anchors, %d candidates", url, anchor_count, len(candidates))
    return ScrapeResult(candidates=candidates, anchor_count=anchor_count)
