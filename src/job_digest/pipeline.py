from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from job_digest.config import Settings
from job_digest.dedupe import SeenKeys
from job_digest.digest import compose_digest
from job_digest.errors import FeedFetchError
from job_digest.keywords import build_keyword_set, has_experience_token, matches_keywords
from job_digest.models import FeedOutcome, FeedStatus, MatchedJob, ParsedFeed, RawAnchor, RawFeedItem, RunResult
from job_digest.notifier_email import OutgoingEmail, send_sendgrid_email
from job_digest.scrapers.common import describe_error, html_to_text, truncate
from job_digest.scrapers.feed import fetch_feed as fetch_structured_feed
from job_digest.scrapers.html_fallback import fetch_page as fetch_fallback_page
from job_digest.scrapers.html_fallback import scrape_anchors
from job_digest.sources import FEED_SOURCES

logger = logging.getLogger(__name__)

FeedFetcher = Callable[[str, Settings], ParsedFeed]
PageFetcher = Callable[[str, Settings], str]
Sender = Callable[[str, OutgoingEmail, float], int]


class MatchAggregator:
    """Applies the recency, keyword and dedup filters and collects matches in order."""

    def __init__(
        self,
        keywords: list[str],
        *,
        now_utc: datetime,
        cutoff_utc: datetime,
        summary_max_length: int,
    ) -> None:
        self.keywords = keywords
        self.now_utc = now_utc
        self.cutoff_utc = cutoff_utc
        self.summary_max_length = summary_max_length
        self.seen = SeenKeys()
        self.matches: list[MatchedJob] = []

    def is_recent(self, item: RawFeedItem) -> bool:
        published_at = item.published_at or self.now_utc
        return published_at >= self.cutoff_utc

    def admit_item(self, source: str, item: RawFeedItem) -> bool:
        if not self.is_recent(item):
            return False
        summary_text = html_to_text(item.summary)
        if not matches_keywords(item.title, summary_text, self.keywords):
            return False
        return self._admit(source, item.title, item.link, summary_text, via_fallback=False)

    def admit_anchor(self, source: str, anchor: RawAnchor) -> bool:
        if not matches_keywords(anchor.text, anchor.href, self.keywords):
            return False
        title = anchor.text or anchor.href
        return self._admit(source, title, anchor.href, anchor.snippet, via_fallback=True)

    def _admit(self, source: str, title: str, link: str, summary_text: str, *, via_fallback: bool) -> bool:
        if not self.seen.admit(link, title):
            logger.debug("Duplicate skipped: %s", link or title)
            return False

        self.matches.append(
            MatchedJob(
                title=title.strip(),
                link=link.strip(),
                summary=truncate(summary_text, self.summary_max_length).strip(),
                source=source,
                via_fallback=via_fallback,
                experience_match=has_experience_token(title, summary_text),
            )
        )
        return True


def _admit_items(aggregator: MatchAggregator, source: str, items: list[RawFeedItem]) -> int:
    admitted = 0
    for item in items:
        logger.info("  item: %s", item.title[:80])
        try:
            if aggregator.admit_item(source, item):
                admitted += 1
        except Exception as exc:
            logger.warning("Skipping item %r from %s: %s", item.title[:80], source, exc)
    return admitted


def _admit_anchors(aggregator: MatchAggregator, source: str, anchors: list[RawAnchor]) -> int:
    admitted = 0
    for anchor in anchors:
        try:
            if aggregator.admit_anchor(source, anchor):
                admitted += 1
        except Exception as exc:
            logger.warning("Skipping anchor %r from %s: %s", anchor.href, source, exc)
    return admitted


def _run_fallback(
    status: FeedStatus,
    settings: Settings,
    aggregator: MatchAggregator,
    fetch_page: PageFetcher,
) -> FeedStatus:
    source = status.source
    try:
        document = fetch_page(source, settings)
    except FeedFetchError as exc:
        reason = exc.reason
    except Exception as exc:
        reason = describe_error(exc)
    else:
        result = scrape_anchors(source, document, settings.snippet_radius)
        admitted = _admit_anchors(aggregator, source, result.candidates)
        return replace(
            status,
            outcome=FeedOutcome.FALLBACK_OK,
            detail=f"{status.label}; fallback checked ({result.anchor_count} anchors)",
            match_count=admitted,
        )

    logger.warning("Fallback fetch failed for %s: %s", source, reason)
    return replace(
        status,
        outcome=FeedOutcome.FALLBACK_BLOCKED,
        detail=f"{status.label}; fallback blocked/HTTP error: {reason}",
        match_count=0,
    )


def process_source(
    source: str,
    settings: Settings,
    aggregator: MatchAggregator,
    *,
    fetch_feed: FeedFetcher = fetch_structured_feed,
    fetch_page: PageFetcher = fetch_fallback_page,
) -> FeedStatus:
    """Run the structured fetch for one source, falling back to anchor scraping when it yields nothing."""
    try:
        parsed = fetch_feed(source, settings)
    except FeedFetchError as exc:
        logger.warning("Failed to read feed %s: %s", source, exc.reason)
        status = FeedStatus(source=source, outcome=FeedOutcome.ERROR, detail=exc.reason)
    except Exception as exc:
        logger.warning("Failed to read feed %s: %s", source, exc)
        status = FeedStatus(source=source, outcome=FeedOutcome.ERROR, detail=describe_error(exc))
    else:
        if parsed.items:
            admitted = _admit_items(aggregator, source, parsed.items)
            logger.info("Feed %s: %d items, %d matches", source, len(parsed.items), admitted)
            return FeedStatus(
                source=source,
                outcome=FeedOutcome.OK,
                detail=f"{len(parsed.items)} items",
                match_count=admitted,
            )
        logger.info("Feed returned no items: %s", source)
        status = FeedStatus(source=source, outcome=FeedOutcome.EMPTY)

    return _run_fallback(status, settings, aggregator, fetch_page)


def run_pipeline(
    settings: Settings,
    *,
    sources: Sequence[str] = FEED_SOURCES,
    fetch_feed: FeedFetcher = fetch_structured_feed,
    fetch_page: PageFetcher = fetch_fallback_page,
    send_email: Sender = send_sendgrid_email,
    now_utc: datetime | None = None,
    dry_run: bool = False,
) -> RunResult:
    run_at_utc = now_utc or datetime.now(timezone.utc)
    aggregator = MatchAggregator(
        build_keyword_set(settings.keywords_csv),
        now_utc=run_at_utc,
        cutoff_utc=run_at_utc - timedelta(days=settings.days_lookback),
        summary_max_length=settings.summary_max_length,
    )

    statuses = [
        process_source(source, settings, aggregator, fetch_feed=fetch_feed, fetch_page=fetch_page)
        for source in sources
    ]
    digest = compose_digest(aggregator.matches, statuses, now_utc=run_at_utc)

    delivery_status: int | None = None
    if not dry_run:
        logger.info("Sending email to %d recipient(s)", len(settings.email_to))
        delivery_status = send_email(
            settings.sendgrid_api_key,
            OutgoingEmail(
                sender=settings.email_from,
                recipients=list(settings.email_to),
                subject=digest.subject,
                plain_body=digest.plain_body,
                html_body=digest.html_body,
            ),
            settings.request_timeout_seconds,
        )
        logger.info("Email provider status: %s", delivery_status)

    return RunResult(
        matches=list(aggregator.matches),
        statuses=statuses,
        digest=digest,
        delivery_status=delivery_status,
        fallback_count=sum(
            1
            for status in statuses
            if status.outcome in (FeedOutcome.FALLBACK_OK, FeedOutcome.FALLBACK_BLOCKED)
        ),
    )
