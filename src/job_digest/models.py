from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class RawFeedItem:
    published_at: datetime | None
    title: str
    summary: str
    link: str


@dataclass(frozen=True)
class ParsedFeed:
    title: str
    items: list[RawFeedItem] = field(default_factory=list)


@dataclass(frozen=True)
class RawAnchor:
    href: str
    text: str
    offset: int
    snippet: str = ""


@dataclass(frozen=True)
class ScrapeResult:
    candidates: list[RawAnchor]
    anchor_count: int


@dataclass(frozen=True)
class MatchedJob:
    title: str
    link: str
    summary: str
    source: str = ""
    via_fallback: bool = False
    experience_match: bool = False


class FeedOutcome(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"
    FALLBACK_OK = "fallback_ok"
    FALLBACK_BLOCKED = "fallback_blocked"


@dataclass(frozen=True)
class FeedStatus:
    source: str
    outcome: FeedOutcome
    detail: str = ""
    match_count: int = 0

    @property
    def label(self) -> str:
        if self.outcome is FeedOutcome.OK:
            return f"ok ({self.detail})" if self.detail else "ok"
        if self.outcome is FeedOutcome.EMPTY:
            return "empty feed"
        if self.outcome is FeedOutcome.ERROR:
            return f"error: {self.detail}"
        # fallback details carry the initial outcome, e.g. "empty feed; fallback checked (12 anchors)"
        return self.detail or self.outcome.value

    @property
    def failed(self) -> bool:
        return self.outcome in (FeedOutcome.ERROR, FeedOutcome.FALLBACK_BLOCKED)


@dataclass(frozen=True)
class Digest:
    subject: str
    plain_body: str
    html_body: str


@dataclass(frozen=True)
class RunResult:
    matches: list[MatchedJob]
    statuses: list[FeedStatus]
    digest: Digest
    delivery_status: int | None
    fallback_count: int

    @property
    def failed_source_count(self) -> int:
        return sum(1 for status in self.statuses if status.failed)
