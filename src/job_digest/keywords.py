from __future__ import annotations

import re
import unicodedata

DEFAULT_KEYWORDS = (
    "full stack",
    ".net",
    "dotnet",
    "c#",
    ".net core",
    "asp.net",
    "angular",
    "azure",
    "web api",
    "microservices",
    "mvc",
    "entity framework",
    "sql",
)

EXPERIENCE_TOKENS = (
    "4+",
    "4 years",
    "4 yrs",
    "3+ years",
    "5+ years",
    "4-6",
    "4 - 6",
    "4–6",
    "mid-senior",
    "mid senior",
    "senior",
)


def normalize_text(value: str) -> str:
    # punctuation is kept: ".net" and "c#" are keywords
    normalized = unicodedata.normalize("NFKC", value or "").casefold()
    return re.sub(r"\s+", " ", normalized).strip()


def parse_keywords_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def build_keyword_set(extra_csv: str | None = None) -> list[str]:
    combined = list(DEFAULT_KEYWORDS) + parse_keywords_csv(extra_csv)
    normalized = {normalize_text(word) for word in combined if normalize_text(word)}
    return sorted(normalized)


def matches_keywords(title: str, summary: str, keywords: list[str]) -> bool:
    haystack = normalize_text(f"{title} {summary}")
    return any(keyword in haystack for keyword in keywords)


def has_experience_token(title: str, summary: str, tokens: tuple[str, ...] = EXPERIENCE_TOKENS) -> bool:
    haystack = normalize_text(f"{title} {summary}")
    return any(normalize_text(token) in haystack for token in tokens)
