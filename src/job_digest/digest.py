from __future__ import annotations

from datetime import datetime, timezone
from html import escape
from urllib.parse import urlparse

from job_digest.models import Digest, FeedStatus, MatchedJob

SUBJECT_PREFIX = "[Jobs Alert]"
SEARCH_LABEL = "Full Stack .NET (Angular/Azure)"
NO_MATCHES_TEXT = "No new matching jobs found in the monitored feeds."
FOOTER_TEXT = "Sent by your scheduled Job Alerts service."


def build_subject(match_count: int, run_at_utc: datetime) -> str:
    day = f"{run_at_utc:%Y-%m-%d}"
    if match_count == 0:
        return f"{SUBJECT_PREFIX} No matches - {day}"
    return f"{SUBJECT_PREFIX} {match_count} matches for {SEARCH_LABEL} - {day}"


def source_label(job: MatchedJob) -> str:
    if not job.source:
        return ""
    host = urlparse(job.source).netloc or job.source
    return f"{host} (page scrape)" if job.via_fallback else host


def compose_plain_body(matches: list[MatchedJob], statuses: list[FeedStatus]) -> str:
    lines = ["Feed status:"]
    for status in statuses:
        lines.append(f"- {status.source}: {status.label} ({status.match_count} matches)")
    lines.append("")

    if not matches:
        lines.append(NO_MATCHES_TEXT)
        return "\n".join(lines) + "\n"

    lines.append("Job matches:")
    lines.append("")
    for job in matches:
        marker = " [experience match]" if job.experience_match else ""
        lines.append(f"- {job.title}{marker}")
        if job.link:
            lines.append(f"  {job.link}")
        if job.summary.strip():
            lines.append(f"  {job.summary}")
        if job.source:
            lines.append(f"  source: {source_label(job)}")
        lines.append("")
    return "\n".join(lines)


def _status_item_html(status: FeedStatus) -> str:
    color = "#b00020" if status.failed else "#333"
    return (
        f"<li style='color:{color}'>{escape(status.source)}: {escape(status.label)} "
        f"({status.match_count} matches)</li>"
    )


def _job_item_html(job: MatchedJob) -> str:
    title_html = escape(job.title)
    parts = ["<li style='margin-bottom:12px;'>"]
    if job.link.strip():
        parts.append(
            f'<a href="{escape(job.link, quote=True)}" target="_blank" '
            f"style='font-weight:600'>{title_html}</a>"
        )
    else:
        parts.append(f"<span style='font-weight:600'>{title_html}</span>")
    if job.experience_match:
        parts.append(" <span style='color:#0a7d32;font-size:12px'>experience match</span>")
    parts.append("<br/>")
    if job.summary.strip():
        parts.append(f"<div style='color:#333;margin-top:4px'>{escape(job.summary)}</div>")
    if job.source:
        parts.append(f"<div style='font-size:12px;color:#666'>source: {escape(source_label(job))}</div>")
    parts.append("</li>")
    return "".join(parts)


def compose_html_body(matches: list[MatchedJob], statuses: list[FeedStatus]) -> str:
    parts = ["<html><body>"]
    parts.append(f"<h2>{len(matches)} new job(s)</h2>")

    parts.append("<h3>Feed status</h3><ul style='font-size:13px'>")
    parts.extend(_status_item_html(status) for status in statuses)
    parts.append("</ul>")

    if matches:
        parts.append("<ul>")
        parts.extend(_job_item_html(job) for job in matches)
        parts.append("</ul>")
    else:
        parts.append(f"<p>{escape(NO_MATCHES_TEXT)}</p>")

    parts.append(f"<hr/><div style='font-size:12px;color:#666'>{escape(FOOTER_TEXT)}</div>")
    parts.append("</body></html>")
    return "".join(parts)


def compose_digest(
    matches: list[MatchedJob],
    statuses: list[FeedStatus],
    *,
    now_utc: datetime | None = None,
) -> Digest:
    run_at_utc = now_utc or datetime.now(timezone.utc)
    return Digest(
        subject=build_subject(len(matches), run_at_utc),
        plain_body=compose_plain_body(matches, statuses),
        html_body=compose_html_body(matches, statuses),
    )
