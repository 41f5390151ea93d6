from __future__ import annotations

FEED_SOURCES: tuple[str, ...] = (
    "https://www.indeed.co.in/rss?q=Full+Stack+.NET+Developer+Angular+Azure&l=India",
    "https://www.indeed.com/rss?q=Full+Stack+.NET+Developer+Angular+Azure&l=Remote",
    "https://weworkremotely.com/categories/remote-programming-jobs.rss",
    "https://remoteok.com/remote-dev-jobs.rss",
)
