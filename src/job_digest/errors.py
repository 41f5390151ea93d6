"""Error types shared across the fetch, pipeline and delivery modules."""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


class FeedFetchError(Exception):
    """Raised when a feed or page cannot be fetched or parsed.

    Attributes:
        reason: Short diagnostic for status reporting, e.g. ``HTTP 403``.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class DeliveryError(Exception):
    """Raised when the email provider rejects or fails to accept a message."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


__all__ = ["ConfigError", "DeliveryError", "FeedFetchError"]
