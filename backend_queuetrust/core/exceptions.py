"""
Application-level exceptions.

Every error carries a stable, machine-readable ``code`` next to its message.
Missing external data (no official reading, no ground truth, unknown
submitter) is never raised; it flows through the engine as an absent value.
"""

from __future__ import annotations

from typing import Any


class QueueTrustError(Exception):
    """Base class for all Backend QueueTrust errors."""

    code = "queuetrust_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidReportError(QueueTrustError):
    """A report violates an input invariant and must not reach the engine."""

    code = "invalid_report"


class ConfigError(QueueTrustError):
    """An environment setting is present but cannot be parsed."""

    code = "invalid_config"


class ReconciliationWindowError(QueueTrustError):
    """A reconciliation window has its end before its start."""

    code = "invalid_reconciliation_window"


class OfficialFeedError(QueueTrustError):
    """
    The official feed could not be read (transport, HTTP status or payload).

    Raised inside the feed client only; callers of fetch_official_reading()
    always see None instead.
    """

    code = "official_feed_unavailable"


class RateLimitedError(QueueTrustError):
    """A submitter reported the same checkpoint again inside the cooldown."""

    code = "rate_limited"
