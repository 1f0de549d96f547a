"""
Core utilities: shared exceptions and cross-cutting concerns used by the
aggregation engine, reputation layer, reconciliation scheduler and service.
"""

from backend_queuetrust.core.exceptions import (
    ConfigError,
    InvalidReportError,
    OfficialFeedError,
    QueueTrustError,
    RateLimitedError,
    ReconciliationWindowError,
)

__all__ = [
    "ConfigError",
    "InvalidReportError",
    "OfficialFeedError",
    "QueueTrustError",
    "RateLimitedError",
    "ReconciliationWindowError",
]
