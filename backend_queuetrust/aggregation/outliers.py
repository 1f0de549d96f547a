"""
Z-score outlier filter for raw wait-time reports.

Drops reports whose distance from the batch mean exceeds a fixed number of
population standard deviations. Pure; no side effects.
"""

from __future__ import annotations

import statistics
from typing import Sequence, TypeVar

from backend_queuetrust.aggregation.models import WeightedReport

OUTLIER_ZSCORE_THRESHOLD = 2.0

_R = TypeVar("_R", bound=WeightedReport)


def batch_mean(reports: Sequence[WeightedReport]) -> float:
    """Arithmetic mean of reported minutes; 0.0 for an empty batch."""
    if not reports:
        return 0.0
    return statistics.fmean(r.reported_minutes for r in reports)


def zscores(reports: Sequence[WeightedReport]) -> list[float]:
    """|value - mean| / sigma per report, with sigma taken as 1 when the batch is degenerate."""
    if not reports:
        return []
    values = [float(r.reported_minutes) for r in reports]
    mu = statistics.fmean(values)
    sigma = statistics.pstdev(values, mu) or 1.0
    return [abs(v - mu) / sigma for v in values]


def filter_outliers(
    reports: Sequence[_R],
    threshold: float = OUTLIER_ZSCORE_THRESHOLD,
) -> list[_R]:
    """
    Return reports whose z-score is <= threshold, preserving input order.

    An empty input returns an empty list. The result may be empty for a
    non-empty input; callers fall back to the degraded path in that case.
    """
    if not reports:
        return []
    return [r for r, z in zip(reports, zscores(reports)) if z <= threshold]
