"""
Blend engine: crowd reports + optional official reading -> one estimate.

Conflict resolution, evaluated in order:
  1. NO_DATA        no reports and no official reading
  2. OFFICIAL_ONLY  no reports submitted, official reading present
  3. degraded       reports submitted but every one filtered as an outlier
  4. normal blend   weighted crowd mean, blended with the official reading
                    by a log-scaled crowd share capped at 80%

Pure and deterministic for identical inputs and now_ts.
"""

from __future__ import annotations

import math
import time
from typing import Sequence

from backend_queuetrust.aggregation.config import DEFAULT_AGGREGATION_CONFIG, AggregationConfig
from backend_queuetrust.aggregation.models import (
    AggregateResult,
    OfficialReading,
    SourceKind,
    WeightedReport,
)
from backend_queuetrust.aggregation.outliers import batch_mean, filter_outliers
from backend_queuetrust.aggregation.weights import composite_weight


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round .5 away from zero for positive values (17.5 -> 18, 0.625 -> 0.63)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def crowd_share(surviving_count: int, config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG) -> float:
    """Fraction of the estimate attributed to the crowd; grows with ln(1 + n), capped."""
    return min(config.max_crowd_share, config.crowd_share_slope * math.log1p(surviving_count))


def weighted_crowd_estimate(
    reports: Sequence[WeightedReport],
    now_ts: int,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> float:
    """sum(minutes x weight) / sum(weight) over non-empty reports."""
    weights = [composite_weight(r, now_ts, config) for r in reports]
    total = sum(weights)
    if total <= 0:
        # every weight underflowed (reports aged thousands of minutes)
        return batch_mean(reports)
    return sum(r.reported_minutes * w for r, w in zip(reports, weights)) / total


def _result(
    estimate: float,
    confidence: float,
    sample_size: int,
    source_kind: SourceKind,
    official_minutes: int | None,
    now_ts: int,
) -> AggregateResult:
    return AggregateResult(
        estimated_minutes=max(0, int(estimate)),
        confidence=round_half_up(confidence, 2),
        sample_size=sample_size,
        source_kind=source_kind,
        official_minutes=official_minutes,
        computed_at=now_ts,
    )


def compute_aggregate(
    reports: Sequence[WeightedReport],
    official: OfficialReading | None,
    now_ts: int | None = None,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> AggregateResult:
    """
    Compute the estimate and confidence for one checkpoint.

    reports: non-expired, validated reports joined with reputation at call time.
    official: latest official reading, or None when absent or unavailable.
    now_ts: evaluation time (Unix sec); defaults to time.time(). Also stamped as computed_at.
    """
    now_ts = now_ts if now_ts is not None else int(time.time())
    official_minutes = official.minutes if official is not None else None

    if not reports:
        if official_minutes is None:
            return _result(0, 0.0, 0, SourceKind.NO_DATA, None, now_ts)
        return _result(
            official_minutes,
            config.official_only_confidence,
            0,
            SourceKind.OFFICIAL_ONLY,
            official_minutes,
            now_ts,
        )

    surviving = filter_outliers(reports, config.outlier_zscore_threshold)
    if not surviving:
        if official_minutes is not None:
            estimate = official_minutes
            kind = SourceKind.OFFICIAL_ONLY
        else:
            estimate = round_half_up(batch_mean(reports))
            kind = SourceKind.CROWD_ONLY
        return _result(estimate, config.degraded_confidence, 0, kind, official_minutes, now_ts)

    n = len(surviving)
    crowd_estimate = weighted_crowd_estimate(surviving, now_ts, config)
    if official_minutes is not None:
        share = crowd_share(n, config)
        estimate = round_half_up(official_minutes * (1 - share) + crowd_estimate * share)
        confidence = config.hybrid_base_confidence + share * config.hybrid_confidence_slope
        kind = SourceKind.HYBRID
    else:
        estimate = round_half_up(crowd_estimate)
        confidence = min(
            config.max_crowd_confidence,
            config.crowd_base_confidence + config.crowd_confidence_slope * math.log1p(n),
        )
        kind = SourceKind.CROWD_ONLY
    return _result(estimate, confidence, n, kind, official_minutes, now_ts)
