"""
Composite trust weight per report.

weight = recency_weight x presence_weight x reputation_weight

- recency: exponential decay with a 20 minute half-life
- presence: 2.5x when the submitter was inside the checkpoint geofence
- reputation: submitter score clamped to [0.2, 3.0], tighter than the stored
  [0.2, 5.0] range so one highly reputed submitter cannot dominate a batch

Weights feed the weighted mean only and are never persisted.
"""

from __future__ import annotations

from backend_queuetrust.aggregation.config import DEFAULT_AGGREGATION_CONFIG, AggregationConfig
from backend_queuetrust.aggregation.models import WeightedReport

SECONDS_PER_MINUTE = 60


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def recency_weight(
    submitted_at: int,
    now_ts: int,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> float:
    """0.5 ** (age_minutes / half_life). Reports dated in the future count as fresh."""
    age_minutes = max(0.0, (now_ts - submitted_at) / SECONDS_PER_MINUTE)
    return 0.5 ** (age_minutes / config.recency_half_life_minutes)


def presence_weight(
    is_physically_present: bool,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> float:
    return config.presence_multiplier if is_physically_present else 1.0


def reputation_weight(
    reputation_score: float,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> float:
    return clamp(
        reputation_score,
        config.min_reputation_multiplier,
        config.max_reputation_multiplier,
    )


def composite_weight(
    weighted: WeightedReport,
    now_ts: int,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> float:
    """Recency x presence x reputation for one report at now_ts."""
    report = weighted.report
    return (
        recency_weight(report.submitted_at, now_ts, config)
        * presence_weight(report.is_physically_present, config)
        * reputation_weight(weighted.reputation_score, config)
    )


def submission_trust_weight(
    reputation_score: float,
    is_physically_present: bool,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> float:
    """
    Static weight recorded on a report when it is submitted.

    reputation x presence boost, capped at the reputation multiplier ceiling.
    Informational only; aggregation always recomputes composite_weight().
    """
    boosted = reputation_score * presence_weight(is_physically_present, config)
    return min(config.max_reputation_multiplier, boosted)
