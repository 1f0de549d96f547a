"""
Tunable constants for the aggregation engine.

Defaults reproduce the production blend; tests and experiments may pass a
modified AggregationConfig instead of patching module globals.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_queuetrust.aggregation.outliers import OUTLIER_ZSCORE_THRESHOLD


@dataclass(frozen=True)
class AggregationConfig:
    """Outlier, weight and blend constants; all rule-based."""

    # Outlier filter
    outlier_zscore_threshold: float = OUTLIER_ZSCORE_THRESHOLD

    # Composite weight
    recency_half_life_minutes: float = 20.0
    presence_multiplier: float = 2.5
    min_reputation_multiplier: float = 0.2
    max_reputation_multiplier: float = 3.0

    # Blend: crowd share = min(cap, slope * ln(1 + n))
    max_crowd_share: float = 0.80
    crowd_share_slope: float = 0.2

    # Confidence per outcome
    official_only_confidence: float = 0.45
    degraded_confidence: float = 0.30
    hybrid_base_confidence: float = 0.50
    hybrid_confidence_slope: float = 0.45
    crowd_base_confidence: float = 0.30
    crowd_confidence_slope: float = 0.12
    max_crowd_confidence: float = 0.92

    # Caller-side report validation
    max_reported_minutes: int = 240


DEFAULT_AGGREGATION_CONFIG = AggregationConfig()
