# Wait-time aggregation: outlier filter, composite weights, blend engine.
# Pure functions over in-memory values; safe to call concurrently per checkpoint.

from backend_queuetrust.aggregation.blend import compute_aggregate, crowd_share
from backend_queuetrust.aggregation.config import AggregationConfig
from backend_queuetrust.aggregation.models import (
    GROUND_TRUTH_SOURCE_KINDS,
    AggregateResult,
    OfficialReading,
    Report,
    SourceKind,
    WeightedReport,
)
from backend_queuetrust.aggregation.outliers import filter_outliers
from backend_queuetrust.aggregation.validation import validate_report, validate_reports
from backend_queuetrust.aggregation.weights import composite_weight, submission_trust_weight

__all__ = [
    "GROUND_TRUTH_SOURCE_KINDS",
    "AggregateResult",
    "AggregationConfig",
    "OfficialReading",
    "Report",
    "SourceKind",
    "WeightedReport",
    "composite_weight",
    "compute_aggregate",
    "crowd_share",
    "filter_outliers",
    "submission_trust_weight",
    "validate_report",
    "validate_reports",
]
