"""
Data models for wait-time aggregation.

Reports, official readings, the per-call reputation join and the published
aggregate. Plain dataclasses; persistence belongs to the collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SourceKind(str, Enum):
    """Which inputs an aggregate was derived from."""

    NO_DATA = "no_data"
    OFFICIAL_ONLY = "official_only"
    CROWD_ONLY = "crowd_only"
    HYBRID = "hybrid"


# Aggregates that carry crowd signal and may serve as reconciliation ground truth
GROUND_TRUTH_SOURCE_KINDS = frozenset({SourceKind.HYBRID, SourceKind.CROWD_ONLY})


@dataclass(frozen=True)
class Report:
    """One crowdsourced wait-time submission. Immutable once created."""

    id: str
    checkpoint_id: str
    submitter_id: str
    reported_minutes: int
    is_physically_present: bool
    submitted_at: int
    """Unix timestamp (seconds) of submission."""
    expires_at: int
    """Unix timestamp (seconds) after which the report is no longer aggregated."""

    def is_expired(self, now_ts: int) -> bool:
        return now_ts > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "checkpoint_id": self.checkpoint_id,
            "submitter_id": self.submitter_id,
            "reported_minutes": self.reported_minutes,
            "is_physically_present": self.is_physically_present,
            "submitted_at": self.submitted_at,
            "expires_at": self.expires_at,
        }


@dataclass(frozen=True)
class WeightedReport:
    """
    A report joined with its submitter's reputation score at call time.

    Point-in-time join built per aggregation call; never stored.
    """

    report: Report
    reputation_score: float = 1.0

    @property
    def reported_minutes(self) -> int:
        return self.report.reported_minutes


@dataclass(frozen=True)
class OfficialReading:
    """Wait time from the non-crowdsourced reference feed."""

    checkpoint_id: str
    minutes: int
    observed_at: int


@dataclass(frozen=True)
class AggregateResult:
    """
    Published estimate for one checkpoint.

    sample_size counts reports that survived outlier filtering, never the raw input.
    """

    estimated_minutes: int
    confidence: float
    sample_size: int
    source_kind: SourceKind
    official_minutes: int | None
    computed_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "estimated_minutes": self.estimated_minutes,
            "confidence": self.confidence,
            "sample_size": self.sample_size,
            "source_kind": self.source_kind.value,
            "official_minutes": self.official_minutes,
            "computed_at": self.computed_at,
        }
