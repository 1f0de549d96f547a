"""
Builders for reports and aggregates used across tests.
"""

from __future__ import annotations

import itertools

from backend_queuetrust.aggregation.models import (
    AggregateResult,
    Report,
    SourceKind,
    WeightedReport,
)

NOW_TS = 1_760_000_000
CHECKPOINT = "chk-A"
MINUTE = 60

_ids = itertools.count(1)


def make_report(
    minutes: int,
    *,
    checkpoint_id: str = CHECKPOINT,
    submitter_id: str = "user-1",
    present: bool = False,
    submitted_at: int = NOW_TS,
    ttl_sec: int = 45 * MINUTE,
    report_id: str | None = None,
) -> Report:
    """Build a report; ids are unique per session unless given."""
    return Report(
        id=report_id or f"r-{next(_ids)}",
        checkpoint_id=checkpoint_id,
        submitter_id=submitter_id,
        reported_minutes=minutes,
        is_physically_present=present,
        submitted_at=submitted_at,
        expires_at=submitted_at + ttl_sec,
    )


def weighted(minutes: int, reputation: float = 1.0, **kwargs) -> WeightedReport:
    return WeightedReport(report=make_report(minutes, **kwargs), reputation_score=reputation)


def make_result(
    minutes: int,
    *,
    computed_at: int,
    confidence: float = 0.7,
    source_kind: SourceKind = SourceKind.HYBRID,
    sample_size: int = 3,
) -> AggregateResult:
    return AggregateResult(
        estimated_minutes=minutes,
        confidence=confidence,
        sample_size=sample_size,
        source_kind=source_kind,
        official_minutes=None,
        computed_at=computed_at,
    )
