"""
Caller-side report validation.

The engine assumes validated input. Ingestion calls validate_report() (or
validate_reports()) before a report can reach aggregation.
"""

from __future__ import annotations

from typing import Iterable

from backend_queuetrust.aggregation.config import DEFAULT_AGGREGATION_CONFIG, AggregationConfig
from backend_queuetrust.aggregation.models import Report
from backend_queuetrust.core.exceptions import InvalidReportError


def validate_report(
    report: Report,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> Report:
    """Return the report unchanged or raise InvalidReportError."""
    for field_name in ("id", "checkpoint_id", "submitter_id"):
        if not str(getattr(report, field_name) or "").strip():
            raise InvalidReportError(f"{field_name} is required", report_id=report.id)
    minutes = report.reported_minutes
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidReportError(
            "reported_minutes must be an integer",
            report_id=report.id,
            reported_minutes=minutes,
        )
    if minutes < 0 or minutes > config.max_reported_minutes:
        raise InvalidReportError(
            f"reported_minutes must be within [0, {config.max_reported_minutes}]",
            report_id=report.id,
            reported_minutes=minutes,
        )
    if report.expires_at <= report.submitted_at:
        raise InvalidReportError(
            "expires_at must be after submitted_at",
            report_id=report.id,
            submitted_at=report.submitted_at,
            expires_at=report.expires_at,
        )
    return report


def validate_reports(
    reports: Iterable[Report],
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> list[Report]:
    return [validate_report(r, config) for r in reports]
