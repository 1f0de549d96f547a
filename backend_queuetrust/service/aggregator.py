"""
Aggregation service: wire collaborators around compute_aggregate().

aggregate_checkpoint() is the per-checkpoint entry point:
  eligible reports -> validation -> reputation join -> official reading
  -> compute_aggregate() -> sink.publish()

Collaborators (duck-typed):
  report_source.fetch_eligible_reports(checkpoint_id, max_count, now_ts)
  official_source.fetch_official_reading(checkpoint_id)   (may be None)
  reputation_store.get_reputation(submitter_id)
  sink.publish(checkpoint_id, result)
"""

from __future__ import annotations

import time
from typing import Any, Iterable

from backend_queuetrust.aggregation.blend import compute_aggregate
from backend_queuetrust.aggregation.config import DEFAULT_AGGREGATION_CONFIG, AggregationConfig
from backend_queuetrust.aggregation.models import (
    AggregateResult,
    OfficialReading,
    Report,
    WeightedReport,
)
from backend_queuetrust.aggregation.validation import validate_report
from backend_queuetrust.config.env import DEFAULT_MAX_REPORTS, DEFAULT_REPORT_COOLDOWN_MIN
from backend_queuetrust.core.exceptions import InvalidReportError, RateLimitedError
from backend_queuetrust.queuetrust_logging import bind_checkpoint, get_logger
from backend_queuetrust.reconciliation.locks import SubmitterLockRegistry

logger = get_logger(__name__)


def join_reputation(
    reports: Iterable[Report],
    reputation_store: Any,
) -> list[WeightedReport]:
    """Annotate each report with its submitter's current score (one lookup per submitter)."""
    scores: dict[str, float] = {}
    joined: list[WeightedReport] = []
    for report in reports:
        if report.submitter_id not in scores:
            scores[report.submitter_id] = reputation_store.get_reputation(
                report.submitter_id
            ).reputation_score
        joined.append(WeightedReport(report=report, reputation_score=scores[report.submitter_id]))
    return joined


def fetch_official_safely(official_source: Any, checkpoint_id: str) -> OfficialReading | None:
    """Official reading or None; a failing source is the same as an absent reading."""
    if official_source is None:
        return None
    try:
        return official_source.fetch_official_reading(checkpoint_id)
    except Exception as e:
        logger.warning("official_reading_failed", checkpoint_id=checkpoint_id, error=str(e))
        return None


def _eligible(
    reports: Iterable[Report],
    checkpoint_id: str,
    now_ts: int,
    config: AggregationConfig,
) -> list[Report]:
    kept: list[Report] = []
    log = bind_checkpoint(checkpoint_id)
    for report in reports:
        if report.checkpoint_id != checkpoint_id or report.is_expired(now_ts):
            continue
        try:
            kept.append(validate_report(report, config))
        except InvalidReportError as e:
            log.warning("report_rejected", report_id=report.id, reason=e.message)
    return kept


def aggregate_checkpoint(
    checkpoint_id: str,
    report_source: Any,
    official_source: Any,
    reputation_store: Any,
    sink: Any,
    *,
    now_ts: int | None = None,
    max_reports: int = DEFAULT_MAX_REPORTS,
    config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
) -> AggregateResult:
    """Compute and publish the estimate for one checkpoint; returns the published result."""
    now_ts = now_ts if now_ts is not None else int(time.time())
    raw = report_source.fetch_eligible_reports(checkpoint_id, max_reports, now_ts)
    reports = _eligible(raw, checkpoint_id, now_ts, config)
    weighted = join_reputation(reports, reputation_store)
    official = fetch_official_safely(official_source, checkpoint_id)

    result = compute_aggregate(weighted, official, now_ts, config)
    sink.publish(checkpoint_id, result)
    logger.info(
        "aggregate_published",
        checkpoint_id=checkpoint_id,
        source_kind=result.source_kind.value,
        estimated_minutes=result.estimated_minutes,
        confidence=result.confidence,
        sample_size=result.sample_size,
        input_reports=len(weighted),
        has_official=official is not None,
    )
    return result


class WaitTimeService:
    """
    Cache-first read path over aggregate_checkpoint().

    get_wait_time() serves the sink's cached result while fresh and recomputes
    otherwise; record_report() validates and stores a new report and drops the
    cached estimate so the next read includes it.

    report_repository also needs add(report) and
    latest_report_by(submitter_id, checkpoint_id). A submitter may report a
    given checkpoint once per cooldown_sec (15 min default, 0 disables), so
    one account cannot fill the sample on its own.
    """

    def __init__(
        self,
        report_repository: Any,
        official_source: Any,
        reputation_store: Any,
        sink: Any,
        *,
        max_reports: int = DEFAULT_MAX_REPORTS,
        cooldown_sec: int = DEFAULT_REPORT_COOLDOWN_MIN * 60,
        config: AggregationConfig = DEFAULT_AGGREGATION_CONFIG,
    ) -> None:
        self.reports = report_repository
        self.official_source = official_source
        self.reputation_store = reputation_store
        self.sink = sink
        self.max_reports = max_reports
        self.cooldown_sec = cooldown_sec
        self.config = config
        self._submit_locks = SubmitterLockRegistry()

    def get_wait_time(self, checkpoint_id: str, now_ts: int | None = None) -> AggregateResult:
        cached = self.sink.get_cached(checkpoint_id)
        if cached is not None:
            return cached
        return aggregate_checkpoint(
            checkpoint_id,
            self.reports,
            self.official_source,
            self.reputation_store,
            self.sink,
            now_ts=now_ts,
            max_reports=self.max_reports,
            config=self.config,
        )

    def record_report(self, report: Report) -> Report:
        """
        Validate and store.

        Raises:
            InvalidReportError: the report violates an input invariant.
            RateLimitedError: the submitter reported this checkpoint within cooldown_sec.
        """
        validate_report(report, self.config)
        with self._submit_locks.hold(report.submitter_id):
            self._check_cooldown(report)
            self.reports.add(report)
        self.sink.invalidate(report.checkpoint_id)
        logger.debug(
            "report_recorded",
            report_id=report.id,
            checkpoint_id=report.checkpoint_id,
            submitter_id=report.submitter_id,
        )
        return report

    def _check_cooldown(self, report: Report) -> None:
        if self.cooldown_sec <= 0:
            return
        latest = self.reports.latest_report_by(report.submitter_id, report.checkpoint_id)
        if latest is None:
            return
        elapsed = report.submitted_at - latest.submitted_at
        if elapsed < self.cooldown_sec:
            logger.info(
                "report_rate_limited",
                report_id=report.id,
                checkpoint_id=report.checkpoint_id,
                submitter_id=report.submitter_id,
                elapsed_sec=elapsed,
            )
            raise RateLimitedError(
                "submitter already reported this checkpoint within the cooldown",
                submitter_id=report.submitter_id,
                checkpoint_id=report.checkpoint_id,
                retry_after_sec=self.cooldown_sec - max(0, elapsed),
            )
