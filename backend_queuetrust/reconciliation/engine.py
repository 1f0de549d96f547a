"""
Reconciliation engine: score expired reports against later ground truth.

For every report whose expiry falls in the window:
  1. take the earliest HYBRID / CROWD_ONLY aggregate for the same checkpoint
     computed within [submitted_at, submitted_at + 60 min]
  2. skip when there is none or its confidence is below 0.5
  3. evaluate accuracy (+/- 5 min) and fold the verdict into the submitter's
     profile under that submitter's lock

Reports are grouped by submitter. Groups run in parallel; reports inside a
group are applied in submission order. Skipped reports are not retried.
"""

from __future__ import annotations

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Sequence

from backend_queuetrust.aggregation.models import (
    GROUND_TRUTH_SOURCE_KINDS,
    AggregateResult,
    Report,
)
from backend_queuetrust.queuetrust_logging import get_logger
from backend_queuetrust.reconciliation.locks import SubmitterLockRegistry
from backend_queuetrust.reconciliation.window import ReconciliationWindow
from backend_queuetrust.reputation.evaluator import (
    ACCURACY_TOLERANCE_MINUTES,
    evaluate_report_accuracy,
)
from backend_queuetrust.reputation.models import Verdict
from backend_queuetrust.reputation.updater import apply_verdict

logger = get_logger(__name__)

GROUND_TRUTH_HORIZON_SEC = 60 * 60
MIN_GROUND_TRUTH_CONFIDENCE = 0.5
DEFAULT_MAX_WORKERS = 4


class ReportOutcome(str, Enum):
    ACCURATE = "accurate"
    INACCURATE = "inaccurate"
    SKIPPED_NO_GROUND_TRUTH = "skipped_no_ground_truth"
    SKIPPED_LOW_CONFIDENCE = "skipped_low_confidence"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconciliationConfig:
    """Ground-truth matching and verdict thresholds."""

    ground_truth_horizon_sec: int = GROUND_TRUTH_HORIZON_SEC
    min_ground_truth_confidence: float = MIN_GROUND_TRUTH_CONFIDENCE
    accuracy_tolerance_minutes: int = ACCURACY_TOLERANCE_MINUTES
    max_workers: int = DEFAULT_MAX_WORKERS


@dataclass
class ReconciliationSummary:
    """Counts for one reconciled window."""

    window: ReconciliationWindow
    total: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)

    def count(self, outcome: ReportOutcome) -> int:
        return self.outcomes.get(outcome.value, 0)

    @property
    def evaluated(self) -> int:
        return self.count(ReportOutcome.ACCURATE) + self.count(ReportOutcome.INACCURATE)

    @property
    def skipped(self) -> int:
        return self.count(ReportOutcome.SKIPPED_NO_GROUND_TRUTH) + self.count(
            ReportOutcome.SKIPPED_LOW_CONFIDENCE
        )

    @property
    def failed(self) -> int:
        return self.count(ReportOutcome.FAILED)

    def record(self, outcome: ReportOutcome) -> None:
        self.outcomes[outcome.value] = self.outcomes.get(outcome.value, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "window": self.window.to_dict(),
            "total": self.total,
            "evaluated": self.evaluated,
            "skipped": self.skipped,
            "failed": self.failed,
            "outcomes": dict(self.outcomes),
        }


def find_ground_truth(
    report: Report,
    candidates: Iterable[AggregateResult],
    config: ReconciliationConfig | None = None,
) -> AggregateResult | None:
    """Earliest crowd-derived aggregate within the report's horizon, or None."""
    cfg = config or ReconciliationConfig()
    horizon_end = report.submitted_at + cfg.ground_truth_horizon_sec
    eligible = [
        c
        for c in candidates
        if c.source_kind in GROUND_TRUTH_SOURCE_KINDS
        and report.submitted_at <= c.computed_at <= horizon_end
    ]
    if not eligible:
        return None
    return min(eligible, key=lambda c: c.computed_at)


def reconcile_report(
    report: Report,
    ground_truth_source: Any,
    reputation_store: Any,
    locks: SubmitterLockRegistry,
    config: ReconciliationConfig | None = None,
) -> ReportOutcome:
    """
    Reconcile one report; the reputation write happens under the submitter's lock.

    ground_truth_source: fetch_candidate_ground_truth(checkpoint_id, from_ts, to_ts).
    reputation_store: get_reputation(submitter_id), set_reputation(submitter_id, profile).
    """
    cfg = config or ReconciliationConfig()
    candidates = ground_truth_source.fetch_candidate_ground_truth(
        report.checkpoint_id,
        report.submitted_at,
        report.submitted_at + cfg.ground_truth_horizon_sec,
    )
    truth = find_ground_truth(report, candidates, cfg)
    if truth is None:
        return ReportOutcome.SKIPPED_NO_GROUND_TRUTH
    if truth.confidence < cfg.min_ground_truth_confidence:
        return ReportOutcome.SKIPPED_LOW_CONFIDENCE

    verdict = evaluate_report_accuracy(
        report.reported_minutes,
        truth.estimated_minutes,
        cfg.accuracy_tolerance_minutes,
    )
    with locks.hold(report.submitter_id):
        profile = reputation_store.get_reputation(report.submitter_id)
        updated = apply_verdict(profile, verdict)
        reputation_store.set_reputation(report.submitter_id, updated)

    logger.debug(
        "report_reconciled",
        report_id=report.id,
        submitter_id=report.submitter_id,
        checkpoint_id=report.checkpoint_id,
        verdict=verdict.value,
        reputation_score=updated.reputation_score,
        total_evaluated=updated.total_evaluated,
    )
    return ReportOutcome.ACCURATE if verdict is Verdict.ACCURATE else ReportOutcome.INACCURATE


def _reconcile_group(
    reports: Sequence[Report],
    ground_truth_source: Any,
    reputation_store: Any,
    locks: SubmitterLockRegistry,
    config: ReconciliationConfig,
) -> list[ReportOutcome]:
    outcomes: list[ReportOutcome] = []
    for report in reports:
        try:
            outcomes.append(
                reconcile_report(report, ground_truth_source, reputation_store, locks, config)
            )
        except Exception as e:
            logger.warning(
                "report_reconcile_failed",
                report_id=report.id,
                submitter_id=report.submitter_id,
                error=str(e),
            )
            outcomes.append(ReportOutcome.FAILED)
    return outcomes


def _group_by_submitter(reports: Iterable[Report]) -> dict[str, list[Report]]:
    """Group unique reports by submitter, each group in submission order."""
    seen: set[str] = set()
    groups: dict[str, list[Report]] = defaultdict(list)
    for r in reports:
        if r.id in seen:
            continue
        seen.add(r.id)
        groups[r.submitter_id].append(r)
    for group in groups.values():
        group.sort(key=lambda r: (r.submitted_at, r.id))
    return groups


def reconcile_window(
    report_source: Any,
    ground_truth_source: Any,
    reputation_store: Any,
    window: ReconciliationWindow,
    *,
    locks: SubmitterLockRegistry | None = None,
    config: ReconciliationConfig | None = None,
) -> ReconciliationSummary:
    """
    Reconcile every report whose expires_at lies in window.

    report_source: fetch_expired_reports_in_window(start_ts, end_ts) -> list[Report].
    locks: shared across runs so concurrent runs serialize per submitter.
    Per-report failures are logged and counted, never raised.
    """
    cfg = config or ReconciliationConfig()
    locks = locks if locks is not None else SubmitterLockRegistry()
    summary = ReconciliationSummary(window=window)
    if window.is_empty:
        logger.debug("reconcile_window_empty", **window.to_dict())
        return summary

    reports = report_source.fetch_expired_reports_in_window(window.start_ts, window.end_ts)
    groups = _group_by_submitter(r for r in reports if window.contains(r.expires_at))
    summary.total = sum(len(g) for g in groups.values())
    if not groups:
        logger.info("reconcile_window_done", processed=0, **window.to_dict())
        return summary

    workers = max(1, min(cfg.max_workers, len(groups)))
    if workers == 1:
        results = [
            _reconcile_group(g, ground_truth_source, reputation_store, locks, cfg)
            for g in groups.values()
        ]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reconcile") as pool:
            futures = [
                pool.submit(_reconcile_group, g, ground_truth_source, reputation_store, locks, cfg)
                for g in groups.values()
            ]
            results = [f.result() for f in futures]

    for outcomes in results:
        for outcome in outcomes:
            summary.record(outcome)

    logger.info(
        "reconcile_window_done",
        total=summary.total,
        evaluated=summary.evaluated,
        skipped=summary.skipped,
        failed=summary.failed,
        submitters=len(groups),
        **window.to_dict(),
    )
    return summary
