"""
Thread-safe in-memory repositories.

Each store guards its own state with a short-lived lock around single reads
and writes. Read-modify-write ordering for one submitter is the caller's job
(see reconciliation.locks).
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Iterable

from backend_queuetrust.aggregation.models import AggregateResult, Report, SourceKind
from backend_queuetrust.config.env import (
    DEFAULT_RESULT_CACHE_TTL_SEC,
    DEFAULT_RESULT_HISTORY_RETENTION_MIN,
)
from backend_queuetrust.queuetrust_logging import get_logger
from backend_queuetrust.reputation.models import TrustProfile

logger = get_logger(__name__)


class InMemoryReportRepository:
    """
    Report source for aggregation and reconciliation.

    fetch_eligible_reports(): non-expired reports for one checkpoint, newest first.
    fetch_expired_reports_in_window(): reports with start_ts <= expires_at < end_ts.
    latest_report_by(): a submitter's most recent report on one checkpoint.
    """

    def __init__(self, reports: Iterable[Report] = ()) -> None:
        self._lock = threading.Lock()
        self._reports: dict[str, Report] = {}
        for r in reports:
            self.add(r)

    def add(self, report: Report) -> None:
        with self._lock:
            self._reports[report.id] = report

    def __len__(self) -> int:
        with self._lock:
            return len(self._reports)

    def fetch_eligible_reports(
        self,
        checkpoint_id: str,
        max_count: int,
        now_ts: int,
    ) -> list[Report]:
        with self._lock:
            rows = [
                r
                for r in self._reports.values()
                if r.checkpoint_id == checkpoint_id and not r.is_expired(now_ts)
            ]
        rows.sort(key=lambda r: (r.submitted_at, r.id), reverse=True)
        return rows[: max(0, max_count)]

    def fetch_expired_reports_in_window(self, start_ts: int, end_ts: int) -> list[Report]:
        with self._lock:
            rows = [r for r in self._reports.values() if start_ts <= r.expires_at < end_ts]
        rows.sort(key=lambda r: (r.submitted_at, r.id))
        return rows

    def latest_report_by(self, submitter_id: str, checkpoint_id: str) -> Report | None:
        with self._lock:
            rows = [
                r
                for r in self._reports.values()
                if r.submitter_id == submitter_id and r.checkpoint_id == checkpoint_id
            ]
        return max(rows, key=lambda r: (r.submitted_at, r.id), default=None)


class InMemoryReputationStore:
    """Reputation store; unknown submitters read as the neutral profile."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._profiles: dict[str, TrustProfile] = {}

    def get_reputation(self, submitter_id: str) -> TrustProfile:
        with self._lock:
            profile = self._profiles.get(submitter_id)
        return profile if profile is not None else TrustProfile.neutral(submitter_id)

    def set_reputation(self, submitter_id: str, profile: TrustProfile) -> None:
        if profile.submitter_id != submitter_id:
            raise ValueError(
                f"profile belongs to {profile.submitter_id!r}, not {submitter_id!r}"
            )
        with self._lock:
            self._profiles[submitter_id] = profile

    def all_profiles(self) -> dict[str, TrustProfile]:
        with self._lock:
            return dict(self._profiles)


@dataclass
class _CacheEntry:
    result: AggregateResult
    expires_at: float


class InMemoryResultSink:
    """
    Result sink: TTL cache for fast reads plus a retained history.

    History is the ground-truth log read back by reconciliation through
    fetch_candidate_ground_truth(). NO_DATA results are cached but not logged.
    Each publish drops that checkpoint's results computed more than
    history_retention_sec before the newest one; None keeps everything.
    """

    def __init__(
        self,
        cache_ttl_sec: int = DEFAULT_RESULT_CACHE_TTL_SEC,
        history_retention_sec: int | None = DEFAULT_RESULT_HISTORY_RETENTION_MIN * 60,
    ) -> None:
        self._lock = threading.Lock()
        self._cache_ttl_sec = cache_ttl_sec
        self._history_retention_sec = history_retention_sec
        self._cache: dict[str, _CacheEntry] = {}
        self._history: dict[str, list[AggregateResult]] = {}

    def publish(self, checkpoint_id: str, result: AggregateResult) -> None:
        with self._lock:
            self._cache[checkpoint_id] = _CacheEntry(
                result=result,
                expires_at=time.monotonic() + self._cache_ttl_sec,
            )
            if result.source_kind is not SourceKind.NO_DATA:
                history = self._history.setdefault(checkpoint_id, [])
                history.append(result)
                self._prune(history)
        logger.debug(
            "result_published",
            checkpoint_id=checkpoint_id,
            source_kind=result.source_kind.value,
            estimated_minutes=result.estimated_minutes,
        )

    def _prune(self, history: list[AggregateResult]) -> None:
        if self._history_retention_sec is None:
            return
        cutoff = max(r.computed_at for r in history) - self._history_retention_sec
        history[:] = [r for r in history if r.computed_at >= cutoff]

    def get_cached(self, checkpoint_id: str) -> AggregateResult | None:
        """Latest published result while its TTL holds, else None."""
        with self._lock:
            entry = self._cache.get(checkpoint_id)
            if entry is None:
                return None
            if time.monotonic() >= entry.expires_at:
                del self._cache[checkpoint_id]
                return None
            return entry.result

    def invalidate(self, checkpoint_id: str) -> None:
        """Drop the cached result so the next read recomputes (e.g. after a new report)."""
        with self._lock:
            self._cache.pop(checkpoint_id, None)

    def history(self, checkpoint_id: str) -> list[AggregateResult]:
        with self._lock:
            return list(self._history.get(checkpoint_id, ()))

    def fetch_candidate_ground_truth(
        self,
        checkpoint_id: str,
        from_ts: int,
        to_ts: int,
    ) -> list[AggregateResult]:
        """Logged results with from_ts <= computed_at <= to_ts, earliest first."""
        with self._lock:
            rows = [
                r
                for r in self._history.get(checkpoint_id, ())
                if from_ts <= r.computed_at <= to_ts
            ]
        rows.sort(key=lambda r: r.computed_at)
        return rows
