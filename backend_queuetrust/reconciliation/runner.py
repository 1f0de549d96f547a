"""
Reconciliation runner: fixed-cadence loop around reconcile_window().

Keeps a watermark (end of the last attempted window) in a watermark store so
every tick picks up exactly where the previous one stopped, however late or
early it fires and across process restarts when the store is durable. The
watermark advances after every attempt, successful or not: a window is never
re-run, so nothing is counted twice.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any

from backend_queuetrust.config.settings import Settings
from backend_queuetrust.database.watermark import InMemoryWatermarkStore
from backend_queuetrust.queuetrust_logging import get_logger
from backend_queuetrust.reconciliation.engine import (
    DEFAULT_MAX_WORKERS,
    ReconciliationConfig,
    ReconciliationSummary,
    reconcile_window,
)
from backend_queuetrust.reconciliation.locks import SubmitterLockRegistry
from backend_queuetrust.reconciliation.window import (
    DEFAULT_CADENCE_SEC,
    DEFAULT_LAG_SEC,
    ReconciliationWindow,
    next_window,
    window_for_run,
)

logger = get_logger(__name__)

SHUTDOWN_POLL_SEC = 1.0


@dataclass
class ReconciliationRunnerConfig:
    """Cadence and lag of the periodic runner."""

    interval_sec: int = DEFAULT_CADENCE_SEC
    lag_sec: int = DEFAULT_LAG_SEC
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReconciliationRunnerConfig":
        return cls(
            interval_sec=settings.reconcile_interval_sec,
            lag_sec=settings.reconcile_lag_sec,
            max_workers=settings.reconcile_max_workers,
        )


class ReconciliationRunner:
    """
    Owns the watermark and the shared submitter locks for one deployment.

    report_source: fetch_expired_reports_in_window(start_ts, end_ts).
    ground_truth_source: fetch_candidate_ground_truth(checkpoint_id, from_ts, to_ts).
    reputation_store: get_reputation / set_reputation.
    watermark_store: get_watermark() / set_watermark(ts); in memory when omitted.
    """

    def __init__(
        self,
        report_source: Any,
        ground_truth_source: Any,
        reputation_store: Any,
        config: ReconciliationRunnerConfig | None = None,
        *,
        reconciliation_config: ReconciliationConfig | None = None,
        watermark_store: Any = None,
    ) -> None:
        self.config = config or ReconciliationRunnerConfig()
        self.report_source = report_source
        self.ground_truth_source = ground_truth_source
        self.reputation_store = reputation_store
        self.reconciliation_config = reconciliation_config or ReconciliationConfig(
            max_workers=self.config.max_workers
        )
        self.locks = SubmitterLockRegistry()
        self._tick_lock = threading.Lock()
        self.watermark_store = watermark_store if watermark_store is not None else InMemoryWatermarkStore()

    @property
    def watermark_ts(self) -> int | None:
        """End of the last attempted window; None before the first run."""
        return self.watermark_store.get_watermark()

    def plan_window(self, now_ts: int) -> ReconciliationWindow:
        watermark = self.watermark_store.get_watermark()
        if watermark is None:
            return window_for_run(now_ts, self.config.lag_sec, self.config.interval_sec)
        return next_window(ReconciliationWindow(watermark, watermark), now_ts, self.config.lag_sec)

    def run_once(self, now_ts: int | None = None) -> ReconciliationSummary:
        """Reconcile the next window. Ticks are serialized; the watermark always advances."""
        now_ts = now_ts if now_ts is not None else int(time.time())
        with self._tick_lock:
            window = self.plan_window(now_ts)
            try:
                return reconcile_window(
                    self.report_source,
                    self.ground_truth_source,
                    self.reputation_store,
                    window,
                    locks=self.locks,
                    config=self.reconciliation_config,
                )
            finally:
                self.watermark_store.set_watermark(window.end_ts)


def run_periodic_reconciliation(
    runner: ReconciliationRunner,
    stop_event: threading.Event,
) -> None:
    """
    Run runner.run_once() every interval_sec until stop_event is set.

    A failing tick is logged and the loop continues. Intended for a
    background thread.
    """
    interval = max(1, runner.config.interval_sec)
    logger.info(
        "reconcile_runner_started",
        interval_sec=interval,
        lag_sec=runner.config.lag_sec,
        max_workers=runner.config.max_workers,
    )
    tick_count = 0
    while not stop_event.is_set():
        tick_start = time.monotonic()
        tick_count += 1
        try:
            summary = runner.run_once()
            logger.info("reconcile_tick_done", tick=tick_count, **summary.to_dict())
        except Exception as e:
            logger.exception("reconcile_tick_failed", tick=tick_count, error=str(e))
        deadline = tick_start + interval
        while not stop_event.is_set() and time.monotonic() < deadline:
            stop_event.wait(timeout=min(SHUTDOWN_POLL_SEC, max(0, deadline - time.monotonic())))
    logger.info("reconcile_runner_stopped", tick_count=tick_count)
