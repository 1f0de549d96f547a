"""
Tests for the periodic reconciliation runner: watermark handling and loop resilience.
"""

from __future__ import annotations

import threading

import pytest

from backend_queuetrust.config.settings import Settings
from backend_queuetrust.database import (
    FileWatermarkStore,
    InMemoryWatermarkStore,
    watermark_store_for,
)
from backend_queuetrust.reconciliation import (
    ReconciliationRunner,
    ReconciliationRunnerConfig,
    run_periodic_reconciliation,
)
from factories import CHECKPOINT, MINUTE, NOW_TS, make_report, make_result


@pytest.fixture
def runner(report_repo, result_sink, reputation_store):
    return ReconciliationRunner(report_repo, result_sink, reputation_store)


def test_first_run_uses_default_window(runner):
    assert runner.watermark_ts is None
    window = runner.plan_window(NOW_TS)
    assert (window.start_ts, window.end_ts) == (NOW_TS - 75 * MINUTE, NOW_TS - 45 * MINUTE)
    runner.run_once(NOW_TS)
    assert runner.watermark_ts == NOW_TS - 45 * MINUTE


def test_watermark_seed(report_repo, result_sink, reputation_store):
    store = InMemoryWatermarkStore(watermark_ts=NOW_TS - 90 * MINUTE)
    r = ReconciliationRunner(report_repo, result_sink, reputation_store, watermark_store=store)
    window = r.plan_window(NOW_TS)
    assert (window.start_ts, window.end_ts) == (NOW_TS - 90 * MINUTE, NOW_TS - 45 * MINUTE)


def test_repeated_runs_never_double_count(runner, report_repo, result_sink, reputation_store):
    submitted = NOW_TS - 100 * MINUTE
    report_repo.add(make_report(12, submitter_id="alice", submitted_at=submitted))
    result_sink.publish(CHECKPOINT, make_result(12, computed_at=submitted + 5 * MINUTE))

    runner.run_once(NOW_TS)
    runner.run_once(NOW_TS)  # same instant: empty window
    runner.run_once(NOW_TS + 30 * MINUTE)
    runner.run_once(NOW_TS + 45 * MINUTE)  # early tick
    runner.run_once(NOW_TS + 90 * MINUTE)

    assert reputation_store.get_reputation("alice").total_evaluated == 1


def test_jittered_ticks_cover_every_report_once(runner, report_repo, result_sink, reputation_store):
    """Reports expiring across several hours are each evaluated exactly once despite uneven ticks."""
    start = NOW_TS - 75 * MINUTE
    for i in range(40):
        expires = start + i * 7 * MINUTE
        submitted = expires - 45 * MINUTE
        report_repo.add(make_report(12, submitter_id=f"user-{i}", submitted_at=submitted))
        result_sink.publish(CHECKPOINT, make_result(12, computed_at=submitted + MINUTE))

    tick = NOW_TS
    for offset in (0, 31, 29, 44, 12, 30, 58, 30, 30, 30, 30, 30):
        tick += offset * MINUTE
        runner.run_once(tick)

    profiles = reputation_store.all_profiles()
    assert len(profiles) == 40
    assert all(p.total_evaluated == 1 for p in profiles.values())


def test_failed_tick_still_advances_watermark(result_sink, reputation_store):
    class BrokenSource:
        def fetch_expired_reports_in_window(self, start_ts, end_ts):
            raise RuntimeError("db down")

    r = ReconciliationRunner(BrokenSource(), result_sink, reputation_store)
    with pytest.raises(RuntimeError):
        r.run_once(NOW_TS)
    assert r.watermark_ts == NOW_TS - 45 * MINUTE


def test_restarted_runner_resumes_from_saved_watermark(report_repo, result_sink, reputation_store, tmp_path):
    submitted = NOW_TS - 100 * MINUTE
    report_repo.add(make_report(12, submitter_id="alice", submitted_at=submitted))
    result_sink.publish(CHECKPOINT, make_result(12, computed_at=submitted + 5 * MINUTE))
    path = tmp_path / "state" / "watermark.json"

    first = ReconciliationRunner(
        report_repo, result_sink, reputation_store, watermark_store=FileWatermarkStore(path)
    )
    assert first.run_once(NOW_TS).evaluated == 1

    restarted = ReconciliationRunner(
        report_repo, result_sink, reputation_store, watermark_store=FileWatermarkStore(path)
    )
    assert restarted.watermark_ts == NOW_TS - 45 * MINUTE
    window = restarted.plan_window(NOW_TS + 10 * MINUTE)
    assert (window.start_ts, window.end_ts) == (NOW_TS - 45 * MINUTE, NOW_TS - 35 * MINUTE)
    assert restarted.run_once(NOW_TS + 10 * MINUTE).evaluated == 0

    profile = reputation_store.get_reputation("alice")
    assert (profile.total_evaluated, profile.accurate_count) == (1, 1)


def test_file_watermark_store_roundtrip(tmp_path):
    store = FileWatermarkStore(tmp_path / "wm.json")
    assert store.get_watermark() is None
    store.set_watermark(NOW_TS)
    store.set_watermark(NOW_TS + 60)
    assert FileWatermarkStore(tmp_path / "wm.json").get_watermark() == NOW_TS + 60
    assert not (tmp_path / "wm.json.tmp").exists()


def test_watermark_store_for_settings(tmp_path):
    assert isinstance(watermark_store_for(Settings()), InMemoryWatermarkStore)
    store = watermark_store_for(Settings(reconcile_watermark_path=tmp_path / "wm.json"))
    assert isinstance(store, FileWatermarkStore)
    assert store.path == tmp_path / "wm.json"


def test_lock_registry_drains_between_ticks(runner, report_repo, result_sink):
    for tick in range(3):
        base = NOW_TS + tick * 30 * MINUTE - 75 * MINUTE
        for i in range(50):
            submitted = base + i * 10 - 45 * MINUTE
            report_repo.add(make_report(12, submitter_id=f"t{tick}-u{i}", submitted_at=submitted))
        result_sink.publish(CHECKPOINT, make_result(12, computed_at=base - 35 * MINUTE))

    for tick in range(3):
        summary = runner.run_once(NOW_TS + tick * 30 * MINUTE)
        assert summary.evaluated == 50
        assert len(runner.locks) == 0


def test_config_from_settings():
    cfg = ReconciliationRunnerConfig.from_settings(
        Settings(reconcile_interval_min=15, reconcile_lag_min=20, reconcile_max_workers=2)
    )
    assert (cfg.interval_sec, cfg.lag_sec, cfg.max_workers) == (900, 1200, 2)


def test_periodic_loop_survives_failing_tick():
    stop = threading.Event()
    calls: list[int] = []

    class Summary:
        def to_dict(self):
            return {"total": 0}

    class FakeRunner:
        config = ReconciliationRunnerConfig(interval_sec=1)

        def run_once(self):
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("tick failed")
            stop.set()
            return Summary()

    t = threading.Thread(target=run_periodic_reconciliation, args=(FakeRunner(), stop))
    t.start()
    t.join(timeout=10)
    assert not t.is_alive()
    assert len(calls) == 2


def test_periodic_loop_exits_when_stopped_before_start():
    stop = threading.Event()
    stop.set()

    class FakeRunner:
        config = ReconciliationRunnerConfig(interval_sec=1)

        def run_once(self):
            raise AssertionError("should not tick")

    run_periodic_reconciliation(FakeRunner(), stop)
