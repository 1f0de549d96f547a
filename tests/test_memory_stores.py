"""
Tests for the in-memory report repository, reputation store and result sink.
"""

from __future__ import annotations

import pytest

from backend_queuetrust.aggregation.models import SourceKind
from backend_queuetrust.database import InMemoryResultSink
from backend_queuetrust.reputation import TrustProfile
from factories import CHECKPOINT, MINUTE, NOW_TS, make_report, make_result


def test_eligible_reports_newest_first_capped(report_repo):
    for i in range(5):
        report_repo.add(make_report(10 + i, submitted_at=NOW_TS - i * MINUTE, report_id=f"e-{i}"))
    rows = report_repo.fetch_eligible_reports(CHECKPOINT, 3, NOW_TS)
    assert [r.id for r in rows] == ["e-0", "e-1", "e-2"]


def test_eligible_until_expiry_inclusive(report_repo):
    r = make_report(10, submitted_at=NOW_TS - 45 * MINUTE)
    report_repo.add(r)
    assert report_repo.fetch_eligible_reports(CHECKPOINT, 10, r.expires_at) == [r]
    assert report_repo.fetch_eligible_reports(CHECKPOINT, 10, r.expires_at + 1) == []


def test_expired_window_half_open(report_repo):
    a = make_report(10, submitted_at=1000, ttl_sec=100)  # expires 1100
    b = make_report(10, submitted_at=1100, ttl_sec=100)  # expires 1200
    report_repo.add(a)
    report_repo.add(b)
    assert report_repo.fetch_expired_reports_in_window(1100, 1200) == [a]
    assert report_repo.fetch_expired_reports_in_window(1200, 1300) == [b]


def test_reputation_store_default_and_set(reputation_store):
    assert reputation_store.get_reputation("ghost") == TrustProfile.neutral("ghost")
    p = TrustProfile("u", reputation_score=2.6, total_evaluated=2, accurate_count=1)
    reputation_store.set_reputation("u", p)
    assert reputation_store.get_reputation("u") == p
    with pytest.raises(ValueError):
        reputation_store.set_reputation("other", p)


def test_sink_cache_ttl_and_invalidate():
    sink = InMemoryResultSink(cache_ttl_sec=0)
    sink.publish(CHECKPOINT, make_result(10, computed_at=NOW_TS))
    assert sink.get_cached(CHECKPOINT) is None

    sink = InMemoryResultSink(cache_ttl_sec=60)
    res = make_result(10, computed_at=NOW_TS)
    sink.publish(CHECKPOINT, res)
    assert sink.get_cached(CHECKPOINT) is res
    sink.invalidate(CHECKPOINT)
    assert sink.get_cached(CHECKPOINT) is None
    assert sink.history(CHECKPOINT) == [res]


def test_ground_truth_candidates_inclusive_and_ordered(result_sink):
    late = make_result(20, computed_at=NOW_TS + 60)
    early = make_result(10, computed_at=NOW_TS)
    outside = make_result(30, computed_at=NOW_TS + 61)
    official = make_result(15, computed_at=NOW_TS + 30, source_kind=SourceKind.OFFICIAL_ONLY)
    for r in (late, outside, official, early):
        result_sink.publish(CHECKPOINT, r)
    rows = result_sink.fetch_candidate_ground_truth(CHECKPOINT, NOW_TS, NOW_TS + 60)
    assert rows == [early, official, late]
    assert result_sink.fetch_candidate_ground_truth("chk-B", NOW_TS, NOW_TS + 60) == []


def test_latest_report_by_submitter_and_checkpoint(report_repo):
    assert report_repo.latest_report_by("amy", CHECKPOINT) is None
    old = make_report(10, submitter_id="amy", submitted_at=NOW_TS - 30 * MINUTE)
    new = make_report(11, submitter_id="amy", submitted_at=NOW_TS)
    elsewhere = make_report(12, submitter_id="amy", checkpoint_id="chk-B", submitted_at=NOW_TS + MINUTE)
    for r in (new, old, elsewhere, make_report(13, submitter_id="ben", submitted_at=NOW_TS + MINUTE)):
        report_repo.add(r)
    assert report_repo.latest_report_by("amy", CHECKPOINT) == new


def test_history_retention_prunes_old_results():
    sink = InMemoryResultSink(history_retention_sec=60 * MINUTE)
    old = make_result(10, computed_at=NOW_TS)
    edge = make_result(11, computed_at=NOW_TS + 30 * MINUTE)
    sink.publish(CHECKPOINT, old)
    sink.publish(CHECKPOINT, edge)
    sink.publish("chk-B", make_result(9, computed_at=NOW_TS + 500 * MINUTE))
    assert sink.history(CHECKPOINT) == [old, edge]

    newest = make_result(12, computed_at=NOW_TS + 90 * MINUTE)
    sink.publish(CHECKPOINT, newest)
    assert sink.history(CHECKPOINT) == [edge, newest]


def test_history_retention_disabled():
    sink = InMemoryResultSink(history_retention_sec=None)
    for i in range(5):
        sink.publish(CHECKPOINT, make_result(10, computed_at=NOW_TS + i * 1000 * MINUTE))
    assert len(sink.history(CHECKPOINT)) == 5
