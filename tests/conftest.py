"""
Pytest fixtures for QueueTrust tests. In-memory collaborators and a fixed clock.
"""

from __future__ import annotations

import pytest

from factories import NOW_TS


@pytest.fixture
def now_ts() -> int:
    return NOW_TS


@pytest.fixture
def report_repo():
    from backend_queuetrust.database import InMemoryReportRepository

    return InMemoryReportRepository()


@pytest.fixture
def reputation_store():
    from backend_queuetrust.database import InMemoryReputationStore

    return InMemoryReputationStore()


@pytest.fixture
def result_sink():
    from backend_queuetrust.database import InMemoryResultSink

    return InMemoryResultSink(cache_ttl_sec=60)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Unset every QueueTrust variable and point .env loading at an empty dir so defaults apply.

    Each variable is set before it is deleted so monkeypatch also removes
    values a test loads from its own .env.
    """
    from backend_queuetrust.config import env

    monkeypatch.setattr(env, "_ENV_PATH", tmp_path / ".env")
    for name in (
        "QUEUETRUST_MAX_REPORTS",
        "RECONCILE_INTERVAL_MIN",
        "RECONCILE_LAG_MIN",
        "RECONCILE_MAX_WORKERS",
        "RESULT_CACHE_TTL_SEC",
        "OFFICIAL_FEED_BASE_URL",
        "OFFICIAL_FEED_API_KEY",
        "OFFICIAL_FEED_TIMEOUT_SEC",
        "OFFICIAL_CACHE_TTL_SEC",
        "MOCK_OFFICIAL_FEED",
        "REPORT_COOLDOWN_MIN",
        "RECONCILE_WATERMARK_PATH",
        "RESULT_HISTORY_RETENTION_MIN",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
