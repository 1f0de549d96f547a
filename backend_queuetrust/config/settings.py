"""
Application settings.

Responsibilities:
- Load configuration from environment variables and .env files (config.env).
- Provide typed settings for the aggregation service, the official feed
  client and the reconciliation runner.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from backend_queuetrust.config import env


@dataclass(frozen=True)
class Settings:
    """Typed snapshot of the environment; build with get_settings()."""

    max_reports: int = env.DEFAULT_MAX_REPORTS
    reconcile_interval_min: int = env.DEFAULT_RECONCILE_INTERVAL_MIN
    reconcile_lag_min: int = env.DEFAULT_RECONCILE_LAG_MIN
    reconcile_max_workers: int = env.DEFAULT_RECONCILE_MAX_WORKERS
    result_cache_ttl_sec: int = env.DEFAULT_RESULT_CACHE_TTL_SEC
    official_feed_base_url: str = env.DEFAULT_OFFICIAL_FEED_BASE_URL
    official_feed_api_key: str | None = None
    official_feed_timeout_sec: float = env.DEFAULT_OFFICIAL_FEED_TIMEOUT_SEC
    official_cache_ttl_sec: int = env.DEFAULT_OFFICIAL_CACHE_TTL_SEC
    mock_official_feed: bool = True
    report_cooldown_min: int = env.DEFAULT_REPORT_COOLDOWN_MIN
    reconcile_watermark_path: Path | None = None
    result_history_retention_min: int = env.DEFAULT_RESULT_HISTORY_RETENTION_MIN

    @property
    def reconcile_interval_sec(self) -> int:
        return self.reconcile_interval_min * 60

    @property
    def reconcile_lag_sec(self) -> int:
        return self.reconcile_lag_min * 60

    @property
    def report_cooldown_sec(self) -> int:
        return self.report_cooldown_min * 60

    @property
    def result_history_retention_sec(self) -> int:
        return self.result_history_retention_min * 60


def get_settings() -> Settings:
    """
    Return the current application settings, read fresh from the environment.

    Raises:
        ConfigError: a variable is set but not parseable or out of range.
    """
    return Settings(
        max_reports=env.get_max_reports(),
        reconcile_interval_min=env.get_reconcile_interval_min(),
        reconcile_lag_min=env.get_reconcile_lag_min(),
        reconcile_max_workers=env.get_reconcile_max_workers(),
        result_cache_ttl_sec=env.get_result_cache_ttl_sec(),
        official_feed_base_url=env.get_official_feed_base_url(),
        official_feed_api_key=env.get_official_feed_api_key(),
        official_feed_timeout_sec=env.get_official_feed_timeout_sec(),
        official_cache_ttl_sec=env.get_official_cache_ttl_sec(),
        mock_official_feed=env.use_mock_official_feed(),
        report_cooldown_min=env.get_report_cooldown_min(),
        reconcile_watermark_path=env.get_reconcile_watermark_path(),
        result_history_retention_min=env.get_result_history_retention_min(),
    )
