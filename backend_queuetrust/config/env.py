"""
Environment variable loading and validation for QueueTrust.

- QUEUETRUST_MAX_REPORTS: cap on reports per aggregation (default: 200)
- RECONCILE_INTERVAL_MIN: reconciliation cadence in minutes (default: 30)
- RECONCILE_LAG_MIN: how long after expiry a report becomes reconcilable (default: 45)
- RECONCILE_MAX_WORKERS: parallel submitter groups per run (default: 4)
- RESULT_CACHE_TTL_SEC: published estimate cache TTL (default: 60)
- OFFICIAL_FEED_BASE_URL / OFFICIAL_FEED_API_KEY: official wait-time feed
- OFFICIAL_FEED_TIMEOUT_SEC: feed request timeout (default: 4)
- OFFICIAL_CACHE_TTL_SEC: official reading cache TTL (default: 300)
- MOCK_OFFICIAL_FEED: use generated official readings (default: on when no API key)
- REPORT_COOLDOWN_MIN: minimum gap between one submitter's reports on a checkpoint (default: 15)
- RECONCILE_WATERMARK_PATH: file persisting the reconciliation watermark (default: in memory)
- RESULT_HISTORY_RETENTION_MIN: how long published aggregates stay queryable (default: 360)
- LOG_LEVEL / LOG_FORMAT: structlog level (default: INFO) and renderer (default: json)
- Loads .env from project root when available.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from backend_queuetrust.core.exceptions import ConfigError

_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_MAX_REPORTS = 200
DEFAULT_RECONCILE_INTERVAL_MIN = 30
DEFAULT_RECONCILE_LAG_MIN = 45
DEFAULT_RECONCILE_MAX_WORKERS = 4
DEFAULT_RESULT_CACHE_TTL_SEC = 60
DEFAULT_OFFICIAL_FEED_BASE_URL = "https://www.tsawaittimes.com"
DEFAULT_OFFICIAL_FEED_TIMEOUT_SEC = 4.0
DEFAULT_OFFICIAL_CACHE_TTL_SEC = 300
DEFAULT_REPORT_COOLDOWN_MIN = 15
DEFAULT_RESULT_HISTORY_RETENTION_MIN = 360
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"

_TRUTHY = ("1", "true", "yes", "on")


def load_queuetrust_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides set variables."""
    from dotenv import load_dotenv

    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def _read_int(name: str, default: int, minimum: int = 0) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer", name=name, value=raw) from e
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}", name=name, value=value)
    return value


def _read_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number", name=name, value=raw) from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive", name=name, value=value)
    return value


def get_max_reports() -> int:
    load_queuetrust_env()
    return _read_int("QUEUETRUST_MAX_REPORTS", DEFAULT_MAX_REPORTS, minimum=1)


def get_reconcile_interval_min() -> int:
    """Reconciliation cadence in minutes; also the width of each window."""
    load_queuetrust_env()
    return _read_int("RECONCILE_INTERVAL_MIN", DEFAULT_RECONCILE_INTERVAL_MIN, minimum=1)


def get_reconcile_lag_min() -> int:
    """Minutes between a report's expiry and the end of the window that picks it up."""
    load_queuetrust_env()
    return _read_int("RECONCILE_LAG_MIN", DEFAULT_RECONCILE_LAG_MIN)


def get_reconcile_max_workers() -> int:
    load_queuetrust_env()
    return _read_int("RECONCILE_MAX_WORKERS", DEFAULT_RECONCILE_MAX_WORKERS, minimum=1)


def get_result_cache_ttl_sec() -> int:
    load_queuetrust_env()
    return _read_int("RESULT_CACHE_TTL_SEC", DEFAULT_RESULT_CACHE_TTL_SEC)


def get_official_feed_base_url() -> str:
    load_queuetrust_env()
    url = (os.getenv("OFFICIAL_FEED_BASE_URL") or "").strip()
    return (url or DEFAULT_OFFICIAL_FEED_BASE_URL).rstrip("/")


def get_official_feed_api_key() -> str | None:
    load_queuetrust_env()
    key = (os.getenv("OFFICIAL_FEED_API_KEY") or "").strip()
    return key or None


def get_official_feed_timeout_sec() -> float:
    load_queuetrust_env()
    return _read_float("OFFICIAL_FEED_TIMEOUT_SEC", DEFAULT_OFFICIAL_FEED_TIMEOUT_SEC)


def get_official_cache_ttl_sec() -> int:
    load_queuetrust_env()
    return _read_int("OFFICIAL_CACHE_TTL_SEC", DEFAULT_OFFICIAL_CACHE_TTL_SEC)


def use_mock_official_feed() -> bool:
    """
    Return True when generated official readings should be used.
    Explicit MOCK_OFFICIAL_FEED wins; otherwise mock whenever no API key is set.
    """
    load_queuetrust_env()
    raw = (os.getenv("MOCK_OFFICIAL_FEED") or "").strip().lower()
    if raw:
        return raw in _TRUTHY
    return get_official_feed_api_key() is None


def get_report_cooldown_min() -> int:
    """Minutes a submitter must wait before reporting the same checkpoint again; 0 disables."""
    load_queuetrust_env()
    return _read_int("REPORT_COOLDOWN_MIN", DEFAULT_REPORT_COOLDOWN_MIN)


def get_reconcile_watermark_path() -> Path | None:
    load_queuetrust_env()
    raw = (os.getenv("RECONCILE_WATERMARK_PATH") or "").strip()
    return Path(raw) if raw else None


def get_result_history_retention_min() -> int:
    load_queuetrust_env()
    return _read_int("RESULT_HISTORY_RETENTION_MIN", DEFAULT_RESULT_HISTORY_RETENTION_MIN, minimum=1)


def get_log_level() -> int:
    """Numeric logging level from LOG_LEVEL; unknown names fall back to INFO."""
    load_queuetrust_env()
    name = (os.getenv("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_log_format() -> str:
    load_queuetrust_env()
    return (os.getenv("LOG_FORMAT") or DEFAULT_LOG_FORMAT).strip().lower()
