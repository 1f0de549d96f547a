"""
Test that queuetrust_logging can be imported without circular import and the logger works.
"""

from __future__ import annotations

import logging

import pytest
import structlog
import structlog.testing


def test_logging_import():
    """Import get_logger from queuetrust_logging and use the logger."""
    from backend_queuetrust.queuetrust_logging import bind_checkpoint, get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    logger.info("test_message", key="value")
    bind_checkpoint("chk-A").info("test_bound_message")


def test_normalize_event_renames_event():
    from backend_queuetrust.queuetrust_logging.logger import _normalize_event

    out = _normalize_event(None, "info", {"event": "aggregate_published", "sample_size": 3})
    assert out["event_type"] == "aggregate_published"
    assert out["message"] == "aggregate_published"
    assert "event" not in out


@pytest.fixture
def restore_logging():
    from backend_queuetrust.queuetrust_logging import active_log_settings, configure_logging

    previous = active_log_settings()
    yield
    configure_logging(previous, force=True)


def test_log_level_from_dotenv_applies(clean_env, tmp_path, restore_logging):
    from backend_queuetrust.queuetrust_logging import configure_logging, get_logger

    (tmp_path / ".env").write_text("LOG_LEVEL=WARNING\n", encoding="utf-8")
    active = configure_logging(force=True)
    assert active.level == logging.WARNING
    assert active.level_name == "WARNING"
    assert structlog.get_config()["wrapper_class"] is structlog.make_filtering_bound_logger(logging.WARNING)

    with structlog.testing.capture_logs() as logs:
        logger = get_logger("test")
        logger.info("hidden_event")
        logger.warning("shown_event", checkpoint_id="chk-A")
    assert [entry["event"] for entry in logs] == ["shown_event"]


def test_configure_is_idempotent_without_force(restore_logging):
    from backend_queuetrust.queuetrust_logging import LogSettings, configure_logging

    current = configure_logging()
    assert configure_logging(LogSettings(level=logging.DEBUG)) is current
