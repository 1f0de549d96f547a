"""
structlog setup for QueueTrust.

Every record is one JSON object (or a console line when LOG_FORMAT is not
"json") carrying event_type, level, an ISO timestamp, the emitting module
under "logger" and whatever keyword context the caller passed.

Level and format come from config.env, so values in .env apply as well as
process environment. config.env must never import this package.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from backend_queuetrust.config import env


@dataclass(frozen=True)
class LogSettings:
    level: int = logging.INFO
    fmt: str = env.DEFAULT_LOG_FORMAT

    @classmethod
    def from_env(cls) -> "LogSettings":
        return cls(level=env.get_log_level(), fmt=env.get_log_format())

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


_active: LogSettings | None = None


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's "event" key becomes event_type; message mirrors it unless given."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def _renderer(fmt: str) -> Any:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(log_settings: LogSettings | None = None, *, force: bool = False) -> LogSettings:
    """
    Configure structlog and return the settings in effect.

    Runs once on import with LogSettings.from_env(). Later calls are no-ops
    unless force=True, which rebuilds the pipeline for every logger,
    including module-level ones created earlier.
    """
    global _active
    if _active is not None and not force:
        return _active
    log_settings = log_settings or LogSettings.from_env()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _add_timestamp,
            _normalize_event,
            _renderer(log_settings.fmt),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_settings.level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )
    _active = log_settings
    return log_settings


def active_log_settings() -> LogSettings | None:
    return _active


configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Structured logger for a module, with logger=<name> bound.

        logger = get_logger(__name__)
        logger.info("aggregate_published", checkpoint_id=cid, sample_size=4)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_checkpoint(checkpoint_id: str) -> structlog.BoundLogger:
    return get_logger("backend_queuetrust").bind(checkpoint_id=checkpoint_id)
