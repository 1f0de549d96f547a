"""
Structured logging for Backend QueueTrust.

JSON logs with timestamp, event_type and keyword context (checkpoint_id,
submitter_id, counts). Use get_logger() in all modules; call
configure_logging(force=True) to apply new LOG_LEVEL / LOG_FORMAT values.
"""

from backend_queuetrust.queuetrust_logging.logger import (
    LogSettings,
    active_log_settings,
    bind_checkpoint,
    configure_logging,
    get_logger,
)

__all__ = [
    "LogSettings",
    "active_log_settings",
    "bind_checkpoint",
    "configure_logging",
    "get_logger",
]
