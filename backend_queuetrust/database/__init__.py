"""
In-memory collaborator implementations.

Report source, reputation store, result sink and watermark stores used by
development runs and tests. Durable backends implement the same methods.
"""

from backend_queuetrust.database.memory import (
    InMemoryReportRepository,
    InMemoryReputationStore,
    InMemoryResultSink,
)
from backend_queuetrust.database.watermark import (
    FileWatermarkStore,
    InMemoryWatermarkStore,
    watermark_store_for,
)

__all__ = [
    "FileWatermarkStore",
    "InMemoryReportRepository",
    "InMemoryReputationStore",
    "InMemoryResultSink",
    "InMemoryWatermarkStore",
    "watermark_store_for",
]
