"""
Reconciliation watermark stores.

The watermark is the end of the last attempted reconciliation window. A
runner reads it before planning a window and writes it after every tick,
so a restarted process continues where the previous one stopped instead
of replaying the default window.

Methods: get_watermark() -> int | None, set_watermark(ts).
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path

from backend_queuetrust.config.settings import Settings
from backend_queuetrust.queuetrust_logging import get_logger

logger = get_logger(__name__)


class InMemoryWatermarkStore:
    """Process-local watermark; lost on restart."""

    def __init__(self, watermark_ts: int | None = None) -> None:
        self._lock = threading.Lock()
        self._watermark_ts = watermark_ts

    def get_watermark(self) -> int | None:
        with self._lock:
            return self._watermark_ts

    def set_watermark(self, ts: int) -> None:
        with self._lock:
            self._watermark_ts = ts


class FileWatermarkStore:
    """
    Watermark persisted as {"watermark_ts": <int>} in a JSON file.

    Writes go to a sibling temp file and are moved into place, so a crash
    mid-write leaves the previous watermark intact.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def get_watermark(self) -> int | None:
        with self._lock:
            if not self.path.is_file():
                return None
            data = json.loads(self.path.read_text(encoding="utf-8"))
        value = data.get("watermark_ts")
        return int(value) if value is not None else None

    def set_watermark(self, ts: int) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps({"watermark_ts": int(ts)}), encoding="utf-8")
            os.replace(tmp, self.path)
        logger.debug("watermark_saved", path=str(self.path), watermark_ts=ts)


def watermark_store_for(settings: Settings) -> InMemoryWatermarkStore | FileWatermarkStore:
    """File store when RECONCILE_WATERMARK_PATH is set, else in memory."""
    if settings.reconcile_watermark_path is None:
        logger.warning("watermark_not_persisted")
        return InMemoryWatermarkStore()
    return FileWatermarkStore(settings.reconcile_watermark_path)
