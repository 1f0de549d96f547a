"""
Checkpoint -> official feed identifier lookup.

Populated only by an explicit sync()/refresh(); lookups never mutate the
table. A failed refresh keeps the previous table in place.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from backend_queuetrust.queuetrust_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CheckpointMapping:
    checkpoint_id: str
    airport_code: str
    """IATA code addressed by the official feed."""
    is_precheck: bool = False


def _coerce(row: CheckpointMapping | Mapping[str, Any]) -> CheckpointMapping | None:
    if isinstance(row, CheckpointMapping):
        return row
    checkpoint_id = str(row.get("checkpoint_id") or "").strip()
    airport_code = str(row.get("airport_code") or "").strip().upper()
    if not checkpoint_id or not airport_code:
        return None
    return CheckpointMapping(
        checkpoint_id=checkpoint_id,
        airport_code=airport_code,
        is_precheck=bool(row.get("is_precheck") or False),
    )


class CheckpointMappingCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._table: dict[str, CheckpointMapping] = {}
        self._synced_at: int | None = None

    @property
    def synced_at(self) -> int | None:
        """Unix time of the last successful sync; None if never synced."""
        return self._synced_at

    def sync(
        self,
        rows: Iterable[CheckpointMapping | Mapping[str, Any]],
        now_ts: int | None = None,
    ) -> int:
        """Replace the whole table with rows; rows without both ids are dropped. Returns the new size."""
        table: dict[str, CheckpointMapping] = {}
        dropped = 0
        for row in rows:
            mapping = _coerce(row)
            if mapping is None:
                dropped += 1
                continue
            table[mapping.checkpoint_id] = mapping
        with self._lock:
            self._table = table
            self._synced_at = now_ts if now_ts is not None else int(time.time())
        logger.info("checkpoint_mappings_synced", count=len(table), dropped=dropped)
        return len(table)

    def refresh(self, loader: Callable[[], Iterable[CheckpointMapping | Mapping[str, Any]]]) -> bool:
        """sync(loader()); on loader failure log, keep the previous table and return False."""
        try:
            rows = list(loader())
        except Exception as e:
            logger.warning("checkpoint_mappings_refresh_failed", error=str(e), kept=len(self))
            return False
        self.sync(rows)
        return True

    def get(self, checkpoint_id: str) -> CheckpointMapping | None:
        with self._lock:
            return self._table.get(checkpoint_id)

    def __contains__(self, checkpoint_id: object) -> bool:
        with self._lock:
            return checkpoint_id in self._table

    def __len__(self) -> int:
        with self._lock:
            return len(self._table)
