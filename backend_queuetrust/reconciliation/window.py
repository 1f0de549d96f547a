"""
Reconciliation windows over report expiry times.

Windows are half-open [start_ts, end_ts): a report expiring exactly on a
shared boundary belongs to the later window only. Consecutive windows built
with next_window() tile the timeline with no gap and no overlap, which is the
only de-duplication reconciliation relies on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend_queuetrust.core.exceptions import ReconciliationWindowError

SECONDS_PER_MINUTE = 60
DEFAULT_LAG_SEC = 45 * SECONDS_PER_MINUTE
DEFAULT_CADENCE_SEC = 30 * SECONDS_PER_MINUTE


@dataclass(frozen=True)
class ReconciliationWindow:
    start_ts: int
    end_ts: int

    def __post_init__(self) -> None:
        if self.end_ts < self.start_ts:
            raise ReconciliationWindowError(
                "window end precedes start",
                start_ts=self.start_ts,
                end_ts=self.end_ts,
            )

    @property
    def duration_sec(self) -> int:
        return self.end_ts - self.start_ts

    @property
    def is_empty(self) -> bool:
        return self.end_ts == self.start_ts

    def contains(self, ts: int) -> bool:
        return self.start_ts <= ts < self.end_ts

    def to_dict(self) -> dict[str, Any]:
        return {"start_ts": self.start_ts, "end_ts": self.end_ts}


def window_for_run(
    now_ts: int,
    lag_sec: int = DEFAULT_LAG_SEC,
    cadence_sec: int = DEFAULT_CADENCE_SEC,
) -> ReconciliationWindow:
    """
    Window for a run with no predecessor: [now - lag - cadence, now - lag).
    Defaults give "expired between 75 and 45 minutes ago".
    """
    end = now_ts - lag_sec
    return ReconciliationWindow(start_ts=end - cadence_sec, end_ts=end)


def next_window(
    previous: ReconciliationWindow,
    now_ts: int,
    lag_sec: int = DEFAULT_LAG_SEC,
) -> ReconciliationWindow:
    """
    Window continuing from previous.end_ts up to now - lag.

    Late ticks produce a wider window, early ticks a narrower (possibly empty)
    one; the watermark never moves backwards.
    """
    end = max(previous.end_ts, now_ts - lag_sec)
    return ReconciliationWindow(start_ts=previous.end_ts, end_ts=end)
