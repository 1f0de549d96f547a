"""
Data models for submitter reputation.

TrustProfile is mutated only by the reputation updater (as a new value) and
read by the aggregation service through the reputation store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

NEUTRAL_REPUTATION = 1.0
MIN_REPUTATION = 0.2
MAX_REPUTATION = 5.0


class Verdict(str, Enum):
    """Accuracy of one past report against later ground truth."""

    ACCURATE = "accurate"
    INACCURATE = "inaccurate"


@dataclass(frozen=True)
class TrustProfile:
    """
    Per-submitter reputation.

    reputation_score: in [0.2, 5.0]; 1.0 until the first evaluation.
    total_evaluated / accurate_count: lifetime counters, accurate_count <= total_evaluated.
    """

    submitter_id: str
    reputation_score: float = NEUTRAL_REPUTATION
    total_evaluated: int = 0
    accurate_count: int = 0

    @classmethod
    def neutral(cls, submitter_id: str) -> "TrustProfile":
        """Profile for a submitter with no evaluated reports."""
        return cls(submitter_id=submitter_id)

    @property
    def accuracy_ratio(self) -> float | None:
        if self.total_evaluated == 0:
            return None
        return self.accurate_count / self.total_evaluated

    def to_dict(self) -> dict[str, Any]:
        return {
            "submitter_id": self.submitter_id,
            "reputation_score": self.reputation_score,
            "total_evaluated": self.total_evaluated,
            "accurate_count": self.accurate_count,
        }
