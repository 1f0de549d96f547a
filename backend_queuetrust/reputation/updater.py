"""
Reputation updater: fold a verdict into a submitter's lifetime counters.

The score is recomputed from (total_evaluated, accurate_count) every time:

    score = clamp(0.2 + accuracy_ratio * 4.8, 0.2, 5.0), rounded to 2 decimals

so it always matches stored history exactly. A perfect record maps to 5.0,
a fully inaccurate one to 0.2. Callers must apply read-modify-write with no
concurrent writer for the same submitter.
"""

from __future__ import annotations

import math

from backend_queuetrust.reputation.models import (
    MAX_REPUTATION,
    MIN_REPUTATION,
    NEUTRAL_REPUTATION,
    TrustProfile,
    Verdict,
)

REPUTATION_RANGE = MAX_REPUTATION - MIN_REPUTATION


def compute_reputation_score(total_evaluated: int, accurate_count: int) -> float:
    """Score from lifetime counters; NEUTRAL_REPUTATION when nothing was evaluated."""
    if total_evaluated <= 0:
        return NEUTRAL_REPUTATION
    ratio = accurate_count / total_evaluated
    raw = max(MIN_REPUTATION, min(MAX_REPUTATION, MIN_REPUTATION + ratio * REPUTATION_RANGE))
    return math.floor(raw * 100 + 0.5) / 100


def apply_verdict(profile: TrustProfile, verdict: Verdict) -> TrustProfile:
    """Return a new profile with the verdict counted and the score recomputed."""
    total = profile.total_evaluated + 1
    accurate = profile.accurate_count + (1 if verdict is Verdict.ACCURATE else 0)
    return TrustProfile(
        submitter_id=profile.submitter_id,
        reputation_score=compute_reputation_score(total, accurate),
        total_evaluated=total,
        accurate_count=accurate,
    )
