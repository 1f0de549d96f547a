"""
Reputation evaluator: judge one past report against matched ground truth.
"""

from __future__ import annotations

from backend_queuetrust.reputation.models import Verdict

ACCURACY_TOLERANCE_MINUTES = 5


def evaluate_report_accuracy(
    reported_minutes: int,
    ground_truth_minutes: int,
    tolerance_minutes: int = ACCURACY_TOLERANCE_MINUTES,
) -> Verdict:
    """ACCURATE iff |reported - ground truth| <= tolerance (inclusive)."""
    if abs(reported_minutes - ground_truth_minutes) <= tolerance_minutes:
        return Verdict.ACCURATE
    return Verdict.INACCURATE
