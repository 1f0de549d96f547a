# Submitter reputation: accuracy verdicts and bounded score recompute.
# Deterministic; no I/O.

from backend_queuetrust.reputation.evaluator import (
    ACCURACY_TOLERANCE_MINUTES,
    evaluate_report_accuracy,
)
from backend_queuetrust.reputation.models import TrustProfile, Verdict
from backend_queuetrust.reputation.updater import apply_verdict, compute_reputation_score

__all__ = [
    "ACCURACY_TOLERANCE_MINUTES",
    "TrustProfile",
    "Verdict",
    "apply_verdict",
    "compute_reputation_score",
    "evaluate_report_accuracy",
]
