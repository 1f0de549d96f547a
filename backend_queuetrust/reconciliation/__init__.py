# Reputation reconciliation: windowed, exactly-once scoring of expired reports.
# Only component with external side effects (reputation writes).

from backend_queuetrust.reconciliation.engine import (
    ReconciliationConfig,
    ReconciliationSummary,
    ReportOutcome,
    find_ground_truth,
    reconcile_report,
    reconcile_window,
)
from backend_queuetrust.reconciliation.locks import SubmitterLockRegistry
from backend_queuetrust.reconciliation.runner import (
    ReconciliationRunner,
    ReconciliationRunnerConfig,
    run_periodic_reconciliation,
)
from backend_queuetrust.reconciliation.window import (
    ReconciliationWindow,
    next_window,
    window_for_run,
)

__all__ = [
    "ReconciliationConfig",
    "ReconciliationRunner",
    "ReconciliationRunnerConfig",
    "ReconciliationSummary",
    "ReconciliationWindow",
    "ReportOutcome",
    "SubmitterLockRegistry",
    "find_ground_truth",
    "next_window",
    "reconcile_report",
    "reconcile_window",
    "run_periodic_reconciliation",
    "window_for_run",
]
