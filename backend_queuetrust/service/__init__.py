"""
Aggregation service layer: collaborator wiring for per-checkpoint estimates.
"""

from backend_queuetrust.service.aggregator import (
    WaitTimeService,
    aggregate_checkpoint,
    fetch_official_safely,
    join_reputation,
)

__all__ = [
    "WaitTimeService",
    "aggregate_checkpoint",
    "fetch_official_safely",
    "join_reputation",
]
