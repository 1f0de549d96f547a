"""
Official reference feed: checkpoint mapping cache and feed adapters.

The aggregation service calls fetch_official_reading(checkpoint_id) and
treats None or any failure as "no official reading".
"""

from backend_queuetrust.official.feed import (
    MockOfficialFeed,
    OfficialFeedClient,
    build_official_source,
    scale_for_lane,
)
from backend_queuetrust.official.mapping import CheckpointMapping, CheckpointMappingCache

__all__ = [
    "CheckpointMapping",
    "CheckpointMappingCache",
    "MockOfficialFeed",
    "OfficialFeedClient",
    "build_official_source",
    "scale_for_lane",
]
