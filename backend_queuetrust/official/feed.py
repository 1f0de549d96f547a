"""
Official wait-time feed adapters.

OfficialFeedClient reads the airport-level "right now" wait from the feed
(GET {base_url}/api/airport/{api_key}/{code}/json), scales PreCheck lanes
to a quarter of the standard lane, and caches per checkpoint. Every failure
(unmapped checkpoint, transport, status, payload) reads as "no reading".

MockOfficialFeed produces plausible time-of-day values for development.
"""

from __future__ import annotations

import random
import threading
import time
from datetime import datetime, tzinfo
from typing import Any, Callable

import httpx

from backend_queuetrust.aggregation.models import OfficialReading
from backend_queuetrust.config import env
from backend_queuetrust.config.settings import Settings
from backend_queuetrust.core.exceptions import OfficialFeedError
from backend_queuetrust.official.mapping import CheckpointMapping, CheckpointMappingCache
from backend_queuetrust.queuetrust_logging import get_logger

logger = get_logger(__name__)

PRECHECK_SCALE = 0.25
PRECHECK_MIN_MINUTES = 2
USER_AGENT = "QueueTrust/0.1"


def scale_for_lane(standard_minutes: int, is_precheck: bool) -> int:
    """PreCheck lanes run at roughly a quarter of the standard wait, never below 2 min."""
    if not is_precheck:
        return standard_minutes
    return max(PRECHECK_MIN_MINUTES, int(standard_minutes * PRECHECK_SCALE + 0.5))


class OfficialFeedClient:
    def __init__(
        self,
        mappings: CheckpointMappingCache,
        api_key: str,
        *,
        base_url: str = env.DEFAULT_OFFICIAL_FEED_BASE_URL,
        timeout_sec: float = env.DEFAULT_OFFICIAL_FEED_TIMEOUT_SEC,
        cache_ttl_sec: int = env.DEFAULT_OFFICIAL_CACHE_TTL_SEC,
        client: httpx.Client | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.mappings = mappings
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._cache_ttl_sec = cache_ttl_sec
        self._client = client or httpx.Client(
            timeout=timeout_sec,
            headers={"User-Agent": USER_AGENT},
        )
        self._owns_client = client is None
        self._clock = clock
        self._lock = threading.Lock()
        self._cache: dict[str, tuple[float, OfficialReading]] = {}

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "OfficialFeedClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _cached(self, checkpoint_id: str) -> OfficialReading | None:
        with self._lock:
            hit = self._cache.get(checkpoint_id)
            if hit is None:
                return None
            expires_at, reading = hit
            if self._clock() >= expires_at:
                del self._cache[checkpoint_id]
                return None
            return reading

    def _fetch_standard_minutes(self, mapping: CheckpointMapping) -> int:
        url = f"{self._base_url}/api/airport/{self._api_key}/{mapping.airport_code}/json"
        try:
            resp = self._client.get(url)
        except httpx.HTTPError as e:
            raise OfficialFeedError("official feed request failed", airport=mapping.airport_code, error=str(e)) from e
        if resp.status_code != 200:
            raise OfficialFeedError(
                "official feed returned non-200",
                airport=mapping.airport_code,
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
            minutes = int(data.get("rightnow") or 0)
        except (ValueError, TypeError, AttributeError) as e:
            raise OfficialFeedError("official feed payload unreadable", airport=mapping.airport_code) from e
        if minutes < 0:
            raise OfficialFeedError("official feed returned negative minutes", airport=mapping.airport_code)
        return minutes

    def fetch_official_reading(
        self,
        checkpoint_id: str,
        now_ts: int | None = None,
    ) -> OfficialReading | None:
        cached = self._cached(checkpoint_id)
        if cached is not None:
            return cached
        mapping = self.mappings.get(checkpoint_id)
        if mapping is None:
            logger.debug("official_feed_unmapped_checkpoint", checkpoint_id=checkpoint_id)
            return None
        try:
            standard = self._fetch_standard_minutes(mapping)
        except OfficialFeedError as e:
            logger.warning("official_feed_unavailable", checkpoint_id=checkpoint_id, **e.details)
            return None
        reading = OfficialReading(
            checkpoint_id=checkpoint_id,
            minutes=scale_for_lane(standard, mapping.is_precheck),
            observed_at=now_ts if now_ts is not None else int(time.time()),
        )
        with self._lock:
            self._cache[checkpoint_id] = (self._clock() + self._cache_ttl_sec, reading)
        return reading


class MockOfficialFeed:
    """
    Time-of-day generator: peaks 05-08h and 16-19h -> 15-49 min,
    nights 23-04h -> 2-9 min, otherwise 8-29 min.
    """

    def __init__(
        self,
        mappings: CheckpointMappingCache | None = None,
        *,
        rng: random.Random | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.mappings = mappings
        self._rng = rng or random.Random()
        self._tz = tz

    def close(self) -> None:
        pass

    def __enter__(self) -> "MockOfficialFeed":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _base_minutes(self, hour: int) -> int:
        if 5 <= hour <= 8 or 16 <= hour <= 19:
            return self._rng.randint(15, 49)
        if hour >= 23 or hour <= 4:
            return self._rng.randint(2, 9)
        return self._rng.randint(8, 29)

    def fetch_official_reading(
        self,
        checkpoint_id: str,
        now_ts: int | None = None,
    ) -> OfficialReading | None:
        now_ts = now_ts if now_ts is not None else int(time.time())
        hour = datetime.fromtimestamp(now_ts, tz=self._tz).hour
        mapping = self.mappings.get(checkpoint_id) if self.mappings is not None else None
        is_precheck = mapping.is_precheck if mapping is not None else False
        return OfficialReading(
            checkpoint_id=checkpoint_id,
            minutes=scale_for_lane(self._base_minutes(hour), is_precheck),
            observed_at=now_ts,
        )


def build_official_source(
    settings: Settings,
    mappings: CheckpointMappingCache,
    *,
    client: httpx.Client | None = None,
) -> OfficialFeedClient | MockOfficialFeed:
    """
    Real client when an API key is configured and mocking is off, else the mock.

    Without an injected client the returned OfficialFeedClient owns an
    httpx.Client: the caller must close() it or use it as a context manager.
    An injected client stays the caller's to close.
    """
    if settings.mock_official_feed or not settings.official_feed_api_key:
        logger.info("official_feed_mock_enabled")
        return MockOfficialFeed(mappings)
    return OfficialFeedClient(
        mappings,
        settings.official_feed_api_key,
        base_url=settings.official_feed_base_url,
        timeout_sec=settings.official_feed_timeout_sec,
        cache_ttl_sec=settings.official_cache_ttl_sec,
        client=client,
    )
