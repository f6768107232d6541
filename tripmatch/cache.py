"""In-process response cache for generated trip lists."""
from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from tripmatch.schemas import PreferenceRequest, TripCandidate

logger = logging.getLogger(__name__)

TTL_TRIP_RESULTS = 60.0  # seconds


def cache_key(request: PreferenceRequest) -> str:
    """Canonical serialization of every request field, with a stable key order."""
    return "trips:" + json.dumps(
        request.model_dump(by_alias=True, mode="json"),
        sort_keys=True,
        separators=(",", ":"),
    )


@dataclass
class CacheEntry:
    created_at: float
    trips: List[TripCandidate]


class ResponseCache:
    """TTL cache keyed by preference set; expiry is checked on read, nothing is swept."""

    def __init__(self, ttl: float = TTL_TRIP_RESULTS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[TripCandidate]]:
        """Return a copy of the cached trips, or ``None`` on a miss or an expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl:
                del self._entries[key]
                logger.debug("Cache entry expired for %s", key)
                return None
            trips = entry.trips
        return [trip.model_copy(deep=True) for trip in trips]

    def put(self, key: str, trips: List[TripCandidate]) -> None:
        frozen = [trip.model_copy(deep=True) for trip in trips]
        with self._lock:
            self._entries[key] = CacheEntry(created_at=self._clock(), trips=frozen)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
