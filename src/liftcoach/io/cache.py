"""
Versioned, TTL-bound cache entries in the key-value store.

An entry is stored as::

    {"version": 2, "timestamp": "2026-03-01T10:00:00", "logCount": 12, "<field>": ...}

and is a hit only when all three still hold:

- version equals the cache's version (bumped when the producing algorithm changes)
- logCount equals the current number of workout logs (a new workout invalidates)
- the entry is younger than the TTL
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Generic, TypeVar

from ..core.config import (
    IMBALANCE_ALGORITHM_VERSION,
    IMBALANCE_CACHE_TTL_SECONDS,
    INSIGHT_CACHE_TTL_SECONDS,
    INSIGHT_CACHE_VERSION,
)
from ..core.models import ImbalanceReport
from .history_store import IMBALANCE_KEY, INSIGHT_KEY, HistoryStore
from .serializers import ValidationError, dict_to_imbalance, imbalance_to_dict, parse_timestamp

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VersionedCache(Generic[T]):
    """
    Cache for one persisted key.

    Args:
        store: History store providing the key-value backend
        key: Persisted key name (e.g. "imbalanceAnalysis")
        ttl_seconds: Maximum entry age
        version: Current producer version
        field: Name of the payload field in the stored object
        encode: Value -> JSON-compatible payload
        decode: Payload -> value (raise ValidationError when malformed)
        clock: Callable returning the current time
    """

    def __init__(
        self,
        store: HistoryStore,
        key: str,
        ttl_seconds: int,
        version: int,
        field: str = "value",
        encode: Callable[[T], Any] = lambda v: v,
        decode: Callable[[Any], T] = lambda v: v,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self.key = key
        self.ttl_seconds = ttl_seconds
        self.version = version
        self.field = field
        self._encode = encode
        self._decode = decode
        self._clock = clock

    def _parse(self, raw: Any) -> tuple[int, datetime, int, T]:
        if not isinstance(raw, dict):
            raise ValidationError(f"{self.key} entry must be an object")
        try:
            version = int(raw.get("version", 1))
            timestamp = parse_timestamp(raw["timestamp"])
            log_count = int(raw["logCount"])
            payload = raw[self.field]
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed {self.key} entry: {e}") from e
        return version, timestamp, log_count, self._decode(payload)

    def lookup(self, log_count: int) -> T | None:
        """Return the cached value if still valid for log_count, else None."""
        entry = self._store.read_or_clear(self.key, self._parse)
        if entry is None:
            logger.debug("Cache miss for %s: empty", self.key)
            return None
        version, timestamp, cached_count, value = entry
        age = (self._clock() - timestamp).total_seconds()
        if version != self.version:
            logger.debug("Cache miss for %s: version %s != %s", self.key, version, self.version)
            return None
        if cached_count != log_count:
            logger.debug("Cache miss for %s: %d new logs", self.key, log_count - cached_count)
            return None
        if age > self.ttl_seconds or age < 0:
            logger.debug("Cache miss for %s: %.0f s old", self.key, age)
            return None
        logger.debug("Cache hit for %s", self.key)
        return value

    def put(self, value: T, log_count: int) -> None:
        """Store value stamped with the current time, version and log count."""
        self._store.kv.set(
            self.key,
            {
                "version": self.version,
                "timestamp": self._clock().isoformat(),
                "logCount": log_count,
                self.field: self._encode(value),
            },
        )

    def get_or_compute(self, log_count: int, compute_fn: Callable[[], T]) -> T:
        """Return the cached value, or compute, store and return a fresh one."""
        cached = self.lookup(log_count)
        if cached is not None:
            return cached
        value = compute_fn()
        self.put(value, log_count)
        return value

    def invalidate(self) -> None:
        self._store.kv.remove(self.key)


def _decode_imbalances(payload: Any) -> list[ImbalanceReport]:
    if not isinstance(payload, list):
        raise ValidationError("imbalances must be a list")
    return [dict_to_imbalance(item) for item in payload]


def _decode_text(payload: Any) -> str:
    if not isinstance(payload, str) or not payload.strip():
        raise ValidationError("cached insight text must be a non-empty string")
    return payload


def imbalance_cache(
    store: HistoryStore,
    clock: Callable[[], datetime] = datetime.now,
) -> VersionedCache[list[ImbalanceReport]]:
    """Cache for detect_imbalances() results under ``imbalanceAnalysis``."""
    return VersionedCache(
        store,
        IMBALANCE_KEY,
        ttl_seconds=IMBALANCE_CACHE_TTL_SECONDS,
        version=IMBALANCE_ALGORITHM_VERSION,
        field="imbalances",
        encode=lambda reports: [imbalance_to_dict(r) for r in reports],
        decode=_decode_imbalances,
        clock=clock,
    )


def insight_cache(
    store: HistoryStore,
    ttl_seconds: int = INSIGHT_CACHE_TTL_SECONDS,
    clock: Callable[[], datetime] = datetime.now,
) -> VersionedCache[str]:
    """Cache for the daily AI insight text under ``lastCoachInsight``."""
    return VersionedCache(
        store,
        INSIGHT_KEY,
        ttl_seconds=ttl_seconds,
        version=INSIGHT_CACHE_VERSION,
        field="text",
        decode=_decode_text,
        clock=clock,
    )
