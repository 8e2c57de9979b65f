"""In-process valuation cache with per-entry TTL."""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from pricefuse.models import ValuationResult


@runtime_checkable
class ValuationCache(Protocol):
    """Cache collaborator: get / put-with-TTL, keyed by caller+item identity."""

    async def get(self, key: str) -> ValuationResult | None:
        ...

    async def put(self, key: str, value: ValuationResult, ttl_seconds: int) -> None:
        ...


@dataclass(frozen=True)
class CacheEntry:
    """One cached valuation snapshot."""

    key: str
    value: ValuationResult
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryValuationCache:
    """Dict-backed cache; expired entries read as a miss and are evicted.

    Every put also drops whatever else has expired, so keys that are
    never read again do not accumulate.

    Args:
        clock: Time source in seconds (default: time.monotonic)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> ValuationResult | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    async def put(self, key: str, value: ValuationResult, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        async with self._lock:
            now = self._clock()
            self._drop_expired(now)
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                expires_at=now + ttl_seconds,
            )

    async def purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            return self._drop_expired(self._clock())

    def _drop_expired(self, now: float) -> int:
        """Caller must hold the lock."""
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def invalidate(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
