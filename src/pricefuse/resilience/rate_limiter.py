"""Sliding-window rate limiter for async provider calls.

Caps the number of calls admitted within a trailing time window. When the
window is full the caller waits until the oldest admitted call leaves the
window, then re-checks. Calls are delayed, never dropped.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable

from pricefuse.observability import RATE_LIMIT_WAIT, EventSink, emit_event

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Sliding-window rate limiter for async operations.

    Admission is serialized by an asyncio lock, so concurrent waiters are
    admitted in arrival order and the window never holds more than
    ``max_requests`` timestamps.

    Args:
        max_requests: Maximum calls admitted per window
        window_seconds: Length of the trailing window (default: 60)
        name: Owner name used in events (usually the provider name)
        clock: Monotonic time source in seconds
        sleep: Async sleep used while waiting for the window to drain
        sink: Observability event sink
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        name: str = "",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        sink: EventSink = emit_event,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._sink = sink
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        window_start = now - self.window_seconds
        while self._timestamps and self._timestamps[0] <= window_start:
            self._timestamps.popleft()

    @property
    def in_window(self) -> int:
        """Number of admitted calls still inside the window."""
        self._evict(self._clock())
        return len(self._timestamps)

    async def acquire(self) -> float:
        """Wait for a free slot and claim it.

        Returns:
            Total seconds spent waiting (0.0 when admitted immediately)
        """
        waited = 0.0
        async with self._lock:
            while True:
                now = self._clock()
                self._evict(now)

                if len(self._timestamps) < self.max_requests:
                    self._timestamps.append(now)
                    return waited

                wait_time = max(self._timestamps[0] + self.window_seconds - now, 0.0)
                self._sink(RATE_LIMIT_WAIT, {
                    "provider": self.name,
                    "wait_seconds": round(wait_time, 3),
                    "in_window": len(self._timestamps),
                    "max_requests": self.max_requests,
                })
                await self._sleep(wait_time)
                waited += wait_time
