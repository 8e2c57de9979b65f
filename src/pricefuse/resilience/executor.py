"""Resilient execution of one provider fetch operation.

Combines the provider's circuit breaker, sliding-window rate limiter and a
bounded retry loop with exponential backoff. Execution fails soft: when
the breaker refuses the call or every attempt fails, the result is an
empty list and the failure is reported through the event sink.

Call order per invocation:
    breaker check → rate-limit wait → attempt
                  → (backoff → rate-limit wait → attempt) ...

Usage:
    executor = ResilientExecutor(name="eBay", max_requests=20)
    observations = await executor.execute(lambda: client_call(query))
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from pricefuse.config import Settings
from pricefuse.observability import (
    BREAKER_REJECTED,
    RETRIES_EXHAUSTED,
    RETRY_ATTEMPT_FAILED,
    EventSink,
    emit_event,
)
from pricefuse.resilience.breaker import BreakerSnapshot, CircuitBreaker, CircuitState
from pricefuse.resilience.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Retry configuration
_MAX_ATTEMPTS = 3
_BASE_BACKOFF = 1.0  # seconds


class ResilientExecutor:
    """Breaker + rate limiter + retry around a zero-argument async operation.

    One executor belongs to exactly one provider instance; its breaker and
    limiter state are never shared across providers.

    Args:
        name: Provider name used in logs and events
        max_requests: Rate-limit ceiling per window
        window_seconds: Rate-limit window length (default: 60)
        failure_threshold: Consecutive exhausted fetches that open the breaker
        cooldown_seconds: Breaker cooldown before the half-open probe
        max_attempts: Total attempts per execute() call (default: 3)
        base_backoff: Delay after the first failed attempt; doubles each time
        clock: Monotonic time source shared by breaker and limiter
        sleep: Async sleep shared by backoff and limiter waits
        sink: Observability event sink
    """

    def __init__(
        self,
        name: str,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        failure_threshold: int = 5,
        cooldown_seconds: float = 60.0,
        max_attempts: int = _MAX_ATTEMPTS,
        base_backoff: float = _BASE_BACKOFF,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        sink: EventSink = emit_event,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.name = name
        self.max_attempts = max_attempts
        self.base_backoff = base_backoff
        self._sleep = sleep
        self._sink = sink
        self.breaker = CircuitBreaker(
            name=name,
            failure_threshold=failure_threshold,
            cooldown_seconds=cooldown_seconds,
            clock=clock,
            sink=sink,
        )
        self.rate_limiter = SlidingWindowRateLimiter(
            max_requests=max_requests,
            window_seconds=window_seconds,
            name=name,
            clock=clock,
            sleep=sleep,
            sink=sink,
        )

    @classmethod
    def from_settings(
        cls,
        name: str,
        max_requests: int,
        settings: Settings,
        **overrides: Any,
    ) -> "ResilientExecutor":
        """Build an executor from the resilience tunables in Settings."""
        params: dict[str, Any] = {
            "window_seconds": settings.rate_limit_window_seconds,
            "failure_threshold": settings.breaker_failure_threshold,
            "cooldown_seconds": settings.breaker_cooldown_seconds,
            "max_attempts": settings.retry_max_attempts,
            "base_backoff": settings.retry_base_backoff,
        }
        params.update(overrides)
        return cls(name=name, max_requests=max_requests, **params)

    def backoff_for(self, attempt: int) -> float:
        """Delay after failed attempt number ``attempt`` (0-based)."""
        return self.base_backoff * (2 ** attempt)

    def is_available(self) -> bool:
        return self.breaker.is_available()

    def status(self) -> BreakerSnapshot:
        return self.breaker.snapshot()

    async def execute(
        self,
        operation: Callable[[], Awaitable[list[T]]],
        context: dict[str, Any] | None = None,
    ) -> list[T]:
        """Run ``operation`` under breaker, rate limit and retry.

        Args:
            operation: Zero-argument coroutine factory; called once per attempt
            context: Extra fields (e.g. the query) attached to failure events

        Returns:
            The operation's result, or [] when refused or exhausted
        """
        context = context or {}

        admitted = self.breaker.admit()
        if admitted is None:
            self._sink(BREAKER_REJECTED, {"provider": self.name, **context})
            return []

        last_error: Exception | None = None
        try:
            for attempt in range(self.max_attempts):
                # Rate limit before each attempt
                await self.rate_limiter.acquire()

                try:
                    result = await operation()
                except Exception as e:
                    last_error = e
                    self._sink(RETRY_ATTEMPT_FAILED, {
                        "provider": self.name,
                        "attempt": attempt + 1,
                        "max_attempts": self.max_attempts,
                        "error": str(e) or type(e).__name__,
                        **context,
                    })
                    if attempt < self.max_attempts - 1:
                        await self._sleep(self.backoff_for(attempt))
                    continue

                self.breaker.record_success()
                logger.debug(
                    "%s succeeded on attempt %d/%d with %d records",
                    self.name, attempt + 1, self.max_attempts, len(result),
                )
                return list(result)

        except asyncio.CancelledError:
            if admitted is CircuitState.HALF_OPEN:
                self.breaker.release_probe()
            raise

        # Exhausted retries
        self.breaker.record_failure()
        self._sink(RETRIES_EXHAUSTED, {
            "provider": self.name,
            "attempts": self.max_attempts,
            "error": str(last_error) if last_error else "unknown",
            **context,
        })
        return []
