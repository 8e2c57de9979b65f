"""Resilience layer shared by every provider integration.

- CircuitBreaker: stops calling a failing provider for a cooldown period
- SlidingWindowRateLimiter: delays calls beyond N per trailing window
- ResilientExecutor: breaker + limiter + retry with exponential backoff
"""

from pricefuse.resilience.breaker import BreakerSnapshot, CircuitBreaker, CircuitState
from pricefuse.resilience.executor import ResilientExecutor
from pricefuse.resilience.rate_limiter import SlidingWindowRateLimiter

__all__ = [
    "BreakerSnapshot",
    "CircuitBreaker",
    "CircuitState",
    "ResilientExecutor",
    "SlidingWindowRateLimiter",
]
