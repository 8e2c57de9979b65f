"""PRICEFUSE — multi-source collectible valuation.

Fetches comparable prices from rate-limited providers (each behind a
circuit breaker, sliding-window rate limiter and retry), normalizes them
and fuses them into a robust valuation with confidence and volatility.
"""

__version__ = "0.1.0"
