"""Valuation snapshot caches for PRICEFUSE.

Get / put-with-TTL stores keyed by caller+item identity.
"""

from pricefuse.cache.memory import CacheEntry, InMemoryValuationCache, ValuationCache
from pricefuse.cache.parquet_store import ParquetValuationCache

__all__ = [
    "CacheEntry",
    "InMemoryValuationCache",
    "ParquetValuationCache",
    "ValuationCache",
]
