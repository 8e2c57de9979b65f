"""Valuation pipeline — cache → providers → normalize → fuse → cache.

Components:
- PricingOrchestrator: main coordinator
- ValuationIdentity: caller+item identity scoping cached results
"""

from pricefuse.pipeline.orchestrator import (
    CacheWriteFailure,
    PricingOrchestrator,
    ValuationIdentity,
    build_cache,
)

__all__ = ["CacheWriteFailure", "PricingOrchestrator", "ValuationIdentity", "build_cache"]
