"""Orchestrator — cache → providers → normalize → fuse → cache.

State machine per call:
    CacheCheck → hit → Done
               → miss → AvailabilityProbe → ParallelFetch → Normalize
                      → Fuse → CacheWrite (best-effort) → Done

Only two failures cross this boundary: no provider available, and no data
after fetching. Everything else is absorbed, logged and reported through
the event sink.

Usage:
    orchestrator = PricingOrchestrator()
    result = await orchestrator.fetch_valuation(
        PriceQuery(item_name="Charizard", set_name="Base Set", number="4"),
        identity=ValuationIdentity(caller_id="user-1", item_id="card-9"),
    )
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from pricefuse.cache import InMemoryValuationCache, ParquetValuationCache, ValuationCache
from pricefuse.config import Settings, settings as default_settings
from pricefuse.engine import FusionConfig, fuse, normalize
from pricefuse.errors import NoDataAvailableError, NoProvidersAvailableError
from pricefuse.models import PriceQuery, RawObservation, ValuationResult
from pricefuse.observability import (
    CACHE_READ_FAILED,
    CACHE_WRITE_FAILED,
    PROVIDER_FAILED,
    EventSink,
    emit_event,
)
from pricefuse.providers import PriceProvider, build_providers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValuationIdentity:
    """Caller + item identity that scopes a cached valuation."""

    caller_id: str
    item_id: str

    @property
    def cache_key(self) -> str:
        return f"{self.caller_id}:{self.item_id}"


@dataclass(frozen=True)
class CacheWriteFailure:
    """Reported on the cache error channel when a best-effort write fails."""

    key: str
    error: Exception


def build_cache(settings: Settings) -> ValuationCache:
    """Cache backend selected by settings.cache_backend."""
    if settings.cache_backend == "parquet":
        return ParquetValuationCache(base_path=settings.cache_dir)
    return InMemoryValuationCache()


class PricingOrchestrator:
    """Coordinates providers, the fusion engine and the valuation cache.

    Args:
        providers: Provider instances (default: build_providers(settings))
        cache: Valuation cache (default: chosen by settings.cache_backend)
        settings: Settings for TTL and fusion tunables
        fusion_config: Confidence tunables (default: from settings)
        sink: Observability event sink
        on_cache_error: Optional callback for best-effort cache write failures

    Usage:
        orchestrator = PricingOrchestrator(providers=[...], cache=InMemoryValuationCache())
        result = await orchestrator.fetch_valuation(query)
        print(result.value_median, result.confidence)
    """

    def __init__(
        self,
        providers: list[PriceProvider] | None = None,
        cache: ValuationCache | None = None,
        settings: Settings | None = None,
        fusion_config: FusionConfig | None = None,
        sink: EventSink = emit_event,
        on_cache_error: Callable[[CacheWriteFailure], None] | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.providers = list(providers) if providers is not None else build_providers(self.settings)
        self.cache = cache if cache is not None else build_cache(self.settings)
        self.fusion_config = fusion_config or FusionConfig.from_settings(self.settings)
        self._sink = sink
        self._on_cache_error = on_cache_error

    async def fetch_valuation(
        self,
        query: PriceQuery,
        identity: ValuationIdentity | None = None,
        force_refresh: bool = False,
    ) -> ValuationResult:
        """Value one item from all available providers.

        Args:
            query: Item and observation window to value
            identity: Caller+item identity; enables the cache when given
            force_refresh: Skip the cache read (the result is still cached)

        Returns:
            Fused ValuationResult

        Raises:
            NoProvidersAvailableError: Every provider is excluded
            NoDataAvailableError: Providers returned no usable observations
        """
        key = identity.cache_key if identity else None

        # --- CacheCheck ---
        if key and not force_refresh:
            cached = await self._read_cache(key)
            if cached is not None:
                logger.info("Returning cached valuation for %s", key)
                return cached

        logger.info("Fetching valuation from all providers for %r", query.keywords())

        # --- AvailabilityProbe + ParallelFetch ---
        raw = await self.fetch_all_observations(query)

        # --- Normalize ---
        normalized = normalize(raw, sink=self._sink)
        if not normalized:
            raise NoDataAvailableError(
                f"No pricing data available from any source for '{query.keywords()}'",
                query=query,
            )

        # --- Fuse ---
        result = fuse(normalized, query, config=self.fusion_config, sink=self._sink)

        # --- CacheWrite ---
        if key:
            await self._write_cache(key, result)

        logger.info(
            "Valuation computed: median=%.2f n=%d sources=%s confidence=%.3f",
            result.value_median, result.observation_count,
            list(result.sources), result.confidence,
        )
        return result

    async def available_providers(self) -> list[PriceProvider]:
        """Probe every provider concurrently; keep those that accept calls."""
        checks = await asyncio.gather(
            *(provider.is_available() for provider in self.providers),
            return_exceptions=True,
        )

        available: list[PriceProvider] = []
        for provider, check in zip(self.providers, checks):
            if isinstance(check, Exception):
                logger.warning("Availability check failed for %s: %s", provider.name, check)
            elif check:
                available.append(provider)
            else:
                logger.info("Provider %s unavailable (circuit open), excluding", provider.name)
        return available

    async def fetch_all_observations(self, query: PriceQuery) -> list[RawObservation]:
        """Fetch from every available provider concurrently (all-settled).

        Raises:
            NoProvidersAvailableError: If no provider passes the availability probe
            NoDataAvailableError: If the merged result is empty
        """
        available = await self.available_providers()
        if not available:
            logger.error("No pricing providers available")
            raise NoProvidersAvailableError(
                "All pricing providers are unavailable", query=query,
            )

        logger.info(
            "Fetching from %d available providers: %s",
            len(available), [p.name for p in available],
        )

        results = await asyncio.gather(
            *(provider.fetch_comparables(query) for provider in available),
            return_exceptions=True,
        )

        merged: list[RawObservation] = []
        failed: list[str] = []
        for provider, outcome in zip(available, results):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                failed.append(provider.name)
                self._sink(PROVIDER_FAILED, {
                    "provider": provider.name,
                    "query": query.keywords(),
                    "error": str(outcome) or type(outcome).__name__,
                })
                continue
            logger.info("  %s: %d observations", provider.name, len(outcome))
            merged.extend(outcome)

        if failed:
            logger.warning(
                "%d providers failed (%s), %d succeeded",
                len(failed), failed, len(available) - len(failed),
            )

        if not merged:
            raise NoDataAvailableError(
                f"No pricing data available from any source for '{query.keywords()}'",
                query=query,
            )
        return merged

    async def _read_cache(self, key: str) -> ValuationResult | None:
        """Cache read; any failure is a miss."""
        try:
            return await self.cache.get(key)
        except Exception as e:
            self._sink(CACHE_READ_FAILED, {"key": key, "error": str(e)})
            return None

    async def _write_cache(self, key: str, result: ValuationResult) -> CacheWriteFailure | None:
        """Best-effort cache write; failures go to the cache error channel only."""
        ttl = self.settings.cache_ttl_seconds
        try:
            await self.cache.put(key, result, ttl)
        except Exception as e:
            failure = CacheWriteFailure(key=key, error=e)
            self._sink(CACHE_WRITE_FAILED, {"key": key, "ttl_seconds": ttl, "error": str(e)})
            if self._on_cache_error is not None:
                self._on_cache_error(failure)
            return failure
        logger.debug("Valuation cached for %s (ttl=%ds)", key, ttl)
        return None

    async def sources_status(self) -> list[dict[str, Any]]:
        """Availability and breaker snapshot for every configured provider."""
        return [provider.status() for provider in self.providers]
