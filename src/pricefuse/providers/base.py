"""Provider adapter contract.

A provider turns a PriceQuery into RawObservations for one external
source. Every provider owns one ResilientExecutor, so its circuit breaker
and rate-limiter state are private to it. Subclasses implement only the
source-specific part (`_fetch`): building the request, calling the HTTP
client and parsing the response. `_fetch` may raise; the executor retries
and eventually fails soft with an empty list.

Usage:
    @register_provider
    class MySource(PriceProvider):
        name = "MySource"
        default_rate_limit = 15

        async def _fetch(self, query: PriceQuery) -> list[RawObservation]:
            ...
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, ClassVar

from pricefuse.config import Settings, settings as default_settings
from pricefuse.models import PriceQuery, RawObservation
from pricefuse.resilience import ResilientExecutor

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any, default: datetime | None = None) -> datetime:
    """Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Falls back to ``default`` (or now) when the value is missing.

    Raises:
        ValueError: If the value is present but not a valid date
    """
    if value is None or value == "":
        return default or datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_price(value: Any) -> float:
    """Coerce a provider price field to float; missing means 0."""
    if value is None or value == "":
        return 0.0
    return float(value)


class PriceProvider(ABC):
    """Base class for every external price source.

    Args:
        settings: Settings to read credentials and tunables from
        executor: Pre-built executor (tests inject one with a fake clock)
        rate_limit: Override for the provider's requests-per-window ceiling
    """

    name: ClassVar[str]
    default_rate_limit: ClassVar[int] = 30

    def __init__(
        self,
        settings: Settings | None = None,
        executor: ResilientExecutor | None = None,
        rate_limit: int | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.executor = executor or ResilientExecutor.from_settings(
            name=self.name,
            max_requests=rate_limit or self.rate_limit_from(self.settings),
            settings=self.settings,
        )

    @classmethod
    def is_configured(cls, settings: Settings) -> bool:
        """Whether settings carry everything this provider needs."""
        return True

    @classmethod
    def rate_limit_from(cls, settings: Settings) -> int:
        return cls.default_rate_limit

    async def is_available(self) -> bool:
        """False while the provider's circuit breaker refuses calls."""
        return self.executor.is_available()

    async def fetch_comparables(self, query: PriceQuery) -> list[RawObservation]:
        """Fetch comparable observations for ``query``.

        Never raises for provider-side failures: an open breaker or
        exhausted retries yield an empty list.
        """
        return await self.executor.execute(
            lambda: self._fetch(query),
            context={"query": query.keywords(), "window_days": query.window_days},
        )

    @abstractmethod
    async def _fetch(self, query: PriceQuery) -> list[RawObservation]:
        """One attempt against the source. May raise on any failure."""

    def status(self) -> dict[str, Any]:
        """Availability and breaker snapshot for monitoring."""
        snapshot = self.executor.status()
        return {
            "name": self.name,
            "available": self.executor.is_available(),
            "rate_limit": self.executor.rate_limiter.max_requests,
            **snapshot.to_dict(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
