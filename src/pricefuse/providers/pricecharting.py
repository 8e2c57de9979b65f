"""PriceCharting provider — current and historical price-guide values.

Each price column maps to a condition level. For windows longer than the
short-range threshold the product's price history is fetched as well and
points inside the window are merged with the current values.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

from pricefuse.clients.base import APIProviderError
from pricefuse.clients.pricecharting import PriceChartingClient
from pricefuse.config import Settings
from pricefuse.engine.normalize import classify_condition
from pricefuse.models import PriceQuery, RawObservation, StandardCondition
from pricefuse.providers.base import PriceProvider, parse_timestamp, to_price
from pricefuse.providers.registry import register_provider

logger = logging.getLogger(__name__)

MAX_PRODUCTS = 3
PRODUCT_URL = "https://www.pricecharting.com/game/pokemon-card/{slug}"

# Price column → condition; graded copies are bucketed with new/mint
PRICE_COLUMNS: list[tuple[str, StandardCondition]] = [
    ("new-price", StandardCondition.MINT),
    ("graded-price", StandardCondition.MINT),
    ("cib-price", StandardCondition.NEAR_MINT),
    ("loose-price", StandardCondition.GOOD),
]


@register_provider
class PriceChartingProvider(PriceProvider):
    """Price-guide values from PriceCharting (10 requests/window)."""

    name = "PriceCharting"
    default_rate_limit = 10

    @classmethod
    def is_configured(cls, settings: Settings) -> bool:
        return bool(settings.pricecharting_api_key)

    @classmethod
    def rate_limit_from(cls, settings: Settings) -> int:
        return settings.pricecharting_rate_limit

    def wants_history(self, query: PriceQuery) -> bool:
        return query.window_days > self.settings.historical_threshold_days

    async def _fetch(self, query: PriceQuery) -> list[RawObservation]:
        observations: list[RawObservation] = []

        async with PriceChartingClient(
            api_key=self.settings.pricecharting_api_key or "",
            timeout=self.settings.http_timeout,
        ) as client:
            found = await client.search_products(query.keywords(number_prefix="#"))
            products = found.get("products") or []

            if not products:
                logger.info("No PriceCharting products found for %r", query.keywords())
                return []

            for product in products[:MAX_PRODUCTS]:
                if not isinstance(product, dict):
                    continue
                observations.extend(self.extract_current(product, query))

                if self.wants_history(query) and product.get("id"):
                    try:
                        history = await client.get_product(str(product["id"]))
                    except APIProviderError as e:
                        logger.warning(
                            "Failed to get PriceCharting history for %s: %s", product["id"], e,
                        )
                        continue
                    observations.extend(self.parse_history(history, query))

        logger.info(
            "PriceCharting fetched %d observations for %r", len(observations), query.keywords(),
        )
        return observations

    def _points(
        self,
        row: dict[str, Any],
        query: PriceQuery,
        observed: datetime,
        url: str,
    ) -> list[RawObservation]:
        wanted = classify_condition(query.condition)
        points: list[RawObservation] = []
        for column, condition in PRICE_COLUMNS:
            if wanted is not None and condition is not wanted:
                continue
            try:
                price = to_price(row.get(column))
            except (TypeError, ValueError):
                logger.warning("Skipping malformed PriceCharting %s value", column)
                continue
            if price > 0:
                points.append(RawObservation(
                    source=self.name,
                    price=price,
                    currency="USD",
                    condition=condition.value,
                    observed_date=observed,
                    listing_url=url,
                ))
        return points

    @staticmethod
    def product_url(name: str) -> str:
        return PRODUCT_URL.format(slug=quote(name or "", safe=""))

    def extract_current(
        self,
        product: dict[str, Any],
        query: PriceQuery,
        now: datetime | None = None,
    ) -> list[RawObservation]:
        """Observations from a product's current price columns."""
        observed = now or datetime.now(timezone.utc)
        url = self.product_url(str(product.get("product-name", "")))
        return self._points(product, query, observed, url)

    def parse_history(
        self,
        data: dict[str, Any],
        query: PriceQuery,
        now: datetime | None = None,
    ) -> list[RawObservation]:
        """Observations from price-history points inside the query window."""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=query.window_days)
        url = self.product_url(str(data.get("product-name", "")))
        observations: list[RawObservation] = []

        for point in data.get("prices") or []:
            try:
                observed = parse_timestamp(point["date"])
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping PriceCharting history point without valid date: %s", e)
                continue
            if observed < cutoff:
                continue
            observations.extend(self._points(point, query, observed, url))

        return observations
