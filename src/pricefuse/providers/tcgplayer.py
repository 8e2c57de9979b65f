"""TCGPlayer provider — market pricing for catalog matches.

Each priced product contributes its market (or mid) price plus its low
and high prices as separate observations. TCGPlayer has no per-sale
dates, so observations are stamped with the fetch time.
"""

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any

from pricefuse.clients.base import APIProviderError
from pricefuse.clients.tcgplayer import TCGPlayerClient
from pricefuse.config import Settings
from pricefuse.engine.normalize import classify_condition
from pricefuse.models import PriceQuery, RawObservation, StandardCondition
from pricefuse.providers.base import PriceProvider, to_price
from pricefuse.providers.registry import register_provider

logger = logging.getLogger(__name__)

MAX_PRODUCTS = 5
TOKEN_REFRESH_MARGIN = 60.0  # seconds

# Vendor vocabulary; first match wins. Sealed and graded product is
# bucketed with true mint.
_TCG_CONDITIONS: list[tuple[StandardCondition, re.Pattern]] = [
    (StandardCondition.MINT, re.compile(r"sealed|factory|graded")),
    (StandardCondition.NEAR_MINT, re.compile(r"near mint")),
    (StandardCondition.MINT, re.compile(r"mint")),
    (StandardCondition.EXCELLENT, re.compile(r"lightly played|excellent|\blp\b")),
    (StandardCondition.POOR, re.compile(r"heavily played|poor|damaged|\bhp\b")),
    (StandardCondition.GOOD, re.compile(r"moderately played|good|\bmp\b")),
]


def map_tcgplayer_condition(label: str) -> StandardCondition:
    """Map a TCGPlayer condition/sub-type label; 'Normal' etc. read as Near Mint."""
    lowered = label.lower()
    for condition, pattern in _TCG_CONDITIONS:
        if pattern.search(lowered):
            return condition
    return StandardCondition.NEAR_MINT


@register_provider
class TCGPlayerProvider(PriceProvider):
    """Market prices from TCGPlayer (30 requests/window)."""

    name = "TCGPlayer"
    default_rate_limit = 30

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._access_token: str | None = None
        self._token_expiry: float = 0.0

    @classmethod
    def is_configured(cls, settings: Settings) -> bool:
        return settings.tcgplayer_configured

    @classmethod
    def rate_limit_from(cls, settings: Settings) -> int:
        return settings.tcgplayer_rate_limit

    async def _ensure_token(self, client: TCGPlayerClient) -> str:
        """Return a cached bearer token, refreshing it shortly before expiry."""
        if self._access_token and time.monotonic() < self._token_expiry:
            return self._access_token

        data = await client.request_token(
            self.settings.tcgplayer_public_key or "",
            self.settings.tcgplayer_private_key or "",
        )
        try:
            token = data["access_token"]
            expires_in = float(data.get("expires_in", 0))
        except (KeyError, TypeError, ValueError) as e:
            raise APIProviderError(f"TCGPlayer token response malformed: {e}") from e

        self._access_token = token
        self._token_expiry = time.monotonic() + expires_in - TOKEN_REFRESH_MARGIN
        logger.info("TCGPlayer authentication successful")
        return token

    async def _fetch(self, query: PriceQuery) -> list[RawObservation]:
        observations: list[RawObservation] = []

        async with TCGPlayerClient(timeout=self.settings.http_timeout) as client:
            token = await self._ensure_token(client)
            found = await client.search_products(token, query.keywords())
            products = (found.get("results") if isinstance(found, dict) else None) or []

            if not products:
                logger.info("No TCGPlayer products found for %r", query.keywords())
                return []

            for product in products[:MAX_PRODUCTS]:
                try:
                    pricing = await client.get_product_pricing(token, product["productId"])
                except APIProviderError as e:
                    logger.warning(
                        "Failed to get pricing for TCGPlayer product %s: %s",
                        product.get("productId"), e,
                    )
                    continue
                except (KeyError, TypeError) as e:
                    logger.warning("Skipping malformed TCGPlayer product: %s", e)
                    continue
                rows = (pricing.get("results") if isinstance(pricing, dict) else None) or []
                observations.extend(self.parse_pricing(rows, product, query))

        logger.info("TCGPlayer fetched %d observations for %r", len(observations), query.keywords())
        return observations

    def parse_pricing(
        self,
        results: list[dict[str, Any]],
        product: dict[str, Any],
        query: PriceQuery,
        now: datetime | None = None,
    ) -> list[RawObservation]:
        """Turn pricing rows into observations, filtered by requested condition."""
        observed = now or datetime.now(timezone.utc)
        wanted = classify_condition(query.condition)
        url = product.get("url")
        observations: list[RawObservation] = []

        for row in results:
            try:
                label = (
                    row.get("conditionName")
                    or row.get("subTypeName")
                    or query.condition
                    or "Unspecified"
                )
                condition = map_tcgplayer_condition(label)
                if wanted is not None and condition is not wanted:
                    continue

                market = to_price(row.get("marketPrice")) or to_price(row.get("midPrice"))
                low = to_price(row.get("lowPrice"))
                high = to_price(row.get("highPrice"))

                points = [market, low]
                if high != low:
                    points.append(high)

                for price in points:
                    if price > 0:
                        observations.append(RawObservation(
                            source=self.name,
                            price=price,
                            currency="USD",
                            condition=condition.value,
                            observed_date=observed,
                            listing_url=url,
                        ))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed TCGPlayer price row: %s", e)
                continue

        return observations
