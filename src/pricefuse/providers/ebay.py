"""eBay provider — sold listings from the Finding API.

Searches completed listings that sold inside the query window, up to
MAX_PAGES pages, and keeps only items that actually sold.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from pricefuse.clients.ebay import ENTRIES_PER_PAGE, EbayFindingClient
from pricefuse.config import Settings
from pricefuse.engine.normalize import classify_condition
from pricefuse.models import PriceQuery, RawObservation, StandardCondition
from pricefuse.providers.base import PriceProvider, parse_timestamp, to_price
from pricefuse.providers.registry import register_provider

logger = logging.getLogger(__name__)

MAX_PAGES = 3

# Standard condition → eBay ConditionID
CONDITION_IDS: dict[StandardCondition, str] = {
    StandardCondition.MINT: "1000",       # New
    StandardCondition.NEAR_MINT: "2750",  # Like New
    StandardCondition.EXCELLENT: "4000",  # Very Good
    StandardCondition.GOOD: "5000",       # Good
    StandardCondition.POOR: "6000",       # Acceptable
}

# eBay display names the generic classifier does not know; first match wins
_EBAY_VOCABULARY: list[tuple[str, StandardCondition]] = [
    ("like new", StandardCondition.NEAR_MINT),
    ("new", StandardCondition.MINT),
    ("acceptable", StandardCondition.POOR),
    ("for parts", StandardCondition.POOR),
]


def map_ebay_condition(display_name: str | None) -> str:
    """Translate an eBay condition display name into a condition label."""
    if not display_name:
        return "Unknown"
    lowered = display_name.lower()
    for keyword, condition in _EBAY_VOCABULARY:
        if keyword in lowered:
            return condition.value
    return display_name


@register_provider
class EbayProvider(PriceProvider):
    """Comparable sales from eBay completed listings (20 requests/window)."""

    name = "eBay"
    default_rate_limit = 20

    @classmethod
    def is_configured(cls, settings: Settings) -> bool:
        return bool(settings.ebay_app_id)

    @classmethod
    def rate_limit_from(cls, settings: Settings) -> int:
        return settings.ebay_rate_limit

    @staticmethod
    def condition_id_for(condition: str | None) -> str | None:
        """eBay ConditionID for a requested condition, or None for no filter."""
        standard = classify_condition(condition)
        return CONDITION_IDS.get(standard) if standard else None

    async def _fetch(self, query: PriceQuery) -> list[RawObservation]:
        end_time_from = datetime.now(timezone.utc) - timedelta(days=query.window_days)
        condition_id = self.condition_id_for(query.condition)
        observations: list[RawObservation] = []

        async with EbayFindingClient(
            app_id=self.settings.ebay_app_id or "",
            timeout=self.settings.http_timeout,
        ) as client:
            for page in range(1, MAX_PAGES + 1):
                payload = await client.find_completed_items(
                    keywords=query.keywords(),
                    end_time_from=end_time_from,
                    condition_id=condition_id,
                    page=page,
                )
                items = self.extract_items(payload)
                observations.extend(self.parse_items(items))

                # Short page means last page
                if len(items) < ENTRIES_PER_PAGE:
                    break

        logger.info("eBay fetched %d observations for %r", len(observations), query.keywords())
        return observations

    @staticmethod
    def extract_items(payload: dict[str, Any]) -> list[dict[str, Any]]:
        """Pull the item list out of a findCompletedItems payload."""
        try:
            search_result = payload["findCompletedItemsResponse"][0]["searchResult"][0]
        except (KeyError, IndexError, TypeError):
            logger.warning("eBay response missing searchResult")
            return []
        items = search_result.get("item") or []
        return items if isinstance(items, list) else []

    def parse_items(self, items: list[dict[str, Any]]) -> list[RawObservation]:
        """Parse sold items, skipping malformed ones."""
        observations: list[RawObservation] = []

        for item in items:
            try:
                selling_status = item["sellingStatus"][0]
                if selling_status.get("sellingState", [None])[0] != "EndedWithSales":
                    continue

                price_data = selling_status["currentPrice"][0]
                price = to_price(price_data.get("__value__"))
                if price <= 0:
                    continue

                end_time = (item.get("listingInfo") or [{}])[0].get("endTime", [None])[0]
                condition_name = (
                    (item.get("condition") or [{}])[0].get("conditionDisplayName", [None])[0]
                )
                url = (item.get("viewItemURL") or [None])[0]

                observations.append(RawObservation(
                    source=self.name,
                    price=price,
                    currency=price_data.get("@currencyId", "USD"),
                    condition=map_ebay_condition(condition_name),
                    observed_date=parse_timestamp(end_time),
                    listing_url=url,
                ))
            except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed eBay item: %s", e)
                continue

        return observations
