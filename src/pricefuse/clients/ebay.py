"""eBay Finding API client for completed (sold) listings.

API Documentation: https://developer.ebay.com/Devzone/finding/CallRef/findCompletedItems.html

Usage:
    from pricefuse.clients.ebay import EbayFindingClient

    async with EbayFindingClient(app_id) as client:
        page = await client.find_completed_items("Charizard Base Set 4")
"""

from datetime import datetime
from typing import Any

from pricefuse.clients.base import BaseAsyncClient

# Trading card game category
DEFAULT_CATEGORY_ID = "183454"
ENTRIES_PER_PAGE = 100


class EbayFindingClient(BaseAsyncClient):
    """Async client for the eBay Finding API.

    Args:
        app_id: eBay application id (sent as SECURITY-APPNAME)
        timeout: Request timeout in seconds
    """

    def __init__(self, app_id: str, timeout: float = 30.0) -> None:
        super().__init__(
            base_url="https://svcs.ebay.com",
            headers={},  # eBay Finding uses query param for auth, not header
            timeout=timeout,
        )
        self.app_id = app_id

    async def find_completed_items(
        self,
        keywords: str,
        end_time_from: datetime | None = None,
        condition_id: str | None = None,
        page: int = 1,
        category_id: str = DEFAULT_CATEGORY_ID,
        entries_per_page: int = ENTRIES_PER_PAGE,
    ) -> dict[str, Any]:
        """Search sold listings that ended after ``end_time_from``.

        Args:
            keywords: Free-text search keywords
            end_time_from: Earliest listing end time to include
            condition_id: eBay condition id filter (e.g. "1000" for New)
            page: 1-based results page
            category_id: eBay category to search
            entries_per_page: Page size (max 100)

        Returns:
            Raw findCompletedItems JSON payload
        """
        params: dict[str, Any] = {
            "OPERATION-NAME": "findCompletedItems",
            "SERVICE-VERSION": "1.0.0",
            "SECURITY-APPNAME": self.app_id,
            "RESPONSE-DATA-FORMAT": "JSON",
            "REST-PAYLOAD": "",
            "keywords": keywords,
            "categoryId": category_id,
            "itemFilter(0).name": "SoldItemsOnly",
            "itemFilter(0).value": "true",
            "sortOrder": "EndTimeSoonest",
            "paginationInput.entriesPerPage": str(entries_per_page),
            "paginationInput.pageNumber": str(page),
        }
        next_filter = 1
        if end_time_from is not None:
            params[f"itemFilter({next_filter}).name"] = "EndTimeFrom"
            params[f"itemFilter({next_filter}).value"] = end_time_from.strftime(
                "%Y-%m-%dT%H:%M:%S.000Z"
            )
            next_filter += 1
        if condition_id:
            params[f"itemFilter({next_filter}).name"] = "Condition"
            params[f"itemFilter({next_filter}).value"] = condition_id

        return await self.get("/services/search/FindingService/v1", params=params)
