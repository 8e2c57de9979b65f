"""PriceCharting API client for current and historical product prices.

API Documentation: https://www.pricecharting.com/api-documentation

Usage:
    async with PriceChartingClient(api_key) as client:
        found = await client.search_products("Charizard Base Set #4")
        history = await client.get_product(found["products"][0]["id"])
"""

from typing import Any

from pricefuse.clients.base import APIProviderError, BaseAsyncClient


class PriceChartingClient(BaseAsyncClient):
    """Async client for the PriceCharting API.

    Args:
        api_key: PriceCharting API token (sent as query param 't')
        timeout: Request timeout in seconds
    """

    def __init__(self, api_key: str, timeout: float = 30.0) -> None:
        super().__init__(base_url="https://www.pricecharting.com/api", timeout=timeout)
        self.api_key = api_key

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
        form_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Override to inject the API token and check the payload status."""
        params = dict(params or {})
        params["t"] = self.api_key
        data = await super()._request(method, endpoint, params, json_data, form_data, headers)

        status = data.get("status") if isinstance(data, dict) else None
        if status != "success":
            raise APIProviderError(f"PriceCharting API returned status: {status}")
        return data

    async def search_products(
        self,
        query: str,
        product_type: str = "pokemon-card",
    ) -> dict[str, Any]:
        """Search products by free text.

        Returns:
            Dict with 'products' list; each product carries id, product-name,
            loose-price, cib-price, new-price, graded-price (USD)
        """
        return await self.get("/products", params={"q": query, "type": product_type})

    async def get_product(self, product_id: str) -> dict[str, Any]:
        """Get one product including its price history.

        Returns:
            Dict with product-name and a 'prices' list of
            {date, loose-price, cib-price, new-price, graded-price}
        """
        return await self.get("/product", params={"id": product_id})
