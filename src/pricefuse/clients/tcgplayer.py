"""TCGPlayer API client for catalog search and product pricing.

API Documentation: https://docs.tcgplayer.com/reference

Usage:
    async with TCGPlayerClient() as client:
        token = await client.request_token(public_key, private_key)
        products = await client.search_products(token["access_token"], "Charizard")
"""

from typing import Any

from pricefuse.clients.base import BaseAsyncClient

DEFAULT_CATEGORY_ID = 3


class TCGPlayerClient(BaseAsyncClient):
    """Async client for the TCGPlayer API.

    Authentication is a client-credentials bearer token; the caller owns
    token caching because clients are short-lived.

    Args:
        timeout: Request timeout in seconds
    """

    def __init__(self, timeout: float = 30.0) -> None:
        super().__init__(base_url="https://api.tcgplayer.com", timeout=timeout)

    async def request_token(self, public_key: str, private_key: str) -> dict[str, Any]:
        """Exchange client credentials for a bearer token.

        Returns:
            Dict with access_token, token_type and expires_in (seconds)
        """
        return await self.post(
            "/token",
            form_data={
                "grant_type": "client_credentials",
                "client_id": public_key,
                "client_secret": private_key,
            },
        )

    async def search_products(
        self,
        access_token: str,
        product_name: str,
        category_id: int = DEFAULT_CATEGORY_ID,
        limit: int = 10,
    ) -> dict[str, Any]:
        """Search the catalog by product name.

        Returns:
            Dict with 'results' key containing products
            (productId, name, cleanName, groupId, url)
        """
        return await self.get(
            "/catalog/products",
            params={
                "categoryId": category_id,
                "productName": product_name,
                "limit": limit,
            },
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def get_product_pricing(self, access_token: str, product_id: int) -> dict[str, Any]:
        """Get market pricing for one product.

        Returns:
            Dict with 'results' key; each entry may carry subTypeName,
            conditionName, marketPrice, midPrice, lowPrice, highPrice
        """
        return await self.get(
            f"/pricing/product/{product_id}",
            params={"getExtendedFields": "true"},
            headers={"Authorization": f"Bearer {access_token}"},
        )
