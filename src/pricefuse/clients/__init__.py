"""API client layer for PRICEFUSE.

Async HTTP clients, one request/response exchange per call:
- eBay Finding API: completed (sold) listings
- TCGPlayer: catalog search, market pricing
- PriceCharting: current and historical product prices
"""

from pricefuse.clients.base import BaseAsyncClient, APIProviderError
from pricefuse.clients.ebay import EbayFindingClient
from pricefuse.clients.tcgplayer import TCGPlayerClient
from pricefuse.clients.pricecharting import PriceChartingClient

__all__ = [
    "BaseAsyncClient",
    "APIProviderError",
    "EbayFindingClient",
    "TCGPlayerClient",
    "PriceChartingClient",
]
