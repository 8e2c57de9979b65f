"""Provider adapters for PRICEFUSE.

One adapter per external price source, each guarded by its own
ResilientExecutor:
- eBay: sold listings
- TCGPlayer: market prices
- PriceCharting: price-guide values and history

Importing this package registers the built-in providers.
"""

from pricefuse.providers.base import PriceProvider
from pricefuse.providers.registry import (
    build_providers,
    register_provider,
    registered_providers,
    unregister_provider,
)
from pricefuse.providers.ebay import EbayProvider
from pricefuse.providers.tcgplayer import TCGPlayerProvider
from pricefuse.providers.pricecharting import PriceChartingProvider

__all__ = [
    "PriceProvider",
    "build_providers",
    "register_provider",
    "registered_providers",
    "unregister_provider",
    "EbayProvider",
    "TCGPlayerProvider",
    "PriceChartingProvider",
]
