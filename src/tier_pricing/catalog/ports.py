"""
Catalog ports - the read-only interfaces the pricing engine depends on.

The engine never talks to cart or price list services directly; callers
provide objects satisfying these protocols.

Adapters should raise CatalogError when their backing store cannot be
read and PriceNotFound for a missing single price. Pricing propagates any
other exception as-is; progress and savings log it and skip savings.
"""
from typing import Iterable, Protocol

from ..engine.models import PriceList, ProductPrice


class PriceListCatalog(Protocol):
    async def get_active_price_lists(self, org_id: str) -> list[PriceList]:
        """Active price lists of an organization, conditions included."""
        ...


class ProductPriceCatalog(Protocol):
    async def get_price(self, product_id: int, price_list_id: int, org_id: str) -> ProductPrice:
        """Price of one product in one price list. Raises PriceNotFound."""
        ...

    async def get_prices_for_products(self, product_ids: Iterable[int], org_id: str) -> list[ProductPrice]:
        """All current prices (every price list) for a set of products, in one round trip."""
        ...
