"""
In-memory catalogs backed by plain dicts.

Used by load_catalogs() for the file-backed setup and by tests.
"""
from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..engine.models import PriceList, ProductPrice, STATUS_ACTIVE, utc_now
from ..exceptions import PriceNotFound


class InMemoryPriceListCatalog:
    """Price lists grouped by organization."""

    def __init__(self, price_lists: Optional[dict[str, list[PriceList]]] = None):
        self._price_lists: dict[str, list[PriceList]] = defaultdict(list)
        for org_id, lists in (price_lists or {}).items():
            self._price_lists[str(org_id)].extend(lists)

    def add(self, org_id: str, price_list: PriceList):
        self._price_lists[str(org_id)].append(price_list)

    async def get_active_price_lists(self, org_id: str) -> list[PriceList]:
        return [pl for pl in self._price_lists.get(str(org_id), []) if pl.status == STATUS_ACTIVE]


class InMemoryProductPriceCatalog:
    """
    Product prices grouped by organization.

    Only prices whose validity window contains the current time are served,
    matching how the product price repository filters on valid_from/valid_to.
    """

    def __init__(
        self,
        prices: Optional[dict[str, list[ProductPrice]]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self._now = now or utc_now
        self._prices: dict[str, list[ProductPrice]] = defaultdict(list)
        for org_id, rows in (prices or {}).items():
            self._prices[str(org_id)].extend(rows)

    def add(self, org_id: str, price: ProductPrice):
        self._prices[str(org_id)].append(price)

    def _current(self, org_id: str) -> list[ProductPrice]:
        moment = self._now()
        return [p for p in self._prices.get(str(org_id), []) if p.is_valid_at(moment)]

    async def get_price(self, product_id: int, price_list_id: int, org_id: str) -> ProductPrice:
        for price in self._current(org_id):
            if price.product_id == product_id and price.price_list_id == price_list_id:
                return price
        raise PriceNotFound(product_id, price_list_id)

    async def get_prices_for_products(self, product_ids: Iterable[int], org_id: str) -> list[ProductPrice]:
        wanted = set(product_ids)
        if not wanted:
            return []
        return [p for p in self._current(org_id) if p.product_id in wanted]
