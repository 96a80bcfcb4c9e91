"""
Price Matrix - productId → priceListId → amount lookup built from one batched fetch.
"""
from decimal import Decimal
from typing import Iterable, Optional

from .models import CartLine, ProductPrice


class PriceMatrix:
    """In-memory price lookup so pricing never round-trips per product."""

    def __init__(self, prices: Iterable[ProductPrice] = ()):
        self._prices: dict[int, dict[int, Decimal]] = {}
        for price in prices:
            self._prices.setdefault(price.product_id, {})[price.price_list_id] = price.amount

    def __len__(self) -> int:
        return len(self._prices)

    def get(self, product_id: int, price_list_id: int) -> Optional[Decimal]:
        """Price of a product in a list, or None when it has none."""
        return self._prices.get(product_id, {}).get(price_list_id)

    def total(self, lines: Iterable[CartLine], price_list_id: int) -> Optional[Decimal]:
        """
        Subtotal of the lines priced entirely in one list.

        Returns None as soon as one product has no price there.
        """
        total = Decimal('0')
        for line in lines:
            amount = self.get(line.product_id, price_list_id)
            if amount is None:
                return None
            total += amount * line.quantity
        return total
