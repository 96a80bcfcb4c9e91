"""
Savings Calculator - Reports the applied price list and savings of a cart without re-pricing it.
"""
import logging
from decimal import Decimal
from typing import Optional

from ..catalog.ports import PriceListCatalog, ProductPriceCatalog
from .models import CartLine, CartSnapshot, EvaluationContext, SavingsInfo
from .price_list_selector import PriceListSelector
from .price_matrix import PriceMatrix

logger = logging.getLogger(__name__)


class SavingsCalculator:
    """
    Read-only twin of the pricing processor's tier decision.

    Display-only: every failure returns an empty SavingsInfo instead of raising.
    """

    def __init__(
        self,
        price_lists: PriceListCatalog,
        product_prices: ProductPriceCatalog,
        selector: Optional[PriceListSelector] = None,
    ):
        self.price_lists = price_lists
        self.product_prices = product_prices
        self.selector = selector or PriceListSelector()

    async def compute_savings(
        self,
        items: list[CartLine],
        cart: Optional[CartSnapshot],
        org_id: str,
    ) -> SavingsInfo:
        """Applied price list, savings and default-list total for the given items."""
        if not items:
            return SavingsInfo()

        price_lists = await self.price_lists.get_active_price_lists(org_id)
        default_list = self.selector.find_default(price_lists)
        if default_list is None:
            logger.warning("Default price list not found")
            return SavingsInfo()

        product_ids = list(dict.fromkeys(item.product_id for item in items))
        try:
            prices = await self.product_prices.get_prices_for_products(product_ids, org_id)
        except Exception as e:
            logger.warning("Error calculating savings info: %s", e)
            return SavingsInfo()
        matrix = PriceMatrix(prices)

        default_total = matrix.total(items, default_list.id)
        if default_total is None:
            logger.warning("Could not get default price for every product, skipping savings")
            return SavingsInfo()

        context = EvaluationContext(
            total_price=default_total,
            total_quantity=sum(item.quantity for item in items),
            cart=cart or CartSnapshot(items=list(items)),
        )
        applied = self.selector.select_applicable(context, price_lists)
        if applied.id == default_list.id:
            return SavingsInfo()

        applied_total = Decimal('0')
        for item in items:
            amount = matrix.get(item.product_id, applied.id)
            if amount is None:
                logger.warning(
                    "No price found for product %s in price list %s, using default price",
                    item.product_id, applied.id,
                )
                amount = matrix.get(item.product_id, default_list.id)
            applied_total += amount * item.quantity

        return SavingsInfo(
            applied_price_list=applied.summary(),
            savings=max(Decimal('0'), default_total - applied_total),
            default_price_list_total=default_total,
        )
