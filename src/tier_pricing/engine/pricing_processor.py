"""
Pricing Processor - Prices cart mutations under the applicable price list.

Resolution order for a request:
1. Resolve the organization's default price list (required)
2. Fetch prices for every product involved in one batched call
3. Price new items at the default list (required per item)
4. Aggregate totals over existing lines and new items at default prices
5. Select the applicable price list from the aggregated totals
6. Re-price new items under the selected list, falling back to default prices
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from ..catalog.ports import PriceListCatalog, ProductPriceCatalog
from ..exceptions import DefaultPriceNotFound, DefaultPriceListNotFound
from .models import (
    OPERATION_REMOVE,
    SOURCE_DEFAULT,
    SOURCE_FALLBACK,
    SOURCE_TIER,
    CartLine,
    CartSnapshot,
    EvaluationContext,
    PriceList,
    PricingOutcome,
    ProcessedItem,
)
from .price_list_selector import PriceListSelector
from .price_matrix import PriceMatrix

logger = logging.getLogger(__name__)


def _money(amount: Decimal) -> str:
    return f"${amount:.2f}"


class PricingProcessor:
    """
    Prices new cart items and decides the applied price list.

    Never writes: callers persist processed items and, when
    should_update_all_items is set, re-price the cart's existing lines.
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

    async def resolve_default(self, org_id: str) -> tuple[PriceList, list[PriceList]]:
        """Fetch active price lists and the default among them."""
        price_lists = await self.price_lists.get_active_price_lists(org_id)
        default_list = self.selector.find_default(price_lists)
        if default_list is None:
            raise DefaultPriceListNotFound(org_id)
        return default_list, price_lists

    async def process(
        self,
        new_items: list[CartLine],
        existing_cart: Optional[CartSnapshot],
        org_id: str,
    ) -> PricingOutcome:
        """
        Price new items and pick the applicable price list.

        Args:
            new_items: Lines being added (or removed, via operation="remove")
            existing_cart: Current cart contents; may be None for a new cart
            org_id: Organization owning the price lists

        Returns:
            PricingOutcome with processed items, applied list and update flag

        Raises:
            DefaultPriceListNotFound: organization has no default list
            DefaultPriceNotFound: a new item has no default-list price
        """
        cart = existing_cart or CartSnapshot()
        default_list, price_lists = await self.resolve_default(org_id)

        product_ids = list(dict.fromkeys(
            [item.product_id for item in new_items] + cart.product_ids
        ))
        matrix = PriceMatrix(await self.product_prices.get_prices_for_products(product_ids, org_id))

        processed = [self._price_at_default(item, matrix, default_list) for item in new_items]

        total_price, total_quantity = self._aggregate_totals(processed, cart.items, matrix, default_list)

        outcome = PricingOutcome(
            processed_items=processed,
            applied_price_list=default_list,
            should_update_all_items=False,
            total_price=total_price,
            total_quantity=total_quantity,
        )
        outcome.add_trace("Default List", "Resolved default price list", default_list.name)
        outcome.add_trace(
            "Cart Totals",
            f"{total_quantity} items including {len(cart.items)} existing lines",
            _money(total_price),
        )
        logger.info(
            "Total cart evaluation: %d items, %s (including %d existing items)",
            total_quantity, _money(total_price), len(cart.items),
        )

        context = EvaluationContext(total_price=total_price, total_quantity=total_quantity, cart=cart)
        applied = self.selector.select_applicable(context, price_lists)
        outcome.applied_price_list = applied
        outcome.add_trace("Price List", "Selected applicable price list", applied.name)
        logger.info('Selected price list "%s" (ID: %s)', applied.name, applied.id)

        if applied.id != default_list.id:
            self._reprice(processed, matrix, applied, default_list)
            for item in processed:
                for warning in item.warnings:
                    outcome.add_warning(warning)

            repriced_total = sum((i.extended_price for i in processed), Decimal('0'))
            default_subtotal = sum(
                (matrix.get(i.product_id, default_list.id) * i.quantity for i in processed),
                Decimal('0'),
            )
            logger.info(
                'Prices updated with price list "%s". Savings on new items: %s',
                applied.name, _money(default_subtotal - repriced_total),
            )

        outcome.should_update_all_items = applied.id != default_list.id and len(cart.items) > 0
        return outcome

    def _price_at_default(self, item: CartLine, matrix: PriceMatrix, default_list: PriceList) -> ProcessedItem:
        """Price one new item at the default list; a missing price is fatal."""
        amount = matrix.get(item.product_id, default_list.id)
        if amount is None:
            raise DefaultPriceNotFound(item.product_id, default_list.id)

        line = ProcessedItem(
            product_id=item.product_id,
            quantity=item.quantity,
            price=amount,
            price_list_id=default_list.id,
            source=SOURCE_DEFAULT,
            operation=item.operation,
        )
        line.add_trace("Default Price", f"Using {default_list.name} price", _money(amount))
        return line

    def _aggregate_totals(
        self,
        new_items: list[ProcessedItem],
        existing_items: list[CartLine],
        matrix: PriceMatrix,
        default_list: PriceList,
    ) -> tuple[Decimal, int]:
        """Cart totals at default prices, existing lines included."""
        total_price = Decimal('0')
        total_quantity = 0

        for line in existing_items:
            amount = matrix.get(line.product_id, default_list.id)
            if amount is None:
                logger.warning(
                    "Could not get default price for existing product %s, using current price",
                    line.product_id,
                )
                amount = line.price if line.price is not None else Decimal('0')
            total_price += amount * line.quantity
            total_quantity += line.quantity

        for item in new_items:
            contribution = item.price * item.quantity
            if item.operation == OPERATION_REMOVE:
                total_price -= contribution
                total_quantity -= item.quantity
            else:
                total_price += contribution
                total_quantity += item.quantity

        return max(Decimal('0'), total_price), max(0, total_quantity)

    def _reprice(
        self,
        items: list[ProcessedItem],
        matrix: PriceMatrix,
        applied: PriceList,
        default_list: PriceList,
    ):
        """Move items to the applied list's prices; keep default prices where it has none."""
        for item in items:
            amount = matrix.get(item.product_id, applied.id)
            if amount is None:
                item.source = SOURCE_FALLBACK
                item.add_trace(
                    "Price Resolution",
                    f"No {applied.name} price, keeping {default_list.name} price",
                    _money(item.price),
                )
                item.add_warning(f"Default price fallback used for product {item.product_id}")
                logger.warning(
                    "No price found for product %s in price list %s, using default price",
                    item.product_id, applied.id,
                )
                continue

            item.price = amount
            item.price_list_id = applied.id
            item.source = SOURCE_TIER
            item.add_trace("Price Resolution", f"Using {applied.name} price", _money(amount))

    async def recalculate_existing_items(
        self,
        existing_items: Iterable[CartLine],
        price_list_id: int,
        org_id: str,
    ) -> dict[int, Decimal]:
        """
        New prices for lines already in the cart under a newly applied list.

        Per line: applied list price, else default list price, else the
        line's stored price. Without a default list nothing is re-priced.
        """
        existing_items = list(existing_items)
        prices: dict[int, Decimal] = {}
        if not existing_items:
            return prices

        price_lists = await self.price_lists.get_active_price_lists(org_id)
        default_list = self.selector.find_default(price_lists)
        if default_list is None:
            logger.warning("Default price list not found for recalculation")
            return prices

        product_ids = list(dict.fromkeys(line.product_id for line in existing_items))
        matrix = PriceMatrix(await self.product_prices.get_prices_for_products(product_ids, org_id))

        for line in existing_items:
            amount = matrix.get(line.product_id, price_list_id)
            if amount is None:
                amount = matrix.get(line.product_id, default_list.id)
            if amount is None:
                logger.warning(
                    "No price found for product %s in price list %s, keeping current price",
                    line.product_id, price_list_id,
                )
                if line.price is None:
                    continue
                amount = line.price
            prices[line.product_id] = amount

        return prices
