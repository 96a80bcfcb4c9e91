"""
Progress Calculator - How far a cart is from unlocking better price lists.

Rules:
1. The default price list is never reported (it always applies)
2. Only lists the cart has NOT fully unlocked are reported
3. Each unmet condition says what is missing ("add $50 to unlock a discount")
4. When prices allow it, the projected savings of each list are reported too
"""
import logging
import math
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..catalog.ports import PriceListCatalog, ProductPriceCatalog
from .condition_evaluator import ConditionEvaluator
from .models import (
    AMOUNT,
    QUANTITY,
    AmountValue,
    Condition,
    ConditionProgress,
    CustomerTypeValue,
    DateRangeValue,
    EvaluationContext,
    PriceList,
    PriceListProgress,
    QuantityValue,
)
from .price_list_selector import PriceListSelector
from .price_matrix import PriceMatrix

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
ONE = Decimal('1')
HUNDRED = Decimal('100')


def progress_percentage(current: Decimal, target: Decimal) -> float:
    """current/target as a percentage clamped to [0, 100]. A zero target counts as reached."""
    if target <= 0:
        return 100.0 if current >= 0 else 0.0
    return float(min(HUNDRED, max(ZERO, current / target * HUNDRED)))


def format_amount(amount: Decimal, symbol: str = "$") -> str:
    """Whole-unit money formatting used in progress messages."""
    return f"{symbol}{amount:,.0f}"


def _plural(count: Decimal, word: str) -> str:
    return word if count == 1 else f"{word}s"


class ProgressCalculator:
    """Computes per-condition progress toward every locked price list."""

    def __init__(
        self,
        price_lists: PriceListCatalog,
        product_prices: ProductPriceCatalog,
        evaluator: Optional[ConditionEvaluator] = None,
        currency_symbol: str = "$",
    ):
        self.price_lists = price_lists
        self.product_prices = product_prices
        self.evaluator = evaluator or ConditionEvaluator()
        self.currency_symbol = currency_symbol

    async def compute_progress(self, context: EvaluationContext, org_id: str) -> list[PriceListProgress]:
        """Progress toward each active, non-default list that is still locked."""
        price_lists = await self.price_lists.get_active_price_lists(org_id)
        logger.debug("Evaluating %d price lists for progress calculation", len(price_lists))

        default_list = PriceListSelector.find_default(price_lists)
        if default_list is None:
            logger.warning("Default price list not found for savings calculation")

        matrix, default_total = await self._preload_prices(context, default_list, org_id)

        progress_list = []
        for price_list in price_lists:
            if price_list.is_default or not price_list.is_active:
                continue

            active_conditions = price_list.active_conditions
            if not active_conditions:
                continue

            conditions = [self.condition_progress(c, context) for c in active_conditions]
            if all(c.is_met for c in conditions):
                logger.debug(
                    'Skipping price list "%s" (ID: %s) - all conditions already met',
                    price_list.name, price_list.id,
                )
                continue

            entry = PriceListProgress(
                price_list_id=price_list.id,
                price_list_name=price_list.name,
                conditions=conditions,
                current_total=context.total_price,
            )
            if matrix is not None and default_total is not None:
                self._project_savings(entry, price_list, context, matrix, default_total)
            progress_list.append(entry)

        logger.info(
            "Found %d price lists with unfulfilled conditions to show progress", len(progress_list)
        )
        return progress_list

    async def _preload_prices(
        self,
        context: EvaluationContext,
        default_list: Optional[PriceList],
        org_id: str,
    ) -> tuple[Optional[PriceMatrix], Optional[Decimal]]:
        """One batched price fetch for the cart plus its default-list subtotal."""
        items = context.cart.items
        if not items or default_list is None:
            return None, None

        try:
            prices = await self.product_prices.get_prices_for_products(context.cart.product_ids, org_id)
        except Exception as e:
            logger.warning("Could not pre-load products for savings calculation: %s", e)
            return None, None

        matrix = PriceMatrix(prices)
        default_total = matrix.total(items, default_list.id)
        if default_total is None:
            logger.warning(
                "Could not get default price for every product in price list %s, skipping savings",
                default_list.id,
            )
        logger.debug("Pre-loaded prices for %d products", len(matrix))
        return matrix, default_total

    def _project_savings(
        self,
        entry: PriceListProgress,
        price_list: PriceList,
        context: EvaluationContext,
        matrix: PriceMatrix,
        default_total: Decimal,
    ):
        """Fill projected total and savings; enrich unmet messages when there is a saving."""
        projected_total = matrix.total(context.cart.items, price_list.id)
        if projected_total is None:
            logger.warning(
                'Could not get every product price in price list "%s", skipping its savings',
                price_list.name,
            )
            return

        savings = max(ZERO, default_total - projected_total)
        entry.projected_total = projected_total
        entry.potential_savings = savings
        logger.debug(
            'Price list "%s": default total %s, projected total %s, savings %s',
            price_list.name, default_total, projected_total, savings,
        )

        if savings <= 0:
            return

        formatted = format_amount(savings, self.currency_symbol)
        for progress in entry.conditions:
            if progress.is_met:
                continue
            if progress.condition_type == AMOUNT:
                progress.message = (
                    f"Add {format_amount(progress.remaining, self.currency_symbol)} "
                    f"to get a {formatted} discount"
                )
            elif progress.condition_type == QUANTITY:
                progress.message = (
                    f"Add {progress.remaining} more {_plural(progress.remaining, 'item')} "
                    f"to get a {formatted} discount"
                )

    def condition_progress(self, condition: Condition, context: EvaluationContext) -> ConditionProgress:
        """Progress record for one condition."""
        is_met = self.evaluator.evaluate(condition, context)
        value = condition.value

        if isinstance(value, AmountValue):
            current = context.total_price
            target = value.min_amount
            remaining = max(ZERO, target - current)
            if is_met:
                message = "You already meet the minimum amount"
            else:
                message = f"Add {format_amount(remaining, self.currency_symbol)} to unlock a discount"
            return self._record(condition, is_met, current, target, remaining, AMOUNT, message)

        if isinstance(value, QuantityValue):
            current = Decimal(context.total_quantity)
            target = Decimal(value.min_quantity)
            remaining = max(ZERO, target - current)
            if is_met:
                message = "You already meet the minimum quantity"
            else:
                message = f"Add {remaining} more {_plural(remaining, 'item')} to unlock a discount"
            return self._record(condition, is_met, current, target, remaining, QUANTITY, message)

        if isinstance(value, DateRangeValue):
            return self._date_range_progress(condition, value, is_met, self.evaluator.now())

        if isinstance(value, CustomerTypeValue):
            if is_met:
                message = f"You have access to {value.customer_type} customer prices"
            else:
                message = f"This price list is only for {value.customer_type} customers"
            current = ONE if is_met else ZERO
            return self._record(condition, is_met, current, ONE, ONE - current, 'customer_type', message)

        return ConditionProgress(
            condition_id=condition.id,
            condition_type=condition.condition_type,
            is_met=False,
            progress=0.0,
            current_value=ZERO,
            target_value=ZERO,
            remaining=ZERO,
            unit='',
            message="Unrecognized condition",
        )

    def _date_range_progress(
        self,
        condition: Condition,
        value: DateRangeValue,
        is_met: bool,
        now: datetime,
    ) -> ConditionProgress:
        if is_met:
            if value.to_date:
                message = f"Price list available until {value.to_date:%Y-%m-%d}!"
            else:
                message = "Price list available now!"
            return self._record(condition, True, ONE, ONE, ZERO, 'days', message)

        if value.from_date and now < value.from_date:
            days = math.ceil((value.from_date - now).total_seconds() / 86400)
            message = f"This price list will be available in {days} {_plural(days, 'day')}"
            return self._record(condition, False, ZERO, ONE, Decimal(days), 'days', message, progress=0.0)

        message = "This price list is no longer available"
        return self._record(condition, False, ZERO, ONE, ZERO, 'days', message, progress=0.0)

    @staticmethod
    def _record(
        condition: Condition,
        is_met: bool,
        current: Decimal,
        target: Decimal,
        remaining: Decimal,
        unit: str,
        message: str,
        progress: Optional[float] = None,
    ) -> ConditionProgress:
        return ConditionProgress(
            condition_id=condition.id,
            condition_type=condition.condition_type,
            is_met=is_met,
            progress=progress_percentage(current, target) if progress is None else progress,
            current_value=current,
            target_value=target,
            remaining=remaining,
            unit=unit,
            message=message,
        )
