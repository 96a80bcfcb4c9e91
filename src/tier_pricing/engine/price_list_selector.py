"""
Price List Selector - Picks the single price list that applies to a cart.

Priority order:
1. Only active, non-default lists gated by at least one active amount condition compete
2. Candidates are tried from the lowest minimum amount upward
3. The first candidate whose active conditions all pass wins
4. The first candidate that fails ends the search: higher tiers are not tried
5. Otherwise the organization's default list applies
"""
import logging
from decimal import Decimal
from typing import Optional

from .condition_evaluator import ConditionEvaluator
from .models import AMOUNT, DEFAULT_MIN_AMOUNT, AmountValue, EvaluationContext, PriceList
from ..exceptions import DefaultPriceListNotFound

logger = logging.getLogger(__name__)

NO_AMOUNT_THRESHOLD = Decimal('Infinity')


class PriceListSelector:
    """Selects the applicable price list by ascending minimum amount."""

    def __init__(self, evaluator: Optional[ConditionEvaluator] = None):
        self.evaluator = evaluator or ConditionEvaluator()

    @staticmethod
    def find_default(price_lists: list[PriceList]) -> Optional[PriceList]:
        """The organization's active default list, if any."""
        return next((pl for pl in price_lists if pl.is_default and pl.is_active), None)

    @staticmethod
    def min_amount(price_list: PriceList) -> Decimal:
        """
        Lowest min_amount across the list's active amount conditions.

        Lists without an active amount condition return Infinity.
        """
        amounts = [
            c.value.min_amount if isinstance(c.value, AmountValue) else DEFAULT_MIN_AMOUNT
            for c in price_list.active_conditions
            if c.condition_type == AMOUNT
        ]
        return min(amounts) if amounts else NO_AMOUNT_THRESHOLD

    def candidates(self, price_lists: list[PriceList]) -> list[PriceList]:
        """Active non-default lists with an amount condition, in priority order."""
        eligible = [
            pl for pl in price_lists
            if not pl.is_default
            and pl.is_active
            and any(c.condition_type == AMOUNT for c in pl.active_conditions)
        ]
        # sorted() is stable: equal thresholds keep catalog order
        return sorted(eligible, key=self.min_amount)

    def select_applicable(self, context: EvaluationContext, price_lists: list[PriceList]) -> PriceList:
        """Return the applicable price list; never None."""
        default_list = self.find_default(price_lists)
        if default_list is None:
            raise DefaultPriceListNotFound()

        ordered = self.candidates(price_lists)
        logger.debug(
            "Found %d price lists with amount conditions, sorted by min_amount", len(ordered)
        )

        for price_list in ordered:
            if self.evaluator.all_met(price_list.active_conditions, context):
                logger.info(
                    'Price list "%s" (ID: %s) meets all conditions and will be applied',
                    price_list.name, price_list.id,
                )
                return price_list

            # Lower threshold not satisfied: higher tiers are not considered
            logger.debug(
                'Price list "%s" (ID: %s) does not meet conditions, stopping evaluation',
                price_list.name, price_list.id,
            )
            break

        logger.info("No price list meets conditions, using default price list")
        return default_list
