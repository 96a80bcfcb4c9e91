"""
Condition Evaluator - Decides whether a single price list condition is met.

Used by the price list selector and the progress calculator so that
"is this tier unlocked" is answered the same way everywhere.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from .models import (
    DATE_OPERATORS,
    NUMERIC_OPERATORS,
    AmountValue,
    CartSnapshot,
    Condition,
    CustomerTypeValue,
    DateRangeValue,
    EvaluationContext,
    QuantityValue,
    utc_now,
)

logger = logging.getLogger(__name__)

Number = Union[int, Decimal]


class ConditionEvaluator:
    """
    Evaluates price list conditions against an evaluation context.

    Evaluation never raises: a condition with an unknown type or operator
    is reported as not met and logged, so one malformed condition cannot
    block pricing for the whole organization.
    """

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or utc_now

    def now(self) -> datetime:
        """Current time as seen by this evaluator."""
        return self._now()

    def evaluate(self, condition: Condition, context: EvaluationContext) -> bool:
        """Check one condition, lifecycle window first."""
        now = self._now()

        if not self.is_within_validity(condition, now):
            return False

        value = condition.value
        if isinstance(value, AmountValue):
            return self.evaluate_amount(condition.operator, value, context.total_price)
        if isinstance(value, QuantityValue):
            return self.evaluate_quantity(condition.operator, value, context.total_quantity)
        if isinstance(value, DateRangeValue):
            return self.evaluate_date_range(condition.operator, value, now)
        if isinstance(value, CustomerTypeValue):
            return self.evaluate_customer_type(value, context.cart)

        logger.warning(
            "Unknown condition type: %s for condition ID %s",
            condition.condition_type, condition.id,
        )
        return False

    def all_met(self, conditions: Iterable[Condition], context: EvaluationContext) -> bool:
        """True when every given condition is met (AND semantics)."""
        return all(self.evaluate(condition, context) for condition in conditions)

    @staticmethod
    def is_within_validity(condition: Condition, now: datetime) -> bool:
        """Check the condition's own valid_from/valid_to lifecycle window."""
        if condition.valid_from and now < condition.valid_from:
            return False
        if condition.valid_to and now > condition.valid_to:
            return False
        return True

    def evaluate_amount(self, operator: str, value: AmountValue, total_price: Decimal) -> bool:
        return self._compare(operator, total_price, value.min_amount, value.max_amount, 'amount')

    def evaluate_quantity(self, operator: str, value: QuantityValue, total_quantity: int) -> bool:
        return self._compare(operator, total_quantity, value.min_quantity, value.max_quantity, 'quantity')

    def evaluate_date_range(self, operator: str, value: DateRangeValue, now: datetime) -> bool:
        if operator not in DATE_OPERATORS:
            logger.warning("Unknown operator for date_range condition: %s", operator)
            return False

        if operator == 'between':
            if not value.from_date or not value.to_date:
                return False
            return value.from_date <= now <= value.to_date

        elif operator == 'after':
            if not value.from_date:
                return False
            return now > value.from_date

        # before
        if not value.to_date:
            return False
        return now < value.to_date

    def evaluate_customer_type(self, value: CustomerTypeValue, cart: Optional[CartSnapshot]) -> bool:
        """
        Match the required customer type against the cart's customer attributes.

        Without a customer type on the cart the condition is not met.
        """
        required = value.customer_type
        if not required:
            return False

        actual = cart.customer_attributes.get('customer_type') if cart else None
        if not actual:
            logger.debug("No customer type available on cart, '%s' condition not met", required)
            return False

        return str(actual).strip().lower() == str(required).strip().lower()

    @staticmethod
    def _compare(operator: str, actual: Number, minimum: Number, maximum: Number, kind: str) -> bool:
        """Apply a numeric operator. Single-bound operators compare against the minimum."""
        if operator not in NUMERIC_OPERATORS:
            logger.warning("Unknown operator for %s condition: %s", kind, operator)
            return False

        if operator == 'greater_than':
            return actual > minimum

        elif operator == 'greater_or_equal':
            return actual >= minimum

        elif operator == 'less_than':
            return actual < minimum

        elif operator == 'less_or_equal':
            return actual <= minimum

        elif operator == 'equals':
            return actual == minimum

        # between
        return minimum <= actual <= maximum
