"""
Tier Pricing Engine - Entry point used by the cart service.

Wires the condition evaluator, price list selector, pricing processor,
progress calculator and savings calculator over one pair of catalogs.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ..catalog.ports import PriceListCatalog, ProductPriceCatalog
from ..config.settings import Settings, get_settings
from .condition_evaluator import ConditionEvaluator
from .models import (
    CartLine,
    CartSnapshot,
    EvaluationContext,
    PriceListProgress,
    PricingOutcome,
    ProductPrice,
    SavingsInfo,
)
from .price_list_selector import PriceListSelector
from .pricing_processor import PricingProcessor
from .progress_calculator import ProgressCalculator
from .savings_calculator import SavingsCalculator

logger = logging.getLogger(__name__)


class TierPricingEngine:
    """
    Tiered price list evaluation for carts.

    Operations:
    1. evaluate: price new cart items and decide the applied price list
    2. progress: what is missing to unlock each better price list
    3. savings: applied price list and savings of an existing cart
    4. recalculate_existing_items: re-price stored lines after a tier change
    """

    def __init__(
        self,
        price_lists: PriceListCatalog,
        product_prices: ProductPriceCatalog,
        now: Optional[Callable[[], datetime]] = None,
        currency_symbol: str = "$",
    ):
        self.price_lists = price_lists
        self.product_prices = product_prices

        self.evaluator = ConditionEvaluator(now=now)
        self.selector = PriceListSelector(self.evaluator)
        self.processor = PricingProcessor(price_lists, product_prices, self.selector)
        self.progress_calculator = ProgressCalculator(
            price_lists, product_prices, self.evaluator, currency_symbol=currency_symbol
        )
        self.savings_calculator = SavingsCalculator(price_lists, product_prices, self.selector)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'TierPricingEngine':
        """Build an engine over the file-backed catalogs of the data directory."""
        from ..catalog.loader import load_catalogs

        settings = settings or get_settings()
        price_lists, product_prices = load_catalogs(settings)
        return cls(price_lists, product_prices, currency_symbol=settings.currency_symbol)

    async def evaluate(
        self,
        new_items: list[CartLine],
        existing_cart: Optional[CartSnapshot],
        org_id: str,
    ) -> PricingOutcome:
        """Price new items; raises NotFoundError when pricing is undecidable."""
        return await self.processor.process(new_items, existing_cart, org_id)

    async def progress(self, context: EvaluationContext, org_id: str) -> list[PriceListProgress]:
        """Progress toward price lists not yet unlocked."""
        return await self.progress_calculator.compute_progress(context, org_id)

    async def savings(
        self,
        items: list[CartLine],
        cart: Optional[CartSnapshot],
        org_id: str,
    ) -> SavingsInfo:
        """Applied price list and savings; empty when nothing to report."""
        return await self.savings_calculator.compute_savings(items, cart, org_id)

    async def recalculate_existing_items(
        self,
        existing_items: Iterable[CartLine],
        price_list_id: int,
        org_id: str,
    ) -> dict[int, Decimal]:
        """New price per product for lines already stored in the cart."""
        return await self.processor.recalculate_existing_items(existing_items, price_list_id, org_id)

    async def get_product_price(self, product_id: int, price_list_id: int, org_id: str) -> ProductPrice:
        """Price of one product in one list; raises PriceNotFound."""
        return await self.product_prices.get_price(product_id, price_list_id, org_id)
