import pytest

from tier_pricing.catalog import InMemoryPriceListCatalog, InMemoryProductPriceCatalog
from tier_pricing.engine import TierPricingEngine
from tier_pricing.engine.condition_evaluator import ConditionEvaluator

from builders import ORG_ID, RETAIL_ID, WHOLESALE_ID, amount_condition, fixed_clock, price, price_list


@pytest.fixture
def evaluator():
    return ConditionEvaluator(now=fixed_clock)


@pytest.fixture
def retail():
    return price_list(RETAIL_ID, "Retail", is_default=True)


@pytest.fixture
def wholesale():
    return price_list(WHOLESALE_ID, "Wholesale", [amount_condition(21, min_amount=250)])


@pytest.fixture
def price_lists(retail, wholesale):
    return InMemoryPriceListCatalog({ORG_ID: [retail, wholesale]})


@pytest.fixture
def product_prices():
    """Product 1 is priced in both lists; product 2 only at Retail."""
    return InMemoryProductPriceCatalog(
        {
            ORG_ID: [
                price(1, RETAIL_ID, "100.00"),
                price(1, WHOLESALE_ID, "80.00"),
                price(2, RETAIL_ID, "50.00"),
            ]
        },
        now=fixed_clock,
    )


@pytest.fixture
def engine(price_lists, product_prices):
    return TierPricingEngine(price_lists, product_prices, now=fixed_clock)
