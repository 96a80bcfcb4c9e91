from decimal import Decimal

import pytest

from tier_pricing.catalog import InMemoryPriceListCatalog
from tier_pricing.engine import TierPricingEngine
from tier_pricing.engine.models import CartSnapshot

from builders import ORG_ID, WHOLESALE_ID, FailingPriceCatalog, fixed_clock, line, price


@pytest.mark.asyncio
async def test_wholesale_cart_reports_savings(engine):
    items = [line(1, 3, price="80.00")]

    info = await engine.savings(items, CartSnapshot(id="cart-1", items=items), ORG_ID)

    assert info.applied_price_list.id == WHOLESALE_ID
    assert info.applied_price_list.name == "Wholesale"
    assert info.savings == Decimal("60")
    assert info.default_price_list_total == Decimal("300")
    assert info.to_dict() == {
        "applied_price_list": {"id": WHOLESALE_ID, "name": "Wholesale", "is_default": False},
        "savings": Decimal("60"),
        "default_price_list_total": Decimal("300"),
    }


@pytest.mark.asyncio
async def test_default_list_reports_nothing(engine):
    info = await engine.savings([line(1, 1)], None, ORG_ID)

    assert info.is_empty
    assert info.to_dict() == {}


@pytest.mark.asyncio
async def test_empty_cart_reports_nothing(engine):
    assert (await engine.savings([], None, ORG_ID)).to_dict() == {}


@pytest.mark.asyncio
async def test_products_without_tier_price_count_at_default(engine):
    info = await engine.savings([line(1, 3), line(2, 2)], None, ORG_ID)

    assert info.applied_price_list.id == WHOLESALE_ID
    assert info.default_price_list_total == Decimal("400")
    assert info.savings == Decimal("60")


@pytest.mark.asyncio
async def test_missing_default_price_reports_nothing(engine):
    info = await engine.savings([line(1, 3), line(9, 1)], None, ORG_ID)
    assert info.is_empty


@pytest.mark.asyncio
async def test_missing_default_list_reports_nothing(product_prices, wholesale):
    engine = TierPricingEngine(InMemoryPriceListCatalog({ORG_ID: [wholesale]}), product_prices, now=fixed_clock)

    assert (await engine.savings([line(1, 3)], None, ORG_ID)).is_empty


@pytest.mark.asyncio
async def test_price_catalog_failure_reports_nothing(price_lists):
    engine = TierPricingEngine(price_lists, FailingPriceCatalog(), now=fixed_clock)

    assert (await engine.savings([line(1, 3)], None, ORG_ID)).is_empty


@pytest.mark.asyncio
async def test_unexpected_adapter_error_reports_nothing(price_lists):
    engine = TierPricingEngine(price_lists, FailingPriceCatalog(ConnectionError("db down")), now=fixed_clock)

    assert (await engine.savings([line(1, 3)], None, ORG_ID)).to_dict() == {}


@pytest.mark.asyncio
async def test_savings_never_negative(engine, product_prices):
    """A tier that is more expensive than the default still reports zero savings."""
    product_prices.add(ORG_ID, price(5, 1, "100.00"))
    product_prices.add(ORG_ID, price(5, WHOLESALE_ID, "120.00"))

    info = await engine.savings([line(5, 3)], None, ORG_ID)

    assert info.applied_price_list.id == WHOLESALE_ID
    assert info.savings == Decimal("0")
