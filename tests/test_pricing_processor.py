"""
Cart pricing scenarios against a Retail (default) and Wholesale (>= $250) setup.

Product 1 costs $100 at Retail and $80 at Wholesale.
Product 2 costs $50 at Retail and has no Wholesale price.
"""
from decimal import Decimal

import pytest

from tier_pricing.catalog import InMemoryPriceListCatalog
from tier_pricing.engine import TierPricingEngine
from tier_pricing.engine.models import CartSnapshot
from tier_pricing.exceptions import DefaultPriceListNotFound, DefaultPriceNotFound, PriceNotFound

from builders import ORG_ID, RETAIL_ID, WHOLESALE_ID, fixed_clock, line


@pytest.mark.asyncio
async def test_crossing_threshold_applies_wholesale(engine):
    outcome = await engine.evaluate([line(1, 3)], None, ORG_ID)

    assert outcome.applied_price_list.id == WHOLESALE_ID
    assert outcome.total_price == Decimal("300")
    assert outcome.total_quantity == 3
    assert not outcome.should_update_all_items, "An empty cart has nothing else to re-price"

    item = outcome.processed_items[0]
    assert item.price == Decimal("80")
    assert item.price_list_id == WHOLESALE_ID
    assert item.source == "tier"
    assert outcome.warnings == []


@pytest.mark.asyncio
async def test_below_threshold_keeps_default_prices(engine):
    outcome = await engine.evaluate([line(1, 2)], None, ORG_ID)

    assert outcome.applied_price_list.id == RETAIL_ID
    item = outcome.processed_items[0]
    assert item.price == Decimal("100")
    assert item.source == "default"


@pytest.mark.asyncio
async def test_missing_tier_price_falls_back_to_default(engine):
    outcome = await engine.evaluate([line(1, 3), line(2, 1)], None, ORG_ID)

    assert outcome.applied_price_list.id == WHOLESALE_ID
    assert outcome.total_price == Decimal("350")

    by_product = {i.product_id: i for i in outcome.processed_items}
    assert by_product[1].price == Decimal("80")
    assert by_product[2].price == Decimal("50")
    assert by_product[2].price_list_id == RETAIL_ID
    assert by_product[2].source == "fallback"
    assert "Default price fallback used for product 2" in outcome.warnings


@pytest.mark.asyncio
async def test_existing_lines_count_at_default_prices(engine):
    """Stored line prices are ignored when the product has a default price."""
    cart = CartSnapshot(id="cart-1", items=[line(1, 2, price="1.00")])

    outcome = await engine.evaluate([line(1, 1)], cart, ORG_ID)

    assert outcome.total_price == Decimal("300")
    assert outcome.applied_price_list.id == WHOLESALE_ID
    assert outcome.should_update_all_items


@pytest.mark.asyncio
async def test_existing_line_without_default_price_uses_stored_price(engine):
    cart = CartSnapshot(id="cart-1", items=[line(9, 1, price="200.00")])

    outcome = await engine.evaluate([line(1, 1)], cart, ORG_ID)

    assert outcome.total_price == Decimal("300")
    assert outcome.applied_price_list.id == WHOLESALE_ID


@pytest.mark.asyncio
async def test_existing_line_without_any_price_counts_as_zero(engine):
    cart = CartSnapshot(id="cart-1", items=[line(9, 4)])

    outcome = await engine.evaluate([line(1, 1)], cart, ORG_ID)

    assert outcome.total_price == Decimal("100")
    assert outcome.total_quantity == 5
    assert outcome.applied_price_list.id == RETAIL_ID


@pytest.mark.asyncio
async def test_remove_operation_lowers_totals(engine):
    cart = CartSnapshot(id="cart-1", items=[line(1, 3, price="80.00")])

    outcome = await engine.evaluate([line(1, 1, operation="remove")], cart, ORG_ID)

    assert outcome.total_price == Decimal("200")
    assert outcome.total_quantity == 2
    assert outcome.applied_price_list.id == RETAIL_ID
    assert not outcome.should_update_all_items
    assert outcome.processed_items[0].operation == "remove"


@pytest.mark.asyncio
async def test_totals_never_go_negative(engine):
    outcome = await engine.evaluate([line(1, 5, operation="remove")], None, ORG_ID)

    assert outcome.total_price == Decimal("0")
    assert outcome.total_quantity == 0


@pytest.mark.asyncio
async def test_missing_default_list_is_fatal(product_prices, wholesale):
    engine = TierPricingEngine(
        InMemoryPriceListCatalog({ORG_ID: [wholesale]}), product_prices, now=fixed_clock
    )
    with pytest.raises(DefaultPriceListNotFound) as exc_info:
        await engine.evaluate([line(1, 1)], None, ORG_ID)

    assert ORG_ID in str(exc_info.value)


@pytest.mark.asyncio
async def test_new_item_without_default_price_is_fatal(engine):
    with pytest.raises(DefaultPriceNotFound) as exc_info:
        await engine.evaluate([line(1, 1), line(9, 1)], None, ORG_ID)

    assert exc_info.value.product_id == 9
    assert exc_info.value.price_list_id == RETAIL_ID


@pytest.mark.asyncio
async def test_outcome_trace_explains_the_decision(engine):
    outcome = await engine.evaluate([line(1, 3)], None, ORG_ID)

    text = outcome.get_trace_text()
    assert "• Default List: Resolved default price list = Retail" in text
    assert "• Cart Totals: 3 items including 0 existing lines = $300.00" in text
    assert "• Price List: Selected applicable price list = Wholesale" in text

    item_text = outcome.processed_items[0].get_trace_text()
    assert "→ Default Price: Using Retail price = $100.00" in item_text
    assert "→ Price Resolution: Using Wholesale price = $80.00" in item_text


@pytest.mark.asyncio
async def test_recalculate_existing_items_price_chain(engine):
    """Applied list price, then default price, then the stored price."""
    items = [
        line(1, 2, price="100.00"),
        line(2, 1, price="45.00"),
        line(9, 1, price="7.00"),
        line(10, 1),
    ]

    prices = await engine.recalculate_existing_items(items, WHOLESALE_ID, ORG_ID)

    assert prices == {1: Decimal("80"), 2: Decimal("50"), 9: Decimal("7.00")}


@pytest.mark.asyncio
async def test_recalculate_without_default_list_returns_nothing(product_prices, wholesale):
    engine = TierPricingEngine(
        InMemoryPriceListCatalog({ORG_ID: [wholesale]}), product_prices, now=fixed_clock
    )
    assert await engine.recalculate_existing_items([line(1, 1)], WHOLESALE_ID, ORG_ID) == {}


@pytest.mark.asyncio
async def test_recalculate_empty_cart(engine):
    assert await engine.recalculate_existing_items([], WHOLESALE_ID, ORG_ID) == {}


@pytest.mark.asyncio
async def test_get_product_price(engine):
    price = await engine.get_product_price(1, WHOLESALE_ID, ORG_ID)
    assert price.amount == Decimal("80.00")

    with pytest.raises(PriceNotFound):
        await engine.get_product_price(2, WHOLESALE_ID, ORG_ID)
