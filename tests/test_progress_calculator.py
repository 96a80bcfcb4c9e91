from datetime import timedelta
from decimal import Decimal

import pytest

from tier_pricing.catalog import InMemoryPriceListCatalog
from tier_pricing.engine import ProgressCalculator, TierPricingEngine
from tier_pricing.engine.progress_calculator import format_amount, progress_percentage

from builders import (
    FIXED_NOW,
    ORG_ID,
    WHOLESALE_ID,
    FailingPriceCatalog,
    amount_condition,
    condition,
    context,
    fixed_clock,
    line,
    price,
    price_list,
    quantity_condition,
)


@pytest.fixture
def calculator(price_lists, product_prices, evaluator):
    return ProgressCalculator(price_lists, product_prices, evaluator)


@pytest.mark.parametrize("current,target,expected", [
    ("0", "200", 0.0),
    ("50", "200", 25.0),
    ("200", "200", 100.0),
    ("500", "200", 100.0),
    ("0", "0", 100.0),
])
def test_progress_percentage_is_clamped(current, target, expected):
    assert progress_percentage(Decimal(current), Decimal(target)) == expected


def test_format_amount():
    assert format_amount(Decimal("1500.40")) == "$1,500"
    assert format_amount(Decimal("20"), "€") == "€20"


@pytest.mark.asyncio
async def test_only_default_list_reports_nothing(retail, product_prices):
    engine = TierPricingEngine(InMemoryPriceListCatalog({ORG_ID: [retail]}), product_prices, now=fixed_clock)

    assert await engine.progress(context("100", 1, items=[line(1, 1)]), ORG_ID) == []


@pytest.mark.asyncio
async def test_locked_list_reports_missing_amount_and_savings(engine):
    result = await engine.progress(context("100", 1, items=[line(1, 1)]), ORG_ID)

    assert len(result) == 1, "Only Wholesale is reported, never the default list"
    entry = result[0]
    assert entry.price_list_id == WHOLESALE_ID
    assert entry.current_total == Decimal("100")
    assert entry.projected_total == Decimal("80")
    assert entry.potential_savings == Decimal("20")

    amount = entry.conditions[0]
    assert not amount.is_met
    assert amount.progress == 40.0
    assert amount.remaining == Decimal("150")
    assert amount.unit == "amount"
    assert amount.message == "Add $150 to get a $20 discount"


@pytest.mark.asyncio
async def test_unlocked_lists_are_not_reported(engine):
    assert await engine.progress(context("300", 3, items=[line(1, 3)]), ORG_ID) == []


@pytest.mark.asyncio
async def test_missing_candidate_price_skips_savings_only(engine):
    result = await engine.progress(context("50", 1, items=[line(2, 1)]), ORG_ID)

    entry = result[0]
    assert entry.potential_savings is None
    assert entry.projected_total is None
    assert entry.conditions[0].message == "Add $200 to unlock a discount"


@pytest.mark.asyncio
async def test_missing_default_price_skips_all_savings(engine):
    result = await engine.progress(context("100", 2, items=[line(1, 1), line(9, 1)]), ORG_ID)

    assert len(result) == 1
    assert result[0].potential_savings is None


@pytest.mark.asyncio
async def test_price_catalog_failure_degrades_to_plain_progress(price_lists):
    engine = TierPricingEngine(price_lists, FailingPriceCatalog(), now=fixed_clock)

    result = await engine.progress(context("100", 1, items=[line(1, 1)]), ORG_ID)

    assert len(result) == 1
    assert result[0].potential_savings is None
    assert result[0].conditions[0].progress == 40.0


@pytest.mark.asyncio
async def test_unexpected_adapter_error_degrades_to_plain_progress(price_lists):
    """Connection errors from a price adapter only drop the savings figures."""
    engine = TierPricingEngine(price_lists, FailingPriceCatalog(ConnectionError("db down")), now=fixed_clock)

    result = await engine.progress(context("100", 1, items=[line(1, 1)]), ORG_ID)

    assert len(result) == 1
    assert result[0].potential_savings is None
    assert result[0].conditions[0].message == "Add $150 to unlock a discount"


@pytest.mark.asyncio
async def test_partially_met_list_reports_every_condition(engine, price_lists):
    price_lists.add(ORG_ID, price_list(3, "Bulk", [
        amount_condition(31, min_amount=250),
        quantity_condition(32, min_quantity=10),
    ]))

    result = await engine.progress(context("250", 2), ORG_ID)

    bulk = next(entry for entry in result if entry.price_list_name == "Bulk")
    amount, quantity = bulk.conditions
    assert amount.is_met and amount.progress == 100.0
    assert amount.message == "You already meet the minimum amount"
    assert not quantity.is_met
    assert quantity.progress == 20.0
    assert quantity.remaining == Decimal("8")
    assert quantity.message == "Add 8 more items to unlock a discount"


@pytest.mark.asyncio
async def test_quantity_message_mentions_discount(engine, price_lists, product_prices):
    price_lists.add(ORG_ID, price_list(3, "Bulk", [
        amount_condition(31, min_amount=50),
        quantity_condition(32, min_quantity=2),
    ]))
    product_prices.add(ORG_ID, price(1, 3, "90.00"))

    result = await engine.progress(context("100", 1, items=[line(1, 1)]), ORG_ID)

    bulk = next(entry for entry in result if entry.price_list_name == "Bulk")
    assert bulk.potential_savings == Decimal("10")
    assert bulk.conditions[1].message == "Add 1 more item to get a $10 discount"


@pytest.mark.asyncio
async def test_progress_values_stay_within_bounds(engine, price_lists):
    price_lists.add(ORG_ID, price_list(3, "Bulk", [
        amount_condition(31, min_amount=0, operator="greater_than"),
        quantity_condition(32, min_quantity=1000),
    ]))

    for total, quantity in [("0", 0), ("10", 1), ("999999", 999)]:
        for entry in await engine.progress(context(total, quantity), ORG_ID):
            for progress in entry.conditions:
                assert 0.0 <= progress.progress <= 100.0
                assert progress.remaining >= 0


def test_date_range_messages(calculator):
    available = condition(1, "date_range", "between", from_date="2026-05-01", to_date="2026-07-01")
    upcoming = condition(2, "date_range", "after", from_date=FIXED_NOW + timedelta(days=10))
    expired = condition(3, "date_range", "before", to_date=FIXED_NOW - timedelta(days=1))

    assert calculator.condition_progress(available, context("0")).message == "Price list available until 2026-07-01!"

    pending = calculator.condition_progress(upcoming, context("0"))
    assert not pending.is_met
    assert pending.remaining == Decimal("10")
    assert pending.message == "This price list will be available in 10 days"

    assert calculator.condition_progress(expired, context("0")).message == "This price list is no longer available"


def test_customer_type_progress_is_all_or_nothing(calculator):
    cond = condition(1, "customer_type", "equals", customer_type="distributor")

    met = calculator.condition_progress(cond, context("0", customer_type="distributor"))
    unmet = calculator.condition_progress(cond, context("0"))

    assert met.is_met and met.progress == 100.0
    assert not unmet.is_met and unmet.progress == 0.0
    assert unmet.message == "This price list is only for distributor customers"
