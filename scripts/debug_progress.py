import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from tier_pricing.config.settings import Settings
from tier_pricing.engine import TierPricingEngine, CartLine, CartSnapshot, EvaluationContext
from tier_pricing.utils.logger import setup_logging

ORG_ID = "demo-org"


async def debug():
    settings = Settings.load(Path(__file__).parent.parent / 'data')
    setup_logging("DEBUG")
    engine = TierPricingEngine.from_settings(settings)

    price_lists = await engine.price_lists.get_active_price_lists(ORG_ID)
    print("Loaded Price Lists:")
    for pl in price_lists:
        print(f"  {pl.id}: {pl.name} (default={pl.is_default}, conditions={len(pl.active_conditions)})")

    # Test Case: 3 x product 1 at Retail = $300, crosses Wholesale threshold
    print("\n--- Evaluating new items ---")
    outcome = await engine.evaluate([CartLine(product_id=1, quantity=3)], None, ORG_ID)
    print(outcome.get_trace_text())
    for item in outcome.processed_items:
        print(f"Product {item.product_id}:")
        print(item.get_trace_text())

    # Existing cart below the threshold
    cart = CartSnapshot(
        id="debug-cart",
        items=[
            CartLine(product_id=1, quantity=1, price=Decimal('100.00')),
            CartLine(product_id=2, quantity=2, price=Decimal('45.00')),
        ],
    )
    print("\n--- Progress toward better price lists ---")
    context = EvaluationContext(total_price=Decimal('190.00'), total_quantity=3, cart=cart)
    for entry in await engine.progress(context, ORG_ID):
        print(f"{entry.price_list_name}: savings={entry.potential_savings} projected={entry.projected_total}")
        for c in entry.conditions:
            print(f"  [{c.condition_type}] {c.progress:.0f}% - {c.message}")

    print("\n--- Savings of the cart ---")
    info = await engine.savings(cart.items, cart, ORG_ID)
    print(info.to_dict() or "Default price list applies, nothing to report")


if __name__ == "__main__":
    asyncio.run(debug())
