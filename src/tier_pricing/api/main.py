from decimal import Decimal
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..config.settings import get_settings
from ..engine import TierPricingEngine
from ..engine.models import CartLine, CartSnapshot, EvaluationContext
from ..exceptions import CatalogError, NotFoundError
from ..utils.logger import setup_logging
from .state import get_engine, reload_engine

setup_logging(get_settings().log_level)

app = FastAPI(
    title="Tier Pricing API",
    description="Price list selection, progress and savings for quotation carts",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for API
class CartLineIn(BaseModel):
    """A cart line or cart mutation line."""
    product_id: int
    quantity: int
    price: Optional[Decimal] = None
    operation: str = "add"


class CartIn(BaseModel):
    """A cart as known by the caller."""
    id: Optional[str] = None
    items: list[CartLineIn] = []
    customer_attributes: dict[str, Any] = {}


class EvaluateRequest(BaseModel):
    """Request model for pricing new cart items."""
    items: list[CartLineIn]
    cart: Optional[CartIn] = None


class ProgressRequest(BaseModel):
    """Request model for progress toward better price lists."""
    cart: CartIn
    total_price: Optional[Decimal] = None
    total_quantity: Optional[int] = None


class SavingsRequest(BaseModel):
    """Request model for savings of an existing cart."""
    cart: CartIn


class RecalculateRequest(BaseModel):
    """Request model for re-pricing stored cart lines."""
    price_list_id: int
    items: list[CartLineIn]


def _to_line(line: CartLineIn) -> CartLine:
    return CartLine.from_dict(line.model_dump())


def _to_cart(cart: Optional[CartIn]) -> Optional[CartSnapshot]:
    if cart is None:
        return None
    return CartSnapshot.from_dict(cart.model_dump())


def _http_error(e: Exception) -> HTTPException:
    """Map engine errors to HTTP errors: missing data is 404, unreadable catalogs 503."""
    status_code = 404 if isinstance(e, NotFoundError) else 503
    return HTTPException(status_code=status_code, detail=str(e))


@app.get("/")
async def root():
    return {"status": "online", "message": "Tier Pricing API Active"}


@app.post("/orgs/{org_id}/pricing/evaluate")
async def evaluate(org_id: str, req: EvaluateRequest, engine: TierPricingEngine = Depends(get_engine)):
    try:
        outcome = await engine.evaluate([_to_line(i) for i in req.items], _to_cart(req.cart), org_id)
    except (NotFoundError, CatalogError) as e:
        raise _http_error(e)

    return {
        "processed_items": jsonable_encoder(outcome.processed_items),
        "applied_price_list": jsonable_encoder(outcome.applied_price_list.summary()),
        "should_update_all_items": outcome.should_update_all_items,
        "total_price": jsonable_encoder(outcome.total_price),
        "total_quantity": outcome.total_quantity,
        "warnings": outcome.warnings,
        "trace": jsonable_encoder(outcome.trace),
    }


@app.post("/orgs/{org_id}/pricing/progress")
async def progress(org_id: str, req: ProgressRequest, engine: TierPricingEngine = Depends(get_engine)):
    cart = _to_cart(req.cart)

    # Totals default to the cart's stored line prices
    total_price = req.total_price
    if total_price is None:
        total_price = sum(
            (line.price * line.quantity for line in cart.items if line.price is not None),
            Decimal('0'),
        )
    total_quantity = req.total_quantity if req.total_quantity is not None else cart.total_quantity

    context = EvaluationContext(total_price=total_price, total_quantity=total_quantity, cart=cart)
    try:
        result = await engine.progress(context, org_id)
    except CatalogError as e:
        raise _http_error(e)
    return jsonable_encoder(result)


@app.post("/orgs/{org_id}/pricing/savings")
async def savings(org_id: str, req: SavingsRequest, engine: TierPricingEngine = Depends(get_engine)):
    cart = _to_cart(req.cart)
    try:
        result = await engine.savings(cart.items, cart, org_id)
    except CatalogError as e:
        raise _http_error(e)
    return jsonable_encoder(result.to_dict())


@app.post("/orgs/{org_id}/pricing/recalculate")
async def recalculate(org_id: str, req: RecalculateRequest, engine: TierPricingEngine = Depends(get_engine)):
    try:
        prices = await engine.recalculate_existing_items(
            [_to_line(i) for i in req.items], req.price_list_id, org_id
        )
    except CatalogError as e:
        raise _http_error(e)
    return {"prices": {str(pid): jsonable_encoder(amount) for pid, amount in prices.items()}}


@app.get("/orgs/{org_id}/products/{product_id}/prices/{price_list_id}")
async def get_product_price(
    org_id: str,
    product_id: int,
    price_list_id: int,
    engine: TierPricingEngine = Depends(get_engine),
):
    try:
        price = await engine.get_product_price(product_id, price_list_id, org_id)
    except (NotFoundError, CatalogError) as e:
        raise _http_error(e)
    return {
        "product_id": price.product_id,
        "price_list_id": price.price_list_id,
        "amount": jsonable_encoder(price.amount),
    }


@app.get("/system/status")
async def get_status():
    settings = get_settings()
    return {
        "engine_active": True,
        "data_dir": str(settings.data_dir),
        "price_lists_file": settings.price_lists_file.exists(),
        "product_prices_file": settings.product_prices_file.exists(),
    }


@app.post("/system/reload")
async def reload_catalogs():
    """Reload catalogs from the data directory."""
    try:
        reload_engine()
    except CatalogError as e:
        raise _http_error(e)
    return {"success": True}
