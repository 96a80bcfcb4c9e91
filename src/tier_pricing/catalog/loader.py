"""
Catalog Loader - Builds in-memory catalogs from the data directory.

Reads:
- price_lists.json: price lists with their conditions, per organization
- product_prices.csv: one row per (organization, product, price list)
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import pandas as pd

from ..config.settings import Settings, get_settings
from ..engine.models import PriceList, ProductPrice, parse_datetime, to_decimal
from ..exceptions import CatalogError
from .memory import InMemoryPriceListCatalog, InMemoryProductPriceCatalog

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ['organization_id', 'product_id', 'price_list_id', 'amount']


def load_price_lists(path: Path) -> InMemoryPriceListCatalog:
    """Load price lists from JSON."""
    if not path.exists():
        raise CatalogError(f"price_lists.json not found at {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"{path.name} must contain an object with a 'price_lists' key")

    catalog = InMemoryPriceListCatalog()
    for row in data.get('price_lists', []):
        org_id = row.get('organization_id')
        if not org_id:
            raise CatalogError(f"Price list {row.get('id')} has no organization_id")
        try:
            catalog.add(str(org_id), PriceList.from_dict(row))
        except (ValueError, TypeError) as e:
            raise CatalogError(f"Invalid price list {row.get('id')}: {e}") from e

    return catalog


def load_product_prices(
    path: Path,
    now: Optional[Callable[[], datetime]] = None,
) -> InMemoryProductPriceCatalog:
    """Load product prices from CSV."""
    if not path.exists():
        raise CatalogError(f"product_prices.csv not found at {path}")

    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()

    missing = [c for c in PRICE_COLUMNS if c not in df.columns]
    if missing:
        raise CatalogError(f"{path.name} is missing columns: {', '.join(missing)}")

    catalog = InMemoryProductPriceCatalog(now=now)
    for _, row in df.iterrows():
        if not row['amount']:
            raise CatalogError(f"Missing amount for product {row['product_id']} in {path.name}")
        try:
            price = ProductPrice(
                product_id=int(row['product_id']),
                price_list_id=int(row['price_list_id']),
                amount=to_decimal(row['amount']),
                valid_from=parse_datetime(row.get('valid_from')),
                valid_to=parse_datetime(row.get('valid_to')),
            )
        except ValueError as e:
            raise CatalogError(f"Invalid price row for product {row['product_id']}: {e}") from e
        catalog.add(row['organization_id'], price)

    logger.debug("Loaded %d product prices from %s", len(df), path)
    return catalog


def load_catalogs(
    settings: Optional[Settings] = None,
) -> tuple[InMemoryPriceListCatalog, InMemoryProductPriceCatalog]:
    """Load both catalogs from the configured data directory."""
    settings = settings or get_settings()
    price_lists = load_price_lists(settings.price_lists_file)
    product_prices = load_product_prices(settings.product_prices_file)
    logger.info("Catalogs loaded from %s", settings.data_dir)
    return price_lists, product_prices
