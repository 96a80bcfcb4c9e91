"""Catalog subpackage - ports and adapters for price list and product price data."""
from .loader import load_catalogs
from .memory import InMemoryPriceListCatalog, InMemoryProductPriceCatalog
from .ports import PriceListCatalog, ProductPriceCatalog

__all__ = [
    'PriceListCatalog',
    'ProductPriceCatalog',
    'InMemoryPriceListCatalog',
    'InMemoryProductPriceCatalog',
    'load_catalogs',
]
