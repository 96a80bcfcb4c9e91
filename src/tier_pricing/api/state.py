"""
Shared engine instance for the API.
"""
from typing import Optional

from ..config.settings import get_settings
from ..engine import TierPricingEngine

_engine: Optional[TierPricingEngine] = None


def get_engine() -> TierPricingEngine:
    """Lazily build the engine from the configured data directory."""
    global _engine
    if _engine is None:
        _engine = TierPricingEngine.from_settings(get_settings())
    return _engine


def reload_engine() -> TierPricingEngine:
    """Drop the cached engine and reload catalogs from disk."""
    global _engine
    _engine = None
    return get_engine()
