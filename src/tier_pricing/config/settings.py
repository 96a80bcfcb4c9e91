"""
Centralized settings and path configuration for the tier pricing engine.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where data/ lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'data' / 'price_lists.json').exists() or (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Data directory holding the catalog files
    data_dir: Path

    # Catalog files
    price_lists_file: Path
    product_prices_file: Path

    # Logging
    log_level: str = "INFO"

    # Display
    currency_symbol: str = "$"

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment and the project structure."""
        env_dir = os.environ.get('TIER_PRICING_DATA_DIR')
        root = Path(data_dir or env_dir or get_project_root() / 'data')

        return cls(
            data_dir=root,
            price_lists_file=root / 'price_lists.json',
            product_prices_file=root / 'product_prices.csv',
            log_level=os.environ.get('TIER_PRICING_LOG_LEVEL', 'INFO').upper(),
            currency_symbol=os.environ.get('TIER_PRICING_CURRENCY_SYMBOL', '$'),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
