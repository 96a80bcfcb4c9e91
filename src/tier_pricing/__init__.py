"""
Tier Pricing Package

Tiered price list evaluation for quotation carts.
Resolves the applicable price list for a cart, re-prices lines under it with
default-tier fallback, and reports progress and savings toward better tiers.
"""

__version__ = "1.0.0"
