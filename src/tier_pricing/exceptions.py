"""Exceptions for the tier pricing engine."""


class PricingError(Exception):
    """Base exception for pricing errors."""

    pass


class NotFoundError(PricingError):
    """Base for lookups that make pricing undecidable."""

    pass


class DefaultPriceListNotFound(NotFoundError):
    """Raised when an organization has no active default price list."""

    def __init__(self, org_id: str = None):
        self.org_id = org_id
        if org_id:
            message = f"Default price list not found for organization '{org_id}'"
        else:
            message = "Default price list not found"
        super().__init__(message)


class PriceNotFound(NotFoundError):
    """Raised when a product has no price in a given price list."""

    def __init__(self, product_id: int, price_list_id: int):
        self.product_id = product_id
        self.price_list_id = price_list_id
        super().__init__(
            f"Price not found for product {product_id} in price list {price_list_id}"
        )


class DefaultPriceNotFound(NotFoundError):
    """Raised when a product being priced has no price in the default price list."""

    def __init__(self, product_id: int, price_list_id: int):
        self.product_id = product_id
        self.price_list_id = price_list_id
        super().__init__(
            f"Price not found for product {product_id} in default price list {price_list_id}"
        )


class CatalogError(PricingError):
    """Raised when a price list or product price catalog cannot be read."""

    pass
