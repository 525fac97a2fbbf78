"""Catalog-related domain exceptions."""

from .base import DomainException


class ProductNotFoundException(DomainException):
    """Raised when a product is missing or not purchasable."""

    def __init__(self, product_id: str):
        super().__init__(
            message=f"Product not found or unavailable: {product_id}",
            code="PRODUCT_NOT_FOUND",
        )
        self.product_id = product_id
