"""Data models module."""

from product_manager.models.product import Product, parse_timestamp
from product_manager.models.results import (
    Problem,
    ProductStats,
    StoreResult,
    ValidationResult,
)

__all__ = [
    "Product",
    "parse_timestamp",
    "Problem",
    "ProductStats",
    "StoreResult",
    "ValidationResult",
]
