"""Service layer: product store adapter, live queries and product helpers."""

from product_manager.services.product_helpers import (
    aggregate,
    filter_by_category,
    format_currency,
    format_timestamp,
    search,
    validate,
)
from product_manager.services.product_store import ProductStore
from product_manager.services.subscription import Subscription

__all__ = [
    "ProductStore",
    "Subscription",
    "aggregate",
    "filter_by_category",
    "format_currency",
    "format_timestamp",
    "search",
    "validate",
]
