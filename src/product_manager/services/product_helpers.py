"""Validation, formatting, search and statistics helpers for products.

Every function here is pure: no I/O, no store access, and none of them raise
for bad input. They are shared by the store adapter (field checks) and the UI
controller (form validation, table rendering, stats panel).
"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from product_manager.models import Problem, Product, ProductStats, ValidationResult, parse_timestamp

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 500
PRICE_MAX = 999_999.99

DATE_UNAVAILABLE = "Date unavailable"
TIMESTAMP_FORMAT = "%d %B %Y, %H:%M"

PRODUCT_FIELDS = ("name", "description", "price", "category")


def is_real_number(value: Any) -> bool:
    """True for int/float values that are not bool and not NaN."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _trimmed(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip()


def validate(record: Any) -> ValidationResult:
    """
    Check a product record against every business rule.

    Violations are accumulated rather than short-circuited so the form can
    annotate all offending fields at once.

    Args:
        record: Mapping with name, description, price and category.

    Returns:
        ValidationResult with ok=True when no rule is violated.
    """
    if not isinstance(record, Mapping):
        return ValidationResult(ok=False, problems=[Problem("record", "Product data is required")])

    problems: List[Problem] = []

    name = _trimmed(record.get("name"))
    if not name:
        problems.append(Problem("name", "Product name is required"))
    elif len(name) < NAME_MIN_LENGTH:
        problems.append(Problem("name", f"Name must be at least {NAME_MIN_LENGTH} characters"))
    elif len(name) > NAME_MAX_LENGTH:
        problems.append(Problem("name", f"Name cannot exceed {NAME_MAX_LENGTH} characters"))

    description = _trimmed(record.get("description"))
    if not description:
        problems.append(Problem("description", "Product description is required"))
    elif len(description) < DESCRIPTION_MIN_LENGTH:
        problems.append(
            Problem("description", f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters")
        )
    elif len(description) > DESCRIPTION_MAX_LENGTH:
        problems.append(
            Problem("description", f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
        )

    price = record.get("price")
    if not is_real_number(price) or math.isinf(price):
        problems.append(Problem("price", "Price must be a valid number"))
    elif price < 0:
        problems.append(Problem("price", "Price cannot be negative"))
    elif price > PRICE_MAX:
        problems.append(Problem("price", f"Price cannot exceed {format_currency(PRICE_MAX)}"))

    category = _trimmed(record.get("category"))
    if not category:
        problems.append(Problem("category", "Product category is required"))

    return ValidationResult(ok=not problems, problems=problems)


def format_currency(value: Any) -> str:
    """Render a price as a two-decimal dollar string; non-numbers render as $0.00."""
    if not is_real_number(value) or math.isinf(value):
        return "$0.00"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _display_zone(zone_name: str):
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown display timezone '{zone_name}', using UTC")
        return timezone.utc


def format_timestamp(value: Any, zone_name: str = "UTC") -> str:
    """
    Render a stored timestamp as a readable date and time.

    Accepts datetime values and ISO-8601 strings. Anything else, or a failure
    while formatting, renders the "Date unavailable" placeholder.
    """
    if not isinstance(value, (datetime, str)):
        return DATE_UNAVAILABLE

    try:
        parsed = parse_timestamp(value)
        if parsed is None:
            return DATE_UNAVAILABLE
        return parsed.astimezone(_display_zone(zone_name)).strftime(TIMESTAMP_FORMAT)
    except (ValueError, OverflowError, OSError) as e:
        logger.error(f"Error formatting timestamp {value!r}: {e}")
        return DATE_UNAVAILABLE


def search(text: Optional[str], products: Sequence[Product]) -> Sequence[Product]:
    """Case-insensitive substring match on name, description and category."""
    if not text or not isinstance(text, str) or not text.strip():
        return products

    needle = text.strip().lower()
    return [
        product
        for product in products
        if needle in product.name.lower()
        or needle in product.description.lower()
        or needle in product.category.lower()
    ]


def filter_by_category(category: Optional[str], products: Sequence[Product]) -> Sequence[Product]:
    """Case-insensitive exact match on category; no category means no filter."""
    if not category or not isinstance(category, str):
        return products

    wanted = category.lower()
    return [product for product in products if product.category.lower() == wanted]


def aggregate(products: Sequence[Product]) -> ProductStats:
    """Count, mean price, total price and per-category counts."""
    if not products:
        return ProductStats(total=0, average_price=0, total_value=0, categories={})

    total_value = 0.0
    categories: dict[str, int] = {}
    for product in products:
        if is_real_number(product.price):
            total_value += product.price
        categories[product.category] = categories.get(product.category, 0) + 1

    return ProductStats(
        total=len(products),
        average_price=total_value / len(products),
        total_value=total_value,
        categories=categories,
    )


def check_record_fields(record: Any) -> List[str]:
    """
    Presence and type check applied by the store before any write.

    Lighter than validate(): only verifies that the four fields exist with
    usable types. Returns a list of messages, empty when the record is usable.
    """
    if not isinstance(record, Mapping):
        return ["Product data is required"]

    messages = []
    for field_name in ("name", "description", "category"):
        if not _trimmed(record.get(field_name)):
            messages.append(f"Product {field_name} is required")

    price = record.get("price")
    if not is_real_number(price) or math.isinf(price) or price < 0:
        messages.append("Price must be a valid number greater than or equal to 0")

    return messages
