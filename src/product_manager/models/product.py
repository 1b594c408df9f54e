"""Product model for document representation."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored ISO-8601 timestamp. Naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_price(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


@dataclass(frozen=True)
class Product:
    """Product data model representing one document of the product collection."""

    id: str
    name: str
    description: str
    price: Optional[float]
    category: str
    created_at: Optional[datetime]  # Set once by the store on create
    updated_at: Optional[datetime]  # Refreshed by the store on every write

    @staticmethod
    def new_id() -> str:
        """Opaque identifier for a new product document."""
        return uuid.uuid4().hex

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Product":
        """Build a Product from a stored document (camelCase keys).

        Missing or mistyped fields are kept as empty values so the record can
        still be listed; display code falls back to placeholders for them.
        """
        return cls(
            id=str(document.get("id") or ""),
            name=str(document.get("name") or ""),
            description=str(document.get("description") or ""),
            price=_coerce_price(document.get("price")),
            category=str(document.get("category") or ""),
            created_at=parse_timestamp(document.get("createdAt")),
            updated_at=parse_timestamp(document.get("updatedAt")),
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document shape."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
