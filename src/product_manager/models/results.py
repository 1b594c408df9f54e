"""Result models returned across the store and validation boundaries."""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar, Union

from product_manager.errors import StoreError, ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class Problem:
    """A single validation rule violation."""

    field: str  # "name", "description", "price", "category" or "record"
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a product record. Lists every violation found."""

    ok: bool
    problems: List[Problem] = field(default_factory=list)

    def problems_for(self, field_name: str) -> List[Problem]:
        return [problem for problem in self.problems if problem.field == field_name]


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Value or error returned by every ProductStore operation."""

    value: Optional[T] = None
    error: Optional[Union[ValidationError, StoreError]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "StoreResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Union[ValidationError, StoreError]) -> "StoreResult[T]":
        return cls(error=error)


@dataclass(frozen=True)
class ProductStats:
    """Aggregate statistics over a product set."""

    total: int  # Number of products
    average_price: float  # Arithmetic mean of price
    total_value: float  # Sum of price
    categories: dict[str, int]  # Category name to product count
