"""Application state and events for the product page controller."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional

from product_manager.errors import StoreError
from product_manager.models import Product

FORM_FIELDS = ("name", "description", "price", "category")


def empty_form() -> dict[str, str]:
    return {name: "" for name in FORM_FIELDS}


class ViewStatus(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    POPULATED = "populated"


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    """Transient message shown in the notification area."""

    message: str
    level: NoticeLevel
    duration_ms: int


@dataclass
class AppState:
    """Everything the product page shows, owned by one ProductController."""

    status: ViewStatus = ViewStatus.LOADING
    editing_id: Optional[str] = None  # None while creating
    products: List[Product] = field(default_factory=list)  # Mirror of the last push
    form: dict[str, str] = field(default_factory=empty_form)
    form_revision: int = 0  # Bumped whenever the controller rewrites the form
    field_errors: dict[str, str] = field(default_factory=dict)
    submitting: bool = False
    pending_delete_id: Optional[str] = None
    permission_denied: bool = False
    reconnect_attempts: int = 0
    connection_failed: bool = False
    search_text: str = ""
    category_filter: str = ""

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    @property
    def mode(self) -> str:
        return "editing" if self.is_editing else "creating"

    def find_product(self, product_id: Optional[str]) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def reset_form(self, values: Optional[Mapping[str, str]] = None) -> None:
        self.form = empty_form()
        if values:
            self.form.update({name: values.get(name, "") for name in FORM_FIELDS})
        self.form_revision += 1
        self.field_errors = {}


# --- Events accepted by ProductController.dispatch ---


@dataclass(frozen=True)
class SnapshotReceived:
    products: List[Product]
    error: Optional[StoreError] = None


@dataclass(frozen=True)
class FormSubmitted:
    values: Mapping[str, str]


@dataclass(frozen=True)
class FieldBlurred:
    field: str
    values: Mapping[str, str]


@dataclass(frozen=True)
class FieldEdited:
    field: str


@dataclass(frozen=True)
class EditRequested:
    product_id: str


@dataclass(frozen=True)
class EditCancelled:
    pass


@dataclass(frozen=True)
class DeleteRequested:
    product_id: str


@dataclass(frozen=True)
class DeleteConfirmed:
    product_id: str


@dataclass(frozen=True)
class DeleteDismissed:
    pass


@dataclass(frozen=True)
class SearchChanged:
    text: str = ""
    category: str = ""
