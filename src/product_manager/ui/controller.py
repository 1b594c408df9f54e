"""Controller for the product page.

Owns the AppState, turns events into store calls and state changes, and pushes
a freshly rendered View to its sink after every change. The table mirror is
written only by snapshot events coming from the store subscription.
"""

import asyncio
import logging
import math
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Protocol

from product_manager.config.configuration import AppConfig, get_config, get_config_info
from product_manager.errors import StoreError
from product_manager.models import Product
from product_manager.services.product_helpers import validate
from product_manager.services.product_store import ProductStore
from product_manager.services.subscription import Subscription
from product_manager.ui.render import View, render_view
from product_manager.ui.state import (
    FORM_FIELDS,
    AppState,
    DeleteConfirmed,
    DeleteDismissed,
    DeleteRequested,
    EditCancelled,
    EditRequested,
    FieldBlurred,
    FieldEdited,
    FormSubmitted,
    Notice,
    NoticeLevel,
    SearchChanged,
    SnapshotReceived,
    ViewStatus,
)

logger = logging.getLogger(__name__)


class ViewSink(Protocol):
    """Destination for rendered views and notices (a WebSocket, a test recorder)."""

    async def show(self, view: View) -> None: ...

    async def notify(self, notice: Notice) -> None: ...


def parse_form(values: Mapping[str, Any]) -> dict[str, Any]:
    """Turn raw form strings into a product record; an unreadable price becomes None."""
    raw_price = values.get("price", "")
    try:
        price: Optional[float] = float(raw_price)
        if math.isnan(price):
            price = None
    except (TypeError, ValueError):
        price = None

    return {
        "name": str(values.get("name", "") or ""),
        "description": str(values.get("description", "") or ""),
        "price": price,
        "category": str(values.get("category", "") or ""),
    }


def _price_text(price: Optional[float]) -> str:
    if price is None:
        return ""
    return f"{price:.2f}"


class ProductController:
    """Binds page events to the product store and keeps the page rendered."""

    def __init__(
        self,
        store: ProductStore,
        sink: ViewSink,
        config: Optional[AppConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            store: Product store adapter shared by all controllers.
            sink: Receives every rendered View and every Notice.
            config: Application configuration; defaults to get_config().
            sleep: Delay function used between reconnect attempts.
        """
        self._store = store
        self._sink = sink
        self._config = config or get_config()
        self._sleep = sleep
        self._store_info = get_config_info(self._config)

        self.state = AppState()
        self._subscription: Optional[Subscription] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._closed = False

        self._handlers = {
            SnapshotReceived: self._on_snapshot,
            FormSubmitted: self._on_form_submitted,
            FieldBlurred: self._on_field_blurred,
            FieldEdited: self._on_field_edited,
            EditRequested: self._on_edit_requested,
            EditCancelled: self._on_edit_cancelled,
            DeleteRequested: self._on_delete_requested,
            DeleteConfirmed: self._on_delete_confirmed,
            DeleteDismissed: self._on_delete_dismissed,
            SearchChanged: self._on_search_changed,
        }

    # --- Lifecycle ---

    async def start(self) -> None:
        """Render the loading view and open the product subscription."""
        logger.info("Starting product controller")
        await self._render()
        self._open_subscription()

    async def close(self) -> None:
        """Cancel the subscription and any pending reconnect."""
        self._closed = True
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        logger.info("Product controller closed")

    def _open_subscription(self) -> None:
        self._subscription = self._store.subscribe(self._on_subscription_push)

    async def _on_subscription_push(self, products: List[Product], error: Optional[StoreError]) -> None:
        await self.dispatch(SnapshotReceived(products=products, error=error))

    # --- Single update entry point ---

    async def dispatch(self, event: object) -> None:
        """Apply one event to the state and re-render. Never raises."""
        if self._closed:
            return

        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning(f"Ignoring unknown event: {event!r}")
            return

        try:
            await handler(event)
        except Exception as e:
            logger.exception(f"Error handling {type(event).__name__}: {e}")
            await self._notify(f"Unexpected error: {e}", NoticeLevel.ERROR)
        finally:
            await self._render()

    # --- Output ---

    def render(self) -> View:
        return render_view(self.state, self._config.ui, self._store_info)

    async def _render(self) -> None:
        try:
            await self._sink.show(self.render())
        except Exception as e:
            logger.exception(f"Failed to publish view: {e}")

    async def _notify(self, message: str, level: NoticeLevel) -> None:
        notice = Notice(message=message, level=level, duration_ms=self._config.ui.notice_duration_ms)
        try:
            await self._sink.notify(notice)
        except Exception as e:
            logger.exception(f"Failed to publish notice: {e}")

    # --- Subscription pushes ---

    async def _on_snapshot(self, event: SnapshotReceived) -> None:
        if event.error is None:
            self.state.products = list(event.products)
            self.state.status = ViewStatus.POPULATED if self.state.products else ViewStatus.EMPTY
            self.state.reconnect_attempts = 0
            if self.state.find_product(self.state.pending_delete_id) is None:
                self.state.pending_delete_id = None
            return

        error = event.error
        logger.error(f"Product subscription error: {error}")
        self.state.products = []
        self.state.status = ViewStatus.EMPTY
        self.state.pending_delete_id = None

        if error.is_permission_denied:
            await self._notify("Permission error: configure the product store access rules", NoticeLevel.ERROR)
            self.state.permission_denied = True
        elif error.is_unavailable:
            await self._notify("Product store unavailable: check your connection", NoticeLevel.ERROR)
            await self._schedule_reconnect()
        else:
            await self._notify(f"Error loading products: {error.message}", NoticeLevel.ERROR)

    async def _schedule_reconnect(self) -> None:
        limit = self._config.subscription.max_reconnect_attempts
        if self.state.reconnect_attempts >= limit:
            self.state.connection_failed = True
            logger.error(f"Giving up on product subscription after {limit} reconnect attempts")
            await self._notify("Could not connect after several attempts", NoticeLevel.ERROR)
            return

        self.state.reconnect_attempts += 1
        attempt = self.state.reconnect_attempts
        logger.warning(f"Reconnecting product subscription ({attempt}/{limit})")
        await self._notify(f"Retrying connection... ({attempt}/{limit})", NoticeLevel.WARNING)
        self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        await self._sleep(self._config.subscription.reconnect_delay_seconds)
        if self._closed:
            return
        if self._subscription is not None:
            self._subscription.cancel()
        self._open_subscription()

    # --- Form ---

    def _apply_problems(self, record: Mapping[str, Any], only_field: Optional[str] = None) -> bool:
        result = validate(record)
        fields = [only_field] if only_field else list(FORM_FIELDS)
        for field_name in fields:
            problems = result.problems_for(field_name)
            if problems:
                self.state.field_errors[field_name] = problems[0].message
            else:
                self.state.field_errors.pop(field_name, None)
        return result.ok

    async def _on_form_submitted(self, event: FormSubmitted) -> None:
        self.state.form = {name: str(event.values.get(name, "") or "") for name in FORM_FIELDS}
        record = parse_form(event.values)

        if not self._apply_problems(record):
            await self._notify("Please fix the errors in the form", NoticeLevel.ERROR)
            return

        self.state.submitting = True
        await self._render()
        try:
            if self.state.is_editing:
                result = await self._store.update(self.state.editing_id, record)
                if result.ok:
                    await self._notify("Product updated successfully", NoticeLevel.SUCCESS)
                    self._exit_edit_mode()
            else:
                result = await self._store.create(record)
                if result.ok:
                    await self._notify("Product created successfully", NoticeLevel.SUCCESS)
                    self.state.reset_form()

            if not result.ok:
                await self._notify(f"Error: {result.error.message}", NoticeLevel.ERROR)
        finally:
            self.state.submitting = False

    async def _on_field_blurred(self, event: FieldBlurred) -> None:
        if event.field not in FORM_FIELDS:
            return
        self.state.form[event.field] = str(event.values.get(event.field, "") or "")
        self._apply_problems(parse_form(event.values), only_field=event.field)

    async def _on_field_edited(self, event: FieldEdited) -> None:
        self.state.field_errors.pop(event.field, None)

    # --- Edit mode ---

    def _exit_edit_mode(self) -> None:
        self.state.editing_id = None
        self.state.reset_form()

    async def _on_edit_requested(self, event: EditRequested) -> None:
        product = self.state.find_product(event.product_id)
        if product is None:
            await self._notify("Product not found", NoticeLevel.ERROR)
            return

        self.state.editing_id = product.id
        self.state.reset_form(
            {
                "name": product.name,
                "description": product.description,
                "price": _price_text(product.price),
                "category": product.category,
            }
        )
        await self._notify("Edit mode enabled", NoticeLevel.INFO)

    async def _on_edit_cancelled(self, event: EditCancelled) -> None:
        self._exit_edit_mode()
        await self._notify("Edit cancelled", NoticeLevel.INFO)

    # --- Delete ---

    async def _on_delete_requested(self, event: DeleteRequested) -> None:
        if self.state.find_product(event.product_id) is None:
            await self._notify("Product not found", NoticeLevel.ERROR)
            return
        self.state.pending_delete_id = event.product_id

    async def _on_delete_confirmed(self, event: DeleteConfirmed) -> None:
        if event.product_id != self.state.pending_delete_id:
            logger.warning(f"Delete confirmation for {event.product_id} without a pending request")
            return

        self.state.pending_delete_id = None
        # The row disappears with the next subscription push, not here.
        result = await self._store.remove(event.product_id)
        if result.ok:
            await self._notify("Product deleted successfully", NoticeLevel.SUCCESS)
        else:
            await self._notify(f"Error deleting product: {result.error.message}", NoticeLevel.ERROR)

    async def _on_delete_dismissed(self, event: DeleteDismissed) -> None:
        self.state.pending_delete_id = None

    # --- Search ---

    async def _on_search_changed(self, event: SearchChanged) -> None:
        self.state.search_text = event.text or ""
        self.state.category_filter = event.category or ""
