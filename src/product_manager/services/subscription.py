"""Live query over the product collection.

A Subscription re-runs the ordered product query whenever the store reports a
local write, and on a fixed poll interval to pick up writes made elsewhere. The
callback always receives the complete ordered set, never a delta, and is only
invoked when that set differs from the previous delivery.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from product_manager.errors import StoreError
from product_manager.models import Product

logger = logging.getLogger(__name__)

OnChange = Callable[[List[Product], Optional[StoreError]], Awaitable[None]]
Fetch = Callable[[], Awaitable[List[Product]]]


class Subscription:
    """Cancellation handle for one standing product query."""

    def __init__(
        self,
        fetch: Fetch,
        on_change: OnChange,
        poll_interval: float,
        on_cancel: Optional[Callable[["Subscription"], None]] = None,
    ):
        """
        Args:
            fetch: Coroutine returning the ordered product list; raises StoreError.
            on_change: Callback receiving (products, error).
            poll_interval: Seconds between re-queries when nothing pokes the query.
            on_cancel: Called once with this subscription when it is cancelled.
        """
        self._fetch = fetch
        self._on_change = on_change
        self._poll_interval = poll_interval
        self._on_cancel = on_cancel

        self._changed = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False
        self._failed = False

    @property
    def active(self) -> bool:
        """True while the query is running and will still deliver callbacks."""
        return (
            not self._cancelled
            and not self._failed
            and self._task is not None
            and not self._task.done()
        )

    def start(self) -> "Subscription":
        """Start the query loop on the running event loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self

    def notify_changed(self) -> None:
        """Ask the query to re-run now instead of waiting for the next poll."""
        self._changed.set()

    def cancel(self) -> None:
        """Stop further callbacks and release the query."""
        if self._cancelled:
            return
        self._cancelled = True

        # After a failure the task finishes on its own; cancelling it here could
        # interrupt the error callback that is still running.
        if self._task is not None and not self._task.done() and not self._failed:
            self._task.cancel()

        if self._on_cancel is not None:
            self._on_cancel(self)
        logger.debug("Product subscription cancelled")

    def __call__(self) -> None:
        self.cancel()

    async def wait_closed(self) -> None:
        """Wait until the query loop has exited."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _deliver(self, products: List[Product], error: Optional[StoreError]) -> None:
        if self._cancelled:
            return
        try:
            await self._on_change(products, error)
        except Exception as e:
            logger.exception(f"Product subscription callback failed: {e}")

    async def _run(self) -> None:
        last_delivered: Optional[List[Product]] = None

        while not self._cancelled:
            self._changed.clear()
            try:
                products = await self._fetch()
            except StoreError as error:
                logger.error(f"Product subscription failed: {error}")
                self._failed = True
                await self._deliver([], error)
                return

            if last_delivered is None or products != last_delivered:
                last_delivered = products
                logger.debug(f"Product subscription delivering {len(products)} products")
                await self._deliver(list(products), None)

            try:
                await asyncio.wait_for(self._changed.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass
