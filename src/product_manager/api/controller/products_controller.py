"""WebSocket controller for the live product page."""

import asyncio
import logging
from dataclasses import asdict
from typing import Literal, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from product_manager.ui.controller import ProductController
from product_manager.ui.render import View, render_notice
from product_manager.ui.state import (
    DeleteConfirmed,
    DeleteDismissed,
    DeleteRequested,
    EditCancelled,
    EditRequested,
    FieldBlurred,
    FieldEdited,
    FormSubmitted,
    Notice,
    SearchChanged,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


class ClientEvent(BaseModel):
    """Incoming page event from the browser."""

    type: Literal[
        "submit",
        "blur",
        "input",
        "edit",
        "cancel",
        "delete",
        "confirm_delete",
        "dismiss_delete",
        "search",
    ]
    product_id: Optional[str] = None
    field: Optional[str] = None
    values: dict[str, str] = {}
    search_text: str = ""
    category: str = ""


class ServerMessage(BaseModel):
    """Outgoing message to the browser."""

    type: str  # "view", "notice", "error"
    payload: dict


def to_event(message: ClientEvent) -> object:
    """Translate a client message into a controller event.

    Raises:
        ValueError: If a field the event needs is missing.
    """
    if message.type in ("edit", "delete", "confirm_delete") and not message.product_id:
        raise ValueError(f"'{message.type}' requires product_id")
    if message.type in ("blur", "input") and not message.field:
        raise ValueError(f"'{message.type}' requires field")

    if message.type == "submit":
        return FormSubmitted(values=message.values)
    if message.type == "blur":
        return FieldBlurred(field=message.field, values=message.values)
    if message.type == "input":
        return FieldEdited(field=message.field)
    if message.type == "edit":
        return EditRequested(product_id=message.product_id)
    if message.type == "cancel":
        return EditCancelled()
    if message.type == "delete":
        return DeleteRequested(product_id=message.product_id)
    if message.type == "confirm_delete":
        return DeleteConfirmed(product_id=message.product_id)
    if message.type == "dismiss_delete":
        return DeleteDismissed()
    return SearchChanged(text=message.search_text, category=message.category)


class WebSocketViewSink:
    """Sends views and notices to one browser connection."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket
        self._lock = asyncio.Lock()

    async def _send(self, message: ServerMessage) -> None:
        async with self._lock:
            await self._websocket.send_json(message.model_dump())

    async def show(self, view: View) -> None:
        await self._send(ServerMessage(type="view", payload=asdict(view)))

    async def notify(self, notice: Notice) -> None:
        await self._send(
            ServerMessage(
                type="notice",
                payload={
                    "level": notice.level.value,
                    "message": notice.message,
                    "duration_ms": notice.duration_ms,
                    "html": render_notice(notice),
                },
            )
        )

    async def error(self, message: str) -> None:
        await self._send(ServerMessage(type="error", payload={"message": message}))


@router.websocket("/ws")
async def websocket_products(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for the product page.

    Protocol:
    1. Client connects to /products/ws
    2. Server sends the loading view, then a new view after every change
    3. Client sends JSON events: {"type": "submit", "values": {...}}, {"type": "edit", "product_id": "..."}, ...
    4. Server sends notices: {"type": "notice", "payload": {"level": ..., "message": ..., "html": ...}}
    5. On a malformed event: {"type": "error", "payload": {"message": "..."}}
    """
    await websocket.accept()
    logger.info("WebSocket connection accepted")

    sink = WebSocketViewSink(websocket)
    controller = ProductController(
        websocket.app.state.product_store,
        sink,
        config=websocket.app.state.config,
    )

    try:
        await controller.start()

        while True:
            raw_message = await websocket.receive_text()

            try:
                event = to_event(ClientEvent.model_validate_json(raw_message))
            except (ValidationError, ValueError) as e:
                await sink.error(f"Invalid message format: {e}")
                continue

            await controller.dispatch(event)

    except WebSocketDisconnect:
        logger.info("WebSocket connection closed by client")
    except Exception as e:
        logger.exception(f"WebSocket error: {e}")
    finally:
        await controller.close()
