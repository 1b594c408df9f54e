"""Helpers shared by the test modules."""

import asyncio
from typing import Any, Callable


async def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
    """Poll predicate until it holds, failing the test after timeout seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached before timeout")
        await asyncio.sleep(0.01)


def valid_record(**overrides: Any) -> dict[str, Any]:
    record = {
        "name": "Desk Lamp",
        "description": "Adjustable LED desk lamp with dimmer",
        "price": 39.9,
        "category": "Home",
    }
    record.update(overrides)
    return record
