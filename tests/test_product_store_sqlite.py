"""Tests for ProductStore against a temporary SQLite database."""

import asyncio
import sqlite3

import pytest

from product_manager.errors import StoreError, ValidationError
from product_manager.services.product_store import ProductStore, classify_sqlite_error
from tests.helpers import valid_record, wait_until


@pytest.fixture
async def store(sqlite_config):
    """Connected ProductStore, closed after the test."""
    async with ProductStore(sqlite_config) as product_store:
        yield product_store


class TestCreate:
    async def test_create_returns_id_and_stamps_times(self, store):
        result = await store.create(valid_record())
        assert result.ok
        assert result.value

        listed = await store.list_once()
        assert listed.ok
        assert len(listed.value) == 1

        product = listed.value[0]
        print(f"Created product: {product}")
        assert product.id == result.value
        assert product.name == "Desk Lamp"
        assert product.price == pytest.approx(39.9)
        assert product.created_at is not None
        assert product.created_at == product.updated_at
        assert product.created_at.tzinfo is not None

    async def test_create_trims_text_fields(self, store):
        result = await store.create(valid_record(name="  Lamp  ", category=" Home "))
        listed = await store.list_once()
        assert result.ok
        assert listed.value[0].name == "Lamp"
        assert listed.value[0].category == "Home"

    async def test_create_rejects_missing_fields(self, store):
        result = await store.create({"name": "Lamp"})
        assert not result.ok
        assert isinstance(result.error, ValidationError)

        listed = await store.list_once()
        assert listed.value == []

    async def test_ids_are_unique(self, store):
        first = await store.create(valid_record())
        second = await store.create(valid_record())
        assert first.value != second.value


class TestListOnce:
    async def test_newest_first(self, store):
        for name in ("First", "Second", "Third"):
            await store.create(valid_record(name=name))

        listed = await store.list_once()
        assert [product.name for product in listed.value] == ["Third", "Second", "First"]

    async def test_empty(self, store):
        listed = await store.list_once()
        assert listed.ok
        assert listed.value == []


class TestUpdate:
    async def test_update_replaces_fields_and_keeps_created_at(self, store):
        created = await store.create(valid_record())
        before = (await store.list_once()).value[0]

        await asyncio.sleep(0.01)
        result = await store.update(
            created.value,
            valid_record(name="Floor Lamp", price=89.0, category="Lighting"),
        )
        assert result.ok

        after = (await store.list_once()).value[0]
        assert after.id == created.value
        assert after.name == "Floor Lamp"
        assert after.price == pytest.approx(89.0)
        assert after.category == "Lighting"
        assert after.created_at == before.created_at
        assert after.updated_at > before.updated_at

    async def test_update_missing_product_is_not_found(self, store):
        result = await store.update("does-not-exist", valid_record())
        assert not result.ok
        assert isinstance(result.error, StoreError)
        assert result.error.code == StoreError.NOT_FOUND

    async def test_update_requires_id(self, store):
        result = await store.update("", valid_record())
        assert isinstance(result.error, ValidationError)


class TestRemove:
    async def test_remove_deletes_product(self, store):
        keep = await store.create(valid_record(name="Keep"))
        drop = await store.create(valid_record(name="Drop"))

        result = await store.remove(drop.value)
        assert result.ok

        listed = await store.list_once()
        assert [product.id for product in listed.value] == [keep.value]

    async def test_remove_missing_product_is_ok(self, store):
        result = await store.remove("does-not-exist")
        assert result.ok


class TestSubscribe:
    async def test_initial_delivery_and_updates(self, store):
        deliveries = []

        async def on_change(products, error):
            deliveries.append((products, error))

        subscription = store.subscribe(on_change)
        await wait_until(lambda: len(deliveries) == 1)
        assert deliveries[0] == ([], None)

        await store.create(valid_record(name="Live"))
        await wait_until(lambda: len(deliveries) == 2)
        products, error = deliveries[1]
        assert error is None
        assert [product.name for product in products] == ["Live"]

        subscription.cancel()
        assert not subscription.active

    async def test_unchanged_set_is_not_redelivered(self, store):
        deliveries = []

        async def on_change(products, error):
            deliveries.append(products)

        subscription = store.subscribe(on_change)
        await wait_until(lambda: len(deliveries) == 1)

        # Several poll intervals with no writes
        await asyncio.sleep(0.3)
        assert len(deliveries) == 1
        subscription.cancel()

    async def test_no_callbacks_after_cancel(self, store):
        deliveries = []

        async def on_change(products, error):
            deliveries.append(products)

        subscription = store.subscribe(on_change)
        await wait_until(lambda: len(deliveries) == 1)

        subscription()
        await subscription.wait_closed()
        await store.create(valid_record())
        await asyncio.sleep(0.2)
        assert len(deliveries) == 1

    async def test_callback_failure_does_not_stop_query(self, store):
        deliveries = []

        async def on_change(products, error):
            deliveries.append(products)
            if len(deliveries) == 1:
                raise RuntimeError("callback exploded")

        subscription = store.subscribe(on_change)
        await wait_until(lambda: len(deliveries) == 1)

        await store.create(valid_record())
        await wait_until(lambda: len(deliveries) == 2)
        assert subscription.active
        subscription.cancel()

    async def test_close_cancels_subscriptions(self, sqlite_config):
        product_store = ProductStore(sqlite_config)
        await product_store.connect()

        async def on_change(products, error):
            pass

        subscription = product_store.subscribe(on_change)
        await product_store.close()
        assert not subscription.active


class TestConnection:
    async def test_check_connection(self, store):
        assert await store.check_connection()

    async def test_check_connection_when_not_connected(self, sqlite_config):
        product_store = ProductStore(sqlite_config)
        assert not await product_store.check_connection()

    async def test_operations_before_connect_are_unavailable(self, sqlite_config):
        product_store = ProductStore(sqlite_config)
        result = await product_store.create(valid_record())
        assert result.error.code == StoreError.UNAVAILABLE


class TestClassifySqliteError:
    @pytest.mark.parametrize(
        "message, code",
        [
            ("attempt to write a readonly database", StoreError.PERMISSION_DENIED),
            ("database is locked", StoreError.UNAVAILABLE),
            ("unable to open database file", StoreError.UNAVAILABLE),
            ("no such column: colour", StoreError.UNKNOWN),
        ],
    )
    def test_classification(self, message, code):
        assert classify_sqlite_error(sqlite3.OperationalError(message)).code == code
