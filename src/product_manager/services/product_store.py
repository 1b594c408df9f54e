"""Product store adapter with backend toggle.

Translates record-level operations into calls against the configured backend:
- store.backend = "sqlite"   → local SQLite file (development)
- store.backend = "cosmosdb" → Azure Cosmos DB NoSQL container

Every public operation returns a StoreResult instead of raising, so callers
handle ValidationError / StoreError values at the boundary.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Set

from azure.core.exceptions import AzureError, ServiceRequestError, ServiceResponseError
from azure.cosmos.exceptions import CosmosHttpResponseError

from product_manager.clients import CosmosDBClient, SqliteClient
from product_manager.config.configuration import AppConfig, get_config
from product_manager.errors import StoreError, ValidationError
from product_manager.models import Product, StoreResult
from product_manager.services.product_helpers import check_record_fields
from product_manager.services.subscription import OnChange, Subscription

logger = logging.getLogger(__name__)

PERMISSION_STATUS_CODES = (401, 403)
UNAVAILABLE_STATUS_CODES = (408, 429, 503)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "name": record["name"].strip(),
        "description": record["description"].strip(),
        "price": float(record["price"]),
        "category": record["category"].strip(),
    }


def classify_cosmos_error(error: Exception) -> StoreError:
    """Map an Azure SDK exception to a StoreError code."""
    if isinstance(error, CosmosHttpResponseError):
        status_code = error.status_code
        if status_code in PERMISSION_STATUS_CODES:
            return StoreError(StoreError.PERMISSION_DENIED, str(error.message or error))
        if status_code == 404:
            return StoreError(StoreError.NOT_FOUND, str(error.message or error))
        if status_code in UNAVAILABLE_STATUS_CODES:
            return StoreError(StoreError.UNAVAILABLE, str(error.message or error))
        return StoreError(StoreError.UNKNOWN, str(error.message or error))
    if isinstance(error, (ServiceRequestError, ServiceResponseError)):
        return StoreError(StoreError.UNAVAILABLE, str(error))
    return StoreError(StoreError.UNKNOWN, str(error))


def classify_sqlite_error(error: sqlite3.Error) -> StoreError:
    """Map a sqlite3 exception to a StoreError code."""
    message = str(error)
    lowered = message.lower()
    if "readonly" in lowered or "read-only" in lowered or "permission" in lowered:
        return StoreError(StoreError.PERMISSION_DENIED, message)
    if "locked" in lowered or "busy" in lowered or "unable to open" in lowered:
        return StoreError(StoreError.UNAVAILABLE, message)
    return StoreError(StoreError.UNKNOWN, message)


class _SqliteBackend:
    """Product documents in a single SQLite table."""

    def __init__(self, db_path: str, table_name: str):
        self._db_path = db_path
        self._table_name = table_name
        self._client: Optional[SqliteClient] = None

    def _require_client(self) -> SqliteClient:
        if self._client is None:
            raise StoreError(StoreError.UNAVAILABLE, "SQLite store not connected. Call connect() first.")
        return self._client

    async def connect(self) -> None:
        try:
            self._client = SqliteClient(self._db_path)
            self._client.execute_query(
                f"""CREATE TABLE IF NOT EXISTS {self._table_name} (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL,
                    price REAL NOT NULL,
                    category TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )"""
            )
            self._client.execute_query(
                f"CREATE INDEX IF NOT EXISTS idx_{self._table_name}_created_at "
                f"ON {self._table_name}(created_at)"
            )
        except sqlite3.Error as e:
            raise classify_sqlite_error(e) from e
        logger.debug(f"SQLite product table '{self._table_name}' initialized at {self._db_path}")

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def insert(self, document: dict[str, Any]) -> None:
        client = self._require_client()
        try:
            client.execute_write(
                f"""INSERT INTO {self._table_name}
                   (id, name, description, price, category, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    document["id"],
                    document["name"],
                    document["description"],
                    document["price"],
                    document["category"],
                    document["createdAt"],
                    document["updatedAt"],
                ),
            )
        except sqlite3.Error as e:
            raise classify_sqlite_error(e) from e

    async def fetch_all(self) -> List[dict[str, Any]]:
        client = self._require_client()
        try:
            rows = client.execute_query(
                f"""SELECT id, name, description, price, category, created_at, updated_at
                   FROM {self._table_name}
                   ORDER BY created_at DESC, rowid DESC"""
            )
        except sqlite3.Error as e:
            raise classify_sqlite_error(e) from e

        return [
            {
                "id": row["id"],
                "name": row["name"],
                "description": row["description"],
                "price": row["price"],
                "category": row["category"],
                "createdAt": row["created_at"],
                "updatedAt": row["updated_at"],
            }
            for row in rows
        ]

    async def replace_fields(self, product_id: str, fields: dict[str, Any]) -> None:
        client = self._require_client()
        try:
            updated = client.execute_write(
                f"""UPDATE {self._table_name}
                   SET name = ?, description = ?, price = ?, category = ?, updated_at = ?
                   WHERE id = ?""",
                (
                    fields["name"],
                    fields["description"],
                    fields["price"],
                    fields["category"],
                    fields["updatedAt"],
                    product_id,
                ),
            )
        except sqlite3.Error as e:
            raise classify_sqlite_error(e) from e

        if updated == 0:
            raise StoreError(StoreError.NOT_FOUND, f"Product {product_id} not found")

    async def delete(self, product_id: str) -> None:
        client = self._require_client()
        try:
            client.execute_write(f"DELETE FROM {self._table_name} WHERE id = ?", (product_id,))
        except sqlite3.Error as e:
            raise classify_sqlite_error(e) from e

    async def ping(self) -> None:
        client = self._require_client()
        try:
            client.execute_query(f"SELECT COUNT(1) FROM {self._table_name}")
        except sqlite3.Error as e:
            raise classify_sqlite_error(e) from e


class _CosmosBackend:
    """Product documents in an Azure Cosmos DB container."""

    ORDERED_QUERY = "SELECT * FROM c ORDER BY c.createdAt DESC"

    def __init__(self, client: CosmosDBClient):
        self._client = client

    def _partition_key(self, document_id: str, document: Optional[dict[str, Any]] = None) -> Any:
        field = self._client.partition_key_field
        if field == "id" or document is None:
            return document_id
        return document[field]

    async def _call(self, coroutine):
        try:
            return await coroutine
        except RuntimeError as e:
            raise StoreError(StoreError.UNAVAILABLE, str(e)) from e
        except AzureError as e:
            raise classify_cosmos_error(e) from e

    async def connect(self) -> None:
        await self._call(self._client.connect())

    async def close(self) -> None:
        await self._client.close()

    async def insert(self, document: dict[str, Any]) -> None:
        await self._call(self._client.create_item(document))

    async def fetch_all(self) -> List[dict[str, Any]]:
        return await self._call(self._client.query_items(self.ORDERED_QUERY))

    async def replace_fields(self, product_id: str, fields: dict[str, Any]) -> None:
        await self._call(
            self._client.patch_item(product_id, self._partition_key(product_id), fields)
        )

    async def delete(self, product_id: str) -> None:
        try:
            await self._call(
                self._client.delete_item(product_id, self._partition_key(product_id))
            )
        except StoreError as error:
            if error.code != StoreError.NOT_FOUND:
                raise
            logger.debug(f"Product {product_id} was already absent")

    async def ping(self) -> None:
        await self._call(self._client.ping())


class ProductStore:
    """Record-level create/read/update/delete and live queries over products."""

    def __init__(self, config: Optional[AppConfig] = None):
        """Initialize the store from configuration.

        Args:
            config: Application configuration; defaults to get_config().

        Raises:
            ValueError: If the configured backend is unknown.
        """
        self._config = config or get_config()
        self._backend_name = self._config.store.backend
        self._subscriptions: Set[Subscription] = set()

        if self._backend_name == "sqlite":
            self._backend = _SqliteBackend(
                self._config.store.sqlite_path,
                self._config.store.collection_name,
            )
        elif self._backend_name == "cosmosdb":
            cosmos = self._config.cosmosdb
            if cosmos is None:
                raise ValueError("cosmosdb backend selected but no cosmosdb configuration loaded")
            self._backend = _CosmosBackend(
                CosmosDBClient(
                    endpoint=cosmos.endpoint,
                    key=cosmos.key,
                    database_name=cosmos.database_name,
                    container_name=cosmos.container_name,
                    partition_key_path=cosmos.partition_key_path,
                )
            )
        else:
            raise ValueError(f"Unknown store backend: {self._backend_name}")

    @property
    def backend(self) -> str:
        return self._backend_name

    async def connect(self) -> None:
        """Open the backend connection and ensure the collection exists.

        Raises:
            StoreError: If the backend cannot be reached.
        """
        await self._backend.connect()
        logger.info(f"Product store connected ({self._backend_name})")

    async def close(self) -> None:
        """Cancel live subscriptions and close the backend connection."""
        for subscription in list(self._subscriptions):
            subscription.cancel()
        await self._backend.close()

    async def __aenter__(self) -> "ProductStore":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Async context manager exit with cleanup."""
        await self.close()
        return False

    def _notify_subscribers(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.notify_changed()

    async def _fetch_products(self) -> List[Product]:
        documents = await self._backend.fetch_all()
        return [Product.from_document(document) for document in documents]

    async def create(self, record: Mapping[str, Any]) -> StoreResult[str]:
        """
        Insert a new product.

        Args:
            record: Mapping with name, description, price and category.

        Returns:
            StoreResult holding the new product id, or a ValidationError /
            StoreError.
        """
        messages = check_record_fields(record)
        if messages:
            return StoreResult.failure(ValidationError("; ".join(messages), messages))

        now = _utc_now().isoformat()
        document = {
            "id": Product.new_id(),
            **_clean_fields(record),
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            await self._backend.insert(document)
        except StoreError as error:
            logger.error(f"Error creating product: {error}")
            return StoreResult.failure(error)

        logger.info(f"Product created: {document['id']}")
        self._notify_subscribers()
        return StoreResult.success(document["id"])

    def subscribe(self, on_change: OnChange) -> Subscription:
        """
        Open a live query ordered by creation time, newest first.

        on_change(products, None) runs immediately and after every change;
        on_change([], error) runs once if the query fails, which ends it.
        Must be called from a running event loop.

        Returns:
            Subscription handle; call cancel() to stop the callbacks.
        """
        subscription = Subscription(
            fetch=self._fetch_products,
            on_change=on_change,
            poll_interval=self._config.subscription.poll_interval_seconds,
            on_cancel=self._subscriptions.discard,
        )
        self._subscriptions.add(subscription)
        subscription.start()
        logger.info("Product subscription started")
        return subscription

    async def list_once(self) -> StoreResult[List[Product]]:
        """Point-in-time product list, same order as subscribe()."""
        try:
            products = await self._fetch_products()
        except StoreError as error:
            logger.error(f"Error listing products: {error}")
            return StoreResult.failure(error)

        logger.debug(f"Products listed once: {len(products)}")
        return StoreResult.success(products)

    async def update(self, product_id: str, record: Mapping[str, Any]) -> StoreResult[None]:
        """
        Replace name, description, price and category of an existing product.

        createdAt is left untouched; updatedAt is refreshed.
        """
        if not product_id or not isinstance(product_id, str):
            return StoreResult.failure(ValidationError("Product id is required"))

        messages = check_record_fields(record)
        if messages:
            return StoreResult.failure(ValidationError("; ".join(messages), messages))

        fields = {**_clean_fields(record), "updatedAt": _utc_now().isoformat()}

        try:
            await self._backend.replace_fields(product_id, fields)
        except StoreError as error:
            logger.error(f"Error updating product {product_id}: {error}")
            return StoreResult.failure(error)

        logger.info(f"Product updated: {product_id}")
        self._notify_subscribers()
        return StoreResult.success()

    async def remove(self, product_id: str) -> StoreResult[None]:
        """Delete a product by id. A missing id is not reported as an error."""
        if not product_id or not isinstance(product_id, str):
            return StoreResult.failure(ValidationError("Product id is required"))

        try:
            await self._backend.delete(product_id)
        except StoreError as error:
            logger.error(f"Error deleting product {product_id}: {error}")
            return StoreResult.failure(error)

        logger.info(f"Product deleted: {product_id}")
        self._notify_subscribers()
        return StoreResult.success()

    async def check_connection(self) -> bool:
        """Verify the backend answers a lightweight read."""
        try:
            await self._backend.ping()
        except StoreError as error:
            logger.error(f"Store connection check failed: {error}")
            return False
        return True
