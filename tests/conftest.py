"""Shared fixtures: configurations pointing at temporary SQLite files."""

from typing import Any, Callable

import pytest

from product_manager.config.configuration import (
    AppConfig,
    CosmosDBConfig,
    LoggingConfig,
    ServerConfig,
    StoreConfig,
    SubscriptionConfig,
    UIConfig,
)


def build_test_config(
    sqlite_path: str,
    backend: str = "sqlite",
    poll_interval_seconds: float = 0.05,
    max_reconnect_attempts: int = 3,
    reconnect_delay_seconds: float = 2.0,
) -> AppConfig:
    cosmosdb = None
    if backend == "cosmosdb":
        cosmosdb = CosmosDBConfig(
            endpoint="https://example.documents.azure.com:443/",
            key="dGVzdC1rZXk=",
            database_name="product_manager",
            container_name="products",
            partition_key_path="/id",
        )

    return AppConfig(
        store=StoreConfig(backend=backend, sqlite_path=sqlite_path, collection_name="products"),
        subscription=SubscriptionConfig(
            poll_interval_seconds=poll_interval_seconds,
            max_reconnect_attempts=max_reconnect_attempts,
            reconnect_delay_seconds=reconnect_delay_seconds,
        ),
        ui=UIConfig(
            title="Product Manager",
            notice_duration_ms=5000,
            display_timezone="UTC",
            suggested_categories=("Electronics", "Books"),
        ),
        server=ServerConfig(host="127.0.0.1", port=8000),
        logging=LoggingConfig(level="DEBUG"),
        cosmosdb=cosmosdb,
    )


@pytest.fixture
def temp_db_path(tmp_path) -> str:
    """Path to a fresh SQLite file for test isolation."""
    return str(tmp_path / "products_test.db")


@pytest.fixture
def make_config(temp_db_path) -> Callable[..., AppConfig]:
    """Factory for AppConfig objects backed by the temporary database."""

    def factory(**overrides: Any) -> AppConfig:
        return build_test_config(temp_db_path, **overrides)

    return factory


@pytest.fixture
def sqlite_config(make_config) -> AppConfig:
    return make_config()
