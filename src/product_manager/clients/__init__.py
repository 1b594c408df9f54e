"""Client modules for external services."""

from product_manager.clients.sqlite_client import SqliteClient
from product_manager.clients.cosmosdb_client import CosmosDBClient

__all__ = [
    "SqliteClient",
    "CosmosDBClient",
]
