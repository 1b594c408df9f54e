"""Configuration module for Product Manager.

Loads settings from environment-specific config files:
- APP_ENV=dev  → config_dev.yaml (SQLite backend, local development)
- APP_ENV=test → config_test.yaml (CosmosDB backend, production-like testing)
- Default      → config.yaml

Cosmos DB credentials are loaded from the .env file.
Fails fast with clear error messages if required configuration is missing.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

SUPPORTED_BACKENDS = ("sqlite", "cosmosdb")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_project_root() -> Path:
    """Get the project root directory (where config.yaml lives)."""
    # Navigate from src/product_manager/config/ up to project root
    return Path(__file__).parent.parent.parent.parent


def _get_config_filename() -> str:
    """Get config filename based on APP_ENV environment variable.

    Returns:
        Config filename:
        - APP_ENV=dev  → config_dev.yaml
        - APP_ENV=test → config_test.yaml
        - Default      → config.yaml
    """
    app_env = os.environ.get("APP_ENV", "").lower()

    if app_env == "dev":
        return "config_dev.yaml"
    elif app_env == "test":
        return "config_test.yaml"
    else:
        return "config.yaml"


def _load_yaml_config() -> dict:
    """Load configuration from environment-specific config file."""
    config_filename = _get_config_filename()
    config_path = _get_project_root() / config_filename

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}. "
            f"Set APP_ENV to 'dev' or 'test', or create {config_filename}."
        )

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _get_required_env(key: str) -> str:
    """Get required environment variable or raise ConfigurationError."""
    value = os.environ.get(key)
    if not value:
        raise ConfigurationError(
            f"Required environment variable '{key}' is not set. "
            f"Please add it to your .env file."
        )
    return value


@dataclass(frozen=True)
class StoreConfig:
    """Product store configuration with backend toggle."""
    backend: str  # "sqlite" or "cosmosdb"
    sqlite_path: str
    collection_name: str


@dataclass(frozen=True)
class CosmosDBConfig:
    """Azure Cosmos DB configuration for the product container."""
    endpoint: str
    key: str
    database_name: str
    container_name: str
    partition_key_path: str


@dataclass(frozen=True)
class SubscriptionConfig:
    """Live query and reconnect behaviour."""
    poll_interval_seconds: float
    max_reconnect_attempts: int
    reconnect_delay_seconds: float


@dataclass(frozen=True)
class UIConfig:
    """Presentation settings for the product page."""
    title: str
    notice_duration_ms: int
    display_timezone: str
    suggested_categories: tuple[str, ...]


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server binding."""
    host: str
    port: int


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration container."""
    store: StoreConfig
    subscription: SubscriptionConfig
    ui: UIConfig
    server: ServerConfig
    logging: LoggingConfig
    cosmosdb: Optional[CosmosDBConfig]  # Only required when store.backend == "cosmosdb"


def build_config(yaml_config: dict[str, Any]) -> AppConfig:
    """
    Build and validate an AppConfig from an already-parsed YAML mapping.

    Environment variables are read for secrets only.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    # Build Store config
    store_section = yaml_config.get("store", {})
    store_backend = store_section.get("backend", "sqlite")

    if store_backend not in SUPPORTED_BACKENDS:
        raise ConfigurationError(
            f"Unknown store backend '{store_backend}'. "
            f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}."
        )

    store_config = StoreConfig(
        backend=store_backend,
        sqlite_path=store_section.get("sqlite_path", "products.db"),
        collection_name=store_section.get("collection_name", "products"),
    )

    # Build CosmosDB config (only if backend is cosmosdb)
    cosmosdb_config: Optional[CosmosDBConfig] = None
    if store_backend == "cosmosdb":
        cosmosdb_section = yaml_config.get("cosmosdb", {})
        cosmosdb_config = CosmosDBConfig(
            endpoint=_get_required_env("COSMOSDB_ENDPOINT"),
            key=_get_required_env("COSMOSDB_KEY"),
            database_name=cosmosdb_section.get("database_name", "product_manager"),
            container_name=cosmosdb_section.get("container_name", store_config.collection_name),
            partition_key_path=cosmosdb_section.get("partition_key_path", "/id"),
        )

    # Build Subscription config
    subscription_section = yaml_config.get("subscription", {})

    subscription_config = SubscriptionConfig(
        poll_interval_seconds=float(subscription_section.get("poll_interval_seconds", 2.0)),
        max_reconnect_attempts=int(subscription_section.get("max_reconnect_attempts", 3)),
        reconnect_delay_seconds=float(subscription_section.get("reconnect_delay_seconds", 2.0)),
    )

    if subscription_config.max_reconnect_attempts < 0:
        raise ConfigurationError("subscription.max_reconnect_attempts must not be negative")

    # Build UI config
    ui_section = yaml_config.get("ui", {})

    ui_config = UIConfig(
        title=ui_section.get("title", "Product Manager"),
        notice_duration_ms=int(ui_section.get("notice_duration_ms", 5000)),
        display_timezone=ui_section.get("display_timezone", "UTC"),
        suggested_categories=tuple(ui_section.get("suggested_categories", [])),
    )

    # Build Server config
    server_section = yaml_config.get("server", {})

    server_config = ServerConfig(
        host=server_section.get("host", "127.0.0.1"),
        port=int(server_section.get("port", 8000)),
    )

    # Build Logging config
    logging_section = yaml_config.get("logging", {})

    logging_config = LoggingConfig(
        level=logging_section.get("level", "INFO"),
    )

    return AppConfig(
        store=store_config,
        subscription=subscription_config,
        ui=ui_config,
        server=server_config,
        logging=logging_config,
        cosmosdb=cosmosdb_config,
    )


def load_config() -> AppConfig:
    """
    Load and validate all application configuration.

    Loads from the YAML file for non-sensitive settings and .env for credentials.
    Fails fast if required configuration is missing.

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    # Load environment variables from .env file
    load_dotenv()

    return build_config(_load_yaml_config())


# Module-level singleton for convenience
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the application configuration singleton.

    Lazy-loads configuration on first access.
    Config file is selected based on APP_ENV environment variable.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_environment() -> str:
    """Get current environment name.

    Returns:
        'dev', 'test', or 'default' based on APP_ENV.
    """
    app_env = os.environ.get("APP_ENV", "").lower()
    return app_env if app_env in ("dev", "test") else "default"


def get_config_info(config: AppConfig) -> dict[str, Any]:
    """Summarize the store configuration without exposing credentials."""
    if config.cosmosdb is not None:
        return {
            "backend": config.store.backend,
            "database": config.cosmosdb.database_name,
            "collection": config.cosmosdb.container_name,
            "is_configured": bool(config.cosmosdb.endpoint and config.cosmosdb.key),
        }

    return {
        "backend": config.store.backend,
        "database": config.store.sqlite_path,
        "collection": config.store.collection_name,
        "is_configured": bool(config.store.sqlite_path),
    }


def reset_config() -> None:
    """Reset the config singleton. Useful for testing."""
    global _config
    _config = None
