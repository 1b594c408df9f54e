"""Configuration module."""

from product_manager.config.configuration import (
    AppConfig,
    ConfigurationError,
    CosmosDBConfig,
    LoggingConfig,
    ServerConfig,
    StoreConfig,
    SubscriptionConfig,
    UIConfig,
    build_config,
    get_config,
    get_config_info,
    get_environment,
    load_config,
    reset_config,
)

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "CosmosDBConfig",
    "LoggingConfig",
    "ServerConfig",
    "StoreConfig",
    "SubscriptionConfig",
    "UIConfig",
    "build_config",
    "get_config",
    "get_config_info",
    "get_environment",
    "load_config",
    "reset_config",
]
