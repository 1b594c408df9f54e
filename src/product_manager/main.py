"""Command-line entry point: serve the product page with uvicorn."""

import logging

import uvicorn

from product_manager.api import create_app
from product_manager.config.configuration import get_config, get_config_info, get_environment

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    """Configure root logging once for the whole process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def main() -> None:
    config = get_config()
    configure_logging(config.logging.level)

    info = get_config_info(config)
    logger.info(
        f"Starting Product Manager ({get_environment()} environment): "
        f"backend={info['backend']}, database={info['database']}, collection={info['collection']}"
    )
    if not info["is_configured"]:
        logger.warning("Product store is not fully configured; requests to the store will fail")

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
