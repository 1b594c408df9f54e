"""FastAPI application setup."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from product_manager.api.controller import products_router
from product_manager.config.configuration import AppConfig, get_config, get_config_info
from product_manager.errors import StoreError
from product_manager.services.product_store import ProductStore
from product_manager.ui.render import render_template

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application configuration; defaults to get_config().
    """
    app_config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = ProductStore(app_config)
        try:
            await store.connect()
        except StoreError as e:
            # Keep serving: the page reports the failure through its subscription
            logger.error(f"Product store connection failed at startup: {e}")
        app.state.product_store = store
        try:
            yield
        finally:
            await store.close()
            logger.info("Product store closed")

    app = FastAPI(
        title="Product Manager API",
        description="Live product catalogue over WebSocket",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = app_config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production: restrict to the page origin
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(products_router)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        """Product page."""
        return render_template(
            "index.html",
            title=app_config.ui.title,
            categories=app_config.ui.suggested_categories,
        )

    @app.get("/health")
    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint."""
        store: ProductStore = request.app.state.product_store
        healthy = await store.check_connection()
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "unhealthy",
                "store": get_config_info(app_config),
            },
        )

    return app
