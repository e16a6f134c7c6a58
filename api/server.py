"""FastAPI server for the MiniCRM order feed.

Main entry point for the API server.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from api.routes import feed, health
from core.config.settings import FeedSettings, load_settings
from core.observability.logging import configure_logging, get_logger
from core.security.feed_access import FeedSecretStore
from feed.sources import OrderSource

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("MiniCRM feed API starting up", extra_fields={"shop_id": app.state.settings.shop_id})

    yield

    logger.info("MiniCRM feed API shutting down")


def create_app(
    settings: Optional[FeedSettings] = None,
    order_source: Optional[OrderSource] = None,
    secret_store: Optional[FeedSecretStore] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Feed settings (loaded from MINICRM_* variables if omitted)
        order_source: Order source (settings.orders_file is read per request
            if omitted)
        secret_store: Store of feed secrets shared with the sync client
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="MiniCRM Feed API",
        description="Serves shop orders as a MiniCRM SyncFeed XML document",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.order_source = order_source
    app.state.secret_store = secret_store or FeedSecretStore(settings.secret_ttl_seconds)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(feed.router, tags=["Feed"])

    return app


if __name__ == "__main__":
    import logging

    import uvicorn

    settings = load_settings()
    configure_logging(logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)
