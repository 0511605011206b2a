"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from snaplink.api.redirect import router as redirect_router
from snaplink.api.router import router as api_router
from snaplink.core.config import Settings, get_settings
from snaplink.core.database import Database
from snaplink.core.observability import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from snaplink.core.rate_limit import limiter
from snaplink.core.redis import LinkCache, create_redis_client
from snaplink.services.clicks import ClickUpdater
from snaplink.services.metadata import MetadataFetcher

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open connections and start click workers; close them on shutdown."""
    settings: Settings = app.state.settings
    logger.info("Starting Snaplink", version=settings.app_version)

    database = Database(settings.database_url, echo=settings.debug)
    link_cache = LinkCache(
        create_redis_client(settings.redis_url),
        prefix=settings.link_cache_prefix,
    )
    click_updater = ClickUpdater(
        database.session_factory,
        workers=settings.click_workers,
        max_queue_size=settings.click_queue_size,
    )
    metadata_fetcher = MetadataFetcher(
        timeout=settings.metadata_timeout,
        user_agent=settings.metadata_user_agent,
        max_bytes=settings.metadata_max_bytes,
    )
    await click_updater.start()

    app.state.database = database
    app.state.link_cache = link_cache
    app.state.click_updater = click_updater
    app.state.metadata_fetcher = metadata_fetcher

    yield

    logger.info("Shutting down Snaplink")
    await click_updater.stop()
    await metadata_fetcher.close()
    await link_cache.close()
    await database.close()


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed requests as 400 Bad Request."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Connections are opened by the lifespan handler, not here.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="URL shortener with link previews and click counts",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Set up observability (logging, tracing, metrics, Sentry)
    setup_observability(app, settings)

    # Rate limiter state and exception handler
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Last added is outermost and sees the request first
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.include_router(api_router)

    # Catch-all redirect router must come last so the routes above win
    app.include_router(redirect_router)

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "snaplink.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )
