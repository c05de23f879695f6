"""Main application module.

This module initializes the FastAPI application, wires the services to
their storage and cache, includes routes and configures exception handlers.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shortlink.api import api_router
from shortlink.core.config import settings
from shortlink.core.logging import setup_logging
from shortlink.core.redis import RedisCache, redis_manager
from shortlink.db.base import async_session_factory, create_tables, engine
from shortlink.repositories.store import SQLStore
from shortlink.services.links import LinkDirectory
from shortlink.services.metrics import MetricsAggregator

# Setup logging
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the services on startup and release their resources on shutdown."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT.value}")

    if settings.DB_CREATE_TABLES:
        await create_tables()

    store = SQLStore(async_session_factory)
    cache = RedisCache(redis_manager.get_client)

    app.state.link_directory = LinkDirectory(settings.link_directory_config(), store, cache)
    app.state.metrics_aggregator = MetricsAggregator(settings.metrics_config(), store)
    app.state.metrics_aggregator.start()

    try:
        yield
    finally:
        logger.info(f"Shutting down {settings.APP_NAME}")
        await app.state.metrics_aggregator.stop()
        await app.state.link_directory.wait_for_pending_fills()
        await redis_manager.close()
        await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Include API router
app.include_router(api_router)


# Add exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed information."""
    logger.warning(f"Request validation error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to catch and log all unhandled exceptions."""
    error_id = f"error-{time.time()}"
    logger.opt(exception=exc).error(
        f"Unhandled exception in {request.method} {request.url.path} ({error_id})"
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error occurred",
            "error_id": error_id,
            "message": str(exc) if settings.DEBUG else "Internal server error"
        }
    )
