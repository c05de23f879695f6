"""Routes package initialization.

This module exports the route collection for the application.
"""

from fastapi import APIRouter

from shortlink.api.routes import short_urls, redirect, health

# Create root router
api_router = APIRouter()

# Private management routes under /private/v1
api_router.include_router(short_urls.router)

# Public redirect routes under /public/v1
api_router.include_router(redirect.router)

api_router.include_router(health.router)

__all__ = ["api_router"]
