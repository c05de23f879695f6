"""Health check endpoints for monitoring application status."""

import time

from fastapi import APIRouter, status

from shortlink.core.config import settings
from shortlink.core.redis import redis_manager
from shortlink.db.base import DatabaseHealthCheck

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Get system health status",
    response_description="Health status of all system components"
)
async def health_check():
    """Check health of the database and Redis."""
    health_status = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": time.time(),
        "components": {}
    }

    database = await DatabaseHealthCheck.check_connection()
    health_status["components"]["database"] = database
    if database["status"] != "healthy":
        health_status["status"] = "degraded"

    # Measure Redis ping latency
    start_time = time.time()
    if await redis_manager.ping():
        health_status["components"]["redis"] = {
            "status": "healthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2)
        }
    else:
        health_status["status"] = "degraded"
        health_status["components"]["redis"] = {
            "status": "unhealthy",
            "error": "Redis ping failed"
        }

    return health_status


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    response_description="Application liveness status"
)
async def liveness_probe():
    """Simple check that application is running."""
    return {"alive": True}
