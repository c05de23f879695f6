"""Public short link redirection endpoint with visit tracking."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.responses import RedirectResponse
from loguru import logger

from shortlink.api.dependencies import get_link_directory, get_metrics_aggregator
from shortlink.services.exceptions import LinkNotFoundError, ServiceError
from shortlink.services.links import LinkDirectory
from shortlink.services.metrics import MetricsAggregator

# Create router with tags
router = APIRouter(prefix="/public/v1/short-urls", tags=["short-url", "public"])


@router.get(
    "/{short_url_id}",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND
)
async def redirect_to_long_url(
    request: Request,
    short_url_id: str,
    link_directory: LinkDirectory = Depends(get_link_directory),
    metrics_aggregator: MetricsAggregator = Depends(get_metrics_aggregator),
):
    """Redirect to the long URL and record the visit without waiting for it."""
    try:
        long_url = await link_directory.get(short_url_id)
    except LinkNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ServiceError as e:
        logger.error(f"Failed to resolve short URL '{short_url_id}': {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve long URL")

    visitor_key = request.client.host if request.client else "unknown"
    metrics_aggregator.record_async(short_url_id, visitor_key)

    return RedirectResponse(url=long_url, status_code=status.HTTP_302_FOUND)
