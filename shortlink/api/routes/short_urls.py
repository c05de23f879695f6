"""Private short link management endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from shortlink.api import schemas
from shortlink.api.dependencies import get_link_directory, get_metrics_aggregator
from shortlink.services.exceptions import InvalidURLError, ServiceError
from shortlink.services.links import LinkDirectory
from shortlink.services.metrics import MetricsAggregator

router = APIRouter(prefix="/private/v1/short-urls", tags=["short-url", "private"])


def _as_utc(value: datetime) -> datetime:
    # Naive bounds are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@router.post(
    "",
    response_model=schemas.ShortLinkCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Invalid long URL"},
        500: {"model": schemas.ErrorResponse, "description": "Short link could not be created"},
    }
)
async def create_short_url(
    request_data: schemas.ShortLinkCreateRequest,
    link_directory: LinkDirectory = Depends(get_link_directory),
):
    try:
        short_url_id = await link_directory.create(request_data.long_url)
    except InvalidURLError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ServiceError as e:
        raise HTTPException(status_code=500, detail=f"Failed to create short URL: {str(e)}")
    return schemas.ShortLinkCreateResponse(id=short_url_id)


@router.delete(
    "/{short_url_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        500: {"model": schemas.ErrorResponse, "description": "Short link could not be deleted"},
    }
)
async def delete_short_url(
    short_url_id: str = Path(..., description="Short URL id to delete"),
    link_directory: LinkDirectory = Depends(get_link_directory),
):
    try:
        await link_directory.delete(short_url_id)
    except ServiceError as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete short URL: {str(e)}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{short_url_id}/metrics",
    response_model=schemas.MetricsResponse,
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Invalid time range"},
        500: {"model": schemas.ErrorResponse, "description": "Metrics could not be retrieved"},
    }
)
async def get_short_url_metrics(
    short_url_id: str = Path(..., description="Short URL id to get metrics for"),
    from_time: datetime = Query(..., alias="from", description="Start of the range (RFC 3339)"),
    to_time: datetime = Query(..., alias="to", description="End of the range (RFC 3339)"),
    metrics_aggregator: MetricsAggregator = Depends(get_metrics_aggregator),
):
    """
    Get visits of a short link summed over [from, to].

    Visits are counted once the aggregator has flushed them.
    """
    from_time = _as_utc(from_time)
    to_time = _as_utc(to_time)
    if from_time > to_time:
        raise HTTPException(status_code=400, detail="'from' must not be after 'to'")

    try:
        snapshot = await metrics_aggregator.get_snapshot(short_url_id, from_time, to_time)
    except ServiceError as e:
        raise HTTPException(status_code=500, detail=f"Failed to retrieve metrics: {str(e)}")
    return schemas.MetricsResponse.model_validate(snapshot)
