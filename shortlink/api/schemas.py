"""API request and response schemas.

This module contains Pydantic models for API request validation
and response serialization.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ShortLinkCreateRequest(BaseModel):
    """Request schema for creating a short link."""
    # Scheme and emptiness are checked by the link directory
    long_url: str


class ShortLinkCreateResponse(BaseModel):
    """Response schema for a created short link."""
    id: str


class MetricsResponse(BaseModel):
    """Response schema for short link visit metrics."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    short_url_id: str
    visits: int
    unique_visits: int
    from_time: datetime = Field(alias="from")
    to_time: datetime = Field(alias="to")


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    detail: str
