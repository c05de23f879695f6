"""Short link data models.

This module defines the ShortLink model mapping short identifiers to long URLs.
"""
from datetime import datetime

from sqlalchemy import Column, Index, String
from sqlmodel import Field, SQLModel


class ShortLinkBase(SQLModel):
    """Base model for short link data."""

    long_url: str = Field(
        description="The original (long) URL to redirect to"
    )


class ShortLink(ShortLinkBase, table=True):
    """
    Short link model.

    The id is the generated short identifier and the table's primary key.
    Several ids may point at the same long URL; only the id is unique.
    """

    __tablename__ = "short_links"

    id: str = Field(
        sa_column=Column(String(6), primary_key=True),
        description="Short identifier used in the redirect path"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when this short link was created"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp of the last change to this short link"
    )

    __table_args__ = (
        Index("ix_short_links_long_url", "long_url"),
    )


class ShortLinkCreate(ShortLinkBase):
    """Schema for creating a new short link."""
    id: str
