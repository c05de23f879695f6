"""
Data models for the short link service.

This module imports and exports all SQLModel models used in the application.
"""

from sqlmodel import SQLModel

# Parent table before child so the foreign key resolves
from shortlink.models.link import ShortLink, ShortLinkBase, ShortLinkCreate
from shortlink.models.metrics import LinkMetrics, MetricsSnapshot

__all__ = [
    "SQLModel",
    "ShortLink",
    "ShortLinkBase",
    "ShortLinkCreate",
    "LinkMetrics",
    "MetricsSnapshot",
]
