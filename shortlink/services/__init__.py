"""Service layer for the short link service.

This package contains the identifier codec, the link directory and the
visit metrics aggregator. Services depend only on the collaborator
interfaces in shortlink.services.ports.
"""

from shortlink.services.codec import generate_identifier
from shortlink.services.links import LinkDirectory
from shortlink.services.metrics import MetricsAggregator, VisitCollector, VisitEvent

__all__ = [
    "generate_identifier",
    "LinkDirectory",
    "MetricsAggregator",
    "VisitCollector",
    "VisitEvent",
]
