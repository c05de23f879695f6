"""Exceptions for the short link service layer.

This module contains the exception hierarchy for the service layer,
providing domain-specific exceptions that abstract underlying implementation details.
"""


class ServiceError(Exception):
    """Base exception for all service-level errors."""
    pass


class LinkError(ServiceError):
    """Base exception for short link errors."""
    pass


class InvalidURLError(LinkError):
    """The long URL or short link id is malformed."""
    pass


class LinkNotFoundError(LinkError):
    """No long URL is mapped to the short link id."""
    pass


class LinkAlreadyExistsError(LinkError):
    """The candidate id is already mapped to the same long URL.

    Consumed by the link directory while resolving identifiers; never
    raised to callers.
    """

    def __init__(self, short_url_id: str):
        self.short_url_id = short_url_id
        super().__init__(f"Short link '{short_url_id}' already exists")


class IdentifierGenerationError(LinkError):
    """Every candidate identifier collided with a different long URL."""
    pass


class ServiceUnavailableError(ServiceError):
    """A storage or cache dependency failed."""
    pass
