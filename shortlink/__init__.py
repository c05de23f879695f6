"""Short link service: short identifiers for long URLs, redirects and visit metrics."""

__version__ = "0.1.0"
