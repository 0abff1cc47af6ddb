"""
GoldBasis Feed Errors

Typed failures raised by venue adapters. They never reach the engine:
the timed wrapper turns them into FetchOutcome records.
"""

from typing import Optional


class FeedError(Exception):
    """Base class for all adapter failures."""
    pass


class HttpError(FeedError):
    """Endpoint answered with a non-2xx status."""

    def __init__(self, status: int, url: Optional[str] = None):
        self.status = status
        self.url = url
        super().__init__(f"HTTP {status}")


class InvalidResponse(FeedError):
    """Expected fields are missing or malformed."""
    pass


class NonFiniteValue(FeedError):
    """Numeric decode produced NaN/Infinity, or a non-positive price."""
    pass


class NotFound(FeedError):
    """Instrument key absent from a keyed response."""
    pass
