"""Feed error taxonomy.

All errors raised while building an export feed derive from FeedError, so
callers (API routes, CLI) can turn any of them into a single failure
response. Nothing here is retried: a failed export is aborted as a whole.
"""

from typing import Optional


class FeedError(Exception):
    """Base exception for all feed errors."""

    def __init__(
        self,
        message: str,
        order_id: Optional[int] = None,
        item: Optional[str] = None,
    ):
        where = []
        if order_id is not None:
            where.append(f"Order #{order_id}")
        if item:
            where.append(item)
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)
        self.order_id = order_id
        self.item = item


class RangeError(FeedError):
    """An identifier would collide or exceed its namespace bounds."""
    pass


class DomainError(FeedError):
    """Unexpected locale/country/status/item kind or non-numeric amount."""
    pass


class ConfigurationError(FeedError):
    """A required option is missing or invalid."""

    def __init__(self, message: str, option: Optional[str] = None):
        super().__init__(message)
        self.option = option


class AccessDeniedError(FeedError):
    """The feed was requested from a disallowed address or with a bad secret."""
    pass
