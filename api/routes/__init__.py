"""API Routes Package."""

from api.routes import feed, health

__all__ = [
    "feed",
    "health",
]
