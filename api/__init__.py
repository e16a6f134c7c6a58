"""API Package.

FastAPI server serving the MiniCRM order feed.
"""

from api.server import create_app

__all__ = [
    "create_app",
]
