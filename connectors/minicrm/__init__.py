"""MiniCRM Connector Package.

Triggers SyncFeed downloads of the shop's order feed.
"""

from connectors.minicrm.client import PRODUCTION_HOST, TEST_HOST, MiniCRMClient

__all__ = [
    "MiniCRMClient",
    "PRODUCTION_HOST",
    "TEST_HOST",
]
