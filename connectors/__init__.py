"""CRM Connectors - outbound integrations.

The feed itself is CRM-agnostic XML built by the feed package. This package
handles talking to the CRM:
- authentication (HTTP Basic with the account's system ID and API key)
- SyncFeed requests pointing the CRM at the feed URL

To add a new CRM, create a new folder (e.g., minicrm/) with its client.
"""

from connectors.minicrm import MiniCRMClient

__all__ = [
    "MiniCRMClient",
]
