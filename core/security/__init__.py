"""Security module - feed secrets and client address checks."""

from core.security.feed_access import (
    FeedSecretStore,
    IssuedSecret,
    check_client_ip,
)

__all__ = [
    "FeedSecretStore",
    "IssuedSecret",
    "check_client_ip",
]
