"""Feed access control.

The feed exposes every customer's contact and order data, so it is only
served to callers that:
- present a secret issued for the current SyncFeed request, and
- connect from an allowed address (directly, or through a trusted proxy
  reporting the client address in a header).
"""

import ipaddress
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Mapping, Optional

from core.config.settings import DEFAULT_SECRET_TTL_SECONDS, FeedSettings
from core.errors import AccessDeniedError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class IssuedSecret:
    """A feed secret with its expiry."""
    value: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class FeedSecretStore:
    """In-memory store of short-lived feed secrets.

    Secrets are lost on restart, which only invalidates pending feed
    downloads.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_SECRET_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._secrets: Dict[str, IssuedSecret] = {}
        self._lock = threading.Lock()

    def issue(self) -> str:
        """Create a new random hex secret."""
        now = self._clock()
        secret = IssuedSecret(value=secrets.token_hex(16), expires_at=now + self.ttl)
        with self._lock:
            self._purge(now)
            self._secrets[secret.value] = secret
        return secret.value

    def verify(self, value: Optional[str]) -> None:
        """Raise AccessDeniedError unless value is a live secret."""
        now = self._clock()
        with self._lock:
            secret = self._secrets.get(value or "")
            if secret is None or secret.is_expired(now):
                raise AccessDeniedError("Failed to validate secret.")

    def _purge(self, now: datetime) -> None:
        expired = [value for value, secret in self._secrets.items() if secret.is_expired(now)]
        for value in expired:
            del self._secrets[value]


def _ipv4(value: str) -> Optional[ipaddress.IPv4Address]:
    try:
        return ipaddress.IPv4Address(value.strip())
    except ValueError:
        return None


def check_client_ip(
    remote_addr: Optional[str],
    headers: Mapping[str, str],
    settings: FeedSettings,
) -> None:
    """Raise AccessDeniedError unless the client may download the feed.

    With a proxy header configured, the header's address must fall inside
    [proxy_ip_start, proxy_ip_end]. Otherwise the remote address must be in
    the allow-list.
    """
    if settings.proxy_header:
        # Header lookup is case-insensitive on Starlette headers only
        forwarded = headers.get(settings.proxy_header) or headers.get(settings.proxy_header.lower())
        client = _ipv4((forwarded or "").split(",")[0])
        start = ipaddress.IPv4Address(settings.proxy_ip_start)
        end = ipaddress.IPv4Address(settings.proxy_ip_end)
        if client is None:
            raise AccessDeniedError("Invalid IP in range or request was made from an invalid IP.")
        if not start <= client <= end:
            raise AccessDeniedError("Proxy ip was not in range.")
        return

    if remote_addr not in settings.allowed_ips:
        raise AccessDeniedError(f"{remote_addr} IP is not allowed.")
