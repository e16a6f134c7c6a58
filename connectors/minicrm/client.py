"""MiniCRM SyncFeed client.

Asks the CRM to download the feed of the given projects. The CRM answers
only after it has downloaded the feed (processing happens asynchronously on
its side), so the request waits up to TIMEOUT_IN_SECS.
"""

import asyncio
from typing import Optional
from urllib.parse import urlencode

import aiohttp

from core.config.settings import FeedSettings
from core.observability.logging import get_logger
from core.security.feed_access import FeedSecretStore
from feed.constants import TIMEOUT_IN_SECS

logger = get_logger(__name__)

PRODUCTION_HOST = "r3.minicrm.hu"
TEST_HOST = "r3-test.minicrm.hu"


class MiniCRMClient:
    """Sends SyncFeed requests for one CRM account."""

    def __init__(
        self,
        settings: FeedSettings,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            settings: Feed settings (system_id and api_key are required)
            session: Shared HTTP session (a new one per request if omitted)
        """
        settings.require_sync_options()
        self.settings = settings
        self._session = session

    @property
    def host(self) -> str:
        return TEST_HOST if self.settings.test_server else PRODUCTION_HOST

    def sync_feed_url(self, feed_url: str) -> str:
        """SyncFeed endpoint URL pointing the CRM at feed_url."""
        query = urlencode({"Source": feed_url})
        return f"https://{self.host}/Api/SyncFeed/{self.settings.system_id}?{query}"

    @staticmethod
    def feed_url(feed_base_url: str, project_ids: str, secret: str) -> str:
        """Public URL of the feed of the given projects ("all" or "1,2")."""
        query = urlencode({"secret": secret})
        return f"{feed_base_url.rstrip('/')}/feed/{project_ids}.xml?{query}"

    async def trigger_sync(
        self,
        project_ids: str,
        feed_base_url: str,
        secret_store: FeedSecretStore,
    ) -> bool:
        """Request a sync of the given projects.

        Args:
            project_ids: Comma-separated project IDs or "all"
            feed_base_url: Public base URL of the feed API
            secret_store: Store issuing the feed secret the CRM downloads with

        Returns:
            True if the CRM accepted the request, False otherwise (not retried)
        """
        if not project_ids:
            return True

        secret = secret_store.issue()
        url = self.sync_feed_url(self.feed_url(feed_base_url, project_ids, secret))
        auth = aiohttp.BasicAuth(self.settings.system_id, self.settings.api_key)
        timeout = aiohttp.ClientTimeout(total=TIMEOUT_IN_SECS)

        try:
            if self._session is not None:
                status = await self._get(self._session, url, auth, timeout)
            else:
                async with aiohttp.ClientSession() as session:
                    status = await self._get(session, url, auth, timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(
                "Sync request failed",
                extra_fields={"project_ids": project_ids, "error": f"{type(e).__name__}: {e}"},
            )
            return False

        if status >= 400:
            logger.warning(
                "Sync request rejected",
                extra_fields={"project_ids": project_ids, "status": status},
            )
            return False

        logger.info("Successful sync request", extra_fields={"project_ids": project_ids})
        return True

    @staticmethod
    async def _get(
        session: aiohttp.ClientSession,
        url: str,
        auth: aiohttp.BasicAuth,
        timeout: aiohttp.ClientTimeout,
    ) -> int:
        async with session.get(url, auth=auth, timeout=timeout) as response:
            await response.read()
            return response.status
