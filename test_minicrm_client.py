"""Tests for the MiniCRM SyncFeed client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import aiohttp
import pytest

from connectors.minicrm.client import MiniCRMClient
from core.config.settings import FeedSettings
from core.errors import ConfigurationError
from core.security.feed_access import FeedSecretStore

API_KEY = "0123456789abcdef0123456789ABCDEF"


@pytest.fixture
def crm_settings():
    return FeedSettings(system_id="12345", api_key=API_KEY)


def mock_session(status: int = 200) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.read = AsyncMock(return_value=b"")
    session = MagicMock()
    session.get.return_value.__aenter__ = AsyncMock(return_value=response)
    session.get.return_value.__aexit__ = AsyncMock(return_value=False)
    return session


class TestUrls:

    def test_sync_feed_url(self, crm_settings):
        client = MiniCRMClient(crm_settings)
        feed_url = MiniCRMClient.feed_url("https://shop.example/", "12,13", "abc")

        assert feed_url == "https://shop.example/feed/12,13.xml?secret=abc"
        assert client.sync_feed_url(feed_url) == (
            "https://r3.minicrm.hu/Api/SyncFeed/12345"
            "?Source=https%3A%2F%2Fshop.example%2Ffeed%2F12%2C13.xml%3Fsecret%3Dabc"
        )

    def test_test_server(self, crm_settings):
        client = MiniCRMClient(crm_settings.model_copy(update={"test_server": True}))
        assert client.host == "r3-test.minicrm.hu"

    def test_requires_account(self):
        with pytest.raises(ConfigurationError):
            MiniCRMClient(FeedSettings())


class TestTriggerSync:

    def test_successful_request(self, crm_settings):
        session = mock_session()
        store = FeedSecretStore()

        ok = asyncio.run(MiniCRMClient(crm_settings, session).trigger_sync("12", "https://shop.example", store))

        assert ok is True
        url = session.get.call_args.args[0]
        source = parse_qs(urlparse(url).query)["Source"][0]
        secret = parse_qs(urlparse(source).query)["secret"][0]
        store.verify(secret)
        kwargs = session.get.call_args.kwargs
        assert kwargs["auth"] == aiohttp.BasicAuth("12345", API_KEY)
        assert kwargs["timeout"].total == 120

    def test_nothing_to_sync(self, crm_settings):
        session = mock_session()
        ok = asyncio.run(MiniCRMClient(crm_settings, session).trigger_sync("", "https://shop.example", FeedSecretStore()))
        assert ok is True
        session.get.assert_not_called()

    def test_rejected_request(self, crm_settings):
        session = mock_session(status=401)
        ok = asyncio.run(MiniCRMClient(crm_settings, session).trigger_sync("12", "https://shop.example", FeedSecretStore()))
        assert ok is False

    def test_connection_error(self, crm_settings):
        session = MagicMock()
        session.get.side_effect = aiohttp.ClientConnectionError("refused")
        ok = asyncio.run(MiniCRMClient(crm_settings, session).trigger_sync("12", "https://shop.example", FeedSecretStore()))
        assert ok is False
