"""SyncFeed endpoint.

The CRM downloads /feed/{ids}.xml?secret=... after a sync request. Any
error aborts the whole document: the CRM gets a plain-text message instead
of a partial feed.
"""

from typing import Optional

from fastapi import APIRouter, Request, Response

from core.config.settings import FeedSettings
from core.errors import AccessDeniedError, ConfigurationError, FeedError
from core.observability.logging import get_logger
from core.security.feed_access import FeedSecretStore, check_client_ip
from feed.sources import JsonOrderSource, OrderSource, build_feed

logger = get_logger(__name__)

router = APIRouter()


def get_order_source(request: Request) -> OrderSource:
    """The app's order source, or a fresh read of the configured export."""
    source: Optional[OrderSource] = getattr(request.app.state, "order_source", None)
    if source is not None:
        return source

    settings: FeedSettings = request.app.state.settings
    if not settings.orders_file:
        raise ConfigurationError('Missing option "orders_file"', option="orders_file")
    return JsonOrderSource(settings.orders_file)


@router.get("/feed/{query}")
def get_feed(query: str, request: Request, secret: Optional[str] = None) -> Response:
    """Render the feed of the requested projects ("all.xml" or "1,2.xml")."""
    settings: FeedSettings = request.app.state.settings
    secret_store: FeedSecretStore = request.app.state.secret_store
    remote_addr = request.client.host if request.client else None

    try:
        check_client_ip(remote_addr, request.headers, settings)
        secret_store.verify(secret)
        body = build_feed(get_order_source(request), query, settings)
    except AccessDeniedError as e:
        logger.warning("Feed access denied", extra_fields={"remote_addr": remote_addr, "error": str(e)})
        return Response(str(e), status_code=401, media_type="text/plain")
    except FeedError as e:
        logger.error("Feed build failed", extra_fields={"feed_query": query, "error": str(e)})
        return Response(str(e), status_code=400, media_type="text/plain")

    return Response(body, media_type="application/xml")
