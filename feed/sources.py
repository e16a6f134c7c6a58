"""Order sources for the feed.

An order source supplies the shop context and the orders a feed query
selects. The feed builder only sees materialized, validated orders.

Exposes high-level function:
- build_feed(source, query_text, settings) -> bytes
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from core.config.settings import FeedSettings
from core.errors import ConfigurationError, DomainError
from core.models.canonical import Order, ShopContext
from core.observability.logging import get_logger, with_correlation
from feed.builder import FeedBuilder, render
from feed.identity import ProjectKind, guest_order_id, requested_project_kind
from feed.query import FeedQuery, parse_feed_query

logger = get_logger(__name__)


def _modified_at(order: Order) -> datetime:
    return order.date_modified or order.date_created


def newest_first(orders: Iterable[Order]) -> List[Order]:
    """Orders sorted by modification time, most recent first."""
    return sorted(orders, key=lambda order: (_modified_at(order), order.id), reverse=True)


# =============================================================================
# Interface
# =============================================================================

class OrderSource(ABC):
    """Where the feed reads orders from."""

    @abstractmethod
    def shop_context(self) -> ShopContext:
        """Guest offset, price decimals, tax basis and rates of the shop."""
        pass

    @abstractmethod
    def all_orders(self) -> List[Order]:
        """Every order in any status, most recently modified first."""
        pass

    @abstractmethod
    def orders_of_customer(self, customer_id: int) -> List[Order]:
        """Orders of a registered customer, most recently modified first."""
        pass

    @abstractmethod
    def get_order(self, order_id: int) -> Optional[Order]:
        """A single order, or None if it doesn't exist."""
        pass


# =============================================================================
# Implementations
# =============================================================================

class InMemoryOrderSource(OrderSource):
    """Order source over already loaded orders."""

    def __init__(self, orders: Iterable[Order], shop: Optional[ShopContext] = None):
        self._orders = newest_first(orders)
        self._shop = shop or ShopContext()

    def shop_context(self) -> ShopContext:
        return self._shop

    def all_orders(self) -> List[Order]:
        return list(self._orders)

    def orders_of_customer(self, customer_id: int) -> List[Order]:
        return [order for order in self._orders if order.customer_id == customer_id]

    def get_order(self, order_id: int) -> Optional[Order]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None


class JsonOrderSource(InMemoryOrderSource):
    """Order source reading a JSON shop export.

    The file holds an object with a "shop" object (ShopContext fields) and
    an "orders" list (Order fields).
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        data = self._read()
        shop = self._parse_shop(data.get("shop") or {})
        orders = [self._parse_order(raw) for raw in data.get("orders") or []]
        super().__init__(orders, shop)
        logger.debug(
            "Loaded shop export",
            extra_fields={"path": str(self.path), "order_count": len(orders)},
        )

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read orders_file '{self.path}': {e.strerror or e}",
                option="orders_file",
            ) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DomainError(f"Invalid shop export '{self.path}': {e}") from e
        if not isinstance(data, dict):
            raise DomainError(f"Invalid shop export '{self.path}': expected an object")
        return data

    def _parse_shop(self, raw: Dict[str, Any]) -> ShopContext:
        try:
            return ShopContext.model_validate(raw)
        except ValidationError as e:
            raise DomainError(f"Invalid shop context: {e.errors()[0]['msg']}") from e

    @staticmethod
    def _parse_order(raw: Dict[str, Any]) -> Order:
        try:
            return Order.model_validate(raw)
        except ValidationError as e:
            error = e.errors()[0]
            location = ".".join(str(part) for part in error["loc"])
            order_id = raw.get("id") if isinstance(raw, dict) else None
            raise DomainError(f"Invalid order field '{location}': {error['msg']}", order_id) from e


# =============================================================================
# Selection
# =============================================================================

def select_orders(source: OrderSource, query: FeedQuery) -> List[Order]:
    """Orders a feed query asks for, duplicates dropped.

    A requested project ID below the guest offset selects all orders of
    that customer; any other ID selects the single guest order it encodes.
    """
    if query.all_projects:
        candidates = source.all_orders()
    else:
        guest_offset = source.shop_context().guest_offset
        candidates = []
        for project_id in query.project_ids:
            if requested_project_kind(project_id, guest_offset) == ProjectKind.CUSTOMER:
                candidates.extend(source.orders_of_customer(project_id))
                continue
            order = source.get_order(guest_order_id(project_id, guest_offset))
            if order is not None:
                candidates.append(order)

    selected: List[Order] = []
    seen = set()
    for order in candidates:
        if order.id in seen:
            continue
        seen.add(order.id)
        selected.append(order)
    return selected


def build_feed(source: OrderSource, query_text: str, settings: FeedSettings) -> bytes:
    """Parse a feed query, select its orders and render the document.

    Raises:
        FeedError: Any feed error aborts the whole document
    """
    query = parse_feed_query(query_text)
    with with_correlation(feed_query=query.text, shop_id=settings.shop_id):
        shop = source.shop_context()
        orders = select_orders(source, query)
        logger.info("Selected orders", extra_fields={"order_count": len(orders)})
        document = FeedBuilder(settings, shop).build(orders)
        return render(document)
