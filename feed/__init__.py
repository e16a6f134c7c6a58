"""Feed engine - shop orders to a MiniCRM SyncFeed document.

Pipeline:
    query -> OrderSource -> group by project -> aggregate lines per order
    (IDs, tax percents) -> FeedBuilder -> XML bytes
"""

from feed.aggregator import AggregatedLine, aggregate_order_lines, group_orders_by_project, project_status
from feed.builder import FeedBuilder, render
from feed.identity import order_project_id, product_node_id, with_shop_offset
from feed.integrity import check_order_integrity
from feed.names import billing_name, country_name, customer_name, person_name
from feed.query import FeedQuery, parse_feed_query
from feed.sources import InMemoryOrderSource, JsonOrderSource, OrderSource, build_feed, select_orders
from feed.sync_queue import SyncQueue, all_project_ids
from feed.tax import TaxRateTable, resolve_tax_percent

__all__ = [
    "AggregatedLine",
    "FeedBuilder",
    "FeedQuery",
    "InMemoryOrderSource",
    "JsonOrderSource",
    "OrderSource",
    "SyncQueue",
    "TaxRateTable",
    "aggregate_order_lines",
    "all_project_ids",
    "billing_name",
    "build_feed",
    "check_order_integrity",
    "country_name",
    "customer_name",
    "group_orders_by_project",
    "order_project_id",
    "parse_feed_query",
    "person_name",
    "product_node_id",
    "project_status",
    "render",
    "resolve_tax_percent",
    "select_orders",
    "with_shop_offset",
]
