"""Order grouping and line aggregation.

Orders are grouped into CRM projects (one per registered customer, one per
guest order), and each order's items are turned into product rows. Product
items resolving to the same node ID within one order share a row: the first
occurrence fixes name and unit price, later ones only add to its quantity.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from core.config.settings import FeedSettings
from core.errors import DomainError
from core.models.canonical import (
    DEFAULT_GUEST_OFFSET,
    CouponItem,
    FeeItem,
    ItemKind,
    Order,
    ProductItem,
    ShippingItem,
    ShopContext,
)
from feed.constants import UNIT_PRICE_PLACES
from feed.identity import describe_item, order_project_id, product_node_id
from feed.locale_tables import COUPON_LABEL, SHIPPING_LABEL
from feed.money import round_half_up, to_decimal
from feed.tax import TaxRateTable, resolve_tax_percent


@dataclass
class AggregatedLine:
    """One product row of an order in the feed (before shop offset)."""
    node_id: int
    kind: ItemKind
    name: str
    unit_price: Decimal
    quantity: int
    tax_percent: Decimal
    sku: str = ""
    description: str = ""


# =============================================================================
# Projects
# =============================================================================

def group_orders_by_project(
    orders: Iterable[Order],
    guest_offset: int = DEFAULT_GUEST_OFFSET,
) -> Dict[int, List[Order]]:
    """Group orders by project ID, keeping the caller's order in each group."""
    projects: Dict[int, List[Order]] = {}
    for order in orders:
        project_id = order_project_id(order.id, order.customer_id, guest_offset)
        projects.setdefault(project_id, []).append(order)
    return projects


def project_status(order_count: int) -> str:
    """Project status key derived from the number of orders."""
    if order_count == 0:
        return "registered"
    if order_count == 1:
        return "new"
    return "promising"


# =============================================================================
# Lines
# =============================================================================

def line_name(item, locale: str) -> str:
    """Display name of a product row."""
    if isinstance(item, CouponItem):
        return f'{COUPON_LABEL.get(locale, "Coupon")}: "{item.code}"'
    if isinstance(item, ShippingItem):
        return f"{SHIPPING_LABEL.get(locale, 'Shipping')}: {item.method_title}"
    return item.name


def line_quantity(item) -> int:
    """Products carry a quantity, every other kind counts as one."""
    if isinstance(item, ProductItem):
        return item.quantity
    return 1


def line_net_total(item) -> Optional[Decimal]:
    """Net line total; coupons count as a negative amount."""
    if isinstance(item, CouponItem):
        discount = to_decimal(item.discount)
        return -discount if discount is not None else None
    if isinstance(item, (FeeItem, ShippingItem)):
        return to_decimal(item.total)
    if isinstance(item, ProductItem):
        return to_decimal(item.subtotal)
    raise DomainError(f"Unexpected item class: '{type(item).__name__}'")


def aggregate_order_lines(
    order: Order,
    shop: ShopContext,
    settings: FeedSettings,
    table: Optional[TaxRateTable] = None,
) -> List[AggregatedLine]:
    """Product rows of one order, with repeated products merged.

    Names are localized with settings.locale; catalog descriptions are only
    carried when settings.sync_product_desc is set.

    Raises:
        DomainError: On corrupted amounts or quantities, or unknown item kinds
        RangeError: If a product ID falls into the reserved range
    """
    if table is None:
        table = TaxRateTable(shop.tax_rates)

    lines: List[AggregatedLine] = []
    product_lines: Dict[int, AggregatedLine] = {}

    for item in order.items:
        tax_percent = resolve_tax_percent(order, item, shop, table)
        node_id = product_node_id(item)
        quantity = line_quantity(item)

        if isinstance(item, ProductItem):
            existing = product_lines.get(node_id)
            if existing is not None:
                existing.quantity += quantity
                continue

        if quantity == 0:
            raise DomainError("An item has a zero quantity", order.id, describe_item(item))

        net_total = line_net_total(item)
        if net_total is None:
            raise DomainError("An item has a non-numeric total", order.id, describe_item(item))

        sku = ""
        description = ""
        if isinstance(item, ProductItem) and item.product is not None:
            sku = item.product.sku
            if settings.sync_product_desc:
                description = item.product.description

        line = AggregatedLine(
            node_id=node_id,
            kind=ItemKind(item.kind),
            name=line_name(item, settings.locale),
            unit_price=round_half_up(net_total / quantity, UNIT_PRICE_PLACES),
            quantity=quantity,
            tax_percent=tax_percent,
            sku=sku,
            description=description,
        )
        lines.append(line)
        if isinstance(item, ProductItem):
            product_lines[node_id] = line

    return lines
