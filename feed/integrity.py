"""Grand total check of rendered orders.

Recomputes an order's gross total from its <Products> rows the way the shop
rounds it (net row subtotal and gross row subtotal both rounded to the price
decimals) and compares it with the total recorded on the order. A mismatch
means the feed would import a different amount into the CRM than the
customer paid.
"""

import re
from decimal import Decimal
from xml.etree import ElementTree as ET

from core.errors import DomainError
from core.models.canonical import Order
from feed.money import format_decimal, round_half_up, to_decimal

VAT_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)%$")


def order_node_total(order_element: ET.Element, price_decimals: int, order_id: int) -> Decimal:
    """Gross total of a rendered <Order> element."""
    total = Decimal(0)
    for product in order_element.iterfind("Products/Product"):
        vat = product.findtext("VAT", "")
        match = VAT_PATTERN.match(vat)
        if match is None:
            raise DomainError(
                f"Invalid VAT '{vat}' during integrity check.",
                order_id,
                f"Product #{product.get('Id')}",
            )
        multiplier = 1 + Decimal(match.group(1)) / 100

        net = to_decimal(product.findtext("PriceNet")) * int(product.findtext("Quantity"))
        net = round_half_up(net, price_decimals)
        total += round_half_up(net * multiplier, price_decimals)
    return round_half_up(total, price_decimals)


def check_order_integrity(order: Order, order_element: ET.Element, price_decimals: int) -> None:
    """Compare the rendered order's grand total with the recorded one.

    Raises:
        DomainError: If the recorded total is missing or the totals differ
    """
    recorded = to_decimal(order.total)
    if recorded is None:
        raise DomainError(f"Order's total is non-numeric: '{order.total}'.", order.id)

    calculated = order_node_total(order_element, price_decimals, order.id)
    if calculated != recorded:
        raise DomainError(
            f"Order #{order.id} grand total differs: "
            f"{format_decimal(recorded)} (shop) != {format_decimal(calculated)} (feed)."
        )
