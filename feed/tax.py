"""Tax percent reconciliation for feed product rows.

The shop does not store historical tax rates on orders, so the current rate
table can disagree with what was actually charged (rates changed after the
order was created, or taxes were recalculated). The percent exported for a
line is therefore:

1. the sum of the currently matching rates, if applying it to the line's net
   total reproduces the recorded tax exactly (after rounding to the shop's
   price decimals), otherwise
2. the percent derived from the recorded figures, rounded to an integer.

Exposes high-level function:
- resolve_tax_percent(order, item, shop) -> Decimal
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from core.errors import DomainError
from core.models.canonical import (
    CouponItem,
    FeeItem,
    Order,
    ProductItem,
    ShippingItem,
    ShopContext,
    TaxBasis,
    TaxLocation,
    TaxRate,
)
from core.observability.logging import get_logger
from feed.identity import describe_item
from feed.money import format_decimal, round_half_up, to_decimal

logger = get_logger(__name__)

STANDARD_TAX_CLASS = "standard"


# =============================================================================
# Tax Location
# =============================================================================

def order_tax_location(order: Order, shop: ShopContext) -> TaxLocation:
    """Location the order's taxes were calculated for.

    Shipping-based taxes fall back to billing when the order has no shipping
    country; the shop's base location is used for base-based taxes and when
    the chosen address has no country.
    """
    basis = shop.tax_based_on
    if basis == TaxBasis.SHIPPING and not order.shipping.country:
        basis = TaxBasis.BILLING

    address = order.billing if basis == TaxBasis.BILLING else order.shipping
    location = TaxLocation(
        country=address.country,
        state=address.state,
        postcode=address.postcode,
        city=address.city,
    )

    if basis == TaxBasis.BASE or not location.country:
        return shop.base_location
    return location


# =============================================================================
# Rate Table
# =============================================================================

def _normalize_postcode(postcode: str) -> str:
    return postcode.upper().replace(" ", "")


def _postcode_matches(pattern: str, postcode: str) -> bool:
    """Exact match, "12*" prefix wildcard or "1000...1999" numeric range."""
    pattern = _normalize_postcode(pattern)
    postcode = _normalize_postcode(postcode)
    if "..." in pattern:
        low, high = pattern.split("...", 1)
        if low.isdigit() and high.isdigit() and postcode.isdigit():
            return int(low) <= int(postcode) <= int(high)
        return False
    if pattern.endswith("*"):
        return postcode.startswith(pattern[:-1])
    return pattern == postcode


def _specificity(rate: TaxRate) -> int:
    return sum([
        bool(rate.country),
        bool(rate.state),
        bool(rate.postcodes),
        bool(rate.cities),
    ])


class TaxRateTable:
    """Lookup over the shop's tax rate rows.

    Like the shop, only the most specific matching rate of each priority
    level applies; rates of different priorities add up.
    """

    def __init__(self, rates: Iterable[TaxRate]):
        self._rates: List[TaxRate] = list(rates)

    @staticmethod
    def _class_key(tax_class: str) -> str:
        tax_class = (tax_class or "").strip().lower()
        return "" if tax_class == STANDARD_TAX_CLASS else tax_class

    def _matches(self, rate: TaxRate, tax_class: str, location: TaxLocation) -> bool:
        if self._class_key(rate.tax_class) != tax_class:
            return False
        if rate.country and rate.country.upper() != location.country.upper():
            return False
        if rate.state and rate.state.upper() != location.state.upper():
            return False
        if rate.postcodes and not any(
            _postcode_matches(pattern, location.postcode) for pattern in rate.postcodes
        ):
            return False
        if rate.cities and location.city.upper() not in {city.upper() for city in rate.cities}:
            return False
        return True

    def _find(self, tax_class: str, location: TaxLocation, shipping_only: bool) -> List[TaxRate]:
        if not location.country:
            return []

        tax_class = self._class_key(tax_class)
        matched = [
            rate for rate in self._rates
            if (rate.shipping or not shipping_only) and self._matches(rate, tax_class, location)
        ]
        matched.sort(key=lambda rate: (rate.priority, -_specificity(rate), rate.id))

        found: List[TaxRate] = []
        seen_priorities = set()
        for rate in matched:
            if rate.priority in seen_priorities:
                continue
            seen_priorities.add(rate.priority)
            found.append(rate)
        return found

    def find_rates(self, tax_class: str, location: TaxLocation) -> List[TaxRate]:
        """Rates applying to products, fees and coupons."""
        return self._find(tax_class, location, shipping_only=False)

    def find_shipping_rates(self, tax_class: str, location: TaxLocation) -> List[TaxRate]:
        """Rates applying to shipping lines."""
        return self._find(tax_class, location, shipping_only=True)


# =============================================================================
# Reconciliation
# =============================================================================

def item_amounts(item) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """(net total, tax) of an item, read with its kind's own accessors.

    Product subtotals exclude coupon discounts; coupons report the discount
    they took off.
    """
    if isinstance(item, CouponItem):
        return item.discount, item.discount_tax
    if isinstance(item, (FeeItem, ShippingItem)):
        return item.total, item.total_tax
    if isinstance(item, ProductItem):
        return item.subtotal, item.subtotal_tax
    raise DomainError(f"Unexpected item class '{type(item).__name__}'")


def resolve_tax_percent(
    order: Order,
    item,
    shop: ShopContext,
    table: Optional[TaxRateTable] = None,
) -> Decimal:
    """Tax percent to export for an order item.

    Args:
        order: Order the item belongs to
        item: Product, fee, shipping or coupon item
        shop: Shop context (tax basis, base location, rates, price decimals)
        table: Prebuilt rate table (built from shop.tax_rates if omitted)

    Raises:
        DomainError: On non-numeric amounts or rates, an unknown item kind, or
            a tax recorded on a zero total
    """
    label = describe_item(item)
    if not isinstance(item, (CouponItem, FeeItem, ProductItem, ShippingItem)):
        raise DomainError(f"Unexpected item class '{type(item).__name__}'", order.id, label)

    if table is None:
        table = TaxRateTable(shop.tax_rates)
    location = order_tax_location(order, shop)
    if isinstance(item, ShippingItem):
        rates = table.find_shipping_rates(item.tax_class, location)
    else:
        rates = table.find_rates(item.tax_class, location)

    raw_total, raw_tax = item_amounts(item)
    total = to_decimal(raw_total)
    tax = to_decimal(raw_tax)
    if total is None:
        raise DomainError(f"An item has a non-numeric total with a value of: {raw_total!r}", order.id, label)
    if tax is None:
        raise DomainError(f"An item has a non-numeric totalTax, with a value of: {raw_tax!r}", order.id, label)

    percent = Decimal(0)
    for rate in rates:
        value = to_decimal(rate.rate)
        if value is None:
            raise DomainError(f"Non-numeric tax rate: '{rate.rate}'.", order.id, label)
        percent += value

    calculated = round_half_up(total * percent / 100, shop.price_decimals)
    if calculated == tax:
        return percent

    if total == 0:
        raise DomainError(f"Tax of {format_decimal(tax)} recorded on a zero total", order.id, label)

    recorded = round_half_up(100 * tax / total, 0)
    logger.debug(
        "Tax rate table disagrees with recorded tax, using recorded percent",
        extra_fields={
            "order_id": order.id,
            "item": label,
            "table_percent": format_decimal(percent),
            "recorded_percent": format_decimal(recorded),
        },
    )
    return recorded


def format_percent(percent: Decimal) -> str:
    """VAT string of a product row, e.g. "27%"."""
    return f"{format_decimal(percent)}%"
