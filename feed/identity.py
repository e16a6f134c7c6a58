"""Identifier namespace of the CRM feed.

Every exported ID (project, order, product) lives in one flat integer space
per CRM account:

- projects: registered customer ID, or guest order ID + guest offset
- products: catalog product ID below RESERVED_PRODUCT_ID_START, or
  RESERVED_PRODUCT_ID_START + item ID for fees, shipping, coupons and
  deleted products
- all of the above: + shop ID * SHOP_OFFSET_SIZE

Reserved IDs are keyed by the item ID only, so they are unique within an
order but not across orders. FeedBuilder rejects a document in which two
orders share a reserved ID; separate feed builds are not checked.
"""

from enum import Enum

from core.errors import DomainError, RangeError
from core.models.canonical import (
    DEFAULT_GUEST_OFFSET,
    CouponItem,
    FeeItem,
    ProductItem,
    ShippingItem,
)
from feed.constants import MAX_SHOP_ID, RESERVED_PRODUCT_ID_START, SHOP_OFFSET_SIZE


def describe_item(item) -> str:
    """Short item description for error messages."""
    if isinstance(item, CouponItem):
        return f"Coupon item #{item.id}"
    if isinstance(item, FeeItem):
        return f"Fee item #{item.id}"
    if isinstance(item, ProductItem):
        return f"Product #{item.product_id or 0}"
    if isinstance(item, ShippingItem):
        return f"Shipping fee item #{item.id}"
    return f"Unexpected item class: '{type(item).__name__}'"


def product_node_id(item) -> int:
    """Original product ID or a reserved-range one for special cases.

    Raises:
        RangeError: If a catalog product ID falls into the reserved range
        DomainError: If the item is not one of the four item kinds
    """
    if isinstance(item, ProductItem):
        product_id = item.product_id
        if product_id is not None and product_id >= RESERVED_PRODUCT_ID_START:
            raise RangeError(f"Product ID '{product_id}' is in reserved range.")
        if product_id is not None and product_id < 0:
            raise RangeError(f"Product ID '{product_id}' is negative.")
        # Deleted products don't have a product ID
        if not product_id:
            return RESERVED_PRODUCT_ID_START + item.id
        return product_id

    if isinstance(item, (CouponItem, FeeItem, ShippingItem)):
        return RESERVED_PRODUCT_ID_START + item.id

    raise DomainError(f"Unexpected order item class: '{type(item).__name__}'.")


def with_shop_offset(id: int, shop_id: int) -> int:
    """Move an ID into the shop's own block of the namespace.

    Raises:
        RangeError: If the ID would leave its block or the shop ID is invalid
    """
    if id > SHOP_OFFSET_SIZE:
        raise RangeError(f"ID #{id} exceeds SHOP_OFFSET_SIZE, posing a threat of ID collision.")
    if id < 0:
        raise RangeError(f"ID #{id} is negative.")
    if not 0 <= shop_id <= MAX_SHOP_ID:
        raise RangeError(f"Shop ID #{shop_id} is out of range (0-{MAX_SHOP_ID}).")
    return id + shop_id * SHOP_OFFSET_SIZE


def order_project_id(
    order_id: int,
    customer_id: int,
    guest_offset: int = DEFAULT_GUEST_OFFSET,
) -> int:
    """CRM project ID of an order.

    Args:
        order_id: Order ID
        customer_id: Customer ID (0 for guest orders)
        guest_offset: Offset added to guest order IDs

    Raises:
        RangeError: If a registered customer's ID is >= guest_offset
    """
    # Guest orders get their own project each
    if not customer_id:
        return order_id + guest_offset

    if customer_id >= guest_offset:
        raise RangeError(f"Registered user ID (#{customer_id}) is out of range")
    return customer_id


class ProjectKind(str, Enum):
    """What a requested project ID refers to."""
    CUSTOMER = "customer"  # all orders of a registered customer
    GUEST = "guest"        # a single guest order


def requested_project_kind(project_id: int, guest_offset: int = DEFAULT_GUEST_OFFSET) -> ProjectKind:
    if project_id < guest_offset:
        return ProjectKind.CUSTOMER
    return ProjectKind.GUEST


def guest_order_id(project_id: int, guest_offset: int = DEFAULT_GUEST_OFFSET) -> int:
    """Order ID of a guest project."""
    return project_id - guest_offset
