"""Tests for the feed ID namespace (products, projects, shop offsets)."""

from decimal import Decimal

import pytest

from core.errors import DomainError, RangeError
from core.models.canonical import CouponItem, FeeItem, ShippingItem
from feed.constants import DEFAULT_GUEST_OFFSET, RESERVED_PRODUCT_ID_START, SHOP_OFFSET_SIZE
from feed.identity import (
    ProjectKind,
    describe_item,
    guest_order_id,
    order_project_id,
    product_node_id,
    requested_project_kind,
    with_shop_offset,
)


class TestProductNodeId:
    """Product rows are keyed by catalog ID or a reserved-range ID."""

    def test_catalog_product_keeps_its_id(self, product_factory):
        assert product_node_id(product_factory(product_id=42)) == 42

    def test_deleted_product_uses_item_id(self, product_factory):
        item = product_factory(id=7, product_id=None)
        assert product_node_id(item) == RESERVED_PRODUCT_ID_START + 7

    def test_zero_product_id_counts_as_deleted(self, product_factory):
        item = product_factory(id=8, product_id=0)
        assert product_node_id(item) == RESERVED_PRODUCT_ID_START + 8

    def test_reserved_range_product_id_rejected(self, product_factory):
        with pytest.raises(RangeError, match="reserved range"):
            product_node_id(product_factory(product_id=RESERVED_PRODUCT_ID_START))

    @pytest.mark.parametrize("item", [
        FeeItem(id=3, name="Packaging", total=Decimal("10"), total_tax=Decimal("2.7")),
        ShippingItem(id=3, method_title="Flat rate", total=Decimal("10"), total_tax=Decimal("2.7")),
        CouponItem(id=3, code="SALE", discount=Decimal("10"), discount_tax=Decimal("2.7")),
    ])
    def test_non_product_items_use_item_id(self, item):
        assert product_node_id(item) == RESERVED_PRODUCT_ID_START + 3

    def test_unknown_item_kind_rejected(self):
        with pytest.raises(DomainError, match="Unexpected order item class"):
            product_node_id(object())

    def test_describe_item(self, product_factory):
        assert describe_item(product_factory(product_id=12)) == "Product #12"
        assert describe_item(CouponItem(id=7, code="X")) == "Coupon item #7"
        assert describe_item(ShippingItem(id=4)) == "Shipping fee item #4"
        assert describe_item(FeeItem(id=3)) == "Fee item #3"


class TestShopOffset:
    """Each shop gets its own block of SHOP_OFFSET_SIZE IDs."""

    @pytest.mark.parametrize("shop_id", [0, 1, 42, 99])
    @pytest.mark.parametrize("raw_id", [0, 1, 12345, RESERVED_PRODUCT_ID_START + 9, SHOP_OFFSET_SIZE - 1])
    def test_offset_is_reversible(self, raw_id, shop_id):
        encoded = with_shop_offset(raw_id, shop_id)
        assert encoded // SHOP_OFFSET_SIZE == shop_id
        assert encoded % SHOP_OFFSET_SIZE == raw_id

    def test_id_above_block_size_rejected(self):
        with pytest.raises(RangeError, match="SHOP_OFFSET_SIZE"):
            with_shop_offset(SHOP_OFFSET_SIZE + 1, 0)

    def test_negative_id_rejected(self):
        with pytest.raises(RangeError):
            with_shop_offset(-1, 0)

    @pytest.mark.parametrize("shop_id", [-1, 100])
    def test_shop_id_out_of_range_rejected(self, shop_id):
        with pytest.raises(RangeError, match="Shop ID"):
            with_shop_offset(1, shop_id)


class TestProjectId:
    """Registered customers and guest orders share one project ID space."""

    def test_guest_order_is_offset(self):
        assert order_project_id(345, 0) == 345 + DEFAULT_GUEST_OFFSET

    def test_registered_customer_keeps_id(self):
        assert order_project_id(345, 12) == 12

    def test_registered_id_at_guest_offset_rejected(self):
        with pytest.raises(RangeError, match="out of range"):
            order_project_id(345, DEFAULT_GUEST_OFFSET)

    def test_custom_guest_offset(self):
        assert order_project_id(5, 0, guest_offset=1000) == 1005
        with pytest.raises(RangeError):
            order_project_id(5, 1000, guest_offset=1000)

    def test_guest_and_registered_ids_never_collide(self):
        registered = {order_project_id(1, customer_id) for customer_id in (1, 500, DEFAULT_GUEST_OFFSET - 1)}
        guests = {order_project_id(order_id, 0) for order_id in (0, 1, 500, DEFAULT_GUEST_OFFSET - 1)}
        assert registered.isdisjoint(guests)

    def test_requested_project_kind(self):
        assert requested_project_kind(12) == ProjectKind.CUSTOMER
        assert requested_project_kind(DEFAULT_GUEST_OFFSET + 5) == ProjectKind.GUEST
        assert guest_order_id(DEFAULT_GUEST_OFFSET + 5) == 5
