"""Tests for tax rate lookup and tax percent reconciliation."""

from decimal import Decimal

import pytest

from core.errors import DomainError
from core.models.canonical import (
    CouponItem,
    FeeItem,
    ShippingItem,
    ShopContext,
    TaxBasis,
    TaxLocation,
    TaxRate,
)
from feed.tax import (
    TaxRateTable,
    _postcode_matches,
    format_percent,
    item_amounts,
    order_tax_location,
    resolve_tax_percent,
)


HU_BUDAPEST = TaxLocation(country="HU", postcode="1011", city="Budapest")


class TestTaxRateTable:
    """Rate matching follows the shop's rules."""

    def test_standard_class_matches_empty_class(self):
        table = TaxRateTable([TaxRate(id=1, rate=Decimal("27"), country="HU")])
        assert [r.id for r in table.find_rates("standard", HU_BUDAPEST)] == [1]
        assert [r.id for r in table.find_rates("", HU_BUDAPEST)] == [1]

    def test_other_class_and_country_filtered(self):
        table = TaxRateTable([
            TaxRate(id=1, rate=Decimal("27"), country="HU"),
            TaxRate(id=2, rate=Decimal("5"), country="HU", tax_class="reduced-rate"),
            TaxRate(id=3, rate=Decimal("19"), country="DE"),
        ])
        assert [r.id for r in table.find_rates("reduced-rate", HU_BUDAPEST)] == [2]

    def test_most_specific_rate_per_priority(self):
        table = TaxRateTable([
            TaxRate(id=1, rate=Decimal("27"), country="HU"),
            TaxRate(id=2, rate=Decimal("18"), country="HU", postcodes=["1011"]),
            TaxRate(id=3, rate=Decimal("2"), country="HU", priority=2),
        ])
        assert [r.id for r in table.find_rates("", HU_BUDAPEST)] == [2, 3]

    def test_shipping_lookup_skips_non_shipping_rates(self):
        table = TaxRateTable([TaxRate(id=1, rate=Decimal("27"), country="HU", shipping=False)])
        assert table.find_shipping_rates("", HU_BUDAPEST) == []
        assert len(table.find_rates("", HU_BUDAPEST)) == 1

    def test_location_without_country_matches_nothing(self):
        table = TaxRateTable([TaxRate(id=1, rate=Decimal("27"))])
        assert table.find_rates("", TaxLocation()) == []

    @pytest.mark.parametrize("pattern,postcode,expected", [
        ("1011", "1011", True),
        ("10*", "1011", True),
        ("10*", "2011", False),
        ("1000...1999", "1500", True),
        ("1000...1999", "2000", False),
        ("sw1a 1aa", "SW1A1AA", True),
    ])
    def test_postcode_patterns(self, pattern, postcode, expected):
        assert _postcode_matches(pattern, postcode) is expected


class TestTaxLocation:
    """Orders are taxed by billing, shipping or the shop's base address."""

    def test_shipping_basis_falls_back_to_billing(self, order_factory, address_factory):
        shop = ShopContext(tax_based_on=TaxBasis.SHIPPING)
        order = order_factory(
            billing=address_factory(country="AT"),
            shipping=address_factory(country=""),
        )
        assert order_tax_location(order, shop).country == "AT"

    def test_base_basis_uses_base_location(self, order_factory):
        shop = ShopContext(tax_based_on=TaxBasis.BASE, base_location=TaxLocation(country="RO"))
        assert order_tax_location(order_factory(), shop).country == "RO"

    def test_missing_country_uses_base_location(self, order_factory, address_factory):
        shop = ShopContext(tax_based_on=TaxBasis.BILLING, base_location=TaxLocation(country="HU"))
        order = order_factory(billing=address_factory(country=""))
        assert order_tax_location(order, shop).country == "HU"


class TestResolveTaxPercent:
    """Table percent when it reproduces the recorded tax, else the recorded one."""

    def test_table_percent_used_when_it_matches(self, order_factory, shop):
        order = order_factory()
        assert resolve_tax_percent(order, order.items[0], shop) == Decimal("27")

    def test_fractional_table_percent(self, order_factory, product_factory):
        shop = ShopContext(
            tax_based_on=TaxBasis.BILLING,
            tax_rates=[TaxRate(id=1, rate=Decimal("5.5"), country="HU")],
        )
        item = product_factory(subtotal=Decimal("100"), subtotal_tax=Decimal("5.50"))
        order = order_factory(items=[item])
        assert resolve_tax_percent(order, item, shop) == Decimal("5.5")

    def test_recorded_percent_wins_when_table_disagrees(self, order_factory, product_factory):
        shop = ShopContext(
            tax_based_on=TaxBasis.BILLING,
            tax_rates=[TaxRate(id=1, rate=Decimal("20"), country="HU")],
        )
        item = product_factory(subtotal=Decimal("100"), subtotal_tax=Decimal("27"))
        order = order_factory(items=[item])
        assert resolve_tax_percent(order, item, shop) == Decimal("27")

    def test_recorded_percent_is_rounded(self, order_factory, product_factory):
        shop = ShopContext(tax_based_on=TaxBasis.BILLING)
        item = product_factory(subtotal=Decimal("3"), subtotal_tax=Decimal("0.80"))
        order = order_factory(items=[item])
        assert resolve_tax_percent(order, item, shop) == Decimal("27")

    def test_coupon_uses_discount_amounts(self, order_factory, shop):
        coupon = CouponItem(id=7, code="SALE", discount=Decimal("10"), discount_tax=Decimal("2.70"))
        order = order_factory(items=[coupon])
        assert item_amounts(coupon) == (Decimal("10"), Decimal("2.70"))
        assert resolve_tax_percent(order, coupon, shop) == Decimal("27")

    def test_shipping_uses_total_amounts(self, order_factory, shop):
        shipping = ShippingItem(id=4, method_title="Flat rate", total=Decimal("1000"), total_tax=Decimal("270"))
        order = order_factory(items=[shipping])
        assert resolve_tax_percent(order, shipping, shop) == Decimal("27")

    def test_untaxed_zero_total(self, order_factory):
        fee = FeeItem(id=3, name="Free gift wrap", total=Decimal("0"), total_tax=Decimal("0"))
        order = order_factory(items=[fee])
        assert resolve_tax_percent(order, fee, ShopContext()) == Decimal("0")

    def test_tax_on_zero_total_rejected(self, order_factory):
        fee = FeeItem(id=3, name="Broken", total=Decimal("0"), total_tax=Decimal("1"))
        order = order_factory(items=[fee])
        with pytest.raises(DomainError, match=r"zero total \(Order #100, Fee item #3\)"):
            resolve_tax_percent(order, fee, ShopContext())

    def test_non_numeric_total_rejected(self, order_factory, product_factory, shop):
        item = product_factory(subtotal=None)
        order = order_factory(items=[item])
        with pytest.raises(DomainError, match=r"non-numeric total.*\(Order #100, Product #42\)"):
            resolve_tax_percent(order, item, shop)

    def test_non_numeric_tax_rejected(self, order_factory, shop):
        shipping = ShippingItem(id=4, total=Decimal("10"), total_tax=None)
        order = order_factory(items=[shipping])
        with pytest.raises(DomainError, match="Shipping fee item #4"):
            resolve_tax_percent(order, shipping, shop)

    def test_unknown_item_kind_rejected(self, order_factory, shop):
        with pytest.raises(DomainError, match="Unexpected item class"):
            resolve_tax_percent(order_factory(), object(), shop)


def test_format_percent():
    assert format_percent(Decimal("27")) == "27%"
    assert format_percent(Decimal("5.50")) == "5.5%"
    assert format_percent(Decimal("0")) == "0%"
