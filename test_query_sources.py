"""Tests for feed queries, order sources and the end-to-end feed build."""

import json
from datetime import datetime, timedelta, timezone
from xml.etree import ElementTree as ET

import pytest

from core.errors import ConfigurationError, DomainError
from feed.constants import DEFAULT_GUEST_OFFSET
from feed.query import parse_feed_query
from feed.sources import InMemoryOrderSource, JsonOrderSource, build_feed, select_orders


class TestParseFeedQuery:

    def test_all(self):
        query = parse_feed_query("all.xml")
        assert query.all_projects is True
        assert query.project_ids == []

    def test_project_ids(self):
        query = parse_feed_query("12,10000345.xml")
        assert query.all_projects is False
        assert query.project_ids == [12, 10000345]

    @pytest.mark.parametrize("text", ["", "all", "12,.xml", "all,12.xml", "12.json", "-1.xml", "a.xml"])
    def test_invalid(self, text):
        with pytest.raises(DomainError, match="Invalid query"):
            parse_feed_query(text)


@pytest.fixture
def source(order_factory, shop):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return InMemoryOrderSource([
        order_factory(id=1, customer_id=12, date_created=base),
        order_factory(id=2, customer_id=0, date_created=base + timedelta(days=1)),
        order_factory(id=3, customer_id=12, date_created=base + timedelta(days=2)),
        order_factory(
            id=4, customer_id=13,
            date_created=base + timedelta(days=3),
            date_modified=base - timedelta(days=1),
        ),
    ], shop)


class TestSelectOrders:

    def test_all_newest_first(self, source):
        orders = select_orders(source, parse_feed_query("all.xml"))
        assert [order.id for order in orders] == [3, 2, 1, 4]

    def test_customer_orders(self, source):
        orders = select_orders(source, parse_feed_query("12.xml"))
        assert [order.id for order in orders] == [3, 1]

    def test_guest_order(self, source):
        orders = select_orders(source, parse_feed_query(f"{DEFAULT_GUEST_OFFSET + 2}.xml"))
        assert [order.id for order in orders] == [2]

    def test_missing_guest_order_skipped(self, source):
        assert select_orders(source, parse_feed_query(f"{DEFAULT_GUEST_OFFSET + 99}.xml")) == []

    def test_duplicates_dropped(self, source):
        orders = select_orders(source, parse_feed_query("12,13,12.xml"))
        assert [order.id for order in orders] == [3, 1, 4]


class TestJsonOrderSource:

    def _write(self, tmp_path, data):
        path = tmp_path / "export.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_loads_export(self, tmp_path):
        path = self._write(tmp_path, {
            "shop": {
                "guest_offset": 1000,
                "price_decimals": 0,
                "tax_based_on": "billing",
                "tax_rates": [{"id": 1, "rate": "27.0000", "country": "HU"}],
            },
            "orders": [{
                "id": 7,
                "status": "wc-processing",
                "date_created": "2024-01-15T10:30:00",
                "billing": {"first_name": "Jane", "country": "HU", "postcode": 1011},
                "items": [
                    {"kind": "product", "id": 1, "name": "Widget", "product_id": "42",
                     "quantity": "2", "subtotal": "100", "subtotal_tax": "27"},
                    {"kind": "coupon", "id": 2, "code": "SALE", "discount": 10, "discount_tax": 2.7},
                ],
            }],
        })

        source = JsonOrderSource(path)

        shop = source.shop_context()
        assert shop.guest_offset == 1000
        assert shop.tax_rates[0].rate == 27
        order = source.get_order(7)
        assert order.billing.postcode == "1011"
        assert order.date_created.tzinfo is not None
        assert [item.kind for item in order.items] == ["product", "coupon"]
        assert order.items[0].quantity == 2

    def test_invalid_amount_names_order(self, tmp_path):
        path = self._write(tmp_path, {"orders": [{
            "id": 9,
            "status": "processing",
            "date_created": "2024-01-15T10:30:00",
            "items": [{"kind": "fee", "id": 1, "total": "N/A", "total_tax": "0"}],
        }]})
        with pytest.raises(DomainError, match=r"Order #9"):
            JsonOrderSource(path)

    def test_unknown_item_kind_rejected(self, tmp_path):
        path = self._write(tmp_path, {"orders": [{
            "id": 9,
            "status": "processing",
            "date_created": "2024-01-15T10:30:00",
            "items": [{"kind": "gift_card", "id": 1}],
        }]})
        with pytest.raises(DomainError):
            JsonOrderSource(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read orders_file") as excinfo:
            JsonOrderSource(tmp_path / "missing.json")
        assert excinfo.value.option == "orders_file"

    def test_not_json(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text("<orders/>", encoding="utf-8")
        with pytest.raises(DomainError, match="Invalid shop export"):
            JsonOrderSource(path)


class TestBuildFeed:

    def test_end_to_end(self, source, settings):
        document = build_feed(source, "12.xml", settings)

        root = ET.fromstring(document)
        assert [p.get("Id") for p in root.findall("Project")] == ["12"]
        assert [o.findtext("Number") for o in root.iter("Order")] == ["3", "1"]

    def test_invalid_query(self, source, settings):
        with pytest.raises(DomainError):
            build_feed(source, "../etc/passwd", settings)
