"""Shared fixtures: a Hungarian shop with a 27% standard rate and order factories."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.config.settings import FeedSettings
from core.models.canonical import (
    Address,
    CatalogProduct,
    Order,
    ProductItem,
    ShopContext,
    TaxBasis,
    TaxLocation,
    TaxRate,
)


def make_address(**fields) -> Address:
    data = dict(
        first_name="Jane",
        last_name="Doe",
        address_1="Fő utca 1",
        address_2="2. emelet",
        city="Budapest",
        postcode="1011",
        country="HU",
        email="jane@example.com",
        phone="+36 1 234 5678",
    )
    data.update(fields)
    return Address(**data)


def make_product(**fields) -> ProductItem:
    data = dict(
        id=1,
        name="Widget",
        product_id=42,
        quantity=2,
        subtotal=Decimal("100"),
        subtotal_tax=Decimal("27"),
        total=Decimal("100"),
        total_tax=Decimal("27"),
        product=CatalogProduct(sku="W-42", description="A <b>fine</b> widget"),
    )
    data.update(fields)
    return ProductItem(**data)


def make_order(**fields) -> Order:
    data = dict(
        id=100,
        customer_id=0,
        status="processing",
        currency="HUF",
        date_created=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        billing=make_address(),
        shipping=make_address(),
        payment_method="bacs",
        shipping_method="Flat rate",
        total=Decimal("127"),
        items=[make_product()],
    )
    data.update(fields)
    return Order(**data)


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def address_factory():
    return make_address


@pytest.fixture
def shop() -> ShopContext:
    return ShopContext(
        price_decimals=2,
        tax_based_on=TaxBasis.BILLING,
        base_location=TaxLocation(country="HU"),
        tax_rates=[
            TaxRate(id=1, rate=Decimal("27"), name="ÁFA", country="HU"),
            TaxRate(id=2, rate=Decimal("5"), name="ÁFA 5", country="HU", tax_class="reduced-rate"),
        ],
    )


@pytest.fixture
def settings() -> FeedSettings:
    return FeedSettings(
        locale="EN",
        shop_id=0,
        category_id="21",
        folder_name="Webshop",
        allowed_ips=["testclient"],
    )
