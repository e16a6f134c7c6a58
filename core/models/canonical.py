"""Core canonical data models - shop-neutral order models.

These models represent the order history read from the shop in a
standardized format, independent of how the order source stores it.
They are immutable inputs to the feed builder and are never mutated.

CRM-specific field layout is handled in /feed/builder.py.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


# Guest orders are exported as projects with this offset added to the order ID.
DEFAULT_GUEST_OFFSET = 10_000_000


# =============================================================================
# Value Parsers (handle various input formats from shop exports)
# =============================================================================

def _parse_decimal(value):
    """Parse decimal from various formats (strings, ints, floats)."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        try:
            return Decimal(s)
        except InvalidOperation:
            raise ValueError(f"Not a number: {value!r}")
    return value


def _parse_int(value):
    """Parse integer from various formats."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        return int(s)
    return value


def _parse_text(value):
    """Shops store missing text fields as null or numbers; normalize to str."""
    if value is None:
        return ""
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


# Annotated types for automatic parsing
DecimalValue = Annotated[Decimal, BeforeValidator(_parse_decimal)]
IntValue = Annotated[int, BeforeValidator(_parse_int)]
TextValue = Annotated[str, BeforeValidator(_parse_text)]


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# =============================================================================
# Common Entities
# =============================================================================

class Address(CanonicalBase):
    """Billing or shipping address of an order."""
    first_name: TextValue = ""
    last_name: TextValue = ""
    company: TextValue = ""
    address_1: TextValue = ""
    address_2: TextValue = ""
    city: TextValue = ""
    state: TextValue = ""
    postcode: TextValue = ""
    country: TextValue = ""
    email: TextValue = ""
    phone: TextValue = ""

    @property
    def street(self) -> str:
        """Both address lines joined with a space."""
        return f"{self.address_1} {self.address_2}".strip()


class CatalogProduct(CanonicalBase):
    """Catalog data of a product still present in the shop."""
    sku: TextValue = ""
    description: TextValue = ""


class ProductOption(CanonicalBase):
    """A customer-entered product option (Extra Product Options plugin)."""
    name: str
    value: str


# =============================================================================
# Order Items (closed tagged union)
# =============================================================================

class ItemKind(str, Enum):
    """The four kinds of order items."""
    PRODUCT = "product"
    FEE = "fee"
    SHIPPING = "shipping"
    COUPON = "coupon"


class OrderItemBase(CanonicalBase):
    id: IntValue
    tax_class: TextValue = ""


class ProductItem(OrderItemBase):
    """A product line.

    subtotal/subtotal_tax exclude coupon discounts, total/total_tax include
    them. product_id is empty for products deleted from the catalog.
    """
    kind: Literal["product"] = "product"
    name: TextValue = ""
    product_id: Optional[IntValue] = None
    quantity: IntValue = 1
    subtotal: Optional[DecimalValue] = None
    subtotal_tax: Optional[DecimalValue] = None
    total: Optional[DecimalValue] = None
    total_tax: Optional[DecimalValue] = None
    product: Optional[CatalogProduct] = None
    options: List[ProductOption] = Field(default_factory=list)


class FeeItem(OrderItemBase):
    """A fee line."""
    kind: Literal["fee"] = "fee"
    name: TextValue = ""
    total: Optional[DecimalValue] = None
    total_tax: Optional[DecimalValue] = None


class ShippingItem(OrderItemBase):
    """A shipping line."""
    kind: Literal["shipping"] = "shipping"
    method_title: TextValue = ""
    total: Optional[DecimalValue] = None
    total_tax: Optional[DecimalValue] = None


class CouponItem(OrderItemBase):
    """A coupon line. discount is the positive net amount taken off."""
    kind: Literal["coupon"] = "coupon"
    code: TextValue = ""
    discount: Optional[DecimalValue] = None
    discount_tax: Optional[DecimalValue] = None


OrderItem = Annotated[
    Union[ProductItem, FeeItem, ShippingItem, CouponItem],
    Field(discriminator="kind"),
]


# =============================================================================
# Order
# =============================================================================

class Order(CanonicalBase):
    """A shop order with its items. customer_id 0 marks a guest order."""
    id: IntValue
    customer_id: IntValue = 0
    status: str
    currency: TextValue = ""
    date_created: datetime
    date_modified: Optional[datetime] = None
    billing: Address = Field(default_factory=Address)
    shipping: Address = Field(default_factory=Address)
    payment_method: TextValue = ""
    payment_method_title: TextValue = ""
    shipping_method: TextValue = ""
    customer_note: TextValue = ""
    total: Optional[DecimalValue] = None
    meta: Dict[str, str] = Field(default_factory=dict)
    items: List[OrderItem] = Field(default_factory=list)

    @field_validator("date_created", "date_modified")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are stored in UTC by the shop
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_guest(self) -> bool:
        return not self.customer_id


# =============================================================================
# Shop Context (configuration-derived values of the order source)
# =============================================================================

class TaxBasis(str, Enum):
    """Which address the shop calculates taxes from."""
    BILLING = "billing"
    SHIPPING = "shipping"
    BASE = "base"


class TaxLocation(CanonicalBase):
    """Location used for tax rate matching."""
    country: TextValue = ""
    state: TextValue = ""
    postcode: TextValue = ""
    city: TextValue = ""


class TaxRate(CanonicalBase):
    """A row of the shop's tax rate table.

    Empty country/state and empty postcode/city lists match any location.
    """
    id: IntValue
    rate: DecimalValue
    name: TextValue = ""
    country: TextValue = ""
    state: TextValue = ""
    postcodes: List[str] = Field(default_factory=list)
    cities: List[str] = Field(default_factory=list)
    tax_class: TextValue = ""
    priority: IntValue = 1
    compound: bool = False
    shipping: bool = True


class ShopContext(CanonicalBase):
    """Shop-wide values the feed builder needs from the order source."""
    guest_offset: IntValue = DEFAULT_GUEST_OFFSET
    price_decimals: IntValue = 2
    tax_based_on: TaxBasis = TaxBasis.SHIPPING
    base_location: TaxLocation = Field(default_factory=TaxLocation)
    tax_rates: List[TaxRate] = Field(default_factory=list)
