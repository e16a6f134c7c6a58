"""Core data models - shop-neutral canonical types.

This package contains the canonical order models the feed builder reads.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    DecimalValue,
    IntValue,
    TextValue,
    DEFAULT_GUEST_OFFSET,

    # Order
    Address,
    Order,
    OrderItem,
    ItemKind,
    ProductItem,
    FeeItem,
    ShippingItem,
    CouponItem,
    CatalogProduct,
    ProductOption,

    # Shop
    ShopContext,
    TaxBasis,
    TaxLocation,
    TaxRate,
)

__all__ = [
    # Base
    "CanonicalBase",
    "DecimalValue",
    "IntValue",
    "TextValue",
    "DEFAULT_GUEST_OFFSET",
    # Order
    "Address",
    "Order",
    "OrderItem",
    "ItemKind",
    "ProductItem",
    "FeeItem",
    "ShippingItem",
    "CouponItem",
    "CatalogProduct",
    "ProductOption",
    # Shop
    "ShopContext",
    "TaxBasis",
    "TaxLocation",
    "TaxRate",
]
