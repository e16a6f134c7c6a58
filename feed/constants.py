"""Identifier namespace and transport constants of the CRM feed."""

from core.config.settings import MAX_SHOP_ID
from core.models.canonical import DEFAULT_GUEST_OFFSET

# A product ID is required for each order item. Fees, shipping, coupons and
# deleted products use the item ID plus this offset.
RESERVED_PRODUCT_ID_START = 10_000_000

# Each shop synced into the same CRM account gets its own block of this size
# (shop ID 0-99 times the block size is added to every exported ID).
SHOP_OFFSET_SIZE = 100_000_000

# The CRM gives up downloading the feed after this many seconds, and only
# answers a sync request once it finished downloading.
TIMEOUT_IN_SECS = 120

# Performance timestamps are exported in the CRM's time zone
FEED_TIMEZONE = "Europe/Budapest"
PERFORMANCE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_DESCRIPTION_LENGTH = 1024
UNIT_PRICE_PLACES = 6

__all__ = [
    "DEFAULT_GUEST_OFFSET",
    "FEED_TIMEZONE",
    "MAX_DESCRIPTION_LENGTH",
    "MAX_SHOP_ID",
    "PERFORMANCE_FORMAT",
    "RESERVED_PRODUCT_ID_START",
    "SHOP_OFFSET_SIZE",
    "TIMEOUT_IN_SECS",
    "UNIT_PRICE_PLACES",
]
