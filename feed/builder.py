"""CRM SyncFeed document builder.

Renders a set of orders into the XML document the CRM downloads:

    <Projects>
      <Project Id="...">            one per customer / guest order
        <Business>...</Business>    only if the latest order has a company
        <Contacts>...</Contacts>
        <Orders>
          <Order Id="...">
            ...
            <Products><Product Id="...">...</Product></Products>
          </Order>
        </Orders>
      </Project>
    </Projects>

Every exported ID is moved into the shop's block of the ID namespace. Text
element names come from validated mapping options only.

Exposes high-level functions:
- FeedBuilder(settings, shop).build(orders) -> Element
- render(element) -> bytes
"""

import html
from typing import Dict, Iterable, List, Optional
from xml.etree import ElementTree as ET
from zoneinfo import ZoneInfo

from core.config.settings import FeedSettings
from core.errors import DomainError, RangeError
from core.mapping.engine import MappingEngine
from core.models.canonical import Address, ItemKind, Order, ShopContext
from core.observability.logging import get_logger, with_correlation
from feed.aggregator import (
    AggregatedLine,
    aggregate_order_lines,
    group_orders_by_project,
    project_status,
)
from feed.constants import (
    FEED_TIMEZONE,
    MAX_DESCRIPTION_LENGTH,
    PERFORMANCE_FORMAT,
    RESERVED_PRODUCT_ID_START,
)
from feed.identity import with_shop_offset
from feed.locale_tables import (
    DEFAULT_ORDER_STATUS,
    ORDER_STATUS_MAP,
    PAYMENT_METHOD_MAP,
    PROJECT_STATUS_MAP,
    UNIT_MAP,
)
from feed.money import format_decimal
from feed.names import billing_name, country_name, customer_name
from feed.tax import TaxRateTable, format_percent

logger = get_logger(__name__)

XML_DECLARATION = b'<?xml version="1.0" encoding="utf-8"?>\n'

# Order meta key holding the customer's VAT number
VAT_NUMBER_META_KEY = "_billing_tax_number"


# =============================================================================
# Element Helpers
# =============================================================================

def _text(parent: ET.Element, tag: str, value: object = "") -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = "" if value is None else str(value)
    return element


def _set_text(parent: ET.Element, tag: str, value: object = "") -> ET.Element:
    """Set a child element's text, creating the child only once."""
    element = parent.find(tag)
    if element is None:
        return _text(parent, tag, value)
    element.text = "" if value is None else str(value)
    return element


def _value_list(parent: ET.Element, list_tag: str, item_tag: str, value: str) -> None:
    """<Emails><Email><Value>...</Value></Email></Emails> style blocks."""
    container = ET.SubElement(parent, list_tag)
    item = ET.SubElement(container, item_tag)
    _text(item, "Value", value)


def order_status(status: str) -> str:
    """CRM status of a shop order status ("wc-" prefix optional)."""
    return ORDER_STATUS_MAP.get(status.removeprefix("wc-"), DEFAULT_ORDER_STATUS)


def payment_method(method: str) -> str:
    return PAYMENT_METHOD_MAP.get(method, "")


def product_description(description: str) -> str:
    """Escaped catalog description, cut to the CRM's field length."""
    escaped = html.escape(description[:MAX_DESCRIPTION_LENGTH], quote=True)
    # Numeric apostrophe reference, as the shop renders it
    escaped = escaped.replace("&#x27;", "&#039;")
    return escaped[:MAX_DESCRIPTION_LENGTH]


# =============================================================================
# Builder
# =============================================================================

class FeedBuilder:
    """Builds the SyncFeed document for one shop.

    A builder holds no per-build state, so one instance can build any number
    of documents; the same orders always render to the same document.
    """

    def __init__(self, settings: FeedSettings, shop: ShopContext):
        self.settings = settings
        self.shop = shop
        self.locale = settings.locale
        self._mapping: Optional[MappingEngine] = None
        self._timezone = ZoneInfo(FEED_TIMEZONE)
        self._tax_table = TaxRateTable(shop.tax_rates)

    @property
    def mapping(self) -> MappingEngine:
        if self._mapping is None:
            self._mapping = self.settings.mapping_engine()
        return self._mapping

    def _id(self, id: int) -> str:
        return str(with_shop_offset(id, self.settings.shop_id))

    def build(self, orders: Iterable[Order]) -> ET.Element:
        """Build the <Projects> document.

        Orders are grouped into projects in the order given; the first order
        of each project supplies its name and contact data, so callers pass
        the most recently modified orders first.

        Raises:
            ConfigurationError: If category, folder or locale is not set or a
                mapping is invalid
            RangeError: On ID namespace violations
            DomainError: On corrupted order data
        """
        self.settings.require_feed_options()
        # Invalid mappings fail before any order is rendered
        self._mapping = self.settings.mapping_engine()
        if self.locale not in UNIT_MAP:
            raise DomainError(f"Unexpected locale '{self.locale}'")

        projects = group_orders_by_project(orders, self.shop.guest_offset)
        logger.info(
            "Building feed",
            extra_fields={"project_count": len(projects), "stage": "build"},
        )

        root = ET.Element("Projects")
        # reserved product ID -> order it was first exported for
        reserved_owners: Dict[int, int] = {}
        for project_id, project_orders in projects.items():
            if not project_orders:
                continue
            with with_correlation(shop_id=self.settings.shop_id, project_id=project_id):
                self._add_project(root, project_id, project_orders, reserved_owners)
        return root

    # -------------------------------------------------------------------------
    # Project
    # -------------------------------------------------------------------------

    def _add_project(
        self,
        root: ET.Element,
        project_id: int,
        orders: List[Order],
        reserved_owners: Dict[int, int],
    ) -> None:
        latest = orders[0]
        project = ET.SubElement(root, "Project", {"Id": self._id(project_id)})
        _text(project, "Name", billing_name(self.locale, latest))
        _text(project, "CategoryId", self.settings.category_id)

        status_key = project_status(len(orders))
        status = PROJECT_STATUS_MAP.get(self.locale, {}).get(status_key)
        if status is None:
            raise DomainError(f"Unexpected status '{status_key}' in locale '{self.locale}'")
        _text(project, "StatusId", status)

        if latest.billing.company:
            self._add_business(project, latest)

        contacts = ET.SubElement(project, "Contacts")
        contact = ET.SubElement(contacts, "Contact")
        _text(contact, "FirstName", latest.billing.first_name)
        _text(contact, "LastName", latest.billing.last_name)
        _value_list(contact, "Emails", "Email", latest.billing.email)
        _value_list(contact, "Phones", "Phone", latest.billing.phone)

        orders_element = ET.SubElement(project, "Orders")
        for order in orders:
            with with_correlation(order_id=order.id):
                self._add_order(orders_element, order, reserved_owners)

    def _add_business(self, project: ET.Element, order: Order) -> None:
        billing = order.billing
        business = ET.SubElement(project, "Business")
        _text(business, "Name", billing.company)
        if self.settings.sync_vat_number:
            _text(business, "VatNumber", order.meta.get(VAT_NUMBER_META_KEY, ""))

        addresses = ET.SubElement(business, "Addresses")
        address = ET.SubElement(addresses, "Address")
        country = self._country(billing)
        if country:
            _text(address, "CountryId", country)
        _text(address, "PostalCode", billing.postcode)
        _text(address, "City", billing.city)
        _text(address, "Address", billing.street)

        _value_list(business, "Emails", "Email", billing.email)
        _value_list(business, "Phones", "Phone", billing.phone)

    def _country(self, address: Address) -> str:
        """Localized country of an address, or the shop's; "" if unmapped."""
        code = address.country or self.shop.base_location.country
        if not code:
            return ""
        try:
            return country_name(self.locale, code)
        except DomainError as e:
            logger.warning("Country left blank", extra_fields={"error": str(e)})
            return ""

    # -------------------------------------------------------------------------
    # Order
    # -------------------------------------------------------------------------

    def _add_order(
        self,
        orders_element: ET.Element,
        order: Order,
        reserved_owners: Dict[int, int],
    ) -> None:
        element = ET.SubElement(orders_element, "Order", {"Id": self._id(order.id)})
        _text(element, "Number", order.id)
        _text(element, "CurrencyCode", order.currency)
        _text(element, "Language", f"_{self.locale}")
        performance = order.date_created.astimezone(self._timezone)
        _text(element, "Performance", performance.strftime(PERFORMANCE_FORMAT))
        _text(element, "Status", order_status(order.status))
        _text(element, "PaymentMethod", payment_method(order.payment_method))

        self._add_customer(element, order)

        order_project = ET.SubElement(element, "Project")
        # Each field appears once; a later mapping to the same field wins
        _set_text(order_project, "ShippingMethod", order.shipping_method)
        for field, value in self.mapping.order_fields(order):
            _set_text(order_project, field, value)
        for field, value in self.mapping.product_option_fields(order):
            _set_text(order_project, field, value)

        lines = aggregate_order_lines(order, self.shop, self.settings, self._tax_table)
        products = ET.SubElement(element, "Products")
        for line in lines:
            self._claim_reserved_id(line, order.id, reserved_owners)
            self._add_product(products, line)

    def _add_customer(self, order_element: ET.Element, order: Order) -> None:
        """Customer block, addressed from billing, else shipping, else blank."""
        customer = ET.SubElement(order_element, "Customer")
        _text(customer, "Name", customer_name(self.locale, order))

        address: Optional[Address] = None
        if order.billing.city:
            address = order.billing
        elif order.shipping.city:
            address = order.shipping

        country = postcode = city = street = ""
        if address is not None:
            country = self._country(address)
            if country:
                postcode = address.postcode
                city = address.city
                street = address.street

        _text(customer, "CountryId", country)
        _text(customer, "PostalCode", postcode)
        _text(customer, "City", city)
        _text(customer, "Address", street)

    @staticmethod
    def _claim_reserved_id(
        line: AggregatedLine,
        order_id: int,
        reserved_owners: Dict[int, int],
    ) -> None:
        """Reject reserved IDs already exported for another order."""
        if line.node_id < RESERVED_PRODUCT_ID_START:
            return
        owner = reserved_owners.setdefault(line.node_id, order_id)
        if owner != order_id:
            raise RangeError(
                f"Reserved product ID #{line.node_id} is already used by Order #{owner}",
                order_id,
                f"{line.kind.value.capitalize()} item #{line.node_id - RESERVED_PRODUCT_ID_START}",
            )

    def _add_product(self, products: ET.Element, line: AggregatedLine) -> None:
        product = ET.SubElement(products, "Product", {"Id": self._id(line.node_id)})
        _text(product, "Name", line.name)
        _text(product, "PriceNet", format_decimal(line.unit_price))
        _text(product, "Quantity", line.quantity)
        _text(product, "SKU", line.sku if line.kind == ItemKind.PRODUCT else "")
        _text(product, "Description", product_description(line.description))
        _text(product, "Unit", UNIT_MAP[self.locale])
        _text(product, "VAT", format_percent(line.tax_percent))
        _text(product, "FolderName", self.settings.folder_name)


# =============================================================================
# Output
# =============================================================================

def render(element: ET.Element) -> bytes:
    """Serialize a feed document with its XML declaration."""
    return XML_DECLARATION + ET.tostring(element, encoding="utf-8", xml_declaration=False)
