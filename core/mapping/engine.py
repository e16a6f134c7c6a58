"""Order field mapping engine.

Translates shop order data into custom CRM fields. Two kinds of mappings are
configured as text, one `source:target` pair per line:

- WC_FIELD: an order field name (e.g. "billing_city") → CRM field
- PRODUCT_OPTION: a product option label shown to the customer → CRM field

CRM field names become XML element names in the feed, so they must satisfy
a reduced XML name grammar (no namespaces).
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from core.errors import ConfigurationError
from core.models.canonical import Address, Order


XML_NAME_PATTERN = re.compile(r"^[A-Z_a-z][A-Z_a-z\-.0-9]*$")
MAPPING_LINE_PATTERN = re.compile(r"^([^:]+):([^:]+)$")


class MappingType(str, Enum):
    """Types of mappings supported."""
    WC_FIELD = "WC_FIELD"              # Order field → CRM field
    PRODUCT_OPTION = "PRODUCT_OPTION"  # Product option label → CRM field


@dataclass(frozen=True)
class MappingRule:
    """A single `source:target` mapping line."""
    mapping_type: MappingType
    source: str
    target: str


# =============================================================================
# Text Format
# =============================================================================

def parse_mapping(text: str) -> Dict[str, str]:
    """Parse `label:field` lines into an ordered {label: field} dict.

    Both sides are trimmed. Lines without exactly one colon are ignored; a
    repeated label keeps its last field.

    >>> parse_mapping("shipping_postcode:PostcodeOfShipping\\n city : City ")
    {'shipping_postcode': 'PostcodeOfShipping', 'city': 'City'}
    """
    mapping: Dict[str, str] = {}
    for line in (text or "").splitlines():
        match = MAPPING_LINE_PATTERN.match(line)
        if not match:
            continue
        label, field = match.group(1).strip(), match.group(2).strip()
        if label and field:
            mapping[label] = field
    return mapping


def is_valid_xml_name(name: str) -> bool:
    """Check a reduced set of the XML name grammar (colon omitted)."""
    return XML_NAME_PATTERN.match(name) is not None


def invalid_xml_names(names: List[str]) -> List[str]:
    return [name for name in names if not is_valid_xml_name(name)]


# =============================================================================
# Order Fields
# =============================================================================

def _full_name(address: Address) -> str:
    return f"{address.first_name} {address.last_name}".strip()


def _formatted_address(address: Address) -> str:
    parts = [
        address.company,
        _full_name(address),
        address.address_1,
        address.address_2,
        f"{address.postcode} {address.city}".strip(),
        address.state,
        address.country,
    ]
    return ", ".join(part for part in parts if part)


def _address_getters(prefix: str, attribute: str) -> Dict[str, Callable[[Order], str]]:
    fields = [
        "address_1", "address_2", "city", "company", "country",
        "first_name", "last_name", "phone", "postcode", "state",
    ]
    if prefix == "billing":
        fields.append("email")
    getters = {}
    for field in fields:
        getters[f"{prefix}_{field}"] = (
            lambda order, f=field: getattr(getattr(order, attribute), f)
        )
    return getters


ORDER_FIELDS: Dict[str, Callable[[Order], str]] = {
    **_address_getters("billing", "billing"),
    **_address_getters("shipping", "shipping"),
    "customer_note": lambda order: order.customer_note,
    "formatted_billing_address": lambda order: _formatted_address(order.billing),
    "formatted_billing_full_name": lambda order: _full_name(order.billing),
    "formatted_shipping_address": lambda order: _formatted_address(order.shipping),
    "formatted_shipping_full_name": lambda order: _full_name(order.shipping),
    "payment_method": lambda order: order.payment_method,
    "payment_method_title": lambda order: order.payment_method_title,
    "shipping_method": lambda order: order.shipping_method,
}


def order_field_value(order: Order, field: str) -> str:
    """Read an order field by its shop name (e.g. "billing_city")."""
    getter = ORDER_FIELDS.get(field)
    if getter is None:
        raise ConfigurationError(f"Unknown order field '{field}'", option="wc_mapping")
    return getter(order)


# =============================================================================
# Engine
# =============================================================================

class MappingEngine:
    """Applies configured mappings to an order.

    Rules are validated when the engine is created, so rendering an order
    never fails because of a bad mapping.
    """

    def __init__(self, rules: Optional[List[MappingRule]] = None):
        self._rules: Dict[MappingType, List[MappingRule]] = {mt: [] for mt in MappingType}
        for rule in rules or []:
            self.add_rule(rule)

    @classmethod
    def from_text(cls, wc_mapping: str = "", epo_mapping: str = "") -> "MappingEngine":
        """Build an engine from the two textual mapping options."""
        rules = [
            MappingRule(MappingType.WC_FIELD, source, target)
            for source, target in parse_mapping(wc_mapping).items()
        ]
        rules += [
            MappingRule(MappingType.PRODUCT_OPTION, source, target)
            for source, target in parse_mapping(epo_mapping).items()
        ]
        return cls(rules)

    def add_rule(self, rule: MappingRule) -> None:
        """Add a mapping rule after validating both of its sides."""
        option = "wc_mapping" if rule.mapping_type == MappingType.WC_FIELD else "epo_mapping"
        if rule.mapping_type == MappingType.WC_FIELD and rule.source not in ORDER_FIELDS:
            raise ConfigurationError(
                f"The following WooCommerce mappings are invalid: {rule.source}",
                option=option,
            )
        if not is_valid_xml_name(rule.target):
            raise ConfigurationError(
                f"The following MiniCRM mappings are invalid: {rule.target}",
                option=option,
            )
        self._rules[rule.mapping_type].append(rule)

    def get_rules(self, mapping_type: Optional[MappingType] = None) -> List[MappingRule]:
        """Get all rules, optionally filtered by type."""
        if mapping_type:
            return list(self._rules[mapping_type])
        return [rule for rules in self._rules.values() for rule in rules]

    def order_fields(self, order: Order) -> List[Tuple[str, str]]:
        """(CRM field, value) pairs for every mapped order field."""
        return [
            (rule.target, order_field_value(order, rule.source))
            for rule in self._rules[MappingType.WC_FIELD]
        ]

    def product_option_fields(self, order: Order) -> List[Tuple[str, str]]:
        """(CRM field, summary) pairs of mapped product options.

        Each summary line reads "{qty} x {item name} (#{item id}): {value}";
        options of several items mapped to one field are joined by newlines.
        """
        targets = {
            rule.source: rule.target
            for rule in self._rules[MappingType.PRODUCT_OPTION]
        }
        if not targets:
            return []

        collected: Dict[str, List[str]] = {}
        for item in order.items:
            for option in getattr(item, "options", []):
                field = targets.get(option.name)
                if field is None:
                    continue
                line = f"{item.quantity} x {item.name} (#{item.id}): {option.value}"
                collected.setdefault(field, []).append(line)

        return [(field, "\n".join(lines)) for field, lines in collected.items()]
