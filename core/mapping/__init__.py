"""Order field mapping - shop order data to custom CRM fields."""

from core.mapping.engine import (
    MappingEngine,
    MappingRule,
    MappingType,
    ORDER_FIELDS,
    invalid_xml_names,
    is_valid_xml_name,
    order_field_value,
    parse_mapping,
)

__all__ = [
    "MappingEngine",
    "MappingRule",
    "MappingType",
    "ORDER_FIELDS",
    "invalid_xml_names",
    "is_valid_xml_name",
    "order_field_value",
    "parse_mapping",
]
