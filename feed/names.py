"""Locale-aware names for the CRM feed."""

from core.errors import DomainError
from core.models.canonical import Order
from feed.locale_tables import COUNTRIES

# Locales writing the family name first
EASTERN_NAME_ORDER_LOCALES = {"HU"}


def person_name(locale: str, first_name: str, last_name: str) -> str:
    """Full person name in the locale's name order, trimmed."""
    if locale in EASTERN_NAME_ORDER_LOCALES:
        name = f"{last_name} {first_name}"
    else:
        name = f"{first_name} {last_name}"
    return name.strip()


def customer_name(locale: str, order: Order) -> str:
    """Billing person name, or the shipping one if billing has no first name."""
    first_name = order.billing.first_name
    last_name = order.billing.last_name
    if first_name == "":
        first_name = order.shipping.first_name
        last_name = order.shipping.last_name
    return person_name(locale, first_name, last_name)


def company_name(order: Order) -> str:
    return order.billing.company or order.shipping.company


def billing_name(locale: str, order: Order) -> str:
    """Company with the customer name in parentheses, or whichever exists."""
    name = customer_name(locale, order)
    company = company_name(order)
    if company:
        if name:
            return f"{company} ({name})"
        return company
    return name


def country_name(locale: str, country_code: str) -> str:
    """Country name in the CRM account's language.

    Raises:
        DomainError: If the country code is not mapped for the locale
    """
    name = COUNTRIES.get(locale, {}).get(country_code.upper())
    if name is None:
        raise DomainError(f"Unexpected country_code '{country_code}' in locale '{locale}'")
    return name
