"""Static per-locale tables of the CRM feed.

Keys of every per-locale dict are the supported CRM account locales
(see core.config.settings.SUPPORTED_LOCALES).
"""

from typing import Dict


# Unit of measure written to every product row
UNIT_MAP: Dict[str, str] = {
    "EN": "pcs",
    "HU": "db",
    "RO": "buc",
}

# Project statuses, keyed by the status derived from the project's order count
PROJECT_STATUS_MAP: Dict[str, Dict[str, str]] = {
    "EN": {"registered": "Registered", "new": "New", "promising": "Promising"},
    "HU": {"registered": "Regisztrált", "new": "Új", "promising": "Ígéretes"},
    "RO": {"registered": "Înregistrat", "new": "Nou", "promising": "Promițător"},
}

# Shop order status → CRM order status. Unlisted statuses map to DEFAULT_ORDER_STATUS.
ORDER_STATUS_MAP: Dict[str, str] = {
    "checkout-draft": "Draft",
    "pending": "Draft",
    "on-hold": "Issued",
    "processing": "Paid",
    "completed": "Complete",
    "cancelled": "Cancelled",
    "refunded": "Cancelled",
    "failed": "Cancelled",
    "trash": "Cancelled",
}
DEFAULT_ORDER_STATUS = "Issued"

# Payment gateway ID → CRM payment method. Unlisted gateways export as "".
PAYMENT_METHOD_MAP: Dict[str, str] = {
    "bacs": "Transfer",
    "cheque": "Check",
    "cod": "CashOnDelivery",
    "paypal": "PayPal",
    "ppcp-gateway": "PayPal",
    "stripe": "CreditCard",
}

COUPON_LABEL: Dict[str, str] = {"EN": "Coupon", "HU": "Kupon", "RO": "Cupon"}
SHIPPING_LABEL: Dict[str, str] = {"EN": "Shipping", "HU": "Szállítás", "RO": "Livrare"}

# ISO code, English, Hungarian, Romanian
_COUNTRY_ROWS = [
    ("AL", "Albania", "Albánia", "Albania"),
    ("AT", "Austria", "Ausztria", "Austria"),
    ("AU", "Australia", "Ausztrália", "Australia"),
    ("BA", "Bosnia and Herzegovina", "Bosznia-Hercegovina", "Bosnia și Herțegovina"),
    ("BE", "Belgium", "Belgium", "Belgia"),
    ("BG", "Bulgaria", "Bulgária", "Bulgaria"),
    ("CA", "Canada", "Kanada", "Canada"),
    ("CH", "Switzerland", "Svájc", "Elveția"),
    ("CN", "China", "Kína", "China"),
    ("CY", "Cyprus", "Ciprus", "Cipru"),
    ("CZ", "Czech Republic", "Csehország", "Cehia"),
    ("DE", "Germany", "Németország", "Germania"),
    ("DK", "Denmark", "Dánia", "Danemarca"),
    ("EE", "Estonia", "Észtország", "Estonia"),
    ("ES", "Spain", "Spanyolország", "Spania"),
    ("FI", "Finland", "Finnország", "Finlanda"),
    ("FR", "France", "Franciaország", "Franța"),
    ("GB", "United Kingdom", "Egyesült Királyság", "Regatul Unit"),
    ("GR", "Greece", "Görögország", "Grecia"),
    ("HR", "Croatia", "Horvátország", "Croația"),
    ("HU", "Hungary", "Magyarország", "Ungaria"),
    ("IE", "Ireland", "Írország", "Irlanda"),
    ("IS", "Iceland", "Izland", "Islanda"),
    ("IT", "Italy", "Olaszország", "Italia"),
    ("JP", "Japan", "Japán", "Japonia"),
    ("LI", "Liechtenstein", "Liechtenstein", "Liechtenstein"),
    ("LT", "Lithuania", "Litvánia", "Lituania"),
    ("LU", "Luxembourg", "Luxemburg", "Luxemburg"),
    ("LV", "Latvia", "Lettország", "Letonia"),
    ("MD", "Moldova", "Moldova", "Republica Moldova"),
    ("ME", "Montenegro", "Montenegró", "Muntenegru"),
    ("MK", "North Macedonia", "Észak-Macedónia", "Macedonia de Nord"),
    ("MT", "Malta", "Málta", "Malta"),
    ("NL", "Netherlands", "Hollandia", "Țările de Jos"),
    ("NO", "Norway", "Norvégia", "Norvegia"),
    ("PL", "Poland", "Lengyelország", "Polonia"),
    ("PT", "Portugal", "Portugália", "Portugalia"),
    ("RO", "Romania", "Románia", "România"),
    ("RS", "Serbia", "Szerbia", "Serbia"),
    ("SE", "Sweden", "Svédország", "Suedia"),
    ("SI", "Slovenia", "Szlovénia", "Slovenia"),
    ("SK", "Slovakia", "Szlovákia", "Slovacia"),
    ("TR", "Turkey", "Törökország", "Turcia"),
    ("UA", "Ukraine", "Ukrajna", "Ucraina"),
    ("US", "United States", "Amerikai Egyesült Államok", "Statele Unite ale Americii"),
]

COUNTRIES: Dict[str, Dict[str, str]] = {
    "EN": {code: en for code, en, _, _ in _COUNTRY_ROWS},
    "HU": {code: hu for code, _, hu, _ in _COUNTRY_ROWS},
    "RO": {code: ro for code, _, _, ro in _COUNTRY_ROWS},
}
