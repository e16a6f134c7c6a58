"""Feed configuration.

Settings are read from MINICRM_* environment variables. A .env file next to
the project root (or the one passed to load_settings) is loaded first.

Example .env:
    MINICRM_SYSTEM_ID=12345
    MINICRM_API_KEY=0123456789abcdef0123456789abcdef
    MINICRM_LOCALE=HU
    MINICRM_SHOP_ID=0
    MINICRM_CATEGORY_ID=21
    MINICRM_FOLDER_NAME=Webshop products
    MINICRM_WC_MAPPING="shipping_postcode:PostcodeOfShipping"
    MINICRM_ORDERS_FILE=/var/lib/shop/orders.json
"""

import ipaddress
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from core.errors import ConfigurationError
from core.mapping.engine import MappingEngine


ENV_PREFIX = "MINICRM_"
DEFAULT_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"

SUPPORTED_LOCALES = ("EN", "HU", "RO")
MAX_SHOP_ID = 99

# Feed secrets stay valid for six hours
DEFAULT_SECRET_TTL_SECONDS = 6 * 60 * 60


def _split_list(value):
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


IpList = Annotated[List[str], BeforeValidator(_split_list)]


class FeedSettings(BaseModel):
    """Options the feed builder, the feed endpoint and the sync client read."""
    model_config = ConfigDict(frozen=True)

    # CRM account
    system_id: str = ""
    api_key: str = ""
    test_server: bool = False

    # Feed content
    locale: str = ""
    shop_id: int = Field(default=0, ge=0, le=MAX_SHOP_ID)
    category_id: str = ""
    folder_name: str = ""
    sync_product_desc: bool = True
    sync_vat_number: bool = False
    wc_mapping: str = ""
    epo_mapping: str = ""

    # Feed access
    allowed_ips: IpList = Field(default_factory=list)
    proxy_header: str = ""
    proxy_ip_start: str = ""
    proxy_ip_end: str = ""
    secret_ttl_seconds: int = Field(default=DEFAULT_SECRET_TTL_SECONDS, gt=0)

    # Order source (JSON shop export) read by the feed endpoint
    orders_file: str = ""

    debug: bool = False

    @field_validator("system_id", "category_id")
    @classmethod
    def _digits_only(cls, value: str) -> str:
        value = value.strip()
        if value and not value.isdigit():
            raise ValueError("should consist of digits only")
        return value

    @field_validator("api_key")
    @classmethod
    def _api_key_format(cls, value: str) -> str:
        value = value.strip()
        if value and not (len(value) == 32 and value.isalnum() and value.isascii()):
            raise ValueError("should consist of 32 alphanumeric characters")
        return value

    @field_validator("locale")
    @classmethod
    def _known_locale(cls, value: str) -> str:
        value = value.strip().upper()
        if value and value not in SUPPORTED_LOCALES:
            raise ValueError(f"unexpected locale '{value}'")
        return value

    @field_validator("folder_name", "proxy_header")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("proxy_ip_start", "proxy_ip_end")
    @classmethod
    def _ipv4(cls, value: str) -> str:
        value = value.strip()
        if value:
            ipaddress.IPv4Address(value)
        return value

    @model_validator(mode="after")
    def _proxy_range_required(self) -> "FeedSettings":
        if self.proxy_header and not (self.proxy_ip_start and self.proxy_ip_end):
            raise ValueError("proxy_header requires proxy_ip_start and proxy_ip_end")
        return self

    def mapping_engine(self) -> MappingEngine:
        """Mapping engine for wc_mapping/epo_mapping (validates both)."""
        return MappingEngine.from_text(self.wc_mapping, self.epo_mapping)

    def require_feed_options(self) -> None:
        """Fail before any order is processed if the feed can't be built."""
        for option in ("category_id", "folder_name", "locale"):
            if not getattr(self, option):
                raise ConfigurationError(f'Missing option "{option}"', option=option)

    def require_sync_options(self) -> None:
        """Fail if the CRM account can't be addressed."""
        for option in ("system_id", "api_key"):
            if not getattr(self, option):
                raise ConfigurationError(f'Missing option "{option}"', option=option)


def settings_from_mapping(values: Mapping[str, object]) -> FeedSettings:
    """Create validated settings, raising ConfigurationError on bad input."""
    try:
        settings = FeedSettings(**values)
    except ValidationError as e:
        error = e.errors()[0]
        option = str(error["loc"][0]) if error.get("loc") else None
        label = f'"{option}"' if option else "settings"
        raise ConfigurationError(f"Invalid option {label}: {error['msg']}", option=option) from e

    # Mappings are validated here rather than while rendering orders
    settings.mapping_engine()
    return settings


def load_settings(
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FeedSettings:
    """Load settings from MINICRM_* environment variables.

    Args:
        env_file: .env file to load first (defaults to the project root one)
        environ: Environment to read instead of os.environ

    Raises:
        ConfigurationError: If any option is invalid
    """
    if environ is None:
        env_path = env_file or DEFAULT_ENV_PATH
        if env_path.exists():
            load_dotenv(env_path)
        environ = os.environ

    values: Dict[str, str] = {}
    for name in FeedSettings.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            # Mapping options are multi-line; .env files escape newlines
            values[name] = environ[key].replace("\\n", "\n")
    return settings_from_mapping(values)
