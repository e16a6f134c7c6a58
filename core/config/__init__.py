"""Configuration - feed options loaded from the environment."""

from core.config.settings import (
    FeedSettings,
    SUPPORTED_LOCALES,
    load_settings,
    settings_from_mapping,
)

__all__ = [
    "FeedSettings",
    "SUPPORTED_LOCALES",
    "load_settings",
    "settings_from_mapping",
]
