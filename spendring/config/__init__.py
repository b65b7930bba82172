"""Configuration package."""

from spendring.config.settings import (
    ApiSettings,
    AppSettings,
    GestureSettings,
    GoogleSheetsSettings,
    HomeSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "GestureSettings",
    "GoogleSheetsSettings",
    "HomeSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
