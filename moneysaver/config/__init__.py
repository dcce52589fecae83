"""Configuration package."""

from moneysaver.config.settings import (
    STORAGE_BACKENDS,
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "STORAGE_BACKENDS",
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
