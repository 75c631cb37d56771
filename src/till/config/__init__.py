"""Configuration for TILL."""

from till.config.settings import PrinterSettings, Settings, StoreSettings, get_settings

__all__ = [
    "Settings",
    "StoreSettings",
    "PrinterSettings",
    "get_settings",
]
