"""Configuration package."""

from pocketbook.config.settings import (
    AppSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from pocketbook.config.log_setup import configure_logging

__all__ = [
    "AppSettings",
    "Settings",
    "StorageSettings",
    "configure_logging",
    "get_settings",
    "validate_all_settings",
]
