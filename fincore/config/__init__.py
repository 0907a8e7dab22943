"""Configuration package."""

from fincore.config.settings import (
    AppSettings,
    FinanceSettings,
    LoggingSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "FinanceSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
