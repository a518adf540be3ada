"""Configuration package."""

from currency_clarity.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    HeartbeatSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "HeartbeatSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
