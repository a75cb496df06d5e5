"""Configuration package."""

from club_billing.config.settings import (
    AppSettings,
    BillingSettings,
    ProviderSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BillingSettings",
    "ProviderSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
