"""
Configuration Management for the Club Billing Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine functions themselves take every decision as an explicit
parameter; only the statement flow reads settings and passes them on.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from club_billing.models.billing import SetupMode


class BillingSettings(BaseSettings):
    """Pricing and reconciliation behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="BILLING_",
        extra="ignore"
    )

    setup_mode: SetupMode = Field(
        default=SetupMode.BONUS,
        description="How setup work is paid: flat bonus or extra time"
    )
    extra_setup_hours: Decimal = Field(
        default=Decimal("0.5"),
        ge=0,
        le=4,
        description="Hours added for setup when setup_mode is extra_time"
    )
    fail_fast: bool = Field(
        default=False,
        description="Abort reconciliation on the first per-entry error"
    )
    currency_symbol: str = Field(
        default="€",
        description="Currency symbol used in statements"
    )


class ProviderSettings(BaseSettings):
    """Retry behaviour when loading data from collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="PROVIDER_",
        extra="ignore"
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per provider call before giving up"
    )
    retry_wait_min_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Minimum backoff between attempts"
    )
    retry_wait_max_seconds: float = Field(
        default=10.0,
        ge=0.0,
        description="Maximum backoff between attempts"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def billing(self) -> BillingSettings:
        return BillingSettings()

    @property
    def providers(self) -> ProviderSettings:
        return ProviderSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries for the failures. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("billing", "providers", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
