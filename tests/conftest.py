"""
Shared fixtures for the Club Billing tests.

All builders return fresh objects; nothing here touches the environment.
"""

from datetime import date
from decimal import Decimal

import pytest

from club_billing.config import BillingSettings, ProviderSettings
from club_billing.models.billing import (
    Addendum,
    Amendment,
    Cancellation,
    RateRule,
    Role,
    SessionDetails,
    SetupMode,
    TimeEntry,
)

# Tuesday
SESSION_DATE = date(2025, 3, 4)


@pytest.fixture
def make_entry():
    """Build a TimeEntry; defaults are a 90 minute Volleyball session of 'anna'."""
    def _make(**overrides) -> TimeEntry:
        data = {
            "trainer_id": "anna",
            "entry_date": SESSION_DATE,
            "start_time": "18:00",
            "end_time": "19:30",
            "sport": "Volleyball",
            "field_id": "Feld 1",
            "role": Role.TRAINER,
            "setup": False,
        }
        data.update(overrides)
        return TimeEntry(**data)
    return _make


@pytest.fixture
def make_session():
    def _make(**overrides) -> SessionDetails:
        data = {
            "entry_date": SESSION_DATE,
            "start_time": "18:00",
            "end_time": "19:30",
            "sport": "Volleyball",
            "field_id": "Feld 1",
        }
        data.update(overrides)
        return SessionDetails(**data)
    return _make


@pytest.fixture
def make_addendum(make_session):
    def _make(session=None, **overrides) -> Addendum:
        data = {"trainer_id": "anna", "month": 3, "year": 2025}
        data.update(overrides)
        return Addendum(session=session or make_session(), **data)
    return _make


@pytest.fixture
def make_cancellation():
    def _make(original: TimeEntry, **overrides) -> Cancellation:
        data = {"trainer_id": original.trainer_id, "month": 3, "year": 2025}
        data.update(overrides)
        return Cancellation(original_entry_id=original.id, **data)
    return _make


@pytest.fixture
def make_amendment(make_session):
    def _make(original: TimeEntry, session=None, **overrides) -> Amendment:
        data = {"trainer_id": original.trainer_id, "month": 3, "year": 2025}
        data.update(overrides)
        return Amendment(
            original_entry_id=original.id,
            session=session or make_session(),
            **data,
        )
    return _make


@pytest.fixture
def rate_rules() -> list[RateRule]:
    """20 EUR/h for trainers, 12 EUR/h for assistants, both since 2024."""
    return [
        RateRule(
            role=Role.TRAINER,
            hourly_wage=Decimal("20"),
            setup_bonus=Decimal("5"),
            effective_from=date(2024, 1, 1),
        ),
        RateRule(
            role=Role.ASSISTANT,
            hourly_wage=Decimal("12"),
            setup_bonus=Decimal("3"),
            effective_from=date(2024, 1, 1),
        ),
    ]


@pytest.fixture
def billing_settings() -> BillingSettings:
    return BillingSettings(
        setup_mode=SetupMode.BONUS,
        extra_setup_hours=Decimal("0.5"),
        fail_fast=False,
        currency_symbol="€",
    )


@pytest.fixture
def fast_retries() -> ProviderSettings:
    """Retry settings without backoff, so flaky-provider tests run instantly."""
    return ProviderSettings(
        retry_attempts=3,
        retry_wait_min_seconds=0,
        retry_wait_max_seconds=0,
    )
