"""
Wage Calculator

Prices a single session: billable hours x hourly wage, plus the flat
setup bonus when setup is paid as a bonus.

No rounding happens here. Amounts stay exact until the ledger total
is rounded to cents.
"""

from decimal import Decimal
from typing import Iterable
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from club_billing.engine.duration import (
    DEFAULT_EXTRA_SETUP_HOURS,
    MINUTES_PER_HOUR,
    billable_minutes,
)
from club_billing.engine.rates import resolve_rate
from club_billing.models.billing import RateRule, SessionDetails, SetupMode


class Quote(BaseModel):
    """Breakdown of how a session was priced."""
    model_config = ConfigDict(frozen=True)

    rate_rule_id: UUID
    minutes: Decimal
    hours: Decimal
    hourly_wage: Decimal
    setup_bonus: Decimal
    amount: Decimal


def quote_session(
    session: SessionDetails,
    rules: Iterable[RateRule],
    setup_mode: SetupMode = SetupMode.BONUS,
    extra_setup_hours: Decimal = DEFAULT_EXTRA_SETUP_HOURS,
) -> Quote:
    """
    Price a session and return the full breakdown.

    Times are validated before the rate lookup, so a malformed entry
    reports InvalidTimeRangeError even when no rate exists either.

    Raises:
        InvalidTimeRangeError: Malformed times or start == end
        RateNotFoundError: No rate for the session's role and date
    """
    minutes = billable_minutes(
        session.start_time,
        session.end_time,
        setup=session.setup,
        setup_mode=setup_mode,
        extra_setup_hours=extra_setup_hours,
    )
    rule = resolve_rate(session.role, session.entry_date, rules)

    bonus = Decimal("0")
    if session.setup and setup_mode == SetupMode.BONUS:
        bonus = rule.setup_bonus

    # multiply before dividing so whole-minute sessions stay exact
    amount = minutes * rule.hourly_wage / MINUTES_PER_HOUR + bonus

    return Quote(
        rate_rule_id=rule.id,
        minutes=minutes,
        hours=minutes / MINUTES_PER_HOUR,
        hourly_wage=rule.hourly_wage,
        setup_bonus=bonus,
        amount=amount,
    )


def price_entry(
    entry: SessionDetails,
    rules: Iterable[RateRule],
    setup_mode: SetupMode = SetupMode.BONUS,
    extra_setup_hours: Decimal = DEFAULT_EXTRA_SETUP_HOURS,
) -> Decimal:
    """Amount owed for one session (see quote_session)."""
    return quote_session(entry, rules, setup_mode, extra_setup_hours).amount
