"""
Billing engine package.

Pure, synchronous functions: no I/O and no shared state.
"""

from club_billing.engine.conflicts import (
    conflict_report,
    detect_conflicts,
    find_conflicts,
)
from club_billing.engine.duration import (
    duration_hours,
    intervals_overlap,
    minutes_between,
    parse_clock_time,
    session_interval,
)
from club_billing.engine.errors import (
    BillingError,
    DanglingCorrectionReferenceError,
    DuplicateReversalError,
    EmptyPeriodError,
    InvalidTimeRangeError,
    PeriodLockedError,
    RateNotFoundError,
)
from club_billing.engine.lock import is_entry_locked, is_locked, locked_periods
from club_billing.engine.rates import resolve_rate
from club_billing.engine.reconciler import reconcile_month, round_money
from club_billing.engine.wages import Quote, price_entry, quote_session

__all__ = [
    # Duration
    "duration_hours",
    "intervals_overlap",
    "minutes_between",
    "parse_clock_time",
    "session_interval",
    # Pricing
    "Quote",
    "price_entry",
    "quote_session",
    "resolve_rate",
    # Conflicts
    "conflict_report",
    "detect_conflicts",
    "find_conflicts",
    # Reconciliation
    "reconcile_month",
    "round_money",
    # Lock
    "is_entry_locked",
    "is_locked",
    "locked_periods",
    # Errors
    "BillingError",
    "DanglingCorrectionReferenceError",
    "DuplicateReversalError",
    "EmptyPeriodError",
    "InvalidTimeRangeError",
    "PeriodLockedError",
    "RateNotFoundError",
]
