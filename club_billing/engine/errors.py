"""
Billing Errors

Every failure the engine can report has its own type and a stable `code`.
Batch operations turn per-entry errors into ReconciliationIssues;
single-entry operations raise them to the caller.
"""

from typing import Optional
from uuid import UUID


class BillingError(Exception):
    """Base exception for billing computations."""
    code = "billing_error"


class InvalidTimeRangeError(BillingError):
    """Malformed wall-clock time, or start equal to end."""
    code = "invalid_time_range"

    def __init__(self, message: str, start: Optional[str] = None, end: Optional[str] = None):
        super().__init__(message)
        self.start = start
        self.end = end


class RateNotFoundError(BillingError):
    """No rate rule applies to a role on a date."""
    code = "rate_not_found"

    def __init__(self, role: str, on_date):
        super().__init__(f"No rate rule for role '{role}' effective on {on_date}")
        self.role = role
        self.on_date = on_date


class DanglingCorrectionReferenceError(BillingError):
    """A cancellation/amendment references an entry that does not exist."""
    code = "dangling_reference"

    def __init__(self, correction_id: UUID, original_entry_id: UUID):
        super().__init__(
            f"Correction {correction_id} references unknown entry {original_entry_id}"
        )
        self.correction_id = correction_id
        self.original_entry_id = original_entry_id


class DuplicateReversalError(BillingError):
    """An original entry is reversed by more than one correction."""
    code = "duplicate_reversal"

    def __init__(self, correction_id: UUID, original_entry_id: UUID):
        super().__init__(
            f"Entry {original_entry_id} is already reversed; "
            f"correction {correction_id} ignored"
        )
        self.correction_id = correction_id
        self.original_entry_id = original_entry_id


class EmptyPeriodError(BillingError):
    """Nothing billable for the requested period."""
    code = "empty_period"

    def __init__(self, trainer_id: str, month: int, year: int):
        super().__init__("no billable entries for period")
        self.trainer_id = trainer_id
        self.month = month
        self.year = year


class PeriodLockedError(BillingError):
    """An active statement already exists for the period."""
    code = "period_locked"

    def __init__(self, trainer_id: str, month: int, year: int):
        super().__init__(
            f"Period {year:04d}-{month:02d} of {trainer_id} is locked by an active statement"
        )
        self.trainer_id = trainer_id
        self.month = month
        self.year = year
