"""
Statement Lock Gate

A (trainer, month, year) is locked while a statement for it exists in any
status except VOIDED. Locked periods' base entries must not be created,
edited or deleted.

The engine only answers the question. Enforcement belongs to the layer
that writes entries, and that layer must serialize statement creation per
period: two concurrent requests can both see an unlocked period.
"""

from typing import Iterable

from club_billing.models.billing import (
    MonthlyStatement,
    PeriodKey,
    StatementStatus,
    TimeEntry,
)

LOCKING_STATUSES = frozenset({
    StatementStatus.DRAFT,
    StatementStatus.ISSUED,
    StatementStatus.APPROVED,
    StatementStatus.PAID,
})


def is_locked(
    trainer_id: str,
    month: int,
    year: int,
    statements: Iterable[MonthlyStatement],
) -> bool:
    """True if an active statement exists for the period."""
    return any(
        statement.trainer_id == trainer_id
        and statement.month == month
        and statement.year == year
        and statement.status in LOCKING_STATUSES
        for statement in statements
    )


def locked_periods(statements: Iterable[MonthlyStatement]) -> set[PeriodKey]:
    """All periods currently locked, e.g. to mark billed entries in a list."""
    return {
        statement.period
        for statement in statements
        if statement.status in LOCKING_STATUSES
    }


def is_entry_locked(entry: TimeEntry, statements: Iterable[MonthlyStatement]) -> bool:
    """Is the period this entry is billed in locked?"""
    return is_locked(entry.trainer_id, entry.month, entry.year, statements)
