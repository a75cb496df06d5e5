"""
Abstract Collaborator Interfaces

DESIGN DECISION: The engine never talks to a data store. The statement
flow reads its inputs through these interfaces, which allows us to:
1. Keep the remote data store out of the billing rules
2. Use in-memory collaborators for testing
3. Retry transient failures at this boundary only

The interfaces cover only the reads and writes the statement flow needs.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from club_billing.models.audit import AuditEvent
from club_billing.models.billing import (
    Correction,
    Ledger,
    MonthlyStatement,
    RateRule,
    StandardScheduleRule,
    StatementStatus,
    TimeEntry,
)


class EntryProvider(ABC):
    """Source of logged sessions and corrections."""

    @abstractmethod
    async def list_entries(
        self,
        month: int,
        year: int,
        trainer_id: Optional[str] = None,
    ) -> list[TimeEntry]:
        """
        List entries whose session date falls in the month.

        Args:
            month: Month (1-12)
            year: Year
            trainer_id: Restrict to one trainer; None for all trainers

        Returns:
            Matching entries
        """
        pass

    @abstractmethod
    async def get_entries(self, entry_ids: Iterable[UUID]) -> list[TimeEntry]:
        """
        Fetch entries by id, whatever their period.

        Unknown ids are left out of the result rather than raising,
        so the reconciler can report them as dangling references.
        """
        pass

    @abstractmethod
    async def list_corrections(
        self,
        trainer_id: str,
        month: int,
        year: int,
    ) -> list[Correction]:
        """List corrections assigned to the trainer's billing period."""
        pass


class RateRuleProvider(ABC):
    """Source of the time-versioned rate table."""

    @abstractmethod
    async def list_rate_rules(self) -> list[RateRule]:
        """Return every rate rule, all roles, all effective dates."""
        pass


class CalendarProvider(ABC):
    """Source of holidays and standard training times."""

    @abstractmethod
    async def list_holidays(self, year: int) -> set[date]:
        """Holiday/break dates of a year."""
        pass

    @abstractmethod
    async def list_standard_schedules(self) -> list[StandardScheduleRule]:
        """All standard schedule rules, including expired ones."""
        pass


class StatementStore(ABC):
    """
    Persistence for monthly statements.

    Implementations must refuse a second active statement for the same
    (trainer, month, year), e.g. with a unique constraint.
    """

    @abstractmethod
    async def list_statements(
        self,
        trainer_id: Optional[str] = None,
    ) -> list[MonthlyStatement]:
        """List statements, optionally for one trainer."""
        pass

    @abstractmethod
    async def save_statement(self, statement: MonthlyStatement) -> bool:
        """
        Save a new statement.

        Raises:
            DuplicateError: An active statement exists for the period
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_status(
        self,
        statement_id: UUID,
        status: StatementStatus,
    ) -> MonthlyStatement:
        """
        Change a statement's status.

        Raises:
            NotFoundError: If the statement doesn't exist
        """
        pass


class DocumentRenderer(ABC):
    """Turns a reconciled ledger into a human-readable statement."""

    @abstractmethod
    async def render_statement(self, ledger: Ledger) -> str:
        """
        Render and store the statement document.

        Returns:
            A reference (URL, path or key) to the generated document
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events of one flow, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for collaborator operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ProviderUnavailableError(StorageError):
    """Transient failure reaching a collaborator; safe to retry."""
    pass
