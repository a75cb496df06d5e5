"""
In-Memory Collaborators

Implementations of the collaborator interfaces backed by plain lists.
Used by the test suite and for local runs without a data store.

The statement store mirrors the unique constraint the real data store
needs: one active statement per (trainer, month, year).
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from club_billing.engine.lock import is_locked
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
from club_billing.services.storage.interface import (
    AuditStorageInterface,
    CalendarProvider,
    DocumentRenderer,
    DuplicateError,
    EntryProvider,
    NotFoundError,
    RateRuleProvider,
    StatementStore,
)


class InMemoryEntryProvider(EntryProvider):
    """Entries and corrections held in lists."""

    def __init__(
        self,
        entries: Optional[Iterable[TimeEntry]] = None,
        corrections: Optional[Iterable[Correction]] = None,
    ):
        self._entries = list(entries or [])
        self._corrections = list(corrections or [])

    def add_entry(self, entry: TimeEntry) -> None:
        self._entries.append(entry)

    def add_correction(self, correction: Correction) -> None:
        self._corrections.append(correction)

    async def list_entries(
        self,
        month: int,
        year: int,
        trainer_id: Optional[str] = None,
    ) -> list[TimeEntry]:
        return [
            e for e in self._entries
            if e.month == month
            and e.year == year
            and (trainer_id is None or e.trainer_id == trainer_id)
        ]

    async def get_entries(self, entry_ids: Iterable[UUID]) -> list[TimeEntry]:
        wanted = set(entry_ids)
        return [e for e in self._entries if e.id in wanted]

    async def list_corrections(
        self,
        trainer_id: str,
        month: int,
        year: int,
    ) -> list[Correction]:
        return [
            c for c in self._corrections
            if c.trainer_id == trainer_id and c.month == month and c.year == year
        ]


class InMemoryRateRuleProvider(RateRuleProvider):
    def __init__(self, rules: Optional[Iterable[RateRule]] = None):
        self._rules = list(rules or [])

    async def list_rate_rules(self) -> list[RateRule]:
        return list(self._rules)


class InMemoryCalendarProvider(CalendarProvider):
    def __init__(
        self,
        holidays: Optional[Iterable[date]] = None,
        schedules: Optional[Iterable[StandardScheduleRule]] = None,
    ):
        self._holidays = set(holidays or [])
        self._schedules = list(schedules or [])

    async def list_holidays(self, year: int) -> set[date]:
        return {d for d in self._holidays if d.year == year}

    async def list_standard_schedules(self) -> list[StandardScheduleRule]:
        return list(self._schedules)


class InMemoryStatementStore(StatementStore):
    """Statements held in a list, newest last."""

    def __init__(self, statements: Optional[Iterable[MonthlyStatement]] = None):
        self._statements = list(statements or [])

    async def list_statements(
        self,
        trainer_id: Optional[str] = None,
    ) -> list[MonthlyStatement]:
        return [
            s for s in self._statements
            if trainer_id is None or s.trainer_id == trainer_id
        ]

    async def save_statement(self, statement: MonthlyStatement) -> bool:
        if statement.status != StatementStatus.VOIDED and is_locked(
            statement.trainer_id, statement.month, statement.year, self._statements
        ):
            raise DuplicateError(
                f"Active statement already exists for "
                f"{statement.trainer_id} {statement.month:02d}/{statement.year}"
            )
        self._statements.append(statement)
        return True

    async def update_status(
        self,
        statement_id: UUID,
        status: StatementStatus,
    ) -> MonthlyStatement:
        for index, existing in enumerate(self._statements):
            if existing.id == statement_id:
                updated = existing.model_copy(update={"status": status})
                self._statements[index] = updated
                return updated
        raise NotFoundError(f"Statement not found: {statement_id}")


class InMemoryDocumentRenderer(DocumentRenderer):
    """
    Renders statements as plain text and keeps them by reference.

    Stands in for the PDF service.
    """

    def __init__(self, currency_symbol: str = "€"):
        self.documents: dict[str, str] = {}
        self._currency = currency_symbol

    @staticmethod
    def reference_for(ledger: Ledger) -> str:
        return f"abrechnung-{ledger.trainer_id}-{ledger.month:02d}-{ledger.year}.txt"

    async def render_statement(self, ledger: Ledger) -> str:
        lines = [f"Statement for {ledger.trainer_id} ({ledger.month:02d}/{ledger.year})", ""]
        for row in ledger.to_statement_rows():
            lines.append(
                f"{row['date']}  {row['kind']:<9}  {row['sport']:<15}  {row['time']:<11}  "
                f"{row['role']:<9}  {'setup' if row['setup'] else '':<5}  "
                f"{row['amount']:>9} {self._currency}"
            )
        lines.append("")
        lines.append(f"Total: {ledger.total:.2f} {self._currency}")

        reference = self.reference_for(ledger)
        self.documents[reference] = "\n".join(lines)
        return reference


class InMemoryAuditStorage(AuditStorageInterface):
    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
