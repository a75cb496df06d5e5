"""
Statement Flow for the Club Billing Engine

This module ties the pure engine to its collaborators and defines the
end-to-end flows:
1. Preview (load period -> reconcile -> ledger)
2. Statement creation (lock check -> reconcile -> render -> save draft)
3. Voiding a statement (unlocks the period)
4. Reviewing a month for conflicting entries

DESIGN DECISION: The flow enforces the boundaries:
- No statement for a period that is already locked
- No empty statements
- Every step is audited
- Retries happen here, on collaborator calls, never inside the engine
"""

from typing import Awaitable, Callable, Iterable, Optional, TypeVar
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from club_billing.audit import AuditLogger, create_correlation_id
from club_billing.config import BillingSettings, ProviderSettings, get_settings
from club_billing.engine import (
    BillingError,
    PeriodLockedError,
    conflict_report,
    is_entry_locked,
    is_locked,
    reconcile_month,
)
from club_billing.models.billing import (
    Addendum,
    Correction,
    Ledger,
    MonthlyStatement,
    RateRule,
    StandardScheduleRule,
    StatementStatus,
    TimeEntry,
)
from club_billing.services.storage import (
    CalendarProvider,
    DocumentRenderer,
    DuplicateError,
    EntryProvider,
    InMemoryAuditStorage,
    InMemoryCalendarProvider,
    InMemoryDocumentRenderer,
    InMemoryEntryProvider,
    InMemoryRateRuleProvider,
    InMemoryStatementStore,
    NotFoundError,
    ProviderUnavailableError,
    RateRuleProvider,
    StatementStore,
    StorageError,
)

T = TypeVar("T")


class StatementFlow:
    """
    Orchestrates monthly statements for trainers.

    Flow for create_statement:
    1. Lock check  -> refuse if an active statement exists
    2. Load        -> entries, corrections, referenced originals, rates
    3. Reconcile   -> pure engine, issues recorded
    4. Render      -> document service turns the ledger into a statement
    5. Save        -> DRAFT statement with the reconciled total

    The flow does NOT make steps 1-5 atomic. The statement store must
    refuse a second active statement per period.
    """

    def __init__(
        self,
        entry_provider: EntryProvider,
        rate_provider: RateRuleProvider,
        calendar_provider: CalendarProvider,
        statement_store: StatementStore,
        document_renderer: Optional[DocumentRenderer] = None,
        audit_logger: Optional[AuditLogger] = None,
        billing_settings: Optional[BillingSettings] = None,
        provider_settings: Optional[ProviderSettings] = None,
    ):
        self._entries = entry_provider
        self._rates = rate_provider
        self._calendar = calendar_provider
        self._statements = statement_store
        self._renderer = document_renderer
        self._audit = audit_logger or AuditLogger()
        self._billing = billing_settings or get_settings().billing
        self._provider_settings = provider_settings or get_settings().providers

    async def _call(
        self,
        provider: str,
        operation: Callable[..., Awaitable[T]],
        *args,
        correlation_id: UUID,
    ) -> T:
        """Call a collaborator, retrying transient failures."""
        settings = self._provider_settings
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(settings.retry_attempts),
                wait=wait_exponential(
                    multiplier=1,
                    min=settings.retry_wait_min_seconds,
                    max=settings.retry_wait_max_seconds,
                ),
                retry=retry_if_exception_type(ProviderUnavailableError),
                reraise=True,
            ):
                with attempt:
                    result = await operation(*args)
        except (DuplicateError, NotFoundError):
            raise
        except StorageError as e:
            await self._audit.log_provider_error(
                provider=provider,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
        return result

    async def _load_period(
        self,
        trainer_id: str,
        month: int,
        year: int,
        correlation_id: UUID,
    ) -> tuple[list[TimeEntry], list[Correction], list[TimeEntry], list[RateRule]]:
        """
        Load everything reconciliation needs for one period.

        Originals referenced by corrections but billed in another month
        are fetched by id so they can be reversed.
        """
        entries = await self._call(
            "entries", self._entries.list_entries, month, year, trainer_id,
            correlation_id=correlation_id,
        )
        corrections = await self._call(
            "corrections", self._entries.list_corrections, trainer_id, month, year,
            correlation_id=correlation_id,
        )
        rates = await self._call(
            "rates", self._rates.list_rate_rules,
            correlation_id=correlation_id,
        )

        known = {entry.id for entry in entries}
        missing = [
            c.original_entry_id for c in corrections
            if not isinstance(c, Addendum) and c.original_entry_id not in known
        ]
        references = list(entries)
        if missing:
            fetched = await self._call(
                "entries", self._entries.get_entries, missing,
                correlation_id=correlation_id,
            )
            references.extend(e for e in fetched if e.trainer_id == trainer_id)

        return entries, corrections, references, rates

    async def preview_statement(
        self,
        trainer_id: str,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> Ledger:
        """
        Reconcile a period without persisting anything.

        Raises:
            EmptyPeriodError: Nothing billable in the period
            BillingError: First per-entry error, if fail_fast is configured
            StorageError: A collaborator failed (after retries)
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._audit.log_reconciliation_started(
            trainer_id=trainer_id,
            month=month,
            year=year,
            correlation_id=correlation_id,
        )

        entries, corrections, references, rates = await self._load_period(
            trainer_id, month, year, correlation_id
        )

        try:
            ledger = reconcile_month(
                entries,
                corrections,
                rates,
                trainer_id,
                month,
                year,
                reference_entries=references,
                setup_mode=self._billing.setup_mode,
                extra_setup_hours=self._billing.extra_setup_hours,
                fail_fast=self._billing.fail_fast,
            )
        except BillingError as e:
            await self._audit.log_reconciliation_failed(
                trainer_id=trainer_id,
                month=month,
                year=year,
                error_code=e.code,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit.log_reconciliation_completed(ledger, correlation_id)
        return ledger

    async def create_statement(
        self,
        trainer_id: str,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> MonthlyStatement:
        """
        Reconcile a period and issue its DRAFT statement.

        Once saved, the period is locked until the statement is voided.

        Raises:
            PeriodLockedError: An active statement exists for the period
            EmptyPeriodError: Nothing billable in the period
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._call(
            "statements", self._statements.list_statements, trainer_id,
            correlation_id=correlation_id,
        )
        if is_locked(trainer_id, month, year, existing):
            await self._audit.log_statement_blocked(
                trainer_id=trainer_id,
                month=month,
                year=year,
                correlation_id=correlation_id,
            )
            raise PeriodLockedError(trainer_id, month, year)

        ledger = await self.preview_statement(trainer_id, month, year, correlation_id)

        document_ref = None
        if self._renderer:
            document_ref = await self._call(
                "documents", self._renderer.render_statement, ledger,
                correlation_id=correlation_id,
            )

        statement = MonthlyStatement(
            trainer_id=trainer_id,
            month=month,
            year=year,
            status=StatementStatus.DRAFT,
            total=ledger.total,
            document_ref=document_ref,
        )

        try:
            await self._call(
                "statements", self._statements.save_statement, statement,
                correlation_id=correlation_id,
            )
        except DuplicateError as e:
            # Lost a race against a concurrent statement run
            await self._audit.log_statement_blocked(
                trainer_id=trainer_id,
                month=month,
                year=year,
                correlation_id=correlation_id,
            )
            raise PeriodLockedError(trainer_id, month, year) from e

        await self._audit.log_statement_created(
            statement_id=statement.id,
            trainer_id=trainer_id,
            month=month,
            year=year,
            total=str(statement.total),
            document_ref=document_ref,
            correlation_id=correlation_id,
        )
        return statement

    async def void_statement(
        self,
        statement_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> MonthlyStatement:
        """
        Void a statement, unlocking its period.

        Raises:
            NotFoundError: If the statement doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        statements = await self._call(
            "statements", self._statements.list_statements,
            correlation_id=correlation_id,
        )
        current = next((s for s in statements if s.id == statement_id), None)
        if current is None:
            raise NotFoundError(f"Statement not found: {statement_id}")
        if current.status == StatementStatus.VOIDED:
            return current

        voided = await self._call(
            "statements", self._statements.update_status, statement_id, StatementStatus.VOIDED,
            correlation_id=correlation_id,
        )
        await self._audit.log_statement_voided(
            statement_id=statement_id,
            previous_status=current.status.value,
            correlation_id=correlation_id,
        )
        return voided

    async def review_period(
        self,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> dict[UUID, list[str]]:
        """
        Conflict warnings for every entry of a month, across all trainers.

        Returns:
            {entry_id: [messages]} for entries with at least one conflict
        """
        correlation_id = correlation_id or create_correlation_id()

        entries = await self._call(
            "entries", self._entries.list_entries, month, year,
            correlation_id=correlation_id,
        )
        holidays = await self._call(
            "calendar", self._calendar.list_holidays, year,
            correlation_id=correlation_id,
        )
        schedules = await self._call(
            "calendar", self._calendar.list_standard_schedules,
            correlation_id=correlation_id,
        )

        report = conflict_report(entries, holidays, schedules)

        await self._audit.log_conflicts_detected(
            month=month,
            year=year,
            conflicting_entries=len(report),
            correlation_id=correlation_id,
        )
        return report

    async def can_edit_entry(
        self,
        entry: TimeEntry,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Lock gate for the entry CRUD layer.

        False while an active statement covers the entry's period.
        """
        correlation_id = correlation_id or create_correlation_id()
        statements = await self._call(
            "statements", self._statements.list_statements, entry.trainer_id,
            correlation_id=correlation_id,
        )
        return not is_entry_locked(entry, statements)


def create_flow_components(
    entries: Iterable[TimeEntry] = (),
    corrections: Iterable[Correction] = (),
    rate_rules: Iterable[RateRule] = (),
    holidays: Iterable = (),
    schedules: Iterable[StandardScheduleRule] = (),
    statements: Iterable[MonthlyStatement] = (),
    billing_settings: Optional[BillingSettings] = None,
    provider_settings: Optional[ProviderSettings] = None,
) -> tuple[StatementFlow, InMemoryAuditStorage]:
    """
    Factory function to build a flow over in-memory collaborators.

    Returns:
        (statement_flow, audit_storage)
    """
    billing_settings = billing_settings or get_settings().billing
    audit_storage = InMemoryAuditStorage()

    flow = StatementFlow(
        entry_provider=InMemoryEntryProvider(entries, corrections),
        rate_provider=InMemoryRateRuleProvider(rate_rules),
        calendar_provider=InMemoryCalendarProvider(holidays, schedules),
        statement_store=InMemoryStatementStore(statements),
        document_renderer=InMemoryDocumentRenderer(billing_settings.currency_symbol),
        audit_logger=AuditLogger(audit_storage),
        billing_settings=billing_settings,
        provider_settings=provider_settings,
    )
    return flow, audit_storage
