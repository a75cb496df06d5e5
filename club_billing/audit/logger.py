"""
Audit Logger

DESIGN DECISION: Every significant billing action is logged.
This provides:
1. Complete traceability of statement totals
2. Debugging capability when a period does not reconcile
3. A history of statements issued and voided

The audit logger:
- Is async like the collaborators it writes to
- Gracefully handles failures (doesn't break a statement run if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from club_billing.models.audit import AuditEvent, AuditEventBuilder
from club_billing.models.billing import Ledger
from club_billing.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("club_billing.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_reconciliation_started(
        self,
        trainer_id: str,
        month: int,
        year: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.reconciliation_started(
            trainer_id=trainer_id,
            month=month,
            year=year,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_reconciliation_completed(
        self,
        ledger: Ledger,
        correlation_id: UUID,
    ) -> None:
        """Log the ledger summary and one event per skipped line."""
        await self.log(AuditEventBuilder.reconciliation_completed(
            trainer_id=ledger.trainer_id,
            month=ledger.month,
            year=ledger.year,
            line_count=len(ledger.line_items),
            total=str(ledger.total),
            issue_count=len(ledger.issues),
            correlation_id=correlation_id,
        ))
        for issue in ledger.issues:
            await self.log(AuditEventBuilder.reconciliation_issue(
                trainer_id=ledger.trainer_id,
                month=ledger.month,
                year=ledger.year,
                issue_kind=issue.kind.value,
                message=issue.message,
                entry_id=issue.entry_id,
                correction_id=issue.correction_id,
                correlation_id=correlation_id,
            ))

    async def log_reconciliation_failed(
        self,
        trainer_id: str,
        month: int,
        year: int,
        error_code: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.reconciliation_failed(
            trainer_id=trainer_id,
            month=month,
            year=year,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statement_created(
        self,
        statement_id: UUID,
        trainer_id: str,
        month: int,
        year: int,
        total: str,
        document_ref: Optional[str],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.statement_created(
            statement_id=statement_id,
            trainer_id=trainer_id,
            month=month,
            year=year,
            total=total,
            document_ref=document_ref,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statement_voided(
        self,
        statement_id: UUID,
        previous_status: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.statement_voided(
            statement_id=statement_id,
            previous_status=previous_status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_statement_blocked(
        self,
        trainer_id: str,
        month: int,
        year: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.statement_blocked_by_lock(
            trainer_id=trainer_id,
            month=month,
            year=year,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_conflicts_detected(
        self,
        month: int,
        year: int,
        conflicting_entries: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.conflicts_detected(
            month=month,
            year=year,
            conflicting_entries=conflicting_entries,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_provider_error(
        self,
        provider: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a collaborator failure."""
        event = AuditEventBuilder.provider_error(
            provider=provider,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a statement run and pass it through
    all subsequent operations.
    """
    return uuid4()
