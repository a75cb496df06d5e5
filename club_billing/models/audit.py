"""
Audit Models for the Club Billing Engine

Every significant billing action is logged for audit purposes.
This provides:
1. Complete traceability of how a statement total came about
2. Debugging information when a period does not reconcile
3. Accountability for statements issued and voided

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of the statement flow has its own event type.
    """
    # Reconciliation
    RECONCILIATION_STARTED = "reconciliation_started"
    RECONCILIATION_COMPLETED = "reconciliation_completed"
    RECONCILIATION_FAILED = "reconciliation_failed"
    RECONCILIATION_ISSUE = "reconciliation_issue"

    # Statements
    STATEMENT_CREATED = "statement_created"
    STATEMENT_VOIDED = "statement_voided"
    STATEMENT_BLOCKED_BY_LOCK = "statement_blocked_by_lock"

    # Review
    CONFLICTS_DETECTED = "conflicts_detected"

    # Collaborators
    PROVIDER_ERROR = "provider_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'period', 'statement', 'entry')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID or key of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one statement run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


def period_ref(trainer_id: str, month: int, year: int) -> str:
    """Stable entity id for a billing period, e.g. 'anna/2025-03'."""
    return f"{trainer_id}/{year:04d}-{month:02d}"


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.reconciliation_started("anna", 3, 2025, correlation_id)
        event = AuditEventBuilder.statement_created(statement_id, ..., correlation_id)
    """

    @staticmethod
    def reconciliation_started(
        trainer_id: str,
        month: int,
        year: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_STARTED,
            entity_type="period",
            entity_id=period_ref(trainer_id, month, year),
            correlation_id=correlation_id,
            description=f"Reconciliation started for {period_ref(trainer_id, month, year)}",
        )

    @staticmethod
    def reconciliation_completed(
        trainer_id: str,
        month: int,
        year: int,
        line_count: int,
        total: str,
        issue_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_COMPLETED,
            severity=AuditSeverity.WARNING if issue_count else AuditSeverity.INFO,
            entity_type="period",
            entity_id=period_ref(trainer_id, month, year),
            correlation_id=correlation_id,
            description=f"Reconciled {line_count} line items, total €{total}",
            details={
                "line_count": line_count,
                "total": total,
                "issue_count": issue_count,
            },
        )

    @staticmethod
    def reconciliation_failed(
        trainer_id: str,
        month: int,
        year: int,
        error_code: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="period",
            entity_id=period_ref(trainer_id, month, year),
            correlation_id=correlation_id,
            description="Reconciliation failed",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def reconciliation_issue(
        trainer_id: str,
        month: int,
        year: int,
        issue_kind: str,
        message: str,
        entry_id: Optional[UUID],
        correction_id: Optional[UUID],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_ISSUE,
            severity=AuditSeverity.WARNING,
            entity_type="period",
            entity_id=period_ref(trainer_id, month, year),
            correlation_id=correlation_id,
            description=f"Line skipped: {message}"[:500],
            error_code=issue_kind,
            details={
                "entry_id": str(entry_id) if entry_id else None,
                "correction_id": str(correction_id) if correction_id else None,
            },
        )

    @staticmethod
    def statement_created(
        statement_id: UUID,
        trainer_id: str,
        month: int,
        year: int,
        total: str,
        document_ref: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_CREATED,
            entity_type="statement",
            entity_id=str(statement_id),
            correlation_id=correlation_id,
            description=f"Statement created: {period_ref(trainer_id, month, year)} - €{total}",
            details={
                "period": period_ref(trainer_id, month, year),
                "total": total,
                "document_ref": document_ref,
            },
        )

    @staticmethod
    def statement_voided(
        statement_id: UUID,
        previous_status: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_VOIDED,
            entity_type="statement",
            entity_id=str(statement_id),
            correlation_id=correlation_id,
            description="Statement voided, period unlocked",
            details={
                "previous_status": previous_status,
            },
        )

    @staticmethod
    def statement_blocked_by_lock(
        trainer_id: str,
        month: int,
        year: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_BLOCKED_BY_LOCK,
            severity=AuditSeverity.WARNING,
            entity_type="period",
            entity_id=period_ref(trainer_id, month, year),
            correlation_id=correlation_id,
            description="Statement refused: an active statement already exists",
        )

    @staticmethod
    def conflicts_detected(
        month: int,
        year: int,
        conflicting_entries: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFLICTS_DETECTED,
            severity=AuditSeverity.WARNING if conflicting_entries else AuditSeverity.INFO,
            entity_type="month",
            entity_id=f"{year:04d}-{month:02d}",
            correlation_id=correlation_id,
            description=f"Review found {conflicting_entries} entries with conflicts",
            details={
                "conflicting_entries": conflicting_entries,
            },
        )

    @staticmethod
    def provider_error(
        provider: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Provider error: {provider}",
            error_message=error_message,
            details={
                "provider": provider,
            },
            correlation_id=correlation_id,
        )
