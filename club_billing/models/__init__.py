"""
Data Models Package

This package contains all Pydantic models used by the billing engine.
All data flowing through the engine must conform to these schemas.
"""

from club_billing.models.billing import (
    Addendum,
    Amendment,
    Cancellation,
    Conflict,
    ConflictKind,
    Correction,
    CorrectionKind,
    IssueKind,
    Ledger,
    LineItem,
    LineItemKind,
    MonthlyStatement,
    PeriodKey,
    RateRule,
    ReconciliationIssue,
    Role,
    SessionDetails,
    SetupMode,
    StandardScheduleRule,
    StatementStatus,
    TimeEntry,
)
from club_billing.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Billing models
    "Addendum",
    "Amendment",
    "Cancellation",
    "Conflict",
    "ConflictKind",
    "Correction",
    "CorrectionKind",
    "IssueKind",
    "Ledger",
    "LineItem",
    "LineItemKind",
    "MonthlyStatement",
    "PeriodKey",
    "RateRule",
    "ReconciliationIssue",
    "Role",
    "SessionDetails",
    "SetupMode",
    "StandardScheduleRule",
    "StatementStatus",
    "TimeEntry",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
