"""Services package."""

from club_billing.services.storage import (
    AuditStorageInterface,
    CalendarProvider,
    DocumentRenderer,
    DuplicateError,
    EntryProvider,
    NotFoundError,
    ProviderUnavailableError,
    RateRuleProvider,
    StatementStore,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "CalendarProvider",
    "DocumentRenderer",
    "DuplicateError",
    "EntryProvider",
    "NotFoundError",
    "ProviderUnavailableError",
    "RateRuleProvider",
    "StatementStore",
    "StorageError",
]
