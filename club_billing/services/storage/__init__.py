"""
Storage Services Package

Provides abstract collaborator interfaces and in-memory implementations.
"""

from club_billing.services.storage.interface import (
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
from club_billing.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryCalendarProvider,
    InMemoryDocumentRenderer,
    InMemoryEntryProvider,
    InMemoryRateRuleProvider,
    InMemoryStatementStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "CalendarProvider",
    "DocumentRenderer",
    "EntryProvider",
    "RateRuleProvider",
    "StatementStore",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "ProviderUnavailableError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryCalendarProvider",
    "InMemoryDocumentRenderer",
    "InMemoryEntryProvider",
    "InMemoryRateRuleProvider",
    "InMemoryStatementStore",
]
