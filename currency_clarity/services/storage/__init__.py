"""
Storage Services Package

Provides the abstract expense store contract and its implementations.
Google Sheets is the persistent backend; the in-memory store backs
tests and local development.
"""

from currency_clarity.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)
from currency_clarity.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryExpenseStore,
)
from currency_clarity.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStoreInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StoreUnavailableError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryExpenseStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
]
