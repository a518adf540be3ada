"""Services package."""

from currency_clarity.services.heartbeat import HeartbeatService
from currency_clarity.services.storage import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    InMemoryAuditStorage,
    InMemoryExpenseStore,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)

__all__ = [
    # Keep-alive
    "HeartbeatService",
    # Storage services
    "AuditStorageInterface",
    "ExpenseStoreInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
    "InMemoryAuditStorage",
    "InMemoryExpenseStore",
    "NotFoundError",
    "StorageError",
    "StoreUnavailableError",
]
