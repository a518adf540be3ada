"""
Abstract Storage Interface

DESIGN DECISION: The expense store is a collaborator behind a small CRUD
contract. This allows us to:
1. Keep Google Sheets as the default persistent backend
2. Use in-memory storage for testing and local development
3. Keep the view engine and the flows decoupled from storage

The interface is intentionally simple - we're not building a full ORM.
Just the operations the expense book needs.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from currency_clarity.models.audit import AuditEvent
from currency_clarity.models.expense import Expense, ExpenseUpdate, NewExpense


class ExpenseStoreInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Every amount crossing this boundary is already in FMG.
    """

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """
        Fetch every stored expense.

        Returns:
            All expenses, most recent `expense_date` first

        Raises:
            StoreUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        """
        Retrieve an expense by its ID.

        Returns:
            The expense if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_expense(self, data: NewExpense) -> Expense:
        """
        Persist a new expense.

        Args:
            data: Normalized expense without identity

        Returns:
            The stored expense with generated id, created_at and updated_at

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_expense(self, expense_id: UUID, changes: ExpenseUpdate) -> Expense:
        """
        Apply a partial update and refresh `updated_at`.

        Returns:
            The updated expense

        Raises:
            NotFoundError: If the expense doesn't exist
            InvalidInputError: If the merged record breaks an invariant
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID) -> bool:
        """
        Delete an expense by ID.

        Returns:
            True if a record was removed, False if it was already gone
        """
        pass

    @abstractmethod
    async def rename_label(self, old_label: str, new_label: str) -> int:
        """
        Relabel every expense carrying `old_label`.

        Renaming onto a label already in use merges the two groups.

        Returns:
            Number of expenses modified (0 when nothing matched)

        Raises:
            StorageError: If the bulk write fails part way
        """
        pass

    @abstractmethod
    async def delete_by_label(self, label: str) -> int:
        """
        Delete every expense carrying `label`.

        Returns:
            Number of expenses deleted (0 when nothing matched)
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, oldest first.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StoreUnavailableError(StorageError):
    """Could not reach the storage backend. Safe to retry."""
    pass
