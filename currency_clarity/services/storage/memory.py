"""
In-memory storage.

Used by the test-suite and for local development (STORAGE_BACKEND=memory).
Records are copied in and out so callers can never mutate the store's
state behind its back.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID, uuid4

from currency_clarity.models.audit import AuditEvent
from currency_clarity.models.expense import (
    Expense,
    ExpenseUpdate,
    NewExpense,
    apply_update,
    utc_now,
)
from currency_clarity.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    NotFoundError,
)


class InMemoryExpenseStore(ExpenseStoreInterface):
    """Dict-backed expense store; bulk operations run under one lock."""

    def __init__(
        self,
        expenses: Optional[list[Expense]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._expenses: dict[UUID, Expense] = {
            expense.id: expense.model_copy(deep=True) for expense in expenses or []
        }
        self._clock = clock
        self._lock = asyncio.Lock()

    async def list_expenses(self) -> list[Expense]:
        expenses = [expense.model_copy(deep=True) for expense in self._expenses.values()]
        expenses.sort(key=lambda e: e.expense_date, reverse=True)
        return expenses

    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        expense = self._expenses.get(expense_id)
        return expense.model_copy(deep=True) if expense else None

    async def create_expense(self, data: NewExpense) -> Expense:
        now = self._clock()
        expense = Expense(
            id=uuid4(),
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )
        async with self._lock:
            self._expenses[expense.id] = expense
        return expense.model_copy(deep=True)

    async def update_expense(self, expense_id: UUID, changes: ExpenseUpdate) -> Expense:
        async with self._lock:
            current = self._expenses.get(expense_id)
            if current is None:
                raise NotFoundError(f"Expense not found: {expense_id}")
            updated = apply_update(current, changes, now=self._clock())
            self._expenses[expense_id] = updated
        return updated.model_copy(deep=True)

    async def delete_expense(self, expense_id: UUID) -> bool:
        async with self._lock:
            return self._expenses.pop(expense_id, None) is not None

    async def rename_label(self, old_label: str, new_label: str) -> int:
        update = ExpenseUpdate(label=new_label)
        async with self._lock:
            now = self._clock()
            # Validate every record before writing any
            renamed = {
                expense_id: apply_update(expense, update, now=now)
                for expense_id, expense in self._expenses.items()
                if expense.label == old_label
            }
            self._expenses.update(renamed)
        return len(renamed)

    async def delete_by_label(self, label: str) -> int:
        async with self._lock:
            doomed = [
                expense_id
                for expense_id, expense in self._expenses.items()
                if expense.label == label
            ]
            for expense_id in doomed:
                del self._expenses[expense_id]
        return len(doomed)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            event for event in self._events
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
