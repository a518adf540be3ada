"""
Main Orchestrator for Currency Clarity

This module ties together all the components and defines the
end-to-end flows for:
1. Expense entry (draft → validate → normalize to FMG → store → audit)
2. Edits (single fields, balances, bulk label rename/delete)
3. Views (fresh snapshot → compute_view)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the store without passing validation
- Only FMG amounts reach the store
- Every mutation is audited, including bulk no-ops
- Store connectivity failures are audited and re-raised as retryable

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import date
from typing import Any, Awaitable, Iterable, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel, Field, ValidationError

from currency_clarity.audit import AuditLogger, create_correlation_id
from currency_clarity.config import AppSettings, get_settings
from currency_clarity.models.currency import Number, to_base_amount
from currency_clarity.models.errors import InvalidInputError
from currency_clarity.models.expense import (
    BalanceStatus,
    Expense,
    ExpenseDraft,
    ExpenseEdit,
    ExpenseUpdate,
)
from currency_clarity.services.heartbeat import HeartbeatService
from currency_clarity.services.storage import (
    ExpenseStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    InMemoryExpenseStore,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)
from currency_clarity.validation import ExpenseValidator
from currency_clarity.views import ExpenseView, ViewState, compute_view
from currency_clarity.views.filters import day_of


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class LabelChangeResult(BaseModel):
    """Outcome of a bulk label rename or delete."""

    operation: str = Field(
        ...,
        pattern="^(rename|delete)$",
        description="Which bulk operation ran"
    )
    label: str
    new_label: Optional[str] = None
    affected_count: int = Field(
        ...,
        ge=0,
        description="Number of expenses touched"
    )

    @property
    def is_noop(self) -> bool:
        """Nothing carried the label; callers report this differently from success."""
        return self.affected_count == 0


def unique_labels(records: Iterable[Expense]) -> list[str]:
    """Distinct labels, alphabetical ignoring case, for a label picker."""
    labels = {record.label for record in records}
    return sorted(labels, key=lambda label: (label.casefold(), label))


def day_total(records: Iterable[Expense], day: date) -> int:
    """FMG total of every expense on one day."""
    return sum(record.amount for record in records if day_of(record.expense_date) == day)


def _build_update(**fields: Any) -> ExpenseUpdate:
    try:
        return ExpenseUpdate(**fields)
    except ValidationError as e:
        raise InvalidInputError(str(e)) from e


class ExpenseFlow:
    """
    Orchestrates every expense mutation and view load.

    Amount edits arrive in the record's own entry currency (the edit
    form shows the amount as it was typed) and are normalized here.
    """

    def __init__(
        self,
        store: ExpenseStoreInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._settings = settings or get_settings().app
        self._store = store
        self._validator = validator or ExpenseValidator(self._settings)
        self._audit_logger = audit_logger

    @property
    def store(self) -> ExpenseStoreInterface:
        return self._store

    async def _guard(
        self,
        operation: str,
        call: Awaitable[T],
        correlation_id: Optional[UUID],
    ) -> T:
        """Await a store call; audit connectivity failures before re-raising."""
        try:
            return await call
        except StoreUnavailableError as e:
            if self._audit_logger:
                await self._audit_logger.log_store_unavailable(
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except NotFoundError:
            raise
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    details={"operation": operation},
                    correlation_id=correlation_id,
                )
            raise

    async def _reject(
        self,
        operation: str,
        error: InvalidInputError,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_input_rejected(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def get_expense(self, expense_id: UUID, correlation_id: Optional[UUID] = None) -> Expense:
        """Fetch one expense or raise NotFoundError."""
        expense = await self._guard("get_expense", self._store.get_expense(expense_id), correlation_id)
        if expense is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return expense

    # =========================================================================
    # ENTRY
    # =========================================================================

    async def add_expense(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Expense, list[str]]:
        """
        Validate, normalize and store a new expense.

        Returns:
            (expense, warnings) - warnings are semantic checks the user
            may want to double-check; they never block the save.

        Raises:
            InvalidInputError: the draft fails schema validation
            StoreUnavailableError: the store could not be reached
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate(draft)
        if not result.schema_valid:
            error = InvalidInputError(self._validator.get_user_friendly_summary(result))
            await self._reject("add_expense", error, correlation_id)
            raise error

        try:
            new_expense = draft.to_new_expense()
        except InvalidInputError as e:
            await self._reject("add_expense", e, correlation_id)
            raise

        expense = await self._guard(
            "create_expense",
            self._store.create_expense(new_expense),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_expense_created(
                expense_id=expense.id,
                label=expense.label,
                amount=expense.amount,
                correlation_id=correlation_id,
            )

        return expense, result.warnings

    # =========================================================================
    # EDITS
    # =========================================================================

    async def update_expense(
        self,
        expense_id: UUID,
        changes: ExpenseUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Apply a partial FMG update.

        Raises:
            InvalidInputError: no field set, or the merged record is invalid
            NotFoundError: unknown id
        """
        correlation_id = correlation_id or create_correlation_id()
        changed_fields = sorted(changes.changes)

        if not changed_fields:
            error = InvalidInputError("No fields to update")
            await self._reject("update_expense", error, correlation_id)
            raise error

        try:
            expense = await self._guard(
                "update_expense",
                self._store.update_expense(expense_id, changes),
                correlation_id,
            )
        except InvalidInputError as e:
            await self._reject("update_expense", e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_updated(
                expense_id=expense.id,
                changed_fields=changed_fields,
                correlation_id=correlation_id,
            )
        return expense

    async def edit_expense(
        self,
        expense_id: UUID,
        edit: ExpenseEdit,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Apply an edit-form submission, amounts in the record's entry currency."""
        existing = await self.get_expense(expense_id, correlation_id)
        return await self.update_expense(expense_id, edit.to_update(existing.currency), correlation_id)

    async def update_amount(
        self,
        expense_id: UUID,
        raw_amount: Number,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Change the amount; `raw_amount` is in the record's entry currency."""
        existing = await self.get_expense(expense_id, correlation_id)
        amount = to_base_amount(raw_amount, existing.currency)
        if amount <= 0:
            raise InvalidInputError("Amount must be greater than zero")
        return await self.update_expense(expense_id, _build_update(amount=amount), correlation_id)

    async def update_label(
        self,
        expense_id: UUID,
        label: str,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        return await self.update_expense(expense_id, _build_update(label=label), correlation_id)

    async def update_date(
        self,
        expense_id: UUID,
        expense_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        return await self.update_expense(
            expense_id,
            _build_update(expense_date=expense_date),
            correlation_id,
        )

    async def update_remark(
        self,
        expense_id: UUID,
        remark: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Set or clear (None or "") the remark."""
        return await self.update_expense(
            expense_id,
            _build_update(remark=remark or ""),
            correlation_id,
        )

    async def update_balance(
        self,
        expense_id: UUID,
        status: BalanceStatus,
        raw_balance_amount: Number = 0,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Change who owes whom.

        `raw_balance_amount` is in the record's entry currency and is
        ignored when the new status is paid.
        """
        status = BalanceStatus(status)
        if status == BalanceStatus.PAID:
            balance = 0
        else:
            existing = await self.get_expense(expense_id, correlation_id)
            balance = to_base_amount(raw_balance_amount, existing.currency)

        return await self.update_expense(
            expense_id,
            _build_update(balance_status=status, balance_amount=balance),
            correlation_id,
        )

    async def clear_balance(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Mark an open balance as settled."""
        correlation_id = correlation_id or create_correlation_id()
        existing = await self.get_expense(expense_id, correlation_id)

        expense = await self._guard(
            "clear_balance",
            self._store.update_expense(
                expense_id,
                ExpenseUpdate(balance_status=BalanceStatus.PAID, balance_amount=0),
            ),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_balance_cleared(
                expense_id=expense_id,
                previous_status=existing.balance_status.value,
                previous_amount=existing.balance_amount,
                correlation_id=correlation_id,
            )
        return expense

    async def delete_expense(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Returns False (not an error) when the expense was already gone."""
        correlation_id = correlation_id or create_correlation_id()
        removed = await self._guard(
            "delete_expense",
            self._store.delete_expense(expense_id),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                removed=removed,
                correlation_id=correlation_id,
            )
        return removed

    # =========================================================================
    # BULK LABEL OPERATIONS
    # =========================================================================

    async def rename_label(
        self,
        old_label: str,
        new_label: str,
        correlation_id: Optional[UUID] = None,
    ) -> LabelChangeResult:
        """
        Relabel every expense carrying `old_label`.

        Renaming onto an existing label merges both groups.
        """
        correlation_id = correlation_id or create_correlation_id()
        old_label = (old_label or "").strip()
        new_label = (new_label or "").strip()

        if not old_label or not new_label:
            error = InvalidInputError("Labels cannot be empty")
            await self._reject("rename_label", error, correlation_id)
            raise error

        if old_label == new_label:
            affected = 0
        else:
            affected = await self._guard(
                "rename_label",
                self._store.rename_label(old_label, new_label),
                correlation_id,
            )

        if self._audit_logger:
            await self._audit_logger.log_label_changed(
                operation="rename",
                label=old_label,
                affected=affected,
                new_label=new_label,
                correlation_id=correlation_id,
            )

        return LabelChangeResult(
            operation="rename",
            label=old_label,
            new_label=new_label,
            affected_count=affected,
        )

    async def delete_label(
        self,
        label: str,
        correlation_id: Optional[UUID] = None,
    ) -> LabelChangeResult:
        """Delete every expense carrying `label`."""
        correlation_id = correlation_id or create_correlation_id()
        label = (label or "").strip()

        if not label:
            error = InvalidInputError("Label cannot be empty")
            await self._reject("delete_label", error, correlation_id)
            raise error

        affected = await self._guard(
            "delete_label",
            self._store.delete_by_label(label),
            correlation_id,
        )

        if self._audit_logger:
            await self._audit_logger.log_label_changed(
                operation="delete",
                label=label,
                affected=affected,
                correlation_id=correlation_id,
            )

        return LabelChangeResult(operation="delete", label=label, affected_count=affected)

    # =========================================================================
    # READS
    # =========================================================================

    async def list_expenses(self, correlation_id: Optional[UUID] = None) -> list[Expense]:
        return await self._guard("list_expenses", self._store.list_expenses(), correlation_id)

    async def list_labels(self, correlation_id: Optional[UUID] = None) -> list[str]:
        return unique_labels(await self.list_expenses(correlation_id))

    async def load_view(
        self,
        state: Optional[ViewState] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseView:
        """Fetch a fresh snapshot and compute the view over it."""
        state = state or ViewState()
        if "default_items_per_page" not in state.model_fields_set:
            state = state.model_copy(update={
                "default_items_per_page": self._settings.default_items_per_page,
            })
        records = await self.list_expenses(correlation_id)
        return compute_view(records, state)


def create_app_components(
    use_storage: bool = True,
) -> tuple[ExpenseFlow, HeartbeatService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured persistent backend.
                    Set to False to run fully in memory.

    Returns:
        (expense_flow, heartbeat_service, sheets_client)
    """
    settings = get_settings()
    app_settings = settings.app

    sheets_client = None
    store: ExpenseStoreInterface
    audit_logger: AuditLogger

    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            store = GoogleSheetsExpenseStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except ValidationError as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = InMemoryExpenseStore()
            audit_logger = AuditLogger()
    else:
        store = InMemoryExpenseStore()
        audit_logger = AuditLogger()  # Local-only logging

    flow = ExpenseFlow(
        store=store,
        audit_logger=audit_logger,
        settings=app_settings,
    )
    heartbeat = HeartbeatService(settings.heartbeat, audit_logger=audit_logger)

    return flow, heartbeat, sheets_client
