"""Integration tests for ExpenseFlow over the in-memory store."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from currency_clarity.models import (
    BalanceStatus,
    Currency,
    ExpenseDraft,
    ExpenseEdit,
    ExpenseUpdate,
    InvalidInputError,
)
from currency_clarity.models.audit import AuditEventType
from currency_clarity.orchestrator import (
    ExpenseFlow,
    create_app_components,
    day_total,
    unique_labels,
)
from currency_clarity.services.storage import (
    InMemoryExpenseStore,
    NotFoundError,
    StoreUnavailableError,
)
from currency_clarity.audit import AuditLogger
from currency_clarity.views import SortOption, ViewState


D0 = date(2024, 5, 31)
D1 = date(2024, 6, 1)


def draft(**overrides) -> ExpenseDraft:
    data = dict(amount=Decimal("10000"), label="Groceries", expense_date=D1)
    data.update(overrides)
    return ExpenseDraft(**data)


def event_types(audit_storage) -> list:
    return [event.event_type for event in audit_storage.events]


class UnreachableStore(InMemoryExpenseStore):
    async def list_expenses(self):
        raise StoreUnavailableError("Could not reach Google Sheets during read expenses")


class TestAddExpense:
    """Entry: validate, normalize, store, audit."""

    @pytest.mark.asyncio
    async def test_ariary_entry_stored_in_fmg(self, flow, audit_storage):
        expense, warnings = await flow.add_expense(draft(amount=Decimal("2500"), currency=Currency.ARIARY, label="Coffee"))

        assert expense.amount == 12500
        assert expense.currency == Currency.ARIARY
        assert warnings == []
        assert event_types(audit_storage) == [AuditEventType.EXPENSE_CREATED]

    @pytest.mark.asyncio
    async def test_invalid_draft_is_rejected_and_audited(self, flow, audit_storage):
        with pytest.raises(InvalidInputError, match="not a whole number of FMG"):
            await flow.add_expense(draft(amount=Decimal("0.1"), currency=Currency.ARIARY))

        assert await flow.list_expenses() == []
        assert event_types(audit_storage) == [AuditEventType.INPUT_REJECTED]

    @pytest.mark.asyncio
    async def test_warnings_do_not_block(self, flow):
        future = date.today() + timedelta(days=10)
        expense, warnings = await flow.add_expense(draft(expense_date=future))
        assert expense.expense_date == future
        assert len(warnings) == 1


class TestEdits:
    """Single-expense mutations."""

    @pytest.mark.asyncio
    async def test_update_amount_in_entry_currency(self, flow):
        expense, _ = await flow.add_expense(draft(amount=Decimal("2500"), currency=Currency.ARIARY))
        updated = await flow.update_amount(expense.id, Decimal("3000"))
        assert updated.amount == 15000
        assert updated.updated_at > expense.updated_at

    @pytest.mark.asyncio
    async def test_update_amount_must_be_positive(self, flow):
        expense, _ = await flow.add_expense(draft())
        with pytest.raises(InvalidInputError):
            await flow.update_amount(expense.id, 0)

    @pytest.mark.asyncio
    async def test_edit_form(self, flow, audit_storage):
        expense, _ = await flow.add_expense(draft(amount=Decimal("2000"), currency=Currency.ARIARY))
        updated = await flow.edit_expense(expense.id, ExpenseEdit(amount=Decimal("100"), label="Market"))

        assert (updated.amount, updated.label) == (500, "Market")
        assert audit_storage.events[-1].details["changed_fields"] == ["amount", "label"]

    @pytest.mark.asyncio
    async def test_update_label_date_and_remark(self, flow):
        expense, _ = await flow.add_expense(draft())
        await flow.update_label(expense.id, "  Market ")
        await flow.update_date(expense.id, D0)
        await flow.update_remark(expense.id, "weekly shop")
        updated = await flow.get_expense(expense.id)

        assert (updated.label, updated.expense_date, updated.remark) == ("Market", D0, "weekly shop")

        cleared = await flow.update_remark(expense.id, None)
        assert cleared.remark is None

    @pytest.mark.asyncio
    async def test_open_and_clear_balance(self, flow, audit_storage):
        expense, _ = await flow.add_expense(draft(amount=Decimal("2000"), currency=Currency.ARIARY))

        owed = await flow.update_balance(expense.id, BalanceStatus.OWED_TO_ME, Decimal("100"))
        assert (owed.balance_status, owed.balance_amount) == (BalanceStatus.OWED_TO_ME, 500)

        cleared = await flow.clear_balance(expense.id)
        assert (cleared.balance_status, cleared.balance_amount) == (BalanceStatus.PAID, 0)

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.BALANCE_CLEARED
        assert event.details == {"previous_status": "owed_to_me", "previous_amount_fmg": 500}

    @pytest.mark.asyncio
    async def test_open_balance_without_amount_rejected(self, flow, audit_storage):
        expense, _ = await flow.add_expense(draft())
        with pytest.raises(InvalidInputError):
            await flow.update_balance(expense.id, BalanceStatus.I_OWE, 0)

        assert (await flow.get_expense(expense.id)).balance_status == BalanceStatus.PAID
        assert event_types(audit_storage)[-1] == AuditEventType.INPUT_REJECTED

    @pytest.mark.asyncio
    async def test_unknown_expense(self, flow):
        with pytest.raises(NotFoundError):
            await flow.update_label(uuid4(), "Market")
        with pytest.raises(NotFoundError):
            await flow.update_amount(uuid4(), 100)

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, flow):
        expense, _ = await flow.add_expense(draft())
        with pytest.raises(InvalidInputError, match="No fields"):
            await flow.update_expense(expense.id, ExpenseUpdate())

    @pytest.mark.asyncio
    async def test_delete_twice(self, flow, audit_storage):
        expense, _ = await flow.add_expense(draft())

        assert await flow.delete_expense(expense.id) is True
        assert await flow.delete_expense(expense.id) is False
        assert event_types(audit_storage)[-2:] == [
            AuditEventType.EXPENSE_DELETED,
            AuditEventType.EXPENSE_DELETE_MISSED,
        ]


class TestLabelOperations:
    """Bulk rename and delete."""

    @pytest.mark.asyncio
    async def test_rename_merges_into_existing_label(self, flow):
        await flow.add_expense(draft(label="Cofee", amount=Decimal("500")))
        await flow.add_expense(draft(label="Coffee", amount=Decimal("700")))

        result = await flow.rename_label("Cofee", "Coffee")
        assert result.affected_count == 1
        assert not result.is_noop

        view = await flow.load_view()
        [aggregate] = view.days[0].labels
        assert aggregate.label == "Coffee"
        assert aggregate.total_amount == 1200
        assert aggregate.transaction_count == 2

    @pytest.mark.asyncio
    async def test_rename_unknown_label_is_noop(self, flow, audit_storage):
        await flow.add_expense(draft())
        result = await flow.rename_label("Ghost", "Other")
        assert result.is_noop
        assert event_types(audit_storage)[-1] == AuditEventType.LABEL_CHANGE_NOOP

    @pytest.mark.asyncio
    async def test_rename_onto_itself_is_noop(self, flow):
        await flow.add_expense(draft(label="Coffee"))
        result = await flow.rename_label("Coffee", " Coffee ")
        assert result.affected_count == 0

    @pytest.mark.asyncio
    async def test_rename_to_blank_rejected(self, flow, audit_storage):
        with pytest.raises(InvalidInputError):
            await flow.rename_label("Coffee", "   ")
        assert event_types(audit_storage) == [AuditEventType.INPUT_REJECTED]

    @pytest.mark.asyncio
    async def test_delete_label(self, flow, audit_storage):
        await flow.add_expense(draft(label="Coffee"))
        await flow.add_expense(draft(label="Coffee", expense_date=D0))
        await flow.add_expense(draft(label="Tea"))

        result = await flow.delete_label("Coffee")

        assert result.affected_count == 2
        assert await flow.list_labels() == ["Tea"]
        assert event_types(audit_storage)[-1] == AuditEventType.LABEL_DELETED


class TestReads:
    """Views are always computed over a fresh snapshot."""

    @pytest.mark.asyncio
    async def test_load_view_sees_latest_writes(self, flow):
        await flow.add_expense(draft(label="Groceries", amount=Decimal("10000")))
        await flow.add_expense(draft(label="Coffee", amount=Decimal("2500")))
        await flow.add_expense(draft(label="Transport", amount=Decimal("15000"), expense_date=D0))

        view = await flow.load_view()
        assert [day.total for day in view.days] == [12500, 15000]

        view = await flow.load_view(view.state.with_sort(SortOption.NAME_AZ))
        assert [a.label for a in view.days[0].labels] == ["Coffee", "Groceries"]

    @pytest.mark.asyncio
    async def test_default_page_size_from_settings(self, store, app_settings):
        settings = app_settings.model_copy(update={"default_items_per_page": 2})
        flow = ExpenseFlow(store=store, settings=settings)
        for label in ("A", "B", "C"):
            await flow.add_expense(draft(label=label))

        view = await flow.load_view()
        assert len(view.days[0].labels) == 2
        assert view.days[0].page.total_pages == 2

    @pytest.mark.asyncio
    async def test_store_unavailable_is_audited(self, audit_storage, app_settings):
        flow = ExpenseFlow(
            store=UnreachableStore(),
            audit_logger=AuditLogger(audit_storage),
            settings=app_settings,
        )
        with pytest.raises(StoreUnavailableError):
            await flow.load_view(ViewState())
        assert event_types(audit_storage) == [AuditEventType.STORE_UNAVAILABLE]


class TestHelpers:
    """Small record utilities."""

    def test_unique_labels_sorted_ignoring_case(self, make_expense):
        records = [make_expense(label=label) for label in ("tea", "Coffee", "apple", "Coffee")]
        assert unique_labels(records) == ["apple", "Coffee", "tea"]

    def test_day_total(self, make_expense):
        records = [
            make_expense(amount=10000, expense_date=D1),
            make_expense(amount=2500, expense_date=D1),
            make_expense(amount=15000, expense_date=D0),
        ]
        assert day_total(records, D1) == 12500
        assert day_total(records, date(2024, 1, 1)) == 0

    def test_in_memory_components(self, monkeypatch):
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        flow, heartbeat, sheets_client = create_app_components(use_storage=False)
        assert isinstance(flow.store, InMemoryExpenseStore)
        assert sheets_client is None
        assert heartbeat.is_running is False
