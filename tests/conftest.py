"""Shared fixtures for the Currency Clarity test-suite."""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from currency_clarity.audit import AuditLogger
from currency_clarity.config import AppSettings
from currency_clarity.models import BalanceStatus, Currency, Expense
from currency_clarity.orchestrator import ExpenseFlow
from currency_clarity.services.storage import InMemoryAuditStorage, InMemoryExpenseStore


BASE_TIME = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
D0 = date(2024, 5, 31)
D1 = date(2024, 6, 1)


class TickingClock:
    """Deterministic clock: every call is one minute after the previous one."""

    def __init__(self, start: datetime = BASE_TIME):
        self._now = start

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(minutes=1)
        return current


@pytest.fixture
def make_expense():
    """Factory for stored expenses; `created_offset` is in minutes after BASE_TIME."""

    def _make(
        amount: int = 1000,
        label: str = "Groceries",
        expense_date: date = D1,
        created_offset: int = 0,
        currency: Currency = Currency.FMG,
        remark=None,
        balance_status: BalanceStatus = BalanceStatus.PAID,
        balance_amount: int = 0,
    ) -> Expense:
        created = BASE_TIME + timedelta(minutes=created_offset)
        return Expense(
            id=uuid4(),
            amount=amount,
            currency=currency,
            label=label,
            expense_date=expense_date,
            remark=remark,
            balance_status=balance_status,
            balance_amount=balance_amount,
            created_at=created,
            updated_at=created,
        )

    return _make


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(clock) -> InMemoryExpenseStore:
    return InMemoryExpenseStore(clock=clock)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        storage_backend="memory",
        default_items_per_page=10,
        max_expense_amount_fmg=50_000_000,
        future_date_tolerance_days=1,
    )


@pytest.fixture
def flow(store, audit_storage, app_settings) -> ExpenseFlow:
    return ExpenseFlow(
        store=store,
        audit_logger=AuditLogger(audit_storage),
        settings=app_settings,
    )
