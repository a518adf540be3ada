"""
Data Models Package

This package contains all Pydantic models used in Currency Clarity.
All data flowing through the system must conform to these schemas.
"""

from currency_clarity.models.currency import (
    ALTERNATE_CURRENCY,
    ARIARY_TO_FMG_RATE,
    BASE_CURRENCY,
    Currency,
    format_currency,
    format_dual,
    to_base_amount,
    to_display_amount,
)
from currency_clarity.models.errors import InvalidInputError
from currency_clarity.models.expense import (
    BalanceStatus,
    Expense,
    ExpenseDraft,
    ExpenseEdit,
    ExpenseFields,
    ExpenseUpdate,
    NewExpense,
    apply_update,
    utc_now,
)
from currency_clarity.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Currency
    "ALTERNATE_CURRENCY",
    "ARIARY_TO_FMG_RATE",
    "BASE_CURRENCY",
    "Currency",
    "format_currency",
    "format_dual",
    "to_base_amount",
    "to_display_amount",
    # Errors
    "InvalidInputError",
    # Expense models
    "BalanceStatus",
    "Expense",
    "ExpenseDraft",
    "ExpenseEdit",
    "ExpenseFields",
    "ExpenseUpdate",
    "NewExpense",
    "apply_update",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
