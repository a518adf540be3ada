"""
Core Data Models for Currency Clarity

These models define the strict schemas for every expense flowing through
the system. They are designed to:
1. Enforce the FMG-only storage invariant at the boundary
2. Provide clear validation error messages
3. Be serializable for storage and the HTTP API

DESIGN DECISION: There are three shapes of an expense.
- ExpenseDraft: what the user typed (amount in the currency they chose)
- NewExpense: the draft normalized to FMG, ready for the store
- Expense: a stored record with identity and timestamps
Only the draft ever holds a non-FMG amount.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from currency_clarity.models.currency import Currency, to_base_amount
from currency_clarity.models.errors import InvalidInputError


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BalanceStatus(str, Enum):
    """
    Informal debt tracking attached to an expense.

    Independent of the expense amount: a 10,000 FMG lunch can leave
    2,500 FMG owed by a friend.
    """
    PAID = "paid"
    I_OWE = "i_owe"
    OWED_TO_ME = "owed_to_me"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _truncate_to_day(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        # fromisoformat only accepts a "Z" suffix from Python 3.11
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value).date()
    return value


# =============================================================================
# STORED EXPENSE
# =============================================================================

class ExpenseFields(BaseModel):
    """
    Fields shared by new and stored expenses, all amounts in FMG.

    The balance invariant lives here: an open balance (I owe / owed to me)
    must carry a positive amount, and a paid expense carries none.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: int = Field(
        ...,
        ge=0,
        description="Amount in FMG"
    )
    currency: Currency = Field(
        default=Currency.FMG,
        description="Currency the amount was entered in (display only)"
    )
    label: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Free-text category, the grouping key"
    )
    expense_date: date = Field(
        ...,
        description="Calendar day of the transaction"
    )
    remark: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Optional free text"
    )
    balance_status: BalanceStatus = Field(
        default=BalanceStatus.PAID,
        description="Who owes whom for this expense"
    )
    balance_amount: int = Field(
        default=0,
        ge=0,
        description="Open balance in FMG, only meaningful when not paid"
    )

    @field_validator('expense_date', mode='before')
    @classmethod
    def drop_time_of_day(cls, v: Any) -> Any:
        """Grouping is per day, so a time component is discarded."""
        return _truncate_to_day(v)

    @model_validator(mode='after')
    def validate_balance(self) -> 'ExpenseFields':
        """Open balances need an amount; paid ones are zeroed."""
        if self.balance_status == BalanceStatus.PAID:
            self.balance_amount = 0
        elif self.balance_amount <= 0:
            raise ValueError(
                "Balance amount must be greater than zero when a balance is open"
            )
        return self


class NewExpense(ExpenseFields):
    """An expense ready to be created: normalized, without id or timestamps."""
    pass


class Expense(ExpenseFields):
    """
    A persisted expense.

    The store assigns `id`, `created_at` and `updated_at`; every mutation
    refreshes `updated_at`.
    """

    id: UUID = Field(
        ...,
        description="Identifier assigned by the store"
    )
    created_at: datetime = Field(
        ...,
        description="When the expense was recorded"
    )
    updated_at: datetime = Field(
        ...,
        description="Last mutation timestamp"
    )

    @model_validator(mode='after')
    def validate_timestamps(self) -> 'Expense':
        if self.updated_at < self.created_at:
            raise ValueError("Updated timestamp cannot be before creation timestamp")
        return self

    @property
    def was_edited(self) -> bool:
        """True when the record changed more than a second after creation."""
        return (self.updated_at - self.created_at).total_seconds() > 1

    @property
    def signed_balance(self) -> int:
        """Open balance from my point of view: negative when I owe."""
        if self.balance_status == BalanceStatus.I_OWE:
            return -self.balance_amount
        if self.balance_status == BalanceStatus.OWED_TO_ME:
            return self.balance_amount
        return 0


# =============================================================================
# USER INPUT
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    An expense as the user typed it.

    Amounts are in `currency`. Call `to_new_expense()` to get the
    FMG-normalized record the store accepts.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in the entry currency"
    )
    currency: Currency = Field(
        default=Currency.FMG,
        description="Entry currency"
    )
    label: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    expense_date: date = Field(
        default_factory=date.today,
    )
    remark: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    balance_status: BalanceStatus = BalanceStatus.PAID
    balance_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Open balance in the entry currency"
    )

    @field_validator('expense_date', mode='before')
    @classmethod
    def drop_time_of_day(cls, v: Any) -> Any:
        return _truncate_to_day(v)

    def to_new_expense(self) -> NewExpense:
        """
        Normalize to FMG.

        Raises:
            InvalidInputError: amount not expressible in whole FMG, or
                the balance invariant does not hold.
        """
        try:
            return NewExpense(
                amount=to_base_amount(self.amount, self.currency),
                currency=self.currency,
                label=self.label,
                expense_date=self.expense_date,
                remark=self.remark or None,
                balance_status=self.balance_status,
                balance_amount=to_base_amount(self.balance_amount, self.currency),
            )
        except ValidationError as e:
            raise InvalidInputError(str(e)) from e


class ExpenseUpdate(BaseModel):
    """
    Partial update of a stored expense.

    Only fields that were explicitly set are applied; amounts are FMG.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[int] = Field(default=None, ge=0)
    currency: Optional[Currency] = None
    label: Optional[str] = Field(default=None, min_length=1, max_length=100)
    expense_date: Optional[date] = None
    remark: Optional[str] = Field(default=None, max_length=500)
    balance_status: Optional[BalanceStatus] = None
    balance_amount: Optional[int] = Field(default=None, ge=0)

    @field_validator('expense_date', mode='before')
    @classmethod
    def drop_time_of_day(cls, v: Any) -> Any:
        return _truncate_to_day(v)

    @property
    def changes(self) -> dict[str, Any]:
        """Fields the caller actually set."""
        return self.model_dump(exclude_unset=True)


def apply_update(
    expense: Expense,
    update: ExpenseUpdate,
    now: Optional[datetime] = None,
) -> Expense:
    """
    Return a new Expense with `update` applied and `updated_at` refreshed.

    The original record is left untouched.

    Raises:
        InvalidInputError: the merged record breaks an invariant.
    """
    data = expense.model_dump()
    data.update(update.changes)
    if data.get("remark") == "":
        data["remark"] = None
    data["updated_at"] = max(now or utc_now(), expense.created_at)
    try:
        return Expense.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(str(e)) from e


class ExpenseEdit(BaseModel):
    """
    Partial edit as typed in the edit form.

    Amounts are in the record's own entry currency, the way the form
    shows them; `to_update` converts them to FMG.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = Field(default=None, gt=0)
    label: Optional[str] = Field(default=None, min_length=1, max_length=100)
    expense_date: Optional[date] = None
    remark: Optional[str] = Field(default=None, max_length=500)
    balance_status: Optional[BalanceStatus] = None
    balance_amount: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator('expense_date', mode='before')
    @classmethod
    def drop_time_of_day(cls, v: Any) -> Any:
        return _truncate_to_day(v)

    def to_update(self, currency: Currency) -> ExpenseUpdate:
        """
        Raises:
            InvalidInputError: an amount is not a whole number of FMG
        """
        data = self.model_dump(exclude_unset=True)
        for field in ("amount", "balance_amount"):
            if data.get(field) is not None:
                data[field] = to_base_amount(data[field], currency)
        if data.get("balance_status") == BalanceStatus.PAID:
            data["balance_amount"] = 0
        try:
            return ExpenseUpdate(**data)
        except ValidationError as e:
            raise InvalidInputError(str(e)) from e
