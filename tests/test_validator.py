"""Tests for the two-stage validation pipeline."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from currency_clarity.config import AppSettings
from currency_clarity.models import (
    BalanceStatus,
    Currency,
    ExpenseDraft,
    InvalidInputError,
)
from currency_clarity.validation import ExpenseValidator, ensure_valid_expense


@pytest.fixture
def validator() -> ExpenseValidator:
    return ExpenseValidator(AppSettings(
        max_expense_amount_fmg=1_000_000,
        future_date_tolerance_days=1,
    ))


class TestSchemaStage:
    """Stage 1 blocks saving."""

    def test_valid_draft_passes(self, validator):
        result = validator.validate(ExpenseDraft(amount=Decimal("2500"), label="Coffee"))
        assert result.is_valid
        assert result.issues == []
        assert validator.get_user_friendly_summary(result) == "All checks passed."

    def test_fractional_fmg_is_a_schema_error(self, validator):
        draft = ExpenseDraft(amount=Decimal("0.1"), currency=Currency.ARIARY, label="Coffee")
        result = validator.validate(draft)
        assert not result.schema_valid
        assert result.issues[0].field == "amount"
        assert result.issues[0].issue_type == "invalid_precision"

    def test_open_balance_without_amount(self, validator):
        draft = ExpenseDraft(amount=Decimal("100"), label="Lunch", balance_status=BalanceStatus.I_OWE)
        result = validator.validate(draft)
        assert not result.schema_valid
        assert "open balance" in result.error_messages[0]

    def test_semantic_stage_skipped_on_schema_error(self, validator):
        draft = ExpenseDraft(
            amount=Decimal("0.1"),
            currency=Currency.ARIARY,
            label="Coffee",
            expense_date=date.today() + timedelta(days=30),
        )
        result = validator.validate(draft)
        assert result.warnings == []
        assert result.semantic_valid is False

    def test_summary_lists_errors(self, validator):
        draft = ExpenseDraft(amount=Decimal("100"), label="Lunch", balance_status=BalanceStatus.OWED_TO_ME)
        summary = validator.get_user_friendly_summary(validator.validate(draft))
        assert summary.startswith("This expense cannot be saved:")
        assert "open balance" in summary


class TestSemanticStage:
    """Stage 2 warns but never blocks."""

    def test_future_date_warns(self, validator):
        draft = ExpenseDraft(
            amount=Decimal("100"),
            label="Rent",
            expense_date=date.today() + timedelta(days=5),
        )
        result = validator.validate(draft)
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "in the future" in result.warnings[0]

    def test_tomorrow_is_tolerated(self, validator):
        draft = ExpenseDraft(
            amount=Decimal("100"),
            label="Rent",
            expense_date=date.today() + timedelta(days=1),
        )
        assert validator.validate(draft).warnings == []

    def test_large_amount_warns_in_fmg(self, validator):
        # 300,000 Ar is 1,500,000 FMG, above the 1,000,000 FMG threshold
        draft = ExpenseDraft(amount=Decimal("300000"), currency=Currency.ARIARY, label="Car")
        result = validator.validate(draft)
        assert result.warnings == ["Amount (1,500,000 FMG) seems unusually high"]

    def test_balance_larger_than_amount_warns(self, validator):
        draft = ExpenseDraft(
            amount=Decimal("100"),
            label="Lunch",
            balance_status=BalanceStatus.OWED_TO_ME,
            balance_amount=Decimal("500"),
        )
        result = validator.validate(draft)
        assert result.is_valid
        assert result.warnings == ["Balance is larger than the expense itself"]

    def test_summary_lists_warnings(self, validator):
        draft = ExpenseDraft(
            amount=Decimal("100"),
            label="Lunch",
            balance_status=BalanceStatus.OWED_TO_ME,
            balance_amount=Decimal("500"),
        )
        summary = validator.get_user_friendly_summary(validator.validate(draft))
        assert summary.startswith("Please double-check:")


class TestEnsureValidExpense:
    """Stored records are re-checked before aggregation."""

    def test_valid_record_passes(self, make_expense):
        ensure_valid_expense(make_expense())

    def test_mutated_record_rejected(self, make_expense):
        expense = make_expense()
        expense.amount = -10
        with pytest.raises(InvalidInputError, match=str(expense.id)):
            ensure_valid_expense(expense)

    def test_float_amount_rejected(self, make_expense):
        expense = make_expense()
        expense.amount = 10.5
        with pytest.raises(InvalidInputError):
            ensure_valid_expense(expense)

    def test_timestamps_out_of_order_rejected(self, make_expense):
        expense = make_expense(created_offset=10)
        expense.updated_at = expense.created_at - timedelta(minutes=1)
        with pytest.raises(InvalidInputError, match="updated before it was created"):
            ensure_valid_expense(expense)
