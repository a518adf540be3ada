"""Validation package."""

from currency_clarity.models.errors import InvalidInputError
from currency_clarity.validation.validator import (
    ExpenseValidator,
    ValidationIssue,
    ValidationResult,
    ensure_valid_expense,
)

__all__ = [
    "ExpenseValidator",
    "InvalidInputError",
    "ValidationIssue",
    "ValidationResult",
    "ensure_valid_expense",
]
