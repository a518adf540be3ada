"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Positive amount
- Non-blank label
- Open balances carry an amount
- Ariary amounts land on whole FMG
This catches input that cannot be stored at all.

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- Balance larger than the expense itself
This catches input that can be stored but is probably a typo.

The form layer validates too, but the core never trusts it:
`ensure_valid_expense` re-checks stored records before the view
engine aggregates them.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the user to review.
"""

from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from currency_clarity.config import AppSettings, get_settings
from currency_clarity.models.currency import Currency, format_currency, to_base_amount
from currency_clarity.models.errors import InvalidInputError
from currency_clarity.models.expense import BalanceStatus, Expense, ExpenseDraft


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (can the expense be stored?)
    Stage 2: Semantic validation (does it look plausible?)
    """

    schema_valid: bool
    semantic_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and self.semantic_valid

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]


class ExpenseValidator:
    """
    Validates expense drafts through a two-stage pipeline.

    Errors block saving; warnings are shown but do not.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: ExpenseDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))
        else:
            try:
                to_base_amount(draft.amount, draft.currency)
            except InvalidInputError as e:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_precision",
                    message=str(e),
                    severity="error",
                ))

        if not draft.label.strip():
            issues.append(ValidationIssue(
                field="label",
                issue_type="missing",
                message="Label is required",
                severity="error",
            ))

        if draft.balance_status != BalanceStatus.PAID:
            if draft.balance_amount <= 0:
                issues.append(ValidationIssue(
                    field="balance_amount",
                    issue_type="missing",
                    message="An open balance needs an amount greater than zero",
                    severity="error",
                ))
            else:
                try:
                    to_base_amount(draft.balance_amount, draft.currency)
                except InvalidInputError as e:
                    issues.append(ValidationIssue(
                        field="balance_amount",
                        issue_type="invalid_precision",
                        message=str(e),
                        severity="error",
                    ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        draft: ExpenseDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Only called once stage 1 passed, so conversions cannot fail here.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        today = date.today()

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.expense_date > max_future_date:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="future_date",
                message=f"Expense date ({draft.expense_date}) is in the future",
                severity="warning",
            ))

        amount_fmg = to_base_amount(draft.amount, draft.currency)
        if amount_fmg > self._settings.max_expense_amount_fmg:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=(
                    f"Amount ({format_currency(amount_fmg, Currency.FMG)}) seems unusually high"
                ),
                severity="warning",
            ))

        if draft.balance_status != BalanceStatus.PAID:
            balance_fmg = to_base_amount(draft.balance_amount, draft.currency)
            if balance_fmg > amount_fmg:
                issues.append(ValidationIssue(
                    field="balance_amount",
                    issue_type="suspicious_value",
                    message="Balance is larger than the expense itself",
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(self, draft: ExpenseDraft) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Stage 2 is skipped when stage 1 fails.
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Plain-text summary suitable for a toast or an API error body."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if not result.schema_valid:
            lines.append("This expense cannot be saved:")
            for message in result.error_messages:
                lines.append(f"   - {message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)


def ensure_valid_expense(expense: Expense) -> None:
    """
    Fail fast on a record that breaks an expense invariant.

    Records normally arrive validated from the store, but models built
    with `model_construct` (or mutated after the fact) skip pydantic, so
    the view engine calls this before trusting any amount.

    Raises:
        InvalidInputError: with the offending record id in the message.
    """
    ref = getattr(expense, "id", None)

    amount = getattr(expense, "amount", None)
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidInputError(f"Expense {ref}: amount must be a non-negative integer of FMG, got {amount!r}")

    label = getattr(expense, "label", None)
    if not isinstance(label, str) or not label.strip():
        raise InvalidInputError(f"Expense {ref}: label cannot be empty")

    status = getattr(expense, "balance_status", BalanceStatus.PAID)
    balance = getattr(expense, "balance_amount", 0)
    if status != BalanceStatus.PAID and (not isinstance(balance, int) or balance <= 0):
        raise InvalidInputError(
            f"Expense {ref}: balance amount must be greater than zero while status is {BalanceStatus(status).value}"
        )
    if isinstance(balance, int) and balance < 0:
        raise InvalidInputError(f"Expense {ref}: balance amount cannot be negative")

    created_at = getattr(expense, "created_at", None)
    updated_at = getattr(expense, "updated_at", None)
    if created_at is not None and updated_at is not None and updated_at < created_at:
        raise InvalidInputError(f"Expense {ref}: updated before it was created")
