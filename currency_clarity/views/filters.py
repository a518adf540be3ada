"""
Record predicates applied before grouping.

A record survives when every active predicate holds:
- balance: its status is one of the selected statuses
- remark: it has a remark that is not just whitespace
- search: its label contains the query, ignoring case
"""

from datetime import date, datetime
from typing import Iterable, Optional

from currency_clarity.models.expense import Expense
from currency_clarity.views.models import ActiveFilters, DateRange


def day_of(value: date) -> date:
    """Start-of-day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def matches_filters(
    expense: Expense,
    search_query: str = "",
    active_filters: Optional[ActiveFilters] = None,
) -> bool:
    filters = active_filters or ActiveFilters()

    if filters.balance_status and expense.balance_status not in filters.balance_status:
        return False

    if filters.has_remark and not (expense.remark and expense.remark.strip()):
        return False

    if search_query and search_query.lower() not in expense.label.lower():
        return False

    return True


def filter_expenses(
    expenses: Iterable[Expense],
    search_query: str = "",
    active_filters: Optional[ActiveFilters] = None,
) -> list[Expense]:
    return [
        expense for expense in expenses
        if matches_filters(expense, search_query, active_filters)
    ]


def filter_by_date_range(
    expenses: Iterable[Expense],
    date_range: DateRange,
) -> list[Expense]:
    """Keep expenses whose day falls inside the inclusive range."""
    return [
        expense for expense in expenses
        if date_range.contains(day_of(expense.expense_date))
    ]
