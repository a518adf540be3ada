"""
View state and view model.

ViewState is everything the UI would otherwise keep in mutable globals:
search text, filters, sort order, per-day pagination, open sections and
the pending expand/collapse command. It goes into `compute_view` and
comes back, updated, inside the ExpenseView.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from currency_clarity.models.currency import format_dual
from currency_clarity.models.expense import BalanceStatus, Expense
from currency_clarity.views.accordion import (
    AccordionCommand,
    section_key,
    toggle_section,
)
from currency_clarity.views.pagination import (
    DEFAULT_ITEMS_PER_PAGE,
    DayPagination,
    PageInfo,
    set_items_per_page,
    set_page,
)


class SortOption(str, Enum):
    """Ordering of label aggregates inside a day."""
    AMOUNT_DESC = "amount-desc"
    AMOUNT_ASC = "amount-asc"
    NAME_AZ = "name-az"
    NAME_ZA = "name-za"
    TRANSACTIONS_DESC = "transactions-desc"


class EmptyReason(str, Enum):
    """Why a view has no day groups."""
    NO_EXPENSES = "no_expenses"  # nothing recorded in the period
    FILTERED = "filtered"        # records exist, filters hide them
    SEARCHED = "searched"        # records exist, no label matches the search


class ActiveFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    balance_status: list[BalanceStatus] = Field(default_factory=list)
    has_remark: bool = False

    @property
    def is_active(self) -> bool:
        return bool(self.balance_status) or self.has_remark


class DateRange(BaseModel):
    """
    Inclusive range of days.

    Without `to_date` the range is the single day `from_date`.
    """
    model_config = ConfigDict(frozen=True)

    from_date: date
    to_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.to_date is not None and self.to_date < self.from_date:
            raise ValueError("Date range end cannot be before its start")
        return self

    @property
    def end(self) -> date:
        return self.to_date or self.from_date

    def contains(self, day: date) -> bool:
        return self.from_date <= day <= self.end


class ViewState(BaseModel):
    """
    Caller-owned UI state threaded through `compute_view`.

    `fingerprint` identifies the records/search/filters the pagination
    was built for; when it no longer matches, pagination starts over.
    """

    search_query: str = ""
    active_filters: ActiveFilters = Field(default_factory=ActiveFilters)
    sort_option: SortOption = SortOption.AMOUNT_DESC
    date_range: Optional[DateRange] = None
    default_items_per_page: int = Field(default=DEFAULT_ITEMS_PER_PAGE, ge=1)
    pagination: dict[date, DayPagination] = Field(default_factory=dict)
    accordion_command: AccordionCommand = AccordionCommand.DEFAULT
    open_sections: list[str] = Field(default_factory=list)
    fingerprint: Optional[str] = None

    @property
    def auto_expand(self) -> bool:
        """Searching or filtering opens matching sections on a new result set."""
        return bool(self.search_query) or self.active_filters.is_active

    def with_search(self, query: str) -> 'ViewState':
        return self.model_copy(update={"search_query": query})

    def with_filters(self, filters: ActiveFilters) -> 'ViewState':
        return self.model_copy(update={"active_filters": filters})

    def with_sort(self, option: SortOption) -> 'ViewState':
        return self.model_copy(update={"sort_option": SortOption(option)})

    def with_date_range(self, date_range: Optional[DateRange]) -> 'ViewState':
        return self.model_copy(update={"date_range": date_range})

    def with_page(self, day: date, page: int) -> 'ViewState':
        return self.model_copy(update={
            "pagination": set_page(self.pagination, day, page, self.default_items_per_page),
        })

    def with_items_per_page(self, day: date, items_per_page: int) -> 'ViewState':
        return self.model_copy(update={
            "pagination": set_items_per_page(self.pagination, day, items_per_page),
        })

    def with_command(self, command: AccordionCommand) -> 'ViewState':
        return self.model_copy(update={"accordion_command": AccordionCommand(command)})

    def toggled(self, day: date, label: str) -> 'ViewState':
        return self.model_copy(update={
            "open_sections": toggle_section(self.open_sections, section_key(day, label)),
        })


class LabelAggregate(BaseModel):
    """All of one day's expenses sharing a label."""

    label: str
    total_amount: int = 0
    transactions: list[Expense] = Field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def display_total(self) -> tuple[str, str]:
        """(Ariary, FMG) renderings of the total."""
        return format_dual(self.total_amount)


class DayGroup(BaseModel):
    """Every matching expense of one calendar day, bucketed by label."""

    day: date
    total: int = 0
    expenses_by_label: dict[str, LabelAggregate] = Field(default_factory=dict)


class DayView(BaseModel):
    """One day as rendered: sorted, paginated label aggregates."""

    day: date
    total: int
    labels: list[LabelAggregate] = Field(default_factory=list)
    page: PageInfo

    @property
    def display_total(self) -> tuple[str, str]:
        return format_dual(self.total)

    def section_key(self, label: str) -> str:
        return section_key(self.day, label)


class ExpenseView(BaseModel):
    """
    Output of `compute_view`.

    `state` is the next ViewState: pagination possibly reset, accordion
    command consumed, open sections resolved. Feed it back in next time.
    """

    days: list[DayView] = Field(default_factory=list)
    empty_reason: Optional[EmptyReason] = None
    state: ViewState

    @property
    def is_empty(self) -> bool:
        return not self.days

    def is_open(self, day: date, label: str) -> bool:
        return section_key(day, label) in self.state.open_sections
