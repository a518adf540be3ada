"""Expense aggregation and view engine."""

from currency_clarity.views.accordion import (
    AccordionCommand,
    resolve_open_sections,
    section_key,
    toggle_section,
)
from currency_clarity.views.aggregation import (
    compute_view,
    flatten_transactions,
    group_by_day,
    snapshot_fingerprint,
    sort_label_aggregates,
    sort_transactions,
    totals_by_label,
)
from currency_clarity.views.filters import (
    filter_by_date_range,
    filter_expenses,
    matches_filters,
)
from currency_clarity.views.models import (
    ActiveFilters,
    DateRange,
    DayGroup,
    DayView,
    EmptyReason,
    ExpenseView,
    LabelAggregate,
    SortOption,
    ViewState,
)
from currency_clarity.views.pagination import (
    DEFAULT_ITEMS_PER_PAGE,
    ELLIPSIS,
    ITEMS_PER_PAGE_OPTIONS,
    DayPagination,
    PageInfo,
    build_page_info,
    page_window,
    paginate,
    set_items_per_page,
    set_page,
    total_pages,
)

__all__ = [
    "AccordionCommand",
    "resolve_open_sections",
    "section_key",
    "toggle_section",
    "compute_view",
    "flatten_transactions",
    "group_by_day",
    "snapshot_fingerprint",
    "sort_label_aggregates",
    "sort_transactions",
    "totals_by_label",
    "filter_by_date_range",
    "filter_expenses",
    "matches_filters",
    "ActiveFilters",
    "DateRange",
    "DayGroup",
    "DayView",
    "EmptyReason",
    "ExpenseView",
    "LabelAggregate",
    "SortOption",
    "ViewState",
    "DEFAULT_ITEMS_PER_PAGE",
    "ELLIPSIS",
    "ITEMS_PER_PAGE_OPTIONS",
    "DayPagination",
    "PageInfo",
    "build_page_info",
    "page_window",
    "paginate",
    "set_items_per_page",
    "set_page",
    "total_pages",
]
