"""
Expense Aggregation & View Engine

DESIGN DECISION: The view is a pure function of (records, ViewState).

    records ──► date range ──► filters/search ──► group by day
                                                      │
             ExpenseView ◄── paginate ◄── sort ◄──────┘

Nothing is cached between calls: every render re-derives the whole view
from the snapshot it is handed. The only memory is what the caller keeps
in the returned ViewState (page numbers, open sections, the fingerprint
used to detect that the data or the filters changed).

All sums are integer FMG.
"""

import hashlib
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from currency_clarity.models.expense import Expense
from currency_clarity.validation.validator import ensure_valid_expense
from currency_clarity.views.accordion import resolve_open_sections, section_key
from currency_clarity.views.filters import day_of, filter_by_date_range, filter_expenses
from currency_clarity.views.models import (
    ActiveFilters,
    DayGroup,
    DayView,
    EmptyReason,
    ExpenseView,
    LabelAggregate,
    SortOption,
    ViewState,
)
from currency_clarity.views.pagination import (
    DayPagination,
    build_page_info,
    paginate,
)


def group_by_day(expenses: Iterable[Expense]) -> list[DayGroup]:
    """
    Bucket expenses by calendar day, then by label.

    Labels keep first-seen order and transactions keep input order.
    Days come back most recent first.
    """
    buckets: dict = {}

    for expense in expenses:
        day = day_of(expense.expense_date)
        group = buckets.get(day)
        if group is None:
            group = buckets[day] = DayGroup(day=day)

        aggregate = group.expenses_by_label.get(expense.label)
        if aggregate is None:
            aggregate = group.expenses_by_label[expense.label] = LabelAggregate(label=expense.label)

        aggregate.transactions.append(expense)
        aggregate.total_amount += expense.amount
        group.total += expense.amount

    return sorted(buckets.values(), key=lambda group: group.day, reverse=True)


def sort_label_aggregates(
    aggregates: Iterable[LabelAggregate],
    sort_option: SortOption = SortOption.AMOUNT_DESC,
) -> list[LabelAggregate]:
    """Order one day's label aggregates; ties keep their incoming order."""
    option = SortOption(sort_option)
    items = list(aggregates)

    if option is SortOption.AMOUNT_DESC:
        return sorted(items, key=lambda a: a.total_amount, reverse=True)
    if option is SortOption.AMOUNT_ASC:
        return sorted(items, key=lambda a: a.total_amount)
    if option is SortOption.NAME_AZ:
        return sorted(items, key=lambda a: (a.label.casefold(), a.label))
    if option is SortOption.NAME_ZA:
        return sorted(items, key=lambda a: (a.label.casefold(), a.label), reverse=True)
    return sorted(items, key=lambda a: a.transaction_count, reverse=True)


def sort_transactions(transactions: Iterable[Expense]) -> list[Expense]:
    """Most recently entered first (entry time, not expense date)."""
    return sorted(transactions, key=lambda e: e.created_at, reverse=True)


def snapshot_fingerprint(
    expenses: Iterable[Expense],
    search_query: str = "",
    active_filters: Optional[ActiveFilters] = None,
) -> str:
    """
    Digest of everything whose change resets pagination.

    Input order does not matter; any create, edit or delete does.
    """
    filters = active_filters or ActiveFilters()
    digest = hashlib.sha256()

    for expense_id, updated_at in sorted((str(e.id), e.updated_at.isoformat()) for e in expenses):
        digest.update(f"{expense_id}@{updated_at};".encode())

    digest.update(f"q={search_query}".encode())
    statuses = ",".join(sorted(status.value for status in filters.balance_status))
    digest.update(f"|b={statuses}|r={filters.has_remark}".encode())

    return digest.hexdigest()


def _build_day_view(
    group: DayGroup,
    state: ViewState,
    pagination: dict,
) -> DayView:
    ordered = sort_label_aggregates(group.expenses_by_label.values(), state.sort_option)
    ordered = [
        aggregate.model_copy(update={"transactions": sort_transactions(aggregate.transactions)})
        for aggregate in ordered
    ]

    day_pagination = pagination.get(
        group.day,
        DayPagination(items_per_page=state.default_items_per_page),
    )
    page = build_page_info(len(ordered), day_pagination)

    return DayView(
        day=group.day,
        total=group.total,
        labels=paginate(ordered, page.current_page, page.items_per_page),
        page=page,
    )


def compute_view(
    records: Sequence[Expense],
    state: Optional[ViewState] = None,
) -> ExpenseView:
    """
    Turn a flat snapshot of expenses into the grouped, paginated view.

    Args:
        records: Every expense the caller fetched; never modified.
        state: The ViewState returned by the previous call (or a fresh one).

    Returns:
        ExpenseView with the day views, an empty-state reason when there
        is nothing to show, and the next ViewState.

    Raises:
        InvalidInputError: a record breaks an expense invariant.
    """
    state = state or ViewState()

    for record in records:
        ensure_valid_expense(record)

    if state.date_range is not None:
        in_range = filter_by_date_range(records, state.date_range)
    else:
        in_range = list(records)

    matching = filter_expenses(in_range, state.search_query, state.active_filters)
    groups = group_by_day(matching)

    fingerprint = snapshot_fingerprint(in_range, state.search_query, state.active_filters)
    snapshot_changed = state.fingerprint != fingerprint
    if state.fingerprint is not None and snapshot_changed:
        pagination = {}
    else:
        pagination = dict(state.pagination)

    days = [_build_day_view(group, state, pagination) for group in groups]

    keys = [
        section_key(group.day, label)
        for group in groups
        for label in group.expenses_by_label
    ]
    # Auto-expand once per new snapshot; later toggles are kept
    open_sections, next_command = resolve_open_sections(
        state.accordion_command,
        keys,
        state.open_sections,
        auto_expand=state.auto_expand and snapshot_changed,
    )

    empty_reason = None
    if not in_range:
        empty_reason = EmptyReason.NO_EXPENSES
    elif not groups:
        if state.active_filters.is_active:
            empty_reason = EmptyReason.FILTERED
        else:
            empty_reason = EmptyReason.SEARCHED

    next_state = state.model_copy(update={
        "pagination": pagination,
        "open_sections": open_sections,
        "accordion_command": next_command,
        "fingerprint": fingerprint,
    })

    return ExpenseView(days=days, empty_reason=empty_reason, state=next_state)


def flatten_transactions(groups: Iterable[DayGroup]) -> list[Expense]:
    """Every transaction of every group, day by day."""
    return [
        expense
        for group in groups
        for aggregate in group.expenses_by_label.values()
        for expense in aggregate.transactions
    ]


def totals_by_label(expenses: Iterable[Expense]) -> dict[str, int]:
    """FMG total per label across all days."""
    totals: dict[str, int] = defaultdict(int)
    for expense in expenses:
        totals[expense.label] += expense.amount
    return dict(totals)
