"""
Per-day pagination of label aggregates.

Each day card pages its labels independently: one busy day can be on
page 3 while every other day still shows page 1. Pagination state is a
plain mapping of day -> DayPagination owned by the caller; the helpers
here never mutate it, they return a new mapping.
"""

import math
from datetime import date
from typing import Sequence, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from currency_clarity.models.errors import InvalidInputError


DEFAULT_ITEMS_PER_PAGE = 10
ITEMS_PER_PAGE_OPTIONS = (10, 20, 50, 100)
ELLIPSIS = "..."

T = TypeVar("T")

PageMarker = Union[int, str]


class DayPagination(BaseModel):
    """Pagination position of a single day."""
    model_config = ConfigDict(frozen=True)

    current_page: int = Field(default=1, ge=1)
    items_per_page: int = Field(default=DEFAULT_ITEMS_PER_PAGE, ge=1)


class PageInfo(BaseModel):
    """Everything a pager widget needs to render one day's controls."""

    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    start_item: int
    end_item: int
    window: list[PageMarker] = Field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def needs_controls(self) -> bool:
        """Controls are only shown when there is more than one page."""
        return self.total_pages > 1

    @property
    def summary(self) -> str:
        return f"{self.start_item}-{self.end_item} of {self.total_items} labels"


def total_pages(total_items: int, items_per_page: int) -> int:
    """Number of pages needed; zero items need zero pages."""
    if items_per_page < 1:
        raise InvalidInputError(f"items_per_page must be at least 1, got {items_per_page}")
    return math.ceil(total_items / items_per_page)


def clamp_page(current_page: int, pages: int) -> int:
    """Keep a requested page inside [1, pages]."""
    return min(max(current_page, 1), max(pages, 1))


def paginate(items: Sequence[T], current_page: int, items_per_page: int) -> list[T]:
    """Slice out one page (1-based)."""
    start = (current_page - 1) * items_per_page
    return list(items[start:start + items_per_page])


def page_window(current_page: int, pages: int) -> list[PageMarker]:
    """
    Compact list of page numbers for a pager.

    Up to five pages are listed in full; past that the first and last
    page stay visible and gaps collapse into "...":

        page_window(2, 10) -> [1, 2, 3, "...", 10]
        page_window(5, 10) -> [1, "...", 4, 5, 6, "...", 10]
        page_window(9, 10) -> [1, "...", 8, 9, 10]
    """
    if pages < 0 or current_page < 1:
        raise InvalidInputError(
            f"Invalid page window request: page {current_page} of {pages}"
        )

    if pages <= 5:
        return list(range(1, pages + 1))

    if current_page <= 3:
        return [1, 2, 3, ELLIPSIS, pages]
    if current_page > pages - 3:
        return [1, ELLIPSIS, pages - 2, pages - 1, pages]
    return [1, ELLIPSIS, current_page - 1, current_page, current_page + 1, ELLIPSIS, pages]


def build_page_info(total_items: int, pagination: DayPagination) -> PageInfo:
    """Resolve a day's pagination against its item count."""
    pages = total_pages(total_items, pagination.items_per_page)
    current = clamp_page(pagination.current_page, pages)

    if total_items == 0:
        start_item, end_item = 0, 0
    else:
        start_item = (current - 1) * pagination.items_per_page + 1
        end_item = min(current * pagination.items_per_page, total_items)

    return PageInfo(
        current_page=current,
        items_per_page=pagination.items_per_page,
        total_items=total_items,
        total_pages=pages,
        start_item=start_item,
        end_item=end_item,
        window=page_window(current, pages),
    )


def set_page(
    state: dict[date, DayPagination],
    day: date,
    page: int,
    default_items_per_page: int = DEFAULT_ITEMS_PER_PAGE,
) -> dict[date, DayPagination]:
    """Move one day to `page`, keeping its page size."""
    if page < 1:
        raise InvalidInputError(f"Page must be at least 1, got {page}")
    current = state.get(day, DayPagination(items_per_page=default_items_per_page))
    updated = dict(state)
    updated[day] = current.model_copy(update={"current_page": page})
    return updated


def set_items_per_page(
    state: dict[date, DayPagination],
    day: date,
    items_per_page: int,
) -> dict[date, DayPagination]:
    """Change one day's page size; that day goes back to page 1."""
    if items_per_page < 1:
        raise InvalidInputError(f"items_per_page must be at least 1, got {items_per_page}")
    updated = dict(state)
    updated[day] = DayPagination(current_page=1, items_per_page=items_per_page)
    return updated
