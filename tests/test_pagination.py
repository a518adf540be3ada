"""Tests for per-day pagination and the compact page window."""

from datetime import date

import pytest

from currency_clarity.models import InvalidInputError
from currency_clarity.views.pagination import (
    ELLIPSIS,
    DayPagination,
    build_page_info,
    clamp_page,
    page_window,
    paginate,
    set_items_per_page,
    set_page,
    total_pages,
)


DAY = date(2024, 6, 1)
OTHER_DAY = date(2024, 5, 31)


class TestPageWindow:
    """Compact page-number lists."""

    @pytest.mark.parametrize("pages", [0, 1, 3, 5])
    def test_few_pages_listed_in_full(self, pages):
        assert page_window(1, pages) == list(range(1, pages + 1))

    @pytest.mark.parametrize("current", [1, 2, 3])
    def test_near_start(self, current):
        assert page_window(current, 10) == [1, 2, 3, ELLIPSIS, 10]

    @pytest.mark.parametrize("current", [8, 9, 10])
    def test_near_end(self, current):
        assert page_window(current, 10) == [1, ELLIPSIS, 8, 9, 10]

    def test_middle(self):
        assert page_window(5, 10) == [1, ELLIPSIS, 4, 5, 6, ELLIPSIS, 10]

    def test_boundaries_of_middle(self):
        assert page_window(4, 10) == [1, ELLIPSIS, 3, 4, 5, ELLIPSIS, 10]
        assert page_window(7, 10) == [1, ELLIPSIS, 6, 7, 8, ELLIPSIS, 10]

    def test_six_pages(self):
        assert page_window(4, 6) == [1, ELLIPSIS, 4, 5, 6]

    def test_invalid_request_rejected(self):
        with pytest.raises(InvalidInputError):
            page_window(0, 3)
        with pytest.raises(InvalidInputError):
            page_window(1, -1)


class TestPaging:
    """Page math."""

    def test_total_pages(self):
        assert total_pages(23, 10) == 3
        assert total_pages(20, 10) == 2
        assert total_pages(0, 10) == 0

    def test_total_pages_rejects_zero_page_size(self):
        with pytest.raises(InvalidInputError):
            total_pages(10, 0)

    def test_clamp_page(self):
        assert clamp_page(9, 3) == 3
        assert clamp_page(0, 3) == 1
        assert clamp_page(4, 0) == 1

    def test_pages_cover_items_without_gaps_or_overlaps(self):
        items = list(range(47))
        for size in (10, 20, 50, 100):
            pages = total_pages(len(items), size)
            rebuilt = [item for page in range(1, pages + 1) for item in paginate(items, page, size)]
            assert rebuilt == items

    def test_page_info(self):
        info = build_page_info(23, DayPagination(current_page=3, items_per_page=10))
        assert info.current_page == 3
        assert info.total_pages == 3
        assert (info.start_item, info.end_item) == (21, 23)
        assert info.summary == "21-23 of 23 labels"
        assert info.has_previous is True
        assert info.has_next is False
        assert info.needs_controls is True

    def test_page_info_clamps_past_the_end(self):
        info = build_page_info(5, DayPagination(current_page=4, items_per_page=2))
        assert info.current_page == 3
        assert (info.start_item, info.end_item) == (5, 5)

    def test_page_info_without_items(self):
        info = build_page_info(0, DayPagination())
        assert info.current_page == 1
        assert (info.start_item, info.end_item) == (0, 0)
        assert info.window == []
        assert info.needs_controls is False


class TestPaginationState:
    """State helpers return new mappings."""

    def test_set_page_keeps_page_size(self):
        state = {DAY: DayPagination(current_page=1, items_per_page=20)}
        updated = set_page(state, DAY, 2)
        assert updated[DAY] == DayPagination(current_page=2, items_per_page=20)
        assert state[DAY].current_page == 1

    def test_set_page_uses_default_size_for_new_day(self):
        updated = set_page({}, DAY, 3, default_items_per_page=50)
        assert updated[DAY] == DayPagination(current_page=3, items_per_page=50)

    def test_set_page_rejects_zero(self):
        with pytest.raises(InvalidInputError):
            set_page({}, DAY, 0)

    def test_changing_page_size_resets_only_that_day(self):
        state = {
            DAY: DayPagination(current_page=3, items_per_page=10),
            OTHER_DAY: DayPagination(current_page=2, items_per_page=10),
        }
        updated = set_items_per_page(state, DAY, 50)
        assert updated[DAY] == DayPagination(current_page=1, items_per_page=50)
        assert updated[OTHER_DAY].current_page == 2

    def test_day_pagination_is_frozen(self):
        with pytest.raises(ValueError):
            DayPagination(current_page=1).current_page = 2
