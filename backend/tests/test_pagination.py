"""Tests for the shared `{data, total, pages}` pagination helpers."""

import pytest

from triptrack.exceptions import ValidationError
from triptrack.services.pagination import check_page, page_count, slice_page


class TestPageCount:

    @pytest.mark.parametrize(
        "total,limit,expected",
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 20, 2)],
    )
    def test_ceiling(self, total, limit, expected):
        assert page_count(total, limit) == expected


class TestSlicePage:

    @pytest.mark.parametrize("n,limit", [(23, 10), (20, 10), (1, 12), (50, 7)])
    def test_last_page_size(self, n, limit):
        items = list(range(n))
        pages = page_count(n, limit)

        data, total, reported_pages = slice_page(items, pages, limit)

        assert total == n
        assert reported_pages == pages
        assert len(data) == (n % limit or limit)

    def test_page_beyond_end_is_empty(self):
        data, total, pages = slice_page(list(range(5)), 3, 5)
        assert data == []
        assert total == 5
        assert pages == 1


class TestCheckPage:

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (-1, -1)])
    def test_rejects_non_positive(self, page, limit):
        with pytest.raises(ValidationError):
            check_page(page, limit)
