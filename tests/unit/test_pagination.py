"""
Unit Tests - Pagination
"""
import pytest

from storefront.services.pagination import Page, PageRequest, clamp_page


class TestClampPage:
    """Tests for clamp_page"""

    @pytest.mark.parametrize("page_size", [0, -5, 101, 1000])
    def test_out_of_range_page_size_falls_back_to_default(self, page_size):
        assert clamp_page(1, page_size).page_size == 10

    @pytest.mark.parametrize("page", [0, -1, -100])
    def test_page_below_one_becomes_one(self, page):
        assert clamp_page(page, 10).page == 1

    def test_valid_values_are_kept(self):
        assert clamp_page(3, 100) == PageRequest(page=3, page_size=100)
        assert clamp_page(2, 1) == PageRequest(page=2, page_size=1)

    def test_offset(self):
        assert clamp_page(3, 20).offset == 40


class TestPage:
    """Tests for Page.build"""

    @pytest.mark.parametrize(
        "total,page_size,expected",
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (95, 20, 5)],
    )
    def test_total_pages_is_ceiling_division(self, total, page_size, expected):
        page = Page.build([], total, PageRequest(page=1, page_size=page_size))
        assert page.total_pages == expected
