"""
Unit tests for page clamping and navigation links.
"""

import pytest

from catalog.pagination import clamp_page, get_page_navigation, last_page, page_state


class TestClampPage:
    """Test cases for page bounds."""

    @pytest.mark.parametrize("page, expected", [(-3, 0), (0, 0), (1, 1), (3, 3), (10, 3)])
    def test_clamp(self, page, expected):
        assert clamp_page(page, 95, 30) == expected

    @pytest.mark.parametrize("page", [-5, 0, 2, 7, 100])
    def test_clamping_is_idempotent(self, page):
        once = clamp_page(page, 95, 30)
        assert clamp_page(once, 95, 30) == once

    def test_last_page(self):
        assert last_page(95, 30) == 3
        assert last_page(90, 30) == 2
        assert last_page(91, 30) == 3
        assert last_page(85, 30) == 2
        assert last_page(0, 30) == 0

    def test_page_state_offset(self):
        state = page_state(10, 95, 30)
        assert state.page == 3
        assert state.last_page == 3
        assert state.offset == 90

    def test_page_state_offset_on_shorter_listing(self):
        state = page_state(10, 85, 30)
        assert state.page == 2
        assert state.offset == 60


class TestPageNavigation:
    """Test cases for navigation link states."""

    @pytest.mark.parametrize("total", [0, 1, 29, 30])
    def test_single_page_has_no_links(self, total):
        nav = get_page_navigation(0, total, 30)
        assert nav.size == total
        assert nav.model_dump(exclude_none=True) == {"size": total}

    def test_clamped_to_last_page(self):
        nav = get_page_navigation(10, 95, 30)
        assert nav.currentpage.value == 3
        assert nav.firstpage.enabled and nav.firstpage.value == "0"
        assert nav.prevpage.enabled and nav.prevpage.value == 2
        assert not nav.nextpage.enabled
        assert nav.nextpage.value == ""
        assert nav.lastpage.enabled and nav.lastpage.value == 3

    def test_first_page(self):
        nav = get_page_navigation(0, 95, 30)
        assert not nav.firstpage.enabled
        assert not nav.prevpage.enabled
        assert nav.nextpage.value == 1
        assert nav.lastpage.value == 3

    def test_middle_page(self):
        nav = get_page_navigation(1, 95, 30)
        assert [link.enabled for link in (nav.firstpage, nav.prevpage, nav.nextpage, nav.lastpage)] == [
            True, True, True, True
        ]

    def test_negative_page(self):
        assert get_page_navigation(-1, 95, 30).currentpage.value == 0

    def test_serialized_link_shape(self):
        nav = get_page_navigation(0, 95, 30).model_dump(by_alias=True, exclude_none=True)
        assert nav["prevpage"] == {"value": "", "class": "disabled"}
        assert nav["nextpage"] == {"value": 1, "class": ""}

    def test_first_page_link_is_a_string(self):
        nav = get_page_navigation(2, 95, 30).model_dump(by_alias=True, exclude_none=True)
        assert nav["firstpage"] == {"value": "0", "class": ""}
        assert nav["prevpage"] == {"value": 1, "class": ""}
