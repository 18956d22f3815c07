"""
Page bounds and navigation links for paginated listings.
"""

import math

from .models import CurrentPage, NavLink, PageNavigation, PageState


def last_page(total_count: int, page_size: int) -> int:
    """Zero-based index of the last page (0 for an empty or single page)."""
    return max(math.ceil(total_count / page_size) - 1, 0)


def clamp_page(page: int, total_count: int, page_size: int) -> int:
    """Clamp a requested page into ``[0, last_page]``."""
    return min(max(page, 0), last_page(total_count, page_size))


def page_state(page: int, total_count: int, page_size: int) -> PageState:
    return PageState(
        page=clamp_page(page, total_count, page_size),
        page_size=page_size,
        total_count=total_count,
        last_page=last_page(total_count, page_size),
    )


def get_page_navigation(page: int, total_count: int, page_size: int) -> PageNavigation:
    """
    Build the navigation block for a listing.

    Results fitting on one page get no links at all, only their size.
    Otherwise the page is clamped and first/prev are disabled on the first
    page, next is disabled on the last page, and last is always enabled.
    The enabled first page link carries the string ``"0"``; the other
    links carry integer page numbers.
    """
    if total_count <= page_size:
        return PageNavigation(size=total_count)

    state = page_state(page, total_count, page_size)
    current = state.page
    last = state.last_page

    return PageNavigation(
        size=total_count,
        currentpage=CurrentPage(value=current),
        firstpage=NavLink(value="0", css_class="") if current > 0 else NavLink.disabled(),
        prevpage=NavLink.to(current - 1) if current > 0 else NavLink.disabled(),
        nextpage=NavLink.to(current + 1) if current < last else NavLink.disabled(),
        lastpage=NavLink.to(last) if current <= last else NavLink.disabled(),
    )
