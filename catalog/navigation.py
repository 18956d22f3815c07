"""
Filter dispatch and adjacent-item navigation.

Every filter variant maps to one count/find pair of the Catalog Store.
The navigator uses the same mapping, so the previous/next items of a book
always come from the ordering the book was listed under.
"""

from typing import List, Optional

import structlog
from pydantic import BaseModel

from .models import (
    AuthorFilter, CustomColumnFilter, Filter, Item, SearchFilter, SeriesFilter, TagFilter,
)
from .store import CatalogStore

logger = structlog.get_logger(__name__)


async def dispatch_count(store: CatalogStore, active: Filter) -> int:
    """Count the items matched by a filter."""
    if isinstance(active, SeriesFilter):
        return await store.count_books_by_serie(active.series_id)
    if isinstance(active, AuthorFilter):
        return await store.count_books_by_author(active.author_id)
    if isinstance(active, TagFilter):
        return await store.count_books_with_tags(active.search_tokens, active.tag_id)
    if isinstance(active, CustomColumnFilter):
        return await store.count_books_with_cc(active.cc_num, active.search_tokens, active.cc_id)
    if isinstance(active, SearchFilter):
        return await store.count_books(active.search_tokens)
    raise TypeError(f"Unsupported filter: {type(active).__name__}")


async def dispatch_find(store: CatalogStore, active: Filter, limit: int, offset: int) -> List[Item]:
    """Fetch a window of the items matched by a filter, in its sort order."""
    sort_string = active.sort_string
    if isinstance(active, SeriesFilter):
        return await store.find_books_by_serie(active.series_id, sort_string, limit, offset)
    if isinstance(active, AuthorFilter):
        return await store.find_books_by_author(active.author_id, sort_string, limit, offset)
    if isinstance(active, TagFilter):
        return await store.find_books_with_tags(
            active.search_tokens, sort_string, active.tag_id, limit, offset
        )
    if isinstance(active, CustomColumnFilter):
        return await store.find_books_with_cc(
            active.cc_num, active.search_tokens, sort_string, active.cc_id, limit, offset
        )
    if isinstance(active, SearchFilter):
        return await store.find_books(active.search_tokens, sort_string, limit, offset)
    raise TypeError(f"Unsupported filter: {type(active).__name__}")


class AdjacentItems(BaseModel):
    """Neighbours of an item inside its listing."""
    previous: Optional[Item] = None
    next: Optional[Item] = None


async def _single(store: CatalogStore, active: Filter, offset: int) -> Optional[Item]:
    items = await dispatch_find(store, active, 1, offset)
    return items[0] if items else None


async def locate_adjacent(store: CatalogStore, active: Filter, row_number: int) -> AdjacentItems:
    """
    Find the previous and next item of a listing position.

    Args:
        store: Catalog Store
        active: Filter the item was listed under
        row_number: 1-based position of the current item in that listing

    Returns:
        AdjacentItems; ``previous`` is None for the first position and no
        query is issued for it, ``next`` is None past the end
    """
    row_num = row_number - 1
    previous = None if row_num <= 0 else await _single(store, active, row_num - 1)
    following = await _single(store, active, row_num + 1)

    logger.debug(
        "Located adjacent items",
        kind=active.kind.value,
        row_num=row_num,
        previous=previous.id if previous else None,
        next=following.id if following else None,
    )
    return AdjacentItems(previous=previous, next=following)
