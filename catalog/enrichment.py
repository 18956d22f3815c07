"""
Attach related entities (authors, formats, series, tags) to catalog items.

A page of items is enriched with one batched store lookup per entity type,
never one lookup per item.
"""

from collections import defaultdict
from typing import Dict, List, Optional

import structlog

from .models import Author, Item, Publisher, Serie, Tag
from .store import CatalogStore

logger = structlog.get_logger(__name__)

# The store joins multi-value text fields with this separator
LIST_SEPARATOR = "|"


def decode(text: Optional[str]) -> str:
    """Turn a stored text field into display text."""
    if not text:
        return ""
    return str(text).replace(LIST_SEPARATOR, ",")


def _normalize_pubdate(pubdate: Optional[str]) -> Optional[str]:
    # Calibre stores "0101-01-01..." for an unknown publication date
    if not pubdate or pubdate.startswith("0"):
        return None
    return pubdate


async def enrich_books(store: CatalogStore, items: List[Item]) -> List[Item]:
    """
    Attach authors, formats, series and tags to a page of items.

    Args:
        store: Catalog Store used for the batched lookups
        items: Items of one page, in listing order

    Returns:
        The same list, with every item's related fields populated
    """
    if not items:
        return items

    book_ids = [item.id for item in items]

    authors: Dict[int, List[Author]] = defaultdict(list)
    for row in await store.get_authors_of_books(book_ids):
        authors[row.book_id].append(Author(id=row.id, name=decode(row.name)))

    formats: Dict[int, List[str]] = defaultdict(list)
    for row in await store.get_formats_of_books(book_ids):
        formats[row.book_id].append(decode(row.name))

    series: Dict[int, Serie] = {}
    for row in await store.get_series_of_books(book_ids):
        series.setdefault(row.book_id, Serie(id=row.id, name=decode(row.name), index=row.index))

    tags: Dict[int, List[Tag]] = defaultdict(list)
    for row in await store.get_tags_of_books(book_ids):
        tags[row.book_id].append(Tag(id=row.id, name=decode(row.name), col_id=row.col_id))

    for item in items:
        item.authors = authors.get(item.id, [])
        item.formats = formats.get(item.id, [])
        item.serie = series.get(item.id)
        item.tags = tags.get(item.id, [])

    logger.debug("Enriched page of items", count=len(items))
    return items


async def enrich_book(store: CatalogStore, item: Item) -> Item:
    """
    Attach every related entity shown on an item's detail view.

    Besides the listing fields this adds the publisher and, for tag entries
    standing for a custom column, the column's values for this item.
    """
    await enrich_books(store, [item])

    publisher = await store.get_publisher_of_book(item.id)
    if publisher:
        item.publisher = Publisher(id=publisher.id, name=decode(publisher.name))

    for tag in item.tags:
        if tag.col_id:
            values = await store.get_custom_column_of_book(tag.col_id, item.id)
            tag.sub_tags = [value.model_copy(update={"value": decode(value.value)}) for value in values]

    item.pubdate = _normalize_pubdate(item.pubdate)
    return item
