"""
Catalog Store contract.

The Catalog Store executes the count/find queries against the persisted
library. Every filter dimension has a count/find pair; ``find`` honours the
sort string as a stable total order so that successive offsets partition a
single ordering without gaps or duplicates.
"""

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from .models import (
    AuthorRow, CatalogStatistics, CoverData, CustomColumn, CustomValue, FileData,
    FormatRow, Item, Publisher, SerieRow, TagCount, TagRow,
)

SearchTokens = Optional[Sequence[str]]


@runtime_checkable
class CatalogStore(Protocol):
    """Async query interface of the catalog storage engine."""

    @property
    def is_connected(self) -> bool: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    # Plain search
    async def count_books(self, search_tokens: SearchTokens) -> int: ...

    async def find_books(
        self, search_tokens: SearchTokens, sort_string: str, limit: int, offset: int
    ) -> List[Item]: ...

    # Tag
    async def count_books_with_tags(self, search_tokens: SearchTokens, tag_id: int) -> int: ...

    async def find_books_with_tags(
        self, search_tokens: SearchTokens, sort_string: str, tag_id: int, limit: int, offset: int
    ) -> List[Item]: ...

    # Custom column
    async def count_books_with_cc(self, cc_num: int, search_tokens: SearchTokens, cc_id: int) -> int: ...

    async def find_books_with_cc(
        self, cc_num: int, search_tokens: SearchTokens, sort_string: str,
        cc_id: int, limit: int, offset: int
    ) -> List[Item]: ...

    # Series
    async def count_books_by_serie(self, series_id: int) -> int: ...

    async def find_books_by_serie(
        self, series_id: int, sort_string: str, limit: int, offset: int
    ) -> List[Item]: ...

    # Author
    async def count_books_by_author(self, author_id: int) -> int: ...

    async def find_books_by_author(
        self, author_id: int, sort_string: str, limit: int, offset: int
    ) -> List[Item]: ...

    # Related entities
    async def get_book(self, book_id: int) -> Optional[Item]: ...

    async def get_authors_of_books(self, book_ids: Sequence[int]) -> List[AuthorRow]: ...

    async def get_formats_of_books(self, book_ids: Sequence[int]) -> List[FormatRow]: ...

    async def get_series_of_books(self, book_ids: Sequence[int]) -> List[SerieRow]: ...

    async def get_tags_of_books(self, book_ids: Sequence[int]) -> List[TagRow]: ...

    async def get_publisher_of_book(self, book_id: int) -> Optional[Publisher]: ...

    async def get_custom_column_of_book(self, col_id: int, book_id: int) -> List[CustomValue]: ...

    # Browsing and delivery
    async def get_tags(self) -> List[TagCount]: ...

    async def get_custom_columns(self, cc_num: int) -> List[TagCount]: ...

    async def list_custom_columns(self) -> List[CustomColumn]: ...

    async def get_cover_data(self, book_id: int) -> Optional[CoverData]: ...

    async def get_file_data(self, book_id: int, book_format: str) -> Optional[FileData]: ...

    async def get_statistics(self) -> CatalogStatistics: ...
