"""
Catalog service layer used by the HTTP API.

Runs the request-time flow of a listing: resolve the filter, count, fetch
the requested page, enrich it and build the page navigation. Also serves
item details with their neighbours, browse lists, statistics and file
locations.
"""

from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from utilities.logger import runtime_log_level

from .enrichment import enrich_book, enrich_books
from .errors import CatalogStoreError, FileDeliveryError, NotFoundError
from .filters import parse_int, resolve_filter, search_string_to_tokens
from .models import CatalogStatistics, Item, PageNavigation, TagCount
from .navigation import dispatch_count, dispatch_find, locate_adjacent
from .pagination import get_page_navigation, page_state
from .store import CatalogStore

logger = structlog.get_logger(__name__)

NO_RESULTS_MESSAGE = "No books or periodicals found!"
ACCESS_ERROR_MESSAGE = "Error accessing the database!"


def message_html(message: str) -> str:
    return f"<div class='message'><h3>{message}</h3></div>"


class BookListResult(BaseModel):
    """One page of a listing."""
    model_config = ConfigDict(populate_by_name=True)

    books: List[Item] = Field(..., description="Enriched items of the page")
    page_nav: PageNavigation = Field(..., alias="pageNav")


class MessageResult(BaseModel):
    """User-facing message replacing an empty or failed listing."""
    html: str


class BookDetailResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book: Item
    prev_book: Optional[Item] = Field(None, alias="prevBook")
    next_book: Optional[Item] = Field(None, alias="nextBook")


class CountResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: int
    search_array: List[str] = Field(..., alias="searchArray")
    healthy: bool = True


class CatalogService:
    """Service for catalog browsing operations."""

    def __init__(self, store: CatalogStore, page_limit: int = 30):
        self.store = store
        self.page_limit = page_limit

    async def list_books(
        self, options: Mapping[str, Any], default_type: Optional[str] = None
    ) -> Union[BookListResult, MessageResult]:
        """
        Get one page of books matching the request filter.

        Args:
            options: Raw request fields (page, sortString, type, searchString, ...)
            default_type: Listing type taken from the URL

        Returns:
            BookListResult, or MessageResult when nothing matched or the
            store failed
        """
        active = resolve_filter(options, default_type)
        requested_page = parse_int(options.get("page")) if isinstance(options, Mapping) else 0

        try:
            count = await dispatch_count(self.store, active)
            books: List[Item] = []
            if count > 0:
                state = page_state(requested_page, count, self.page_limit)
                books = await dispatch_find(self.store, active, self.page_limit, state.offset)
        except CatalogStoreError as e:
            logger.error("Listing failed", kind=active.kind.value, error=str(e))
            return MessageResult(html=message_html(ACCESS_ERROR_MESSAGE))

        if count <= 0 or not books:
            message = NO_RESULTS_MESSAGE if count == 0 else ACCESS_ERROR_MESSAGE
            logger.info("Listing without results", kind=active.kind.value, count=count)
            return MessageResult(html=message_html(message))

        books = await enrich_books(self.store, books)
        page_nav = get_page_navigation(requested_page, count, self.page_limit)

        if runtime_log_level.verbose:
            logger.debug(
                "Listing result",
                books=[book.model_dump() for book in books],
                page_nav=page_nav.model_dump(exclude_none=True),
            )
        return BookListResult(books=books, page_nav=page_nav)

    async def get_book_detail(self, options: Mapping[str, Any]) -> BookDetailResult:
        """
        Get an item with all related fields and its listing neighbours.

        Neighbours are resolved when the request carries ``num``, the
        item's 1-based position in the listing it was opened from.

        Raises:
            NotFoundError: If the book does not exist
        """
        book_id = parse_int(options.get("bookId"))
        book = await self.store.get_book(book_id)
        if book is None:
            raise NotFoundError()

        prev_book = next_book = None
        row_number = parse_int(options.get("num"))
        if options.get("bookId") is not None and row_number > 0:
            adjacent = await locate_adjacent(self.store, resolve_filter(options), row_number)
            prev_book, next_book = adjacent.previous, adjacent.next

        book = await enrich_book(self.store, book)

        if runtime_log_level.verbose:
            logger.debug(
                "Book detail",
                book=book.model_dump(),
                prev_book=prev_book.id if prev_book else None,
                next_book=next_book.id if next_book else None,
            )
        return BookDetailResult(book=book, prev_book=prev_book, next_book=next_book)

    async def count_matching(self, search_string: str) -> CountResult:
        """Count the items matching a search string (external count API)."""
        tokens = search_string_to_tokens(search_string or "")
        count = await self.store.count_books(tokens)
        return CountResult(count=count, search_array=tokens)

    async def list_tags(self, selected_id: int) -> List[TagCount]:
        tags = await self.store.get_tags()
        for tag in tags:
            tag.css_class = "selected" if tag.id == selected_id else ""
        return tags

    async def list_custom_column_values(self, cc_num: int, selected_id: int) -> List[TagCount]:
        values = await self.store.get_custom_columns(cc_num)
        for value in values:
            value.css_class = "selected" if value.id == selected_id else ""
        return values

    async def statistics(self) -> CatalogStatistics:
        return await self.store.get_statistics()

    async def resolve_book_file(self, book_dir: Path, book_id: int, book_format: str) -> Path:
        """
        Locate a book file inside the library.

        Raises:
            NotFoundError: If the book has no file in this format
            FileDeliveryError: If the file is missing on disk or not deliverable
        """
        file_data = await self.store.get_file_data(book_id, book_format)
        if file_data is None:
            raise NotFoundError("File not found")

        book_root = (Path(book_dir) / file_data.path).resolve()
        target = (book_root / file_data.filename).resolve()
        if target.parent != book_root or target.name.startswith("."):
            logger.warning("Refused file outside book directory", book_id=book_id, filename=file_data.filename)
            raise FileDeliveryError()
        if not target.is_file():
            logger.error("Book file missing", book_id=book_id, path=str(target))
            raise FileDeliveryError()
        return target
