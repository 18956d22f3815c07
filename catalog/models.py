"""
Pydantic models for catalog items, filters and paging state.

This module defines:
- Catalog entities (books and their related authors, series, tags, publishers)
- The normalized filter variants produced from a listing request
- Page state and navigation links for paginated listings
- File and cover locations handed out by the Catalog Store
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Author(BaseModel):
    """Author of a catalog item."""
    id: int = Field(..., description="Author identifier")
    name: str = Field(..., description="Display name")


class Serie(BaseModel):
    """Series an item belongs to."""
    id: int = Field(..., description="Series identifier")
    name: str = Field(..., description="Series name")
    index: Optional[float] = Field(None, description="Position of the item inside the series")


class Publisher(BaseModel):
    """Publisher of an item."""
    id: int = Field(..., description="Publisher identifier")
    name: str = Field(..., description="Publisher name")


class CustomValue(BaseModel):
    """One value of a custom column."""
    id: int = Field(..., description="Value identifier")
    value: str = Field(..., description="Value text")


class Tag(BaseModel):
    """
    Tag attached to an item.

    When ``col_id`` is set the entry stands for a custom column and
    ``sub_tags`` carries that column's values for the item.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Tag identifier")
    name: str = Field(..., description="Tag name")
    col_id: Optional[int] = Field(None, alias="colId", description="Custom column number")
    sub_tags: List[CustomValue] = Field(default_factory=list, alias="subTags")


class Item(BaseModel):
    """A catalog entry (book or periodical)."""
    id: int = Field(..., description="Item identifier")
    title: str = Field(..., description="Title")
    pubdate: Optional[str] = Field(None, description="Publication date")
    path: str = Field(..., description="Directory relative to the library root")
    has_cover: bool = Field(True, description="Whether a cover.jpg exists")
    authors: List[Author] = Field(default_factory=list)
    formats: List[str] = Field(default_factory=list)
    serie: Optional[Serie] = None
    tags: List[Tag] = Field(default_factory=list)
    publisher: Optional[Publisher] = None


# Rows returned by the Catalog Store's batched lookups.
# Each carries the book id so results can be joined back onto items.

class AuthorRow(Author):
    book_id: int


class FormatRow(BaseModel):
    book_id: int
    name: str


class SerieRow(Serie):
    book_id: int


class TagRow(Tag):
    book_id: int


class FilterKind(str, Enum):
    """Active filter dimension of a listing."""
    SEARCH = "search"
    TAG = "tag"
    CUSTOM_COLUMN = "custom_column"
    SERIES = "series"
    AUTHOR = "author"


class _BaseFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_tokens: Optional[List[str]] = Field(None, description="Lowercase search tokens")
    sort_string: str = Field("", description="Ordering directive passed through to the store")


class SearchFilter(_BaseFilter):
    """Plain free-text search, or all items when no tokens are given."""
    kind: Literal[FilterKind.SEARCH] = FilterKind.SEARCH


class TagFilter(_BaseFilter):
    kind: Literal[FilterKind.TAG] = FilterKind.TAG
    tag_id: int = Field(..., gt=0)


class CustomColumnFilter(_BaseFilter):
    """Custom column filter; ``cc_id == 0`` matches any value of the column."""
    kind: Literal[FilterKind.CUSTOM_COLUMN] = FilterKind.CUSTOM_COLUMN
    cc_num: int = Field(..., gt=0)
    cc_id: int = Field(0, ge=0)


class SeriesFilter(_BaseFilter):
    kind: Literal[FilterKind.SERIES] = FilterKind.SERIES
    series_id: int = 0


class AuthorFilter(_BaseFilter):
    kind: Literal[FilterKind.AUTHOR] = FilterKind.AUTHOR
    author_id: int = 0


Filter = Annotated[
    Union[SearchFilter, TagFilter, CustomColumnFilter, SeriesFilter, AuthorFilter],
    Field(discriminator="kind"),
]


class PageState(BaseModel):
    """Resolved paging position of a listing."""
    page: int = Field(..., ge=0, description="Zero-based page, clamped to [0, last_page]")
    page_size: int = Field(..., gt=0)
    total_count: int = Field(..., ge=0)
    last_page: int = Field(..., ge=0)

    @property
    def offset(self) -> int:
        return self.page * self.page_size


class NavLink(BaseModel):
    """A navigation link; disabled links carry an empty value."""
    model_config = ConfigDict(populate_by_name=True)

    value: Union[int, str] = ""
    css_class: str = Field("", alias="class")

    @property
    def enabled(self) -> bool:
        return self.css_class != "disabled"

    @classmethod
    def to(cls, page: int) -> "NavLink":
        return cls(value=page, css_class="")

    @classmethod
    def disabled(cls) -> "NavLink":
        return cls(value="", css_class="disabled")


class CurrentPage(BaseModel):
    value: int


class PageNavigation(BaseModel):
    """Navigation block of a listing; only ``size`` for single-page results."""
    size: int
    currentpage: Optional[CurrentPage] = None
    firstpage: Optional[NavLink] = None
    prevpage: Optional[NavLink] = None
    nextpage: Optional[NavLink] = None
    lastpage: Optional[NavLink] = None


class CoverData(BaseModel):
    book_id: int
    path: str


class FileData(BaseModel):
    book_id: int
    path: str
    filename: str


class CustomColumn(BaseModel):
    id: int
    label: str
    name: str
    datatype: str


class TagCount(BaseModel):
    """Tag or custom column value with the number of items using it."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    count: int = 0
    css_class: str = Field("", alias="class")


class CatalogStatistics(BaseModel):
    books: int = 0
    authors: int = 0
    series: int = 0
    tags: int = 0
    publishers: int = 0
    formats: int = 0
