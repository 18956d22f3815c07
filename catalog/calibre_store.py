"""
Read-only Catalog Store over a Calibre ``metadata.db``.

Usage:
    store = CalibreCatalogStore(config.get_metadata_db_path())
    await store.connect()
    ... queries ...
    await store.disconnect()

Notes:
- The database is opened read-only; Calibre remains the only writer.
- The connection can be dropped and re-opened at runtime so that Calibre
  can update the library without the service holding the file.
- Multi-value text fields keep Calibre's ``|`` separator; decoding for
  display happens in ``catalog.enrichment``.
"""

import re
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiosqlite
import structlog

from .errors import CatalogStoreError
from .models import (
    AuthorRow, CatalogStatistics, CoverData, CustomColumn, CustomValue, FileData,
    FormatRow, Item, Publisher, SerieRow, TagCount, TagRow,
)
from .store import SearchTokens

logger = structlog.get_logger(__name__)

# Sortable fields accepted in sort strings
SORT_FIELDS: Dict[str, str] = {
    "id": "books.id",
    "title": "books.title",
    "sort": "books.sort",
    "author_sort": "books.author_sort",
    "pubdate": "books.pubdate",
    "timestamp": "books.timestamp",
    "last_modified": "books.last_modified",
    "series_index": "books.series_index",
    "rating": (
        "(SELECT r.rating FROM books_ratings_link brl JOIN ratings r ON r.id = brl.rating "
        "WHERE brl.book = books.id)"
    ),
}

DEFAULT_SORT = "sort asc"

_ORDER_BY_PREFIX = re.compile(r"^\s*order\s+by\s+", re.IGNORECASE)

_BOOK_COLUMNS = "books.id, books.title, books.pubdate, books.path, books.has_cover"

def _unicode_lower(text):
    # SQLite's lower() only folds ASCII letters
    return text.lower() if isinstance(text, str) else text


# Per-token match against title, authors, tags, series and publisher
_TOKEN_CONDITION = """(
    unicode_lower(books.title) LIKE ?
    OR EXISTS (SELECT 1 FROM books_authors_link bal JOIN authors a ON a.id = bal.author
               WHERE bal.book = books.id AND unicode_lower(a.name) LIKE ?)
    OR EXISTS (SELECT 1 FROM books_tags_link btl JOIN tags t ON t.id = btl.tag
               WHERE btl.book = books.id AND unicode_lower(t.name) LIKE ?)
    OR EXISTS (SELECT 1 FROM books_series_link bsl JOIN series s ON s.id = bsl.series
               WHERE bsl.book = books.id AND unicode_lower(s.name) LIKE ?)
    OR EXISTS (SELECT 1 FROM books_publishers_link bpl JOIN publishers p ON p.id = bpl.publisher
               WHERE bpl.book = books.id AND unicode_lower(p.name) LIKE ?)
)"""
_TOKEN_PARAM_COUNT = 5


def parse_sort_string(sort_string: str, default: str = DEFAULT_SORT) -> str:
    """
    Translate a sort string into a SQL ORDER BY list.

    Accepts an optional leading ``order by`` followed by comma separated
    ``<field> [asc|desc]`` terms. Unknown fields are ignored. ``books.id``
    is always appended so that the order is total.
    """
    terms = []
    text = _ORDER_BY_PREFIX.sub("", sort_string or "").strip() or default
    for part in text.split(","):
        words = part.strip().lower().split()
        if not words or words[0] not in SORT_FIELDS:
            continue
        direction = "DESC" if len(words) > 1 and words[1] == "desc" else "ASC"
        terms.append(f"{SORT_FIELDS[words[0]]} {direction}")
    if not terms and text != default:
        return parse_sort_string(default, default)
    if not any(term.startswith("books.id ") for term in terms):
        terms.append("books.id ASC")
    return ", ".join(terms)


def _search_conditions(search_tokens: SearchTokens) -> Tuple[List[str], List[Any]]:
    conditions: List[str] = []
    params: List[Any] = []
    for token in search_tokens or ():
        # Tokens arrive with single quotes doubled for SQL literals
        pattern = "%" + token.replace("''", "'") + "%"
        conditions.append(_TOKEN_CONDITION)
        params.extend([pattern] * _TOKEN_PARAM_COUNT)
    return conditions, params


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


def _item(row: sqlite3.Row) -> Item:
    return Item(
        id=row["id"],
        title=row["title"] or "",
        pubdate=row["pubdate"],
        path=row["path"] or "",
        has_cover=bool(row["has_cover"]),
    )


class CalibreCatalogStore:
    """Async access layer for a Calibre library database."""

    def __init__(self, db_path):
        self._db_path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        """Open the database read-only."""
        if self._conn is not None:
            return
        if not self._db_path.exists():
            raise CatalogStoreError("Catalog database not found")
        uri = self._db_path.resolve().as_uri() + "?mode=ro"
        try:
            conn = await aiosqlite.connect(uri, uri=True)
        except sqlite3.Error as e:
            logger.error("Failed to open catalog database", path=str(self._db_path), error=str(e))
            raise CatalogStoreError() from e
        try:
            await conn.create_function("unicode_lower", 1, _unicode_lower, deterministic=True)
        except sqlite3.Error as e:
            await conn.close()
            logger.error("Failed to register SQL functions", path=str(self._db_path), error=str(e))
            raise CatalogStoreError() from e
        conn.row_factory = aiosqlite.Row
        self._conn = conn
        logger.info("Connected to catalog database", path=str(self._db_path))

    async def disconnect(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info("Disconnected from catalog database", path=str(self._db_path))

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise CatalogStoreError("Catalog database is not connected")
        return self._conn

    async def _fetchall(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        conn = self._require_conn()
        try:
            async with conn.execute(sql, tuple(params)) as cursor:
                return list(await cursor.fetchall())
        except sqlite3.Error as e:
            logger.error("Catalog query failed", error=str(e), sql=" ".join(sql.split()))
            raise CatalogStoreError() from e

    async def _fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        rows = await self._fetchall(sql, params)
        return rows[0] if rows else None

    async def _scalar(self, sql: str, params: Sequence[Any] = ()) -> int:
        row = await self._fetchone(sql, params)
        return int(row[0]) if row and row[0] is not None else 0

    # ===========================================================================
    # Generic count/find
    # ===========================================================================

    async def _count(self, conditions: List[str], params: List[Any]) -> int:
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return await self._scalar(f"SELECT COUNT(*) FROM books {where}", params)

    async def _find(
        self,
        conditions: List[str],
        params: List[Any],
        sort_string: str,
        limit: int,
        offset: int,
        default_sort: str = DEFAULT_SORT,
    ) -> List[Item]:
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        order_by = parse_sort_string(sort_string, default_sort)
        sql = f"SELECT {_BOOK_COLUMNS} FROM books {where} ORDER BY {order_by} LIMIT ? OFFSET ?"
        rows = await self._fetchall(sql, [*params, limit, max(offset, 0)])
        return [_item(row) for row in rows]

    async def _custom_column(self, cc_num: int) -> Optional[CustomColumn]:
        row = await self._fetchone(
            "SELECT id, label, name, datatype FROM custom_columns WHERE id = ? AND normalized = 1",
            (cc_num,),
        )
        if row is None:
            return None
        return CustomColumn(id=row["id"], label=row["label"], name=row["name"], datatype=row["datatype"])

    async def _cc_conditions(self, cc_num: int, cc_id: int) -> Optional[Tuple[List[str], List[Any]]]:
        column = await self._custom_column(cc_num)
        if column is None:
            return None
        link_table = f"books_custom_column_{column.id}_link"
        if cc_id > 0:
            return (
                [f"EXISTS (SELECT 1 FROM {link_table} l WHERE l.book = books.id AND l.value = ?)"],
                [cc_id],
            )
        return [f"EXISTS (SELECT 1 FROM {link_table} l WHERE l.book = books.id)"], []

    # ===========================================================================
    # Filter dimensions
    # ===========================================================================

    async def count_books(self, search_tokens: SearchTokens) -> int:
        conditions, params = _search_conditions(search_tokens)
        return await self._count(conditions, params)

    async def find_books(
        self, search_tokens: SearchTokens, sort_string: str, limit: int, offset: int
    ) -> List[Item]:
        conditions, params = _search_conditions(search_tokens)
        return await self._find(conditions, params, sort_string, limit, offset)

    async def count_books_with_tags(self, search_tokens: SearchTokens, tag_id: int) -> int:
        conditions, params = _search_conditions(search_tokens)
        conditions.append("EXISTS (SELECT 1 FROM books_tags_link l WHERE l.book = books.id AND l.tag = ?)")
        params.append(tag_id)
        return await self._count(conditions, params)

    async def find_books_with_tags(
        self, search_tokens: SearchTokens, sort_string: str, tag_id: int, limit: int, offset: int
    ) -> List[Item]:
        conditions, params = _search_conditions(search_tokens)
        conditions.append("EXISTS (SELECT 1 FROM books_tags_link l WHERE l.book = books.id AND l.tag = ?)")
        params.append(tag_id)
        return await self._find(conditions, params, sort_string, limit, offset)

    async def count_books_with_cc(self, cc_num: int, search_tokens: SearchTokens, cc_id: int) -> int:
        cc = await self._cc_conditions(cc_num, cc_id)
        if cc is None:
            return 0
        conditions, params = _search_conditions(search_tokens)
        return await self._count(conditions + cc[0], params + cc[1])

    async def find_books_with_cc(
        self, cc_num: int, search_tokens: SearchTokens, sort_string: str,
        cc_id: int, limit: int, offset: int
    ) -> List[Item]:
        cc = await self._cc_conditions(cc_num, cc_id)
        if cc is None:
            return []
        conditions, params = _search_conditions(search_tokens)
        return await self._find(conditions + cc[0], params + cc[1], sort_string, limit, offset)

    async def count_books_by_serie(self, series_id: int) -> int:
        return await self._count(
            ["EXISTS (SELECT 1 FROM books_series_link l WHERE l.book = books.id AND l.series = ?)"],
            [series_id],
        )

    async def find_books_by_serie(
        self, series_id: int, sort_string: str, limit: int, offset: int
    ) -> List[Item]:
        return await self._find(
            ["EXISTS (SELECT 1 FROM books_series_link l WHERE l.book = books.id AND l.series = ?)"],
            [series_id],
            sort_string, limit, offset,
            default_sort="series_index asc",
        )

    async def count_books_by_author(self, author_id: int) -> int:
        return await self._count(
            ["EXISTS (SELECT 1 FROM books_authors_link l WHERE l.book = books.id AND l.author = ?)"],
            [author_id],
        )

    async def find_books_by_author(
        self, author_id: int, sort_string: str, limit: int, offset: int
    ) -> List[Item]:
        return await self._find(
            ["EXISTS (SELECT 1 FROM books_authors_link l WHERE l.book = books.id AND l.author = ?)"],
            [author_id],
            sort_string, limit, offset,
        )

    # ===========================================================================
    # Related entities
    # ===========================================================================

    async def get_book(self, book_id: int) -> Optional[Item]:
        row = await self._fetchone(f"SELECT {_BOOK_COLUMNS} FROM books WHERE books.id = ?", (book_id,))
        return _item(row) if row else None

    async def get_authors_of_books(self, book_ids: Sequence[int]) -> List[AuthorRow]:
        if not book_ids:
            return []
        rows = await self._fetchall(
            "SELECT bal.book, a.id, a.name FROM books_authors_link bal "
            "JOIN authors a ON a.id = bal.author "
            f"WHERE bal.book IN ({_placeholders(book_ids)}) ORDER BY bal.book, bal.id",
            book_ids,
        )
        return [AuthorRow(book_id=r["book"], id=r["id"], name=r["name"] or "") for r in rows]

    async def get_formats_of_books(self, book_ids: Sequence[int]) -> List[FormatRow]:
        if not book_ids:
            return []
        rows = await self._fetchall(
            f"SELECT book, format FROM data WHERE book IN ({_placeholders(book_ids)}) "
            "ORDER BY book, format",
            book_ids,
        )
        return [FormatRow(book_id=r["book"], name=r["format"] or "") for r in rows]

    async def get_series_of_books(self, book_ids: Sequence[int]) -> List[SerieRow]:
        if not book_ids:
            return []
        rows = await self._fetchall(
            "SELECT bsl.book, s.id, s.name, b.series_index FROM books_series_link bsl "
            "JOIN series s ON s.id = bsl.series JOIN books b ON b.id = bsl.book "
            f"WHERE bsl.book IN ({_placeholders(book_ids)}) ORDER BY bsl.book",
            book_ids,
        )
        return [
            SerieRow(book_id=r["book"], id=r["id"], name=r["name"] or "", index=r["series_index"])
            for r in rows
        ]

    async def get_tags_of_books(self, book_ids: Sequence[int]) -> List[TagRow]:
        """Tags of the given books, followed by one entry per custom column in use."""
        if not book_ids:
            return []
        rows = await self._fetchall(
            "SELECT btl.book, t.id, t.name FROM books_tags_link btl "
            "JOIN tags t ON t.id = btl.tag "
            f"WHERE btl.book IN ({_placeholders(book_ids)}) ORDER BY btl.book, t.name",
            book_ids,
        )
        tags = [TagRow(book_id=r["book"], id=r["id"], name=r["name"] or "") for r in rows]

        for column in await self.list_custom_columns():
            cc_rows = await self._fetchall(
                f"SELECT DISTINCT book FROM books_custom_column_{column.id}_link "
                f"WHERE book IN ({_placeholders(book_ids)}) ORDER BY book",
                book_ids,
            )
            tags.extend(
                TagRow(book_id=r["book"], id=column.id, name=column.name, col_id=column.id)
                for r in cc_rows
            )
        return tags

    async def get_publisher_of_book(self, book_id: int) -> Optional[Publisher]:
        row = await self._fetchone(
            "SELECT p.id, p.name FROM books_publishers_link bpl "
            "JOIN publishers p ON p.id = bpl.publisher WHERE bpl.book = ?",
            (book_id,),
        )
        return Publisher(id=row["id"], name=row["name"] or "") if row else None

    async def get_custom_column_of_book(self, col_id: int, book_id: int) -> List[CustomValue]:
        column = await self._custom_column(col_id)
        if column is None:
            return []
        rows = await self._fetchall(
            f"SELECT c.id, c.value FROM books_custom_column_{column.id}_link l "
            f"JOIN custom_column_{column.id} c ON c.id = l.value "
            "WHERE l.book = ? ORDER BY c.value",
            (book_id,),
        )
        return [CustomValue(id=r["id"], value=str(r["value"])) for r in rows]

    # ===========================================================================
    # Browsing and delivery
    # ===========================================================================

    async def get_tags(self) -> List[TagCount]:
        rows = await self._fetchall(
            "SELECT t.id, t.name, COUNT(btl.book) AS count FROM tags t "
            "JOIN books_tags_link btl ON btl.tag = t.id GROUP BY t.id ORDER BY t.name"
        )
        return [TagCount(id=r["id"], name=r["name"] or "", count=r["count"]) for r in rows]

    async def get_custom_columns(self, cc_num: int) -> List[TagCount]:
        """Values of one custom column with the number of books using each."""
        column = await self._custom_column(cc_num)
        if column is None:
            return []
        rows = await self._fetchall(
            f"SELECT c.id, c.value, COUNT(l.book) AS count FROM custom_column_{column.id} c "
            f"JOIN books_custom_column_{column.id}_link l ON l.value = c.id "
            "GROUP BY c.id ORDER BY c.value"
        )
        return [TagCount(id=r["id"], name=str(r["value"]), count=r["count"]) for r in rows]

    async def list_custom_columns(self) -> List[CustomColumn]:
        rows = await self._fetchall(
            "SELECT id, label, name, datatype FROM custom_columns WHERE normalized = 1 ORDER BY id"
        )
        return [
            CustomColumn(id=r["id"], label=r["label"], name=r["name"], datatype=r["datatype"])
            for r in rows
        ]

    async def get_cover_data(self, book_id: int) -> Optional[CoverData]:
        row = await self._fetchone("SELECT id, path FROM books WHERE id = ? AND has_cover = 1", (book_id,))
        return CoverData(book_id=row["id"], path=row["path"]) if row else None

    async def get_file_data(self, book_id: int, book_format: str) -> Optional[FileData]:
        row = await self._fetchone(
            "SELECT b.id, b.path, d.name, d.format FROM data d JOIN books b ON b.id = d.book "
            "WHERE d.book = ? AND upper(d.format) = upper(?)",
            (book_id, book_format),
        )
        if row is None:
            return None
        filename = f"{row['name']}.{row['format'].lower()}"
        return FileData(book_id=row["id"], path=row["path"], filename=filename)

    async def get_statistics(self) -> CatalogStatistics:
        return CatalogStatistics(
            books=await self._scalar("SELECT COUNT(*) FROM books"),
            authors=await self._scalar("SELECT COUNT(*) FROM authors"),
            series=await self._scalar("SELECT COUNT(*) FROM series"),
            tags=await self._scalar("SELECT COUNT(*) FROM tags"),
            publishers=await self._scalar("SELECT COUNT(*) FROM publishers"),
            formats=await self._scalar("SELECT COUNT(DISTINCT format) FROM data"),
        )
