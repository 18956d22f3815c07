"""
Pytest configuration and shared fixtures.
"""

import sqlite3
from unittest.mock import AsyncMock

import pytest

from catalog.models import Item
from catalog.store import CatalogStore


@pytest.fixture
def mock_catalog_store():
    """Create a mock Catalog Store with empty related-entity lookups."""
    store = AsyncMock(spec=CatalogStore)
    store.count_books.return_value = 0
    store.find_books.return_value = []
    store.get_authors_of_books.return_value = []
    store.get_formats_of_books.return_value = []
    store.get_series_of_books.return_value = []
    store.get_tags_of_books.return_value = []
    store.get_publisher_of_book.return_value = None
    store.get_custom_column_of_book.return_value = []
    return store


@pytest.fixture
def make_items():
    """Factory for plain (not yet enriched) items."""
    def _make(*ids):
        return [Item(id=i, title=f"Book {i}", path=f"Author/Book {i} ({i})") for i in ids]
    return _make


CALIBRE_SCHEMA = """
CREATE TABLE books (
    id INTEGER PRIMARY KEY, title TEXT, sort TEXT, timestamp TEXT, pubdate TEXT,
    series_index REAL DEFAULT 1.0, author_sort TEXT, path TEXT, has_cover INTEGER DEFAULT 0,
    last_modified TEXT
);
CREATE TABLE authors (id INTEGER PRIMARY KEY, name TEXT, sort TEXT);
CREATE TABLE books_authors_link (id INTEGER PRIMARY KEY, book INTEGER, author INTEGER);
CREATE TABLE tags (id INTEGER PRIMARY KEY, name TEXT);
CREATE TABLE books_tags_link (id INTEGER PRIMARY KEY, book INTEGER, tag INTEGER);
CREATE TABLE series (id INTEGER PRIMARY KEY, name TEXT, sort TEXT);
CREATE TABLE books_series_link (id INTEGER PRIMARY KEY, book INTEGER, series INTEGER);
CREATE TABLE publishers (id INTEGER PRIMARY KEY, name TEXT, sort TEXT);
CREATE TABLE books_publishers_link (id INTEGER PRIMARY KEY, book INTEGER, publisher INTEGER);
CREATE TABLE ratings (id INTEGER PRIMARY KEY, rating INTEGER);
CREATE TABLE books_ratings_link (id INTEGER PRIMARY KEY, book INTEGER, rating INTEGER);
CREATE TABLE data (
    id INTEGER PRIMARY KEY, book INTEGER, format TEXT, uncompressed_size INTEGER, name TEXT
);
CREATE TABLE custom_columns (
    id INTEGER PRIMARY KEY, label TEXT, name TEXT, datatype TEXT,
    is_multiple INTEGER DEFAULT 0, normalized INTEGER
);
CREATE TABLE custom_column_1 (id INTEGER PRIMARY KEY, value TEXT);
CREATE TABLE books_custom_column_1_link (id INTEGER PRIMARY KEY, book INTEGER, value INTEGER);
"""

CALIBRE_ROWS = {
    "books": [
        (1, "Harry Potter and the Philosopher's Stone", "Harry Potter 1", "2020-01-01", "1997-06-26",
         1.0, "Rowling, J. K.", "J. K. Rowling/Harry Potter and the Philosopher's Stone (1)", 1, "2020-01-01"),
        (2, "Harry Potter and the Chamber of Secrets", "Harry Potter 2", "2020-01-02", "1998-07-02",
         2.0, "Rowling, J. K.", "J. K. Rowling/Harry Potter and the Chamber of Secrets (2)", 1, "2020-01-02"),
        (3, "The Hobbit", "Hobbit, The", "2020-01-03", "0101-01-01T00:00:00+00:00",
         1.0, "Tolkien, J. R. R.", "J. R. R. Tolkien/The Hobbit (3)", 0, "2020-01-03"),
        (4, "Der Spiegel 12|2024", "Spiegel 12|2024, Der", "2020-01-04", "2024-03-16",
         1.0, "Redaktion, Spiegel", "Spiegel Redaktion/Der Spiegel 12_2024 (4)", 1, "2020-01-04"),
        (5, "O'Brien Stories", "O'Brien Stories", "2020-01-05", "1960-01-01",
         1.0, "O'Brien, Flann", "Flann O'Brien/O'Brien Stories (5)", 1, "2020-01-05"),
    ],
    "authors": [
        (1, "J. K. Rowling", "Rowling, J. K."),
        (2, "J. R. R. Tolkien", "Tolkien, J. R. R."),
        (3, "Spiegel|Redaktion", "Redaktion, Spiegel"),
        (4, "Flann O'Brien", "O'Brien, Flann"),
    ],
    "books_authors_link": [(1, 1, 1), (2, 2, 1), (3, 3, 2), (4, 4, 3), (5, 5, 4)],
    "tags": [(1, "Fantasy"), (2, "Magazine"), (3, "Classic")],
    "books_tags_link": [(1, 1, 1), (2, 2, 1), (3, 3, 1), (4, 3, 3), (5, 4, 2)],
    "series": [(1, "Harry Potter", "Harry Potter")],
    "books_series_link": [(1, 1, 1), (2, 2, 1)],
    "publishers": [(1, "Bloomsbury|UK", "Bloomsbury")],
    "books_publishers_link": [(1, 1, 1)],
    "ratings": [(1, 10), (2, 6)],
    "books_ratings_link": [(1, 1, 1), (2, 3, 2)],
    "data": [
        (1, 1, "EPUB", 1000, "Harry Potter and the Philosopher - J. K. Rowling"),
        (2, 1, "PDF", 2000, "Harry Potter and the Philosopher - J. K. Rowling"),
        (3, 2, "EPUB", 1000, "Harry Potter and the Chamber of Secrets - J. K. Rowling"),
        (4, 4, "PDF", 5000, "Der Spiegel 12_2024 - Spiegel Redaktion"),
    ],
    "custom_columns": [(1, "shelf", "Shelf", "text", 1, 1)],
    "custom_column_1": [(1, "Favorites"), (2, "To read")],
    "books_custom_column_1_link": [(1, 1, 1), (2, 3, 2), (3, 4, 2)],
}


@pytest.fixture
def calibre_db(tmp_path):
    """Create a small Calibre metadata.db and return its path."""
    db_path = tmp_path / "metadata.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(CALIBRE_SCHEMA)
        for table, rows in CALIBRE_ROWS.items():
            placeholders = ", ".join("?" for _ in rows[0])
            conn.executemany(f"INSERT INTO {table} VALUES ({placeholders})", rows)
        conn.commit()
    finally:
        conn.close()
    return db_path
