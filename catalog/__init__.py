"""
Catalog package: request-time browsing logic over a Calibre library.

This package contains:
- Filter resolution from raw request fields
- The Catalog Store contract and its SQLite implementation
- Batched enrichment of result pages
- Pagination and adjacent-item navigation
"""
