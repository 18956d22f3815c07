"""
FastAPI REST API for the Bookshelf Catalog.

This module provides endpoints for:
- Paginated, filtered book listings
- Book details with previous/next navigation
- Cover thumbnails and book file downloads
- Catalog statistics and runtime log level control
"""
