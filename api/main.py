"""
FastAPI main application for the Bookshelf Catalog API.
"""

import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from api.config import config as api_config
from api.models import (
    ConnectionResponse, CustomColumnListResponse, ErrorResponse, HealthResponse,
    InfoResponse, LogLevelResponse, TagListResponse,
)
from catalog.calibre_store import CalibreCatalogStore
from catalog.errors import CatalogError, CatalogStoreError, InvalidRequestError, NotFoundError
from catalog.filters import parse_int
from catalog.service import CatalogService
from catalog.store import CatalogStore
from media.thumbnails import ThumbnailCache, ThumbnailProfile
from utilities.config import config
from utilities.logger import runtime_log_level, setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

# Global services
catalog_store: Optional[CatalogStore] = None
catalog_service: Optional[CatalogService] = None
thumbnail_cache: Optional[ThumbnailCache] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global catalog_store, catalog_service, thumbnail_cache

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug,
    )
    runtime_log_level.set_level(config.runtime_log_level)
    logger.info("Starting Bookshelf Catalog API", book_dir=str(config.get_book_dir()))

    thumbnail_cache = ThumbnailCache(config.get_book_dir(), config.get_image_cache_dir())
    thumbnail_cache.ensure_root()

    catalog_store = CalibreCatalogStore(config.get_metadata_db_path())
    try:
        await catalog_store.connect()
    except CatalogStoreError as e:
        logger.error("Failed to open catalog database", error=e.message)
        raise
    catalog_service = CatalogService(catalog_store, page_limit=config.page_limit)

    yield

    logger.info("Shutting down Bookshelf Catalog API")
    if catalog_store:
        await catalog_store.disconnect()


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description="""
    REST API for browsing a Calibre e-book library.

    ## Features

    * **Listings**: Paginated book lists filtered by search text, tag, custom column, series or author
    * **Book details**: Full metadata with previous/next book of the originating listing
    * **Covers**: Cached list and detail thumbnails
    * **Files**: Download of book files by format
    """,
    version=api_config.api_version,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Handle structured catalog errors."""
    logger.warning(
        "Request failed",
        path=request.url.path,
        kind=exc.kind,
        error=exc.message,
        cause=repr(exc.__cause__) if exc.__cause__ else None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.kind,
            message=exc.message,
            status_code=exc.status_code
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions; details go to the log only."""
    logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="internal_error",
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


def _require_service() -> CatalogService:
    if not catalog_service:
        raise CatalogStoreError("Catalog service not available")
    return catalog_service


async def read_options(request: Request) -> Dict[str, Any]:
    """Read the whole request body and parse it as a JSON object."""
    body = await request.body()
    if not body:
        return {}
    try:
        options = json.loads(body)
    except ValueError as e:
        raise InvalidRequestError("Request body is not valid JSON") from e
    if not isinstance(options, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    logger.debug("Request options", path=request.url.path, options=options)
    return options


def _payload(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "healthy" if catalog_store is not None and catalog_store.is_connected else "disconnected"
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


# Listing endpoints
@app.post("/list", tags=["Books"])
@app.post("/list/{list_type}", tags=["Books"])
async def list_books(request: Request, list_type: Optional[str] = None):
    """
    Get one page of books.

    Body fields (all optional): **page**, **sortString**, **type**,
    **searchString**, **tagId**, **ccNum**, **ccId**, **serieId**, **authorsId**.
    Responds with `{books, pageNav}` or `{html}` carrying a message.
    """
    options = await read_options(request)
    result = await _require_service().list_books(options, default_type=list_type)
    return JSONResponse(content=_payload(result))


@app.post("/book", tags=["Books"])
async def get_book(request: Request):
    """
    Get a single book with its previous and next book.

    - **bookId**: Book identifier
    - **num**: 1-based position of the book in the listing it was opened from
    - plus the listing's filter fields
    """
    options = await read_options(request)
    result = await _require_service().get_book_detail(options)
    return JSONResponse(content=_payload(result))


# Browse endpoints
@app.get("/tags/{tag_id}", response_model=TagListResponse, tags=["Browse"])
async def list_tags(tag_id: str):
    """List all tags; the tag with `tag_id` is marked as selected."""
    tags = await _require_service().list_tags(parse_int(tag_id))
    return JSONResponse(content=_payload(TagListResponse(tags=tags)))


@app.get("/cc/{cc_num}/{cc_id}", response_model=CustomColumnListResponse, tags=["Browse"])
async def list_custom_column(cc_num: str, cc_id: str):
    """List the values of a custom column; `cc_id` is marked as selected."""
    column = parse_int(cc_num)
    values = await _require_service().list_custom_column_values(column, parse_int(cc_id))
    return JSONResponse(content=_payload(CustomColumnListResponse(cc_num=column, cust_cols=values)))


# Info and administration
@app.get("/info", response_model=InfoResponse, tags=["Info"])
async def get_info():
    """Catalog statistics, application info and runtime log level."""
    stats = await _require_service().statistics()
    info = InfoResponse(app_info=api_config.app_info(), stats=stats, log_level=runtime_log_level.level)
    return JSONResponse(content=_payload(info))


@app.get("/log/{level}", response_model=LogLevelResponse, tags=["Info"])
async def set_log_level(level: str):
    """Set the runtime log level (0 = info, 1 = debug, 2 = verbose)."""
    current = runtime_log_level.set_level(parse_int(level))
    return JSONResponse(content=_payload(LogLevelResponse(level=current)))


@app.get("/count", tags=["External"])
async def count_books(search: str = ""):
    """Count the books matching `search`."""
    result = await _require_service().count_matching(search)
    return JSONResponse(content=_payload(result))


@app.get("/connectdb", response_model=ConnectionResponse, tags=["External"])
async def connect_db():
    """Open the catalog database."""
    if catalog_store is None:
        raise CatalogStoreError("Catalog service not available")
    await catalog_store.connect()
    return ConnectionResponse(connected=catalog_store.is_connected)


@app.get("/unconnectdb", response_model=ConnectionResponse, tags=["External"])
async def disconnect_db():
    """Close the catalog database so that Calibre can update the library."""
    if catalog_store is None:
        raise CatalogStoreError("Catalog service not available")
    await catalog_store.disconnect()
    return ConnectionResponse(connected=catalog_store.is_connected)


# Delivery endpoints
@app.get("/file/{book_format}/{book_id}", tags=["Delivery"])
async def get_book_file(book_format: str, book_id: int):
    """Download a book file in the given format."""
    path = await _require_service().resolve_book_file(config.get_book_dir(), book_id, book_format)
    logger.debug("Sending book file", book_id=book_id, filename=path.name)
    return FileResponse(path, filename=path.name)


async def _send_cover(book_id: int, profile: ThumbnailProfile) -> FileResponse:
    service = _require_service()
    if thumbnail_cache is None:
        raise CatalogStoreError("Cover cache not available")
    cover = await service.store.get_cover_data(book_id)
    if cover is None:
        raise NotFoundError("Cover not found")
    path = await thumbnail_cache.resolve(cover, profile)
    return FileResponse(path, media_type="image/jpeg")


@app.get("/cover/list/{book_id}", tags=["Delivery"])
async def get_list_cover(book_id: int):
    """Cover thumbnail for listings (height 250)."""
    return await _send_cover(book_id, ThumbnailProfile.LIST)


@app.get("/cover/book/{book_id}", tags=["Delivery"])
async def get_book_cover(book_id: int):
    """Cover thumbnail for the book detail view (width 320)."""
    return await _send_cover(book_id, ThumbnailProfile.DETAIL)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=True,
        log_level="info"
    )
