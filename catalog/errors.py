"""
Structured errors for the catalog.

Each error carries a machine readable ``kind`` and a message that is safe
to hand to clients. Diagnostic detail (the underlying exception) stays on
the exception chain and only ever reaches the log.
"""

from fastapi import status


class CatalogError(Exception):
    """Base class for catalog errors."""

    kind = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(CatalogError):
    kind = "invalid_request"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed request"


class NotFoundError(CatalogError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Book not found"


class FileDeliveryError(CatalogError):
    kind = "file_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "File could not be delivered"


class CatalogStoreError(CatalogError):
    """The Catalog Store failed or is not connected."""
    kind = "store_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Error accessing the database"
