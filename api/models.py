"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from catalog.models import CatalogStatistics, TagCount


class ErrorResponse(BaseModel):
    """Error response model; never carries raw exception text."""
    error: str = Field(..., description="Error kind")
    message: str = Field(..., description="Safe, human-readable message")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Catalog database status")


class LogLevelResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    level: int = Field(..., alias="LOGLEVEL", description="Runtime log level (0-2)")


class InfoResponse(BaseModel):
    """Application info with catalog statistics."""
    model_config = ConfigDict(populate_by_name=True)

    app_info: Dict[str, str] = Field(..., alias="appInfo")
    stats: CatalogStatistics
    log_level: int = Field(..., alias="LOGLEVEL")


class TagListResponse(BaseModel):
    tags: List[TagCount]


class CustomColumnListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cc_num: int = Field(..., alias="ccNum")
    cust_cols: List[TagCount] = Field(..., alias="custCols")


class ConnectionResponse(BaseModel):
    connected: bool = Field(..., description="Whether the catalog database is open")
    detail: Optional[str] = None
