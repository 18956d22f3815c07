"""
Configuration management using environment variables.
Handles catalog locations, paging and logging settings with validation and defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogConfig(BaseSettings):
    """
    Configuration class for catalog settings.
    Uses pydantic BaseSettings for environment variable management.
    All values are read once at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Calibre library
    book_dir: str = Field(default=str(Path.home() / "Documents" / "Calibre"), alias="BOOK_DIR")
    metadata_db: str = Field(default="metadata.db", alias="METADATA_DB")

    # Cover thumbnail cache
    image_cache: str = Field(default="./Cache", alias="IMAGE_CACHE")

    # Listing
    page_limit: int = Field(default=30, alias="PAGE_LIMIT")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    runtime_log_level: int = Field(default=0, alias="RUNTIME_LOG_LEVEL")

    # Development/Testing
    debug: bool = Field(default=False, alias="DEBUG")

    @field_validator("page_limit")
    @classmethod
    def validate_page_limit(cls, v):
        """Ensure the page size is reasonable."""
        if v < 1 or v > 500:
            raise ValueError("page_limit must be between 1 and 500")
        return v

    @field_validator("runtime_log_level")
    @classmethod
    def validate_runtime_log_level(cls, v):
        if v not in (0, 1, 2):
            raise ValueError("runtime_log_level must be 0, 1 or 2")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_book_dir(self) -> Path:
        """Root directory of the Calibre library."""
        return Path(self.book_dir).expanduser()

    def get_metadata_db_path(self) -> Path:
        """Path of Calibre's metadata.db, relative paths resolved against the library."""
        db_path = Path(self.metadata_db).expanduser()
        if db_path.is_absolute():
            return db_path
        return self.get_book_dir() / db_path

    def get_image_cache_dir(self) -> Path:
        return Path(self.image_cache).expanduser()


# Global configuration instance
config = CatalogConfig()
