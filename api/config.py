"""
API configuration settings.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Bookshelf Catalog API"
    api_version: str = "1.0.0"
    api_description: str = "Browse, search and download books from a Calibre library"
    api_author: str = "Bookshelf Catalog maintainers"
    api_license: str = "MIT"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # TLS (both files must exist for HTTPS)
    keyfile: Optional[str] = None
    certfile: Optional[str] = None

    # CORS Settings
    cors_origins: list = ["*"]  # Configure appropriately for production
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    def app_info(self) -> dict:
        """Version/author block shown by the info endpoint."""
        return {
            "version": f"{self.api_title.upper()}, Version {self.api_version}",
            "author": f"{self.api_author} (License {self.api_license})",
        }


# Global config instance
config = APIConfig()
