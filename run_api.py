#!/usr/bin/env python3
"""
Script to run the Bookshelf Catalog API server.
"""

import sys
from pathlib import Path

import uvicorn

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from api.config import config
from utilities.config import config as catalog_config


def main():
    """Run the API server, with TLS when both key and certificate exist."""
    ssl_options = {}
    if config.keyfile and config.certfile and Path(config.keyfile).exists() and Path(config.certfile).exists():
        ssl_options = {"ssl_keyfile": config.keyfile, "ssl_certfile": config.certfile}

    print("Starting Bookshelf Catalog API Server")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"TLS: {'on' if ssl_options else 'off'}")
    print(f"Library: {catalog_config.get_book_dir()}")
    print("=" * 50)

    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True,
        **ssl_options
    )


if __name__ == "__main__":
    main()
