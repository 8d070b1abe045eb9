"""Database factory.

Automatically detects database type from URL and configures appropriately
for SQLite (local development) or PostgreSQL (production).
"""

import logging
import os
from typing import Optional

from .database import Database

logger = logging.getLogger(__name__)

# Default database URL for local development
DEFAULT_DATABASE_URL = "sqlite:///./podsync.db"


def create_database(
    database_url: Optional[str] = None,
    pool_size: int = 5,
    max_overflow: int = 10,
    echo: bool = False,
    create_tables: bool = False,
) -> Database:
    """
    Create a Database configured from the provided or discovered database URL.

    If `database_url` is not provided, it is read from the `DATABASE_URL` environment variable; if that is unset, a local SQLite default is used. Logs the chosen database type and hides credentials when present. Pool settings apply to PostgreSQL and are ignored for SQLite.

    Parameters:
        database_url (Optional[str]): SQLAlchemy database URL to use; if None the environment or default is used.
        pool_size (int): Connection pool size for PostgreSQL; ignored for SQLite.
        max_overflow (int): Maximum overflow connections for PostgreSQL; ignored for SQLite.
        echo (bool): If true, enable SQL statement logging.
        create_tables (bool): If true, create missing tables (tests and local development).

    Returns:
        Database: A database backed by the resolved URL.
    """
    if database_url is None:
        database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

    # Log database type (without credentials)
    if "://" in database_url:
        db_type = database_url.split("://")[0]
        if "@" in database_url:
            # Hide credentials in log
            db_location = database_url.split("@")[-1]
            logger.info(f"Creating {db_type} database: ...@{db_location}")
        else:
            logger.info(f"Creating {db_type} database: {database_url}")
    else:
        logger.info(f"Creating database with URL: {database_url}")

    database = Database(
        database_url=database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        echo=echo,
    )
    if create_tables:
        database.create_tables()
    return database


def create_database_from_config(config, create_tables: bool = False) -> Database:
    """
    Create a Database from a `Config` object's DATABASE_URL and pool settings.
    """
    return create_database(
        getattr(config, "DATABASE_URL", None),
        pool_size=getattr(config, "DB_POOL_SIZE", 5),
        max_overflow=getattr(config, "DB_MAX_OVERFLOW", 10),
        echo=getattr(config, "DB_ECHO", False),
        create_tables=create_tables,
    )
