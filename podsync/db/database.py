"""Engine and transaction management.

Every logical operation of the sync core runs inside exactly one
`Database.transaction()` block, which commits when the block completes and
rolls back on any exception, including cancellation of the calling task.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from podsync.errors import StorageError

from .models import Base

logger = logging.getLogger(__name__)


def _configure_sqlite(engine) -> None:
    """
    Make SQLite transactions serialize writers.

    pysqlite defers BEGIN until the first write, so two transactions could
    both read a group table before either writes. Taking the database write
    lock with BEGIN IMMEDIATE at the start of every transaction gives the
    same read-modify-write guarantee row locks give on PostgreSQL.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the SQLAlchemy engine and hands out transactional sessions."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        """
        Create the engine for `database_url` and prepare the session factory.

        Parameters:
            database_url (str): SQLAlchemy-compatible database URL.
            pool_size (int): Connection pool size for non-SQLite databases.
            max_overflow (int): Maximum overflow connections for non-SQLite databases.
            echo (bool): If true, enable SQLAlchemy SQL statement logging.
        """
        self.database_url = database_url
        self.is_sqlite = database_url.startswith("sqlite")

        # SQLite doesn't support connection pooling
        if self.is_sqlite:
            self.engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
            _configure_sqlite(self.engine)
        else:
            self.engine = create_engine(
                database_url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
                echo=echo,
            )

        self.SessionLocal = sessionmaker(
            bind=self.engine, autoflush=True, expire_on_commit=False
        )

        logger.info(f"Database initialized: {database_url.split('@')[-1] if '@' in database_url else database_url}")

    def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Run a block inside one database transaction.

        Yields:
            Session: A session whose transaction commits when the block exits normally.

        Raises:
            StorageError: If the database raised; the transaction has been rolled back.
        """
        session = self.SessionLocal()
        try:
            with session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.exception("Database transaction rolled back")
            raise StorageError(f"Database error: {e.__class__.__name__}") from e
        finally:
            session.close()

    def close(self) -> None:
        """
        Dispose the SQLAlchemy engine and release database connections and resources.
        """
        self.engine.dispose()
