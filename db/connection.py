"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool, shared by all request threads.

The pool lives inside a `Database` handle that is created once by the
application factory and passed to every repository.
"""

from typing import Optional

import psycopg2
from psycopg2 import pool

from utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseBusyError(RuntimeError):
    """The pool has no free connection for this request."""


class Database:
    """
    Connection-pool handle shared by the repositories.

    Args:
        dsn: PostgreSQL connection string.
        min_conn: Minimum number of connections to keep open.
        max_conn: Maximum number of connections allowed.
    """

    def __init__(self, dsn: str, min_conn: int = 1, max_conn: int = 5):
        self.dsn = dsn
        self.min_conn = min_conn
        self.max_conn = max_conn
        self._pool: Optional[pool.ThreadedConnectionPool] = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> None:
        """
        Initialize the connection pool.

        Raises:
            psycopg2.OperationalError: If the database is unreachable.
        """
        if self._pool is not None:
            return
        try:
            self._pool = pool.ThreadedConnectionPool(self.min_conn, self.max_conn, self.dsn)
            logger.info("Database connection pool initialized successfully.")
        except psycopg2.OperationalError as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    def get_connection(self):
        """
        Get a connection from the pool.

        Raises:
            RuntimeError: If the pool has not been opened.
            DatabaseBusyError: If every connection is in use.
        """
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call open() first.")
        try:
            return self._pool.getconn()
        except pool.PoolError as e:
            logger.warning(f"Connection pool exhausted ({self.max_conn} in use): {e}")
            raise DatabaseBusyError("All database connections are in use.") from e

    def release_connection(self, conn) -> None:
        """Return a connection back to the pool."""
        if self._pool is not None:
            self._pool.putconn(conn)

    def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("Database connection pool closed.")
