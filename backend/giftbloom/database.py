import os
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Optional

import mysql.connector
from mysql.connector import pooling

from giftbloom.core.errors import DatabaseUnavailableError
from giftbloom.core.logger import get_logger

logger = get_logger("giftbloom.database")


def get_db_config() -> Dict[str, Any]:
    """Get database configuration from environment variables"""
    return {
        "host": os.getenv("MYSQL_HOST", "127.0.0.1"),
        "port": int(os.getenv("MYSQL_PORT", "3306")),
        "user": os.getenv("MYSQL_USER", "app_user"),
        "password": os.getenv("MYSQL_PASSWORD", "changeme123"),
        "database": os.getenv("MYSQL_DATABASE", "giftbloom"),
        "charset": "utf8mb4",
        "collation": "utf8mb4_unicode_ci",
        "autocommit": True
    }


class Database:
    """
    Owns the connection pool for the lifetime of the process.

    Every operation borrows one connection and hands it back when the
    ``with`` block exits, whatever the outcome. ``transaction()`` wraps the
    block in START TRANSACTION / COMMIT and rolls back on any exception.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, pool_size: Optional[int] = None):
        self.config = config or get_db_config()
        self.pool_size = pool_size or int(os.getenv("MYSQL_POOL_SIZE", "5"))
        self._pool = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self):
        self._closed = False
        if self._pool is not None:
            return
        try:
            self._pool = pooling.MySQLConnectionPool(
                pool_name="giftbloom_pool",
                pool_size=self.pool_size,
                **self.config
            )
        except mysql.connector.Error as err:
            logger.error("Database connection error", extra={"error": str(err), "host": self.config.get("host")})
            raise DatabaseUnavailableError(f"Database connection error: {err}") from err
        logger.info("Database pool opened", extra={"pool_size": self.pool_size, "host": self.config.get("host")})

    def close(self):
        self._closed = True
        pool, self._pool = self._pool, None
        if pool is None:
            return
        # Idle connections are closed now; borrowed ones go back to a pool nobody hands out any more
        closed = pool._remove_connections()
        logger.info("Database pool closed", extra={"closed_connections": closed})

    def _acquire(self):
        if self._pool is None:
            if self._closed:
                raise DatabaseUnavailableError("Database pool is not open")
            # Startup may have failed while the server was down; try again on demand
            self.open()
        try:
            return self._pool.get_connection()
        except mysql.connector.Error as err:
            raise DatabaseUnavailableError(f"Could not acquire database connection: {err}") from err

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Yield a dictionary cursor on a pooled connection."""
        conn = self._acquire()
        cursor = conn.cursor(dictionary=True)
        try:
            yield cursor
        finally:
            cursor.close()
            conn.close()  # returns the connection to the pool

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Yield a dictionary cursor inside an explicit transaction."""
        conn = self._acquire()
        cursor = conn.cursor(dictionary=True)
        try:
            conn.start_transaction()
            yield cursor
            conn.commit()
        except Exception as err:
            conn.rollback()
            logger.error("Transaction rolled back", extra={"error": str(err)})
            raise
        finally:
            cursor.close()
            conn.close()
