"""Read-only access to the signups table through a psycopg connection pool.

Connections are tracked per thread. The refresh worker checks one out on
its first query of a cycle and hands it back with release_if_held() once
the cycle's pages are read; a failed page is rolled back with rollback(),
which also returns the connection. Tally never commits.

The LISTEN connection is not pooled: it must stay in autocommit for the
lifetime of the subscription, so the signup listener opens its own.
"""

import logging
import threading

import psycopg
from psycopg.pq import TransactionStatus
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from tally.config import DatabaseConfig

logger = logging.getLogger(__name__)

# One refresh worker plus headroom for manual /refresh calls.
POOL_MIN_SIZE = 1
POOL_MAX_SIZE = 5

_OPEN_TRANSACTION = (TransactionStatus.INTRANS, TransactionStatus.INERROR)


class Database:
    """Thread-local connections checked out of a shared pool."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._pool: ConnectionPool | None = None
        self._local = threading.local()

    @property
    def dsn(self) -> str:
        return self.config.dsn

    def connect(self) -> None:
        """Open the pool and wait until the minimum connections are ready."""
        self._pool = ConnectionPool(
            self.dsn,
            min_size=POOL_MIN_SIZE,
            max_size=POOL_MAX_SIZE,
            kwargs={"row_factory": dict_row, "autocommit": False},
            open=True,
        )
        self._pool.wait()
        logger.info(
            "Signups pool ready: %s:%s/%s (min=%d, max=%d)",
            self.config.host, self.config.port, self.config.name,
            POOL_MIN_SIZE, POOL_MAX_SIZE,
        )

    def close(self) -> None:
        self._release()
        if self._pool:
            self._pool.close()
            self._pool = None
            logger.info("Signups pool closed")

    def _held(self) -> psycopg.Connection | None:
        existing = getattr(self._local, "conn", None)
        if existing is None or existing.closed:
            return None
        return existing

    def _checkout(self) -> psycopg.Connection:
        existing = self._held()
        if existing is not None:
            if existing.info.transaction_status == TransactionStatus.INERROR:
                logger.warning("Rolling back failed read transaction before reuse")
                existing.rollback()
            return existing
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        self._local.conn = self._pool.getconn()
        return self._local.conn

    def _release(self) -> None:
        existing = getattr(self._local, "conn", None)
        if existing is None or self._pool is None:
            return
        try:
            self._pool.putconn(existing)
        except Exception:
            logger.warning("Failed to return connection to pool", exc_info=True)
        self._local.conn = None

    def execute(self, query: str, params: tuple | list | None = None) -> list[dict]:
        """Run a read query on this thread's connection and return all rows."""
        with self._checkout().cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall() if cur.description else []

    def rollback(self) -> None:
        """Abort the current read transaction and give the connection back."""
        existing = self._held()
        if existing is not None:
            existing.rollback()
        self._release()

    def release_if_held(self) -> None:
        """End the cycle: close any open read transaction and return the connection.

        No-op when this thread holds nothing.
        """
        existing = self._held()
        if existing is None:
            return
        if existing.info.transaction_status in _OPEN_TRANSACTION:
            try:
                existing.rollback()
            except Exception:
                logger.debug("Rollback on release failed", exc_info=True)
        self._release()
