"""Tests for tally.storage.database — per-thread checkout and release."""

from unittest.mock import MagicMock

import psycopg
import pytest

from tally.config import DatabaseConfig
from tally.storage.database import Database


def _db(status=psycopg.pq.TransactionStatus.INTRANS):
    db = Database(DatabaseConfig())
    pool = MagicMock()
    conn = MagicMock()
    conn.closed = False
    conn.info.transaction_status = status
    cur = conn.cursor.return_value.__enter__.return_value
    cur.description = [("id",)]
    cur.fetchall.return_value = [{"id": 1}]
    pool.getconn.return_value = conn
    db._pool = pool
    return db, pool, conn


class TestDatabase:
    def test_execute_without_connect_raises(self):
        with pytest.raises(RuntimeError):
            Database(DatabaseConfig()).execute("SELECT 1")

    def test_execute_reuses_thread_connection(self):
        db, pool, _ = _db()
        assert db.execute("SELECT id FROM signups LIMIT 1") == [{"id": 1}]
        db.execute("SELECT id FROM signups LIMIT 1")
        assert pool.getconn.call_count == 1

    def test_release_rolls_back_open_read(self):
        db, pool, conn = _db()
        db.execute("SELECT 1")
        db.release_if_held()
        conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(conn)

    def test_release_without_connection_is_noop(self):
        db, pool, _ = _db()
        db.release_if_held()
        pool.putconn.assert_not_called()

    def test_rollback_returns_connection(self):
        db, pool, conn = _db()
        db.execute("SELECT 1")
        db.rollback()
        conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(conn)
        db.execute("SELECT 1")
        assert pool.getconn.call_count == 2

    def test_dsn_from_config(self):
        assert Database(DatabaseConfig(url="postgresql://x/y")).dsn == "postgresql://x/y"
