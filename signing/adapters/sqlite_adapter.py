"""SQLite implementation of DatabaseAdapter.

Uses core.common.db_interface for connection management. Every thread gets
its own connection so concurrent callers never share a cursor or a
transaction.
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Iterator, List, Dict, Optional
from pathlib import Path
import logging
import sqlite3
import threading

from signing.adapters.database_adapter import DatabaseAdapter
from core.common.db_interface import DEFAULT_BUSY_TIMEOUT, create_sqlite_connection

logger = logging.getLogger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """SQLite implementation of DatabaseAdapter."""

    def __init__(self, db_path: str | Path, *, timeout: float = DEFAULT_BUSY_TIMEOUT):
        """
        Initialize SQLite adapter.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for a competing writer's lock
        """
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._local = threading.local()
        self._all_conns: list[sqlite3.Connection] = []
        self._conns_lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create the calling thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = create_sqlite_connection(
                self._db_path,
                check_same_thread=False,
                foreign_keys=True,
                autocommit=True,
                timeout=self._timeout,
            )
            self._local.conn = conn
            self._local.depth = 0
            with self._conns_lock:
                self._all_conns.append(conn)
        return conn

    def execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute query and return cursor."""
        return self.conn.execute(query, params)

    def fetchone(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Fetch single row as dictionary."""
        row = self.conn.execute(query, params).fetchone()
        return dict(row) if row else None

    def fetchall(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Fetch all rows as list of dictionaries."""
        rows = self.conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """Insert row and return last inserted ID."""
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["?"] * len(data))
        values = tuple(data.values())

        query = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        cursor = self.conn.execute(query, values)
        return cursor.lastrowid

    def update(self, table: str, data: Dict[str, Any], where: str, where_params: tuple = ()) -> int:
        """Update rows and return count of affected rows."""
        set_clause = ", ".join([f"{key} = ?" for key in data.keys()])
        params = tuple(data.values()) + tuple(where_params)

        query = f"UPDATE {table} SET {set_clause} WHERE {where}"
        cursor = self.conn.execute(query, params)
        return cursor.rowcount

    def delete(self, table: str, where: str, where_params: tuple = ()) -> int:
        """Delete rows and return count of affected rows."""
        query = f"DELETE FROM {table} WHERE {where}"
        cursor = self.conn.execute(query, tuple(where_params))
        return cursor.rowcount

    @contextmanager
    def transaction(self) -> Iterator["SQLiteAdapter"]:
        """BEGIN IMMEDIATE ... COMMIT, or ROLLBACK if the block raises."""
        conn = self.conn
        if self._local.depth:
            self._local.depth += 1
            try:
                yield self
            finally:
                self._local.depth -= 1
            return

        conn.execute("BEGIN IMMEDIATE")
        self._local.depth = 1
        try:
            yield self
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            self._local.depth = 0

    def close(self) -> None:
        """Close every connection opened through this adapter."""
        with self._conns_lock:
            conns, self._all_conns = self._all_conns, []
        for conn in conns:
            try:
                conn.close()
            except sqlite3.Error as ex:
                logger.warning(f"Failed to close connection to {self._db_path}: {ex}")
        self._local = threading.local()

    def executescript(self, script: str) -> None:
        """Execute multiple SQL statements."""
        self.conn.executescript(script)
