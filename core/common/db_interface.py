"""
core/common/db_interface.py
===========================

Shared helpers for SQLite-backed modules.
"""
from __future__ import annotations

from pathlib import Path
import sqlite3

DEFAULT_BUSY_TIMEOUT = 30.0


def create_sqlite_connection(
    db_path: Path,
    *,
    check_same_thread: bool = False,
    foreign_keys: bool = False,
    autocommit: bool = False,
    timeout: float = DEFAULT_BUSY_TIMEOUT,
) -> sqlite3.Connection:
    """Create a sqlite3 connection with common defaults.

    ``autocommit=True`` disables the implicit transactions of the sqlite3
    module (``isolation_level=None``) so callers can issue ``BEGIN IMMEDIATE``
    themselves.
    """
    db_path = Path(db_path)
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(db_path),
        check_same_thread=check_same_thread,
        timeout=timeout,
        isolation_level=None if autocommit else "",
    )
    conn.row_factory = sqlite3.Row
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys = ON")
    return conn
