"""
core/logging/logic/logger.py
============================

Thread-safe event log with a SQLite backend.

Business events (document registered, signed, fallback used, ...) are
persisted here in addition to the regular ``logging`` output so they can be
queried later. The instance owns a single connection guarded by a lock and
must be closed by whoever constructed it.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

from core.common.db_interface import create_sqlite_connection
from core.helpers.date_time_helper import utc_now_iso
from core.logging.models.log_entry import LogEntry

logger = logging.getLogger(__name__)

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class EventLogger:
    """Thread-safe SQLite event log."""

    def __init__(self, db_path: Path | str) -> None:
        self._lock = threading.Lock()
        self.db_path: Path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._ensure_db()

    # ------------------------------------------------------------------ #
    #  Connection management (reuse single connection)                   #
    # ------------------------------------------------------------------ #
    def _get_connection(self) -> sqlite3.Connection:
        """Return the shared connection. Caller must hold ``self._lock``."""
        if self._conn is None:
            self._conn = create_sqlite_connection(self.db_path, check_same_thread=False)
        return self._conn

    def close(self) -> None:
        """Close the database connection and release resources."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        user_id: Optional[int] = None,
        username: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Persist one event. Unknown levels are stored as INFO."""
        level = level.upper()
        if level not in _LEVELS:
            level = "INFO"

        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO logs (timestamp, user_id, username, feature, event,
                                  reference_id, message, log_level)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    utc_now_iso(),
                    user_id,
                    username or "unknown",
                    feature,
                    event,
                    reference_id,
                    message,
                    level,
                ),
            )
            conn.commit()

    # ------------------------------------------------------------------ #
    #  Fetch / Query                                                     #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        with self._lock:
            conn = self._get_connection()
            rows = conn.execute(
                "SELECT * FROM logs ORDER BY timestamp DESC, id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [LogEntry.from_dict(dict(row)) for row in rows]

    def query_logs(
        self,
        *,
        user_id: Optional[int] = None,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        query = "SELECT * FROM logs WHERE 1=1"
        params: list[object] = []

        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        if feature is not None:
            query += " AND feature = ?"
            params.append(feature)
        if event is not None:
            query += " AND event = ?"
            params.append(event)
        if reference_id is not None:
            query += " AND reference_id = ?"
            params.append(reference_id)
        if level is not None:
            query += " AND log_level = ?"
            params.append(level.upper())

        query += " ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(limit)

        with self._lock:
            rows = self._get_connection().execute(query, params).fetchall()
            return [LogEntry.from_dict(dict(row)) for row in rows]

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_db(self) -> None:
        """Initialize the database schema."""
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    user_id INTEGER,
                    username TEXT,
                    feature TEXT NOT NULL,
                    event TEXT NOT NULL,
                    reference_id TEXT,
                    message TEXT,
                    log_level TEXT NOT NULL DEFAULT 'INFO'
                )
                """
            )
            conn.commit()
        logger.debug(f"Event log ready at {self.db_path}")
