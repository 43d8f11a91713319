"""Database adapter abstraction.

Provides a database-agnostic interface for the repository layer and the
blob artifact backend.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, List, Dict, Optional


class DatabaseAdapter(ABC):
    """Abstract database adapter for SQL operations.

    Statements executed outside :meth:`transaction` are committed on their
    own. Inside a transaction they become visible together on exit, or not
    at all if the block raises.
    """

    @abstractmethod
    def execute(self, query: str, params: tuple = ()) -> Any:
        """
        Execute a query and return cursor/result.

        Args:
            query: SQL query (``?`` placeholders)
            params: Query parameters

        Returns:
            Database cursor or result
        """
        raise NotImplementedError

    @abstractmethod
    def fetchone(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Fetch single row as dictionary, or None."""
        raise NotImplementedError

    @abstractmethod
    def fetchall(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Fetch all rows as list of dictionaries."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """
        Insert row and return last inserted ID.

        Args:
            table: Table name
            data: Column-value mapping
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, table: str, data: Dict[str, Any], where: str, where_params: tuple = ()) -> int:
        """
        Update rows and return count of affected rows.

        Args:
            table: Table name
            data: Column-value mapping for SET clause
            where: WHERE clause (without "WHERE" keyword)
            where_params: Parameters for WHERE clause
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, table: str, where: str, where_params: tuple = ()) -> int:
        """Delete rows and return count of affected rows."""
        raise NotImplementedError

    @abstractmethod
    def transaction(self) -> AbstractContextManager["DatabaseAdapter"]:
        """
        Open a write transaction for the calling thread.

        Commits when the block exits normally, rolls back if it raises.
        Nested calls join the outer transaction.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Close all database connections."""
        raise NotImplementedError

    @abstractmethod
    def executescript(self, script: str) -> None:
        """
        Execute multiple SQL statements (for schema creation).

        Args:
            script: Multi-statement SQL script
        """
        raise NotImplementedError
