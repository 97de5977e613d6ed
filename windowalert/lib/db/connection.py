"""Database connection management.

Provides async database operations using aiosqlite. A Database is an
explicit handle owned by whoever opened it (the Store for the poller);
there is no process-wide connection.
"""

from __future__ import annotations

from functools import cache
from pathlib import Path
from typing import Any, cast

import aiosqlite

from windowalert.lib.db.types import SQLParams
from windowalert.lib.exceptions import DatabaseNotConnectedError
from windowalert.logging import get_logger

_logger = get_logger("lib.db")

# SQL templates directory
_SQL_DIR = Path(__file__).resolve().parent.parent / "sql"


@cache
def load_template(name: str) -> str:
    """Load and cache a SQL template file.

    Templates are lazy-loaded on first access and cached for subsequent calls.

    Raises:
        FileNotFoundError: If the template file does not exist, with a message
            indicating the expected location.
    """
    path = _SQL_DIR / name
    if not path.exists():
        raise FileNotFoundError(f"SQL template not found: {path}")
    return path.read_text()


def _dict_factory(
    cursor: aiosqlite.Cursor, row: tuple[Any, ...]
) -> dict[str, Any]:
    """Convert a row to a dictionary using column names."""
    desc: tuple[Any, ...] = cursor.description or ()
    return {col[0]: row[idx] for idx, col in enumerate(desc)}


class Database:
    """Async database connection wrapper."""

    def __init__(self, db_path: str, timeout_sec: float = 30.0):
        self._db_path = db_path
        self._timeout_sec = timeout_sec
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(
                self._db_path,
                timeout=self._timeout_sec,
            )
            self._connection.row_factory = _dict_factory  # type: ignore[assignment]
            _logger.info("Opened database connection: %s", self._db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            _logger.info("Closed database connection")

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise DatabaseNotConnectedError()
        return self._connection

    async def execute(self, sql: str, params: SQLParams = ()) -> int:
        """Execute a SQL statement.

        Auto-commits after the statement.

        Returns:
            Number of rows affected by the statement.
        """
        connection = self._require_connection()
        cursor = await connection.execute(sql, params)
        await connection.commit()
        return cursor.rowcount

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements."""
        await self._require_connection().executescript(sql)

    async def fetchone(
        self, sql: str, params: SQLParams = ()
    ) -> dict[str, Any] | None:
        """Fetch a single row."""
        connection = self._require_connection()
        async with connection.execute(sql, params) as cursor:
            row = await cursor.fetchone()
            return cast(dict[str, Any] | None, row)

    async def fetchall(
        self, sql: str, params: SQLParams = ()
    ) -> list[dict[str, Any]]:
        """Fetch all rows."""
        connection = self._require_connection()
        async with connection.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
            return cast(list[dict[str, Any]], rows)

    async def execute_pragma(self, pragma: str) -> None:
        """Execute a PRAGMA statement directly on the connection."""
        await self._require_connection().execute(pragma)
