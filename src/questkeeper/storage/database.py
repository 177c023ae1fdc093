"""SQLite persistence layer for QuestKeeper.

Stores each collection snapshot as one row of a key/value table. Blocking
sqlite3 calls run in a worker thread so the event loop driving the store
never waits on disk I/O.

Storage location: ``data/questkeeper.db`` unless configured otherwise.
"""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

from questkeeper.core.exceptions import PersistenceError
from questkeeper.core.logging import get_logger
from questkeeper.models.records import utc_now


logger = get_logger(__name__)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class SnapshotRecord:
    """One stored collection snapshot.

    Attributes:
        key: Collection key.
        value: Serialized JSON array.
        updated_at: When the snapshot was last written.
    """

    key: str
    value: str
    updated_at: datetime

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> SnapshotRecord:
        """Create from database row."""
        return cls(
            key=row[0],
            value=row[1],
            updated_at=datetime.fromisoformat(row[2]),
        )


# =============================================================================
# Backend Class
# =============================================================================


class SQLiteBackend:
    """SQLite key/value backend for collection snapshots.

    Implements the ``KeyValueBackend`` contract. Every ``set`` replaces the
    whole row for its key inside one transaction, so a reader never sees a
    partially written snapshot.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the backend and create its schema.

        Args:
            db_path: Path to the database file. Parent directories are created.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

        logger.info("SQLite backend initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS schema_version (
                        version INTEGER PRIMARY KEY
                    )
                """)

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS collections (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)

                cursor.execute("""
                    INSERT OR REPLACE INTO schema_version (version) VALUES (?)
                """, (self.SCHEMA_VERSION,))
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Failed to initialize database schema: {exc}",
                details={"path": str(self.db_path)},
            ) from exc

    # =========================================================================
    # Synchronous Operations
    # =========================================================================

    def read(self, key: str) -> SnapshotRecord | None:
        """Read a stored snapshot.

        Args:
            key: Collection key.

        Returns:
            The snapshot record if present, None otherwise.

        Raises:
            PersistenceError: If the query fails.
        """
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT key, value, updated_at FROM collections WHERE key = ?
                """, (key,))
                row = cursor.fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to read snapshot: {exc}", key=key) from exc

        if row:
            return SnapshotRecord.from_row(tuple(row))
        return None

    def write(self, key: str, value: str) -> SnapshotRecord:
        """Insert or replace a snapshot.

        Args:
            key: Collection key.
            value: Serialized collection.

        Returns:
            The stored snapshot record.

        Raises:
            PersistenceError: If the write fails.
        """
        updated_at = utc_now()
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT OR REPLACE INTO collections (key, value, updated_at)
                    VALUES (?, ?, ?)
                """, (key, value, updated_at.isoformat()))
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to write snapshot: {exc}", key=key) from exc

        logger.debug("Snapshot written", key=key, size=len(value))

        return SnapshotRecord(key=key, value=value, updated_at=updated_at)

    def delete(self, key: str) -> bool:
        """Delete a snapshot.

        Args:
            key: Collection key.

        Returns:
            True if deleted, False if not found.
        """
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM collections WHERE key = ?", (key,))
                deleted = cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to delete snapshot: {exc}", key=key) from exc

        if deleted:
            logger.info("Snapshot deleted", key=key)

        return deleted

    def keys(self) -> list[str]:
        """Get all stored collection keys."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT key FROM collections ORDER BY key")
            return [row[0] for row in cursor.fetchall()]

    # =========================================================================
    # KeyValueBackend Contract
    # =========================================================================

    async def get(self, key: str) -> str | None:
        record = await asyncio.to_thread(self.read, key)
        return record.value if record else None

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self.write, key, value)


__all__ = [
    "SQLiteBackend",
    "SnapshotRecord",
]
