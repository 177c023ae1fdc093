"""Storage module for QuestKeeper persistence.

Provides the durable key/value backing store the entity store writes its
collection snapshots to:
- MemoryBackend (tests, throwaway sessions)
- SQLiteBackend (on-device file)
- CollectionWriter (one-write-in-flight queue per collection)
"""

from __future__ import annotations

from questkeeper.core.config import StorageSettings
from questkeeper.storage.backends import KeyValueBackend, MemoryBackend
from questkeeper.storage.database import SnapshotRecord, SQLiteBackend
from questkeeper.storage.writer import CollectionWriter


def create_backend(settings: StorageSettings) -> KeyValueBackend:
    """Build the backing store selected by configuration.

    Args:
        settings: Storage settings.

    Returns:
        A ready-to-use backend.
    """
    if settings.backend == "memory":
        return MemoryBackend()
    return SQLiteBackend(settings.database_path)


__all__ = [
    "CollectionWriter",
    "KeyValueBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "SnapshotRecord",
    "create_backend",
]
