"""Durable key/value backing store contract.

The entity store treats its durable storage as an opaque asynchronous
key/value API: one key per collection, one serialized JSON array per key.

Backends:
    MemoryBackend: dict-backed, for tests and throwaway sessions.
    SQLiteBackend: on-device SQLite file (see ``storage.database``).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from questkeeper.core.logging import get_logger


logger = get_logger(__name__)


@runtime_checkable
class KeyValueBackend(Protocol):
    """Asynchronous key/value storage used for collection snapshots."""

    async def get(self, key: str) -> str | None:
        """Read the serialized value for ``key``.

        Returns:
            The stored string, or None when the key has never been written.

        Raises:
            PersistenceError: If the storage cannot be read.
        """
        ...

    async def set(self, key: str, value: str) -> None:
        """Replace the serialized value for ``key``.

        Raises:
            PersistenceError: If the storage cannot be written.
        """
        ...


class MemoryBackend:
    """In-process backend holding snapshots in a dict.

    Survives for the lifetime of the object only, which makes it suitable
    for tests that simulate an app restart by building a second store on
    the same backend.

    Attributes:
        data: Raw stored strings keyed by collection key.
        write_count: Number of successful ``set`` calls.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.write_count += 1
        logger.debug("Memory backend write", key=key, size=len(value))


__all__ = [
    "KeyValueBackend",
    "MemoryBackend",
]
