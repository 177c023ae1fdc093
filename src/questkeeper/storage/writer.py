"""Per-collection write-through queue.

Each collection gets one ``CollectionWriter``. A writer has at most one
backend write in flight. Snapshots submitted while a write is in flight
replace each other, and only the newest is written once the current write
finishes, so the last full snapshot always wins regardless of how the
backend schedules its I/O.
"""

from __future__ import annotations

import asyncio

from questkeeper.core.logging import get_logger
from questkeeper.storage.backends import KeyValueBackend


logger = get_logger(__name__)


class CollectionWriter:
    """Single-writer queue for one collection key.

    Writes are fire-and-forget from the submitter's side. A failed write is
    logged and counted; it never propagates and is not retried, since the
    next mutation submits a fresh full snapshot anyway.

    Attributes:
        key: Backing store key this writer owns.
        writes_completed: Number of successful writes.
        failures: Number of failed writes.
    """

    def __init__(self, backend: KeyValueBackend, key: str) -> None:
        self._backend = backend
        self.key = key
        self._pending: str | None = None
        self._task: asyncio.Task[None] | None = None
        self.writes_completed = 0
        self.failures = 0

    @property
    def has_pending(self) -> bool:
        """True when a snapshot is waiting to be written."""
        return self._pending is not None

    @property
    def in_flight(self) -> bool:
        """True while a drain task is running."""
        return self._task is not None and not self._task.done()

    def submit(self, snapshot: str) -> None:
        """Queue a snapshot, superseding any queued one.

        Starts a drain task on the running event loop. Without a running
        loop the snapshot stays queued until :meth:`flush`.

        Args:
            snapshot: Serialized full collection.
        """
        self._pending = snapshot
        self._ensure_draining()

    def _ensure_draining(self) -> None:
        if self.in_flight:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, write deferred", key=self.key)
            return
        self._task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending is not None:
            snapshot, self._pending = self._pending, None
            try:
                await self._backend.set(self.key, snapshot)
            except Exception as exc:
                self.failures += 1
                logger.error(
                    "Failed to persist collection",
                    key=self.key,
                    error=str(exc),
                    exc_info=True,
                )
            else:
                self.writes_completed += 1
                logger.debug("Collection persisted", key=self.key, size=len(snapshot))

    async def flush(self) -> None:
        """Wait until every submitted snapshot has been written or has failed."""
        while True:
            task = self._task
            if task is not None and not task.done():
                await task
                continue
            if self._pending is None:
                return
            self._ensure_draining()


__all__ = [
    "CollectionWriter",
]
