"""
Sync Batching Queue.

Coalesces knowledge updates in memory and flushes them to the remote store
in bounded chunks:

- At most one pending entry per key (last write wins)
- Flush atomically takes and clears the pending map under the one lock,
  then commits chunks sequentially outside it; a concurrent flush sees an
  empty map and returns at once
- On any chunk failure the whole taken set is restored; entries enqueued
  meanwhile win over the restored ones
- Every remote write is a merge, so replaying an already committed chunk
  is harmless
- Each entry is committed under the learner in its ``userId``, not whoever
  is signed in at flush time
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from loguru import logger

from progress_engine.sync.remote import RemoteSync

DEFAULT_CHUNK_SIZE = 450
DEFAULT_CHUNK_TIMEOUT = 10.0


class SyncStatus(str, Enum):
    SUCCESS = "success"
    OFFLINE = "offline"
    ERROR = "error"


def chunked(entries: dict[str, dict[str, Any]], size: int) -> list[dict[str, dict[str, Any]]]:
    keys = list(entries)
    return [{key: entries[key] for key in keys[i : i + size]} for i in range(0, len(keys), size)]


def group_by_owner(entries: dict[str, dict[str, Any]], default_user: str) -> dict[str, dict[str, dict[str, Any]]]:
    """Split entries by their ``userId``, keeping enqueue order within each learner."""
    groups: dict[str, dict[str, dict[str, Any]]] = {}
    for key, entry in entries.items():
        owner = entry.get("userId") or default_user
        groups.setdefault(owner, {})[key] = entry
    return groups


class SyncBatchingQueue:
    """
    In-memory coalescing queue in front of a RemoteSync backend.

    Usage:
        queue = SyncBatchingQueue(remote, identity_provider=lambda: "user-1")
        queue.enqueue("word:user-1:w1", payload)
        status = queue.flush()
    """

    def __init__(
        self,
        remote: RemoteSync,
        identity_provider: Callable[[], str | None],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_timeout: float = DEFAULT_CHUNK_TIMEOUT,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.remote = remote
        self.identity_provider = identity_provider
        self.chunk_size = chunk_size
        self.chunk_timeout = chunk_timeout
        self._pending: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def enqueue(self, key: str, entry: dict[str, Any]) -> None:
        """Add or replace the pending entry for ``key``."""
        with self._lock:
            self._pending[key] = entry

    def pending_size(self) -> int:
        with self._lock:
            return len(self._pending)

    def pending_keys(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def flush(self, timeout: float | None = None) -> SyncStatus:
        """
        Commit everything pending to the remote store.

        Entries are committed under the learner that owns them (the payload
        ``userId``), falling back to the signed-in identity for entries
        without one.

        Args:
            timeout: Per-chunk timeout in seconds (default: chunk_timeout)

        Returns:
            SUCCESS when all chunks committed (or nothing was pending),
            OFFLINE when a chunk failed and entries were re-queued,
            ERROR when there is no signed-in identity
        """
        signed_in = self.identity_provider()
        if not signed_in:
            logger.warning("Sync flush skipped: no signed-in identity ({} pending)", self.pending_size())
            return SyncStatus.ERROR

        with self._lock:
            taken = self._pending
            self._pending = {}

        if not taken:
            logger.debug("Sync flush: nothing pending")
            return SyncStatus.SUCCESS

        chunk_timeout = self.chunk_timeout if timeout is None else timeout
        batches = [
            (user_id, chunk)
            for user_id, entries in group_by_owner(taken, signed_in).items()
            for chunk in chunked(entries, self.chunk_size)
        ]
        logger.info("Flushing {} entries in {} chunk(s)", len(taken), len(batches))

        for index, (user_id, chunk) in enumerate(batches, start=1):
            try:
                committed = self.remote.commit_batch(user_id, list(chunk.values()), chunk_timeout)
            except Exception as exc:
                logger.warning("Sync chunk {}/{} for {} failed: {}", index, len(batches), user_id, exc)
                committed = False

            if not committed:
                self._restore(taken)
                logger.warning("Sync offline; {} entries re-queued", len(taken))
                return SyncStatus.OFFLINE

            logger.debug("Sync chunk {}/{} committed for {} ({} entries)", index, len(batches), user_id, len(chunk))

        logger.info("Sync flush complete: {} entries", len(taken))
        return SyncStatus.SUCCESS

    def _restore(self, taken: dict[str, dict[str, Any]]) -> None:
        with self._lock:
            for key, entry in taken.items():
                # Newer entries enqueued during the flush win
                self._pending.setdefault(key, entry)
