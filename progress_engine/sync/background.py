"""
Background sync worker.

Flushes the SyncBatchingQueue on a fixed interval while the engine runs,
and once more on shutdown.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from loguru import logger

from progress_engine.sync.queue import SyncBatchingQueue, SyncStatus


@dataclass
class WorkerStatus:
    """Current worker status."""

    is_running: bool = False
    last_flush_at: datetime | None = None
    last_result: SyncStatus | None = None
    total_flushes: int = 0
    consecutive_failures: int = 0


@dataclass
class BackgroundSyncWorker:
    """
    Periodic flusher for a SyncBatchingQueue.

    Usage:
        worker = BackgroundSyncWorker(queue, interval_seconds=300)
        worker.start()
        # ... session runs ...
        worker.stop()
    """

    queue: SyncBatchingQueue
    interval_seconds: float = 300
    on_flush: Callable[[WorkerStatus], None] | None = None

    _status: WorkerStatus = field(default_factory=WorkerStatus)
    _thread: threading.Thread | None = field(default=None, repr=False)
    _stop_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def status(self) -> WorkerStatus:
        return self._status

    def start(self) -> None:
        if self._status.is_running:
            logger.warning("Background sync already running")
            return

        self._stop_event.clear()
        self._status.is_running = True
        self._thread = threading.Thread(target=self._loop, name="progress-background-sync", daemon=True)
        self._thread.start()
        logger.info("Background sync started (interval: {}s)", self.interval_seconds)

    def stop(self, final_flush: bool = True) -> None:
        """Stop the loop and optionally flush what is left."""
        if not self._status.is_running:
            return

        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._status.is_running = False

        if final_flush:
            self.flush_now()
        logger.info("Background sync stopped")

    def flush_now(self) -> SyncStatus:
        """Flush immediately on the calling thread."""
        result = self.queue.flush()
        self._status.last_flush_at = datetime.now(UTC)
        self._status.last_result = result
        self._status.total_flushes += 1
        if result is SyncStatus.SUCCESS:
            self._status.consecutive_failures = 0
        else:
            self._status.consecutive_failures += 1

        if self.on_flush:
            try:
                self.on_flush(self._status)
            except Exception as exc:
                logger.debug("Flush callback failed: {}", exc)
        return result

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            if self._stop_event.wait(timeout=self.interval_seconds):
                break
            if self.queue.pending_size() == 0:
                continue
            result = self.flush_now()
            if result is not SyncStatus.SUCCESS:
                logger.debug("Background flush returned {}", result.value)
