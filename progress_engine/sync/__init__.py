"""Batched cloud sync of knowledge updates."""

from progress_engine.sync.background import BackgroundSyncWorker, WorkerStatus
from progress_engine.sync.queue import SyncBatchingQueue, SyncStatus
from progress_engine.sync.remote import HttpRemoteSync, RemoteSync

__all__ = [
    "BackgroundSyncWorker",
    "HttpRemoteSync",
    "RemoteSync",
    "SyncBatchingQueue",
    "SyncStatus",
    "WorkerStatus",
]
