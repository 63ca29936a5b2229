"""
Composition root: wires settings, store, engine components and sync.
"""

from __future__ import annotations

from dataclasses import dataclass

from config import Settings, get_settings
from progress_engine.clock import Clock, SystemClock
from progress_engine.db.database import create_db_engine, init_db, make_session_factory
from progress_engine.db.repository import SqlProgressStore
from progress_engine.knowledge.updater import KnowledgeUpdater
from progress_engine.review.queue import ReviewQueueBuilder, ReviewQueueConfig
from progress_engine.session import SessionCoordinator, SessionIdentity
from progress_engine.snapshot.assembler import KnowledgeSnapshotAssembler, SnapshotLimits
from progress_engine.snapshot.levels import LevelThresholds, UserLevelService
from progress_engine.srs.engine import SrsConfig, SrsEngine
from progress_engine.strategy.selector import StrategySelector, StrategyThresholds
from progress_engine.strategy.weak_points import WeakPointDetector
from progress_engine.sync.background import BackgroundSyncWorker
from progress_engine.sync.queue import SyncBatchingQueue
from progress_engine.sync.remote import HttpRemoteSync, RemoteSync


@dataclass
class ProgressEngine:
    settings: Settings
    store: SqlProgressStore
    clock: Clock
    identity: SessionIdentity
    srs: SrsEngine
    updater: KnowledgeUpdater
    queue_builder: ReviewQueueBuilder
    weak_points: WeakPointDetector
    selector: StrategySelector
    assembler: KnowledgeSnapshotAssembler
    levels: UserLevelService
    sync_queue: SyncBatchingQueue
    sessions: SessionCoordinator

    def background_worker(self) -> BackgroundSyncWorker:
        return BackgroundSyncWorker(self.sync_queue, interval_seconds=self.settings.sync_interval_seconds)


def build_progress_engine(
    settings: Settings | None = None,
    store: SqlProgressStore | None = None,
    remote: RemoteSync | None = None,
    identity: SessionIdentity | None = None,
    clock: Clock | None = None,
    create_tables: bool = True,
) -> ProgressEngine:
    """Build every component from settings; any piece can be injected."""
    settings = settings or get_settings()
    clock = clock or SystemClock()
    identity = identity or SessionIdentity()

    if store is None:
        engine = create_db_engine(settings.database_url, echo=settings.log_level == "DEBUG")
        if create_tables:
            init_db(engine)
        store = SqlProgressStore(make_session_factory(engine))

    remote = remote or HttpRemoteSync(settings.remote_sync_url, settings.remote_sync_api_key)
    sync_queue = SyncBatchingQueue(
        remote,
        identity,
        chunk_size=settings.sync_chunk_size,
        chunk_timeout=settings.sync_chunk_timeout_seconds,
    )

    srs = SrsEngine(SrsConfig.from_settings(settings))
    weak_points = WeakPointDetector(store)
    selector = StrategySelector(store, clock, StrategyThresholds.from_settings(settings), weak_points)
    level_thresholds = LevelThresholds.from_settings(settings)
    assembler = KnowledgeSnapshotAssembler(
        store,
        selector,
        clock=clock,
        limits=SnapshotLimits.from_settings(settings),
        level_thresholds=level_thresholds,
        weak_points=weak_points,
    )
    queue_builder = ReviewQueueBuilder(store, clock, ReviewQueueConfig.from_settings(settings))

    return ProgressEngine(
        settings=settings,
        store=store,
        clock=clock,
        identity=identity,
        srs=srs,
        updater=KnowledgeUpdater(store, srs, sync_queue, clock),
        queue_builder=queue_builder,
        weak_points=weak_points,
        selector=selector,
        assembler=assembler,
        levels=UserLevelService(store, level_thresholds),
        sync_queue=sync_queue,
        sessions=SessionCoordinator(assembler, queue_builder, sync_queue, identity, clock),
    )
