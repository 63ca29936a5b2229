"""
Unit tests for review recording.
"""

import pytest

from progress_engine.errors import InvalidQualityError, KnowledgeNotFoundError
from progress_engine.knowledge.models import CatalogEntry, ItemKind, MistakeRecord, item_key
from progress_engine.knowledge.updater import KnowledgeUpdater
from progress_engine.sync.queue import SyncBatchingQueue


@pytest.fixture
def sync_queue(remote):
    return SyncBatchingQueue(remote, lambda: "u1")


@pytest.fixture
def updater(store, clock, sync_queue):
    store.add_catalog(CatalogEntry(id="w1", kind=ItemKind.WORD, text="apple"))
    store.add_catalog(CatalogEntry(id="r1", kind=ItemKind.RULE, text="past simple"))
    return KnowledgeUpdater(store, sync_queue=sync_queue, clock=clock)


class TestRecordReview:
    def test_creates_item_on_first_review(self, updater, store, now):
        item = updater.record_review("u1", ItemKind.WORD, "w1", 4)

        assert item.id == item_key(ItemKind.WORD, "u1", "w1")
        assert item.knowledge_level == 1
        assert item.times_seen == 1
        assert item.created_at == now
        assert store.get_item(ItemKind.WORD, "u1", "w1") == item

    def test_enqueues_sync_payload(self, updater, sync_queue):
        updater.record_review("u1", ItemKind.WORD, "w1", 4)

        assert sync_queue.pending_keys() == ["word:u1:w1"]

    def test_repeat_reviews_coalesce_in_queue(self, updater, sync_queue, remote):
        updater.record_review("u1", ItemKind.WORD, "w1", 4)
        updater.record_review("u1", ItemKind.WORD, "w1", 5)

        assert sync_queue.pending_size() == 1
        sync_queue.flush()
        assert remote.committed[0]["timesSeen"] == 2

    def test_advances_existing_item(self, updater, store, make_item):
        store.add_item(make_item("r1", kind=ItemKind.RULE, knowledge_level=3, repetitions=1, interval_days=1.0))

        item = updater.record_review("u1", ItemKind.RULE, "r1", 4)

        assert item.knowledge_level == 4
        assert item.interval_days == pytest.approx(3.0)

    def test_merges_context_and_mistake(self, updater, now):
        mistake = MistakeRecord("apple", "appel", now)

        item = updater.record_review("u1", ItemKind.WORD, "w1", 2, context="at the market", mistake=mistake)

        assert item.contexts == ["at the market"]
        assert item.mistakes == [mistake]

    def test_unknown_subject(self, updater, store, sync_queue):
        with pytest.raises(KnowledgeNotFoundError):
            updater.record_review("u1", ItemKind.WORD, "missing", 4)

        assert store.items == {}
        assert sync_queue.pending_size() == 0

    @pytest.mark.parametrize("quality", [-1, 6, 2.5])
    def test_invalid_quality(self, updater, store, quality):
        with pytest.raises(InvalidQualityError):
            updater.record_review("u1", ItemKind.WORD, "w1", quality)

        assert store.items == {}

    def test_works_without_sync_queue(self, store, clock):
        store.add_catalog(CatalogEntry(id="w1", kind=ItemKind.WORD, text="apple"))

        item = KnowledgeUpdater(store, clock=clock).record_review("u1", ItemKind.WORD, "w1", 3)

        assert item.times_correct == 1
