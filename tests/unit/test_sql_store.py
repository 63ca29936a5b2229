"""
Unit tests for the SQLAlchemy progress store.

Runs against in-memory SQLite; no external database needed.
"""

from datetime import UTC, timedelta

import pytest

from progress_engine.db.database import create_db_engine, init_db, make_session_factory, session_scope
from progress_engine.db.models import KnowledgeRow
from progress_engine.db.repository import SqlProgressStore
from progress_engine.knowledge.models import CatalogEntry, ItemKind, MistakeRecord
from progress_engine.knowledge.records import BookPosition, PronunciationAttempt, SessionRecord


@pytest.fixture
def sql_store():
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    return SqlProgressStore(make_session_factory(engine))


class TestKnowledgeItems:
    """Tests for item persistence."""

    def test_round_trip(self, sql_store, make_item, now):
        item = make_item(
            "w1",
            knowledge_level=3,
            times_seen=5,
            times_correct=3,
            times_incorrect=2,
            repetitions=2,
            recent_qualities=(4, 3),
            last_reviewed_at=now,
            next_review_at=now + timedelta(days=3),
            interval_days=3.0,
            ease_factor=2.36,
            contexts=["menu", "market"],
            mistakes=[MistakeRecord("apple", "appel", now, "market")],
        )

        sql_store.upsert_item(item)
        loaded = sql_store.get_item(ItemKind.WORD, "u1", "w1")

        assert loaded == item
        assert loaded.next_review_at.tzinfo is UTC

    def test_upsert_updates_in_place(self, sql_store, make_item):
        sql_store.upsert_item(make_item("w1", knowledge_level=1))
        sql_store.upsert_item(make_item("w1", knowledge_level=2))

        items = sql_store.get_all_items(ItemKind.WORD, "u1")

        assert len(items) == 1
        assert items[0].knowledge_level == 2

    def test_missing_item(self, sql_store):
        assert sql_store.get_item(ItemKind.WORD, "u1", "nope") is None

    def test_kinds_and_users_are_separate(self, sql_store, make_item):
        sql_store.upsert_item(make_item("x", kind=ItemKind.WORD))
        sql_store.upsert_item(make_item("x", kind=ItemKind.RULE))
        sql_store.upsert_item(make_item("x", user_id="u2"))

        assert len(sql_store.get_all_items(ItemKind.WORD, "u1")) == 1
        assert len(sql_store.get_all_items(ItemKind.RULE, "u1")) == 1
        assert len(sql_store.get_all_items(ItemKind.WORD, "u2")) == 1

    def test_due_items_ordered_and_limited(self, sql_store, make_item, now):
        sql_store.upsert_item(make_item("late", due_days_ago=1))
        sql_store.upsert_item(make_item("oldest", due_days_ago=9))
        sql_store.upsert_item(make_item("middle", due_days_ago=4))
        sql_store.upsert_item(make_item("future", next_review_at=now + timedelta(hours=1)))
        sql_store.upsert_item(make_item("never"))

        due = sql_store.get_due_items(ItemKind.WORD, "u1", now, limit=2)

        assert [i.subject_id for i in due] == ["oldest", "middle"]
        assert sql_store.count_due(ItemKind.WORD, "u1", now) == 3

    def test_malformed_json_columns_decode_empty(self, sql_store, make_item):
        sql_store.upsert_item(make_item("w1", contexts=["a"]))
        with session_scope(sql_store.session_factory) as session:
            row = session.get(KnowledgeRow, "word:u1:w1")
            row.contexts_json = "{broken"
            row.mistakes_json = "null"
            row.recent_qualities_json = ""

        loaded = sql_store.get_item(ItemKind.WORD, "u1", "w1")

        assert loaded.contexts == []
        assert loaded.mistakes == []
        assert loaded.recent_qualities == ()


class TestCatalog:
    def test_catalog_queries(self, sql_store):
        sql_store.upsert_catalog_entry(CatalogEntry(id="w2", kind=ItemKind.WORD, text="pear", cefr_level="A2"))
        sql_store.upsert_catalog_entry(CatalogEntry(id="w1", kind=ItemKind.WORD, text="apple", topic="food"))
        sql_store.upsert_catalog_entry(CatalogEntry(id="w1", kind=ItemKind.RULE, text="past simple"))

        assert [e.id for e in sql_store.get_catalog(ItemKind.WORD)] == ["w1", "w2"]
        assert [e.id for e in sql_store.get_catalog_by_level(ItemKind.WORD, "A2")] == ["w2"]
        assert sql_store.get_catalog_entry(ItemKind.WORD, "w1").topic == "food"
        assert sql_store.get_catalog_entry(ItemKind.RULE, "w1").text == "past simple"
        assert sql_store.get_catalog_entry(ItemKind.PHRASE, "w1") is None


class TestLearner:
    """Tests for users, sessions, pronunciation and book progress."""

    def test_user_level(self, sql_store):
        assert sql_store.get_user("u1") is None

        sql_store.upsert_user("u1", name="Sam")
        sql_store.update_user_level("u1", "A2", 4)

        profile = sql_store.get_user("u1")
        assert (profile.cefr_level, profile.cefr_sub_level) == ("A2", 4)

    def test_sessions(self, sql_store, now):
        sql_store.upsert_user("u1")
        for days_ago in (3, 0, 1):
            sql_store.add_session(
                SessionRecord(
                    id=f"s{days_ago}",
                    user_id="u1",
                    started_at=now - timedelta(days=days_ago),
                    strategies_used=["PRONUNCIATION"],
                )
            )

        recent = sql_store.get_recent_sessions("u1", 2)

        assert [s.id for s in recent] == ["s0", "s1"]
        assert recent[0].strategies_used == ["PRONUNCIATION"]
        assert sql_store.count_sessions("u1") == 3
        assert sql_store.get_session_days("u1") == [
            (now - timedelta(days=d)).date() for d in (0, 1, 3)
        ]

    def test_pronunciation_attempts_latest_in_order(self, sql_store, now):
        sql_store.upsert_user("u1")
        for i in range(5):
            sql_store.add_pronunciation_attempt(
                PronunciationAttempt(
                    id=f"p{i}",
                    user_id="u1",
                    word="think",
                    timestamp=now - timedelta(minutes=10 - i),
                    intelligibility=0.5,
                    problem_sounds=["θ"],
                )
            )

        attempts = sql_store.get_pronunciation_attempts("u1", 3)

        assert [a.id for a in attempts] == ["p2", "p3", "p4"]
        assert attempts[0].problem_sounds == ["θ"]

    def test_book_progress(self, sql_store):
        sql_store.upsert_user("u1")
        assert sql_store.get_book_progress("u1") is None

        sql_store.set_book_progress(BookPosition(user_id="u1", current_chapter=2, total_chapters=10))

        assert sql_store.get_book_progress("u1").current_chapter == 2
