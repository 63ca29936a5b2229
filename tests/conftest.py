"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import requests

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from progress_engine.clock import FrozenClock  # noqa: E402
from progress_engine.knowledge.models import CatalogEntry, ItemKind, KnowledgeItem, item_key  # noqa: E402
from progress_engine.knowledge.records import PronunciationAttempt, SessionRecord, UserProfile  # noqa: E402

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Test doubles
# ========================================


class InMemoryStore:
    """Dict-backed progress store for unit tests."""

    def __init__(self):
        self.items: dict[tuple[ItemKind, str, str], KnowledgeItem] = {}
        self.catalog: dict[tuple[ItemKind, str], CatalogEntry] = {}
        self.users: dict[str, UserProfile] = {}
        self.sessions: list[SessionRecord] = []
        self.attempts: list[PronunciationAttempt] = []
        self.books = {}
        self.level_updates: list[tuple[str, str, int]] = []

    # Seeding
    def add_item(self, item: KnowledgeItem) -> KnowledgeItem:
        self.items[(item.kind, item.user_id, item.subject_id)] = item
        return item

    def add_catalog(self, entry: CatalogEntry) -> CatalogEntry:
        self.catalog[(entry.kind, entry.id)] = entry
        return entry

    # Knowledge
    def get_item(self, kind, user_id, subject_id):
        return self.items.get((kind, user_id, subject_id))

    def get_all_items(self, kind, user_id):
        found = [i for (k, u, _), i in self.items.items() if k == kind and u == user_id]
        return sorted(found, key=lambda i: i.subject_id)

    def upsert_item(self, item):
        self.add_item(item)

    def get_due_items(self, kind, user_id, now, limit):
        due = [i for i in self.get_all_items(kind, user_id) if i.needs_review(now)]
        return sorted(due, key=lambda i: i.next_review_at)[:limit]

    def count_due(self, kind, user_id, now):
        return sum(1 for i in self.get_all_items(kind, user_id) if i.needs_review(now))

    def get_catalog(self, kind):
        return sorted((e for (k, _), e in self.catalog.items() if k == kind), key=lambda e: e.id)

    def get_catalog_by_level(self, kind, cefr_level):
        return [e for e in self.get_catalog(kind) if e.cefr_level == cefr_level]

    def get_catalog_entry(self, kind, subject_id):
        return self.catalog.get((kind, subject_id))

    # Learner
    def get_user(self, user_id):
        return self.users.get(user_id)

    def update_user_level(self, user_id, cefr_level, sub_level):
        self.level_updates.append((user_id, cefr_level, sub_level))
        self.users[user_id] = UserProfile(id=user_id, cefr_level=cefr_level, cefr_sub_level=sub_level)

    def get_recent_sessions(self, user_id, limit):
        mine = [s for s in self.sessions if s.user_id == user_id]
        return sorted(mine, key=lambda s: s.started_at, reverse=True)[:limit]

    def count_sessions(self, user_id):
        return sum(1 for s in self.sessions if s.user_id == user_id)

    def get_session_days(self, user_id):
        return sorted({s.started_at.date() for s in self.sessions if s.user_id == user_id}, reverse=True)

    def get_pronunciation_attempts(self, user_id, limit):
        mine = sorted((a for a in self.attempts if a.user_id == user_id), key=lambda a: a.timestamp)
        return mine[-limit:] if limit else []

    def get_book_progress(self, user_id):
        return self.books.get(user_id)


class FakeRemote:
    """Records batch commits; can fail on a given call."""

    def __init__(self, fail_on_call: int | None = None, reject: bool = False):
        self.calls: list[tuple[str, list[dict], float]] = []
        self.fail_on_call = fail_on_call
        self.reject = reject
        self.before_commit = None

    def commit_batch(self, user_id, entries, timeout):
        self.calls.append((user_id, list(entries), timeout))
        if self.before_commit is not None:
            self.before_commit()
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise requests.ConnectionError("remote unavailable")
        return not self.reject

    @property
    def committed(self) -> list[dict]:
        return [entry for _, entries, _ in self.calls for entry in entries]


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Clock pinned to a Monday morning."""
    return FrozenClock(NOW)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def make_item():
    """Factory for knowledge items with sensible defaults."""

    def _make(subject_id="w1", kind=ItemKind.WORD, user_id="u1", due_days_ago=None, **fields):
        if due_days_ago is not None:
            fields.setdefault("next_review_at", NOW - timedelta(days=due_days_ago))
        fields.setdefault("created_at", NOW - timedelta(days=30))
        fields.setdefault("updated_at", NOW - timedelta(days=30))
        return KnowledgeItem(
            id=item_key(kind, user_id, subject_id),
            user_id=user_id,
            subject_id=subject_id,
            kind=kind,
            **fields,
        )

    return _make


@pytest.fixture
def make_attempt():
    """Factory for pronunciation attempts with uniform sub-scores."""
    counter = iter(range(1, 10_000))

    def _make(score, sounds=(), word="think", user_id="u1", minutes_ago=0, stress_correct=False):
        return PronunciationAttempt(
            id=f"p{next(counter)}",
            user_id=user_id,
            word=word,
            timestamp=NOW - timedelta(minutes=minutes_ago),
            intelligibility=score,
            segmental_accuracy=score,
            stress_correct=stress_correct,
            intonation=score,
            fluency=score,
            problem_sounds=list(sounds),
        )

    return _make


@pytest.fixture
def remote_factory():
    """The FakeRemote class, for tests that need a failing remote."""
    return FakeRemote
