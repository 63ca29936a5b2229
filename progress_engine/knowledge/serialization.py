"""
JSON encoding for auxiliary knowledge fields.

Contexts, mistakes and grade history are stored as JSON text. They are not
needed for scheduling correctness, so decoding is fail-soft: malformed or
empty payloads resolve to an empty collection instead of raising.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from progress_engine.knowledge.models import KnowledgeItem, MistakeRecord


def _load_list(raw: str | None, field_name: str) -> list[Any]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.debug("Ignoring malformed {} payload: {}", field_name, exc)
        return []
    if not isinstance(value, list):
        logger.debug("Ignoring non-list {} payload", field_name)
        return []
    return value


def decode_string_list(raw: str | None, field_name: str = "string list") -> list[str]:
    """Decode a JSON list of strings; non-string entries are dropped."""
    return [v for v in _load_list(raw, field_name) if isinstance(v, str)]


def decode_contexts(raw: str | None) -> list[str]:
    return decode_string_list(raw, "contexts")


def decode_qualities(raw: str | None) -> tuple[int, ...]:
    values = _load_list(raw, "quality history")
    return tuple(v for v in values if isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 5)


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def decode_mistakes(raw: str | None) -> list[MistakeRecord]:
    """Decode mistake records, skipping entries that lack required fields."""
    records = []
    for entry in _load_list(raw, "mistakes"):
        if not isinstance(entry, dict):
            continue
        timestamp = _parse_timestamp(entry.get("timestamp"))
        expected = entry.get("expected")
        actual = entry.get("actual")
        if timestamp is None or not isinstance(expected, str) or not isinstance(actual, str):
            continue
        records.append(
            MistakeRecord(
                expected=expected,
                actual=actual,
                timestamp=timestamp,
                context=str(entry.get("context") or ""),
            )
        )
    return records


def encode_strings(values: list[str]) -> str:
    return json.dumps(list(values), ensure_ascii=False)


def encode_qualities(values: tuple[int, ...]) -> str:
    return json.dumps(list(values))


def encode_mistakes(mistakes: list[MistakeRecord]) -> str:
    return json.dumps(
        [
            {
                "expected": m.expected,
                "actual": m.actual,
                "timestamp": m.timestamp.isoformat(),
                "context": m.context,
            }
            for m in mistakes
        ],
        ensure_ascii=False,
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def to_sync_payload(item: KnowledgeItem) -> dict[str, Any]:
    """
    Build the remote document body for a knowledge item.

    The remote store merges by document key, so replaying the same payload
    is harmless.
    """
    return {
        "id": item.id,
        "userId": item.user_id,
        "subjectId": item.subject_id,
        "kind": item.kind.value,
        "knowledgeLevel": item.knowledge_level,
        "timesSeen": item.times_seen,
        "timesCorrect": item.times_correct,
        "timesIncorrect": item.times_incorrect,
        "repetitions": item.repetitions,
        "recentQualities": list(item.recent_qualities),
        "lastReviewedAt": _iso(item.last_reviewed_at),
        "nextReviewAt": _iso(item.next_review_at),
        "intervalDays": item.interval_days,
        "easeFactor": item.ease_factor,
        "contexts": list(item.contexts),
        "mistakes": json.loads(encode_mistakes(item.mistakes)),
        "updatedAt": _iso(item.updated_at),
    }
