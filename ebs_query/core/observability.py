"""JSONL-backed observability helpers for the question pipeline.

Every question gets one file. Each line is one lifecycle event:

- ``question_received``: the question text.
- ``sql_generated`` / ``sql_fallback_used``: the SQL, interpretation,
  confidence and origin (plus the fallback reason).
- ``query_executed``: the SQL, row count and elapsed milliseconds.
- ``query_failed``: the failing stage (``generation`` or ``execution``) and
  the error message.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Protocol, get_args

from ebs_query.core.logging_utils import resolve_log_path, utc_now_iso

QueryEvent = Literal[
    "question_received",
    "sql_generated",
    "sql_fallback_used",
    "query_executed",
    "query_failed",
]

QUERY_EVENTS: tuple[str, ...] = get_args(QueryEvent)


class UnknownQueryEvent(ValueError):
    """Raised when a sink is asked to record an event outside `QUERY_EVENTS`."""


class QueryObservationSink(Protocol):
    """Records lifecycle events emitted while answering a question."""

    def log_event(self, query_id: str, event: QueryEvent, payload: dict[str, Any]) -> None:  # pragma: no cover - interface
        ...


def build_query_event(query_id: str, event: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Return the JSON line for *event*; ``None`` payload values and reserved keys are dropped."""

    if event not in QUERY_EVENTS:
        raise UnknownQueryEvent(f"Unknown query event '{event}'")
    record: dict[str, Any] = {
        "event": event,
        "query_id": query_id,
        "timestamp": utc_now_iso(),
    }
    record.update(
        (key, value) for key, value in payload.items() if value is not None and key not in record
    )
    return record


@dataclass(slots=True)
class JSONLQueryLogger(QueryObservationSink):
    """Appends query events to ``<timestamp>-<query-id>.jsonl`` under *base_dir*."""

    base_dir: Path

    def log_event(self, query_id: str, event: QueryEvent, payload: dict[str, Any]) -> None:  # type: ignore[override]
        record = build_query_event(query_id, event, payload)
        target = resolve_log_path(self.base_dir, query_id, timestamp=record["timestamp"])
        with target.open("a", encoding="utf-8") as handle:
            json.dump(record, handle, ensure_ascii=False, default=str)
            handle.write("\n")
