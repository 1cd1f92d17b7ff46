"""Shared helpers for timestamped JSONL logging."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Tuple


_FILENAME_CACHE: Dict[Tuple[str, str], Path] = {}


def make_timestamp_slug(raw: str | None = None) -> str:
    """Return a sortable timestamp slug (UTC) suitable for filenames."""

    candidate = (raw or "").strip()
    parsed: datetime | None = None
    if candidate:
        try:
            parsed = datetime.fromisoformat(candidate.removesuffix("Z"))
        except ValueError:
            parsed = None

    if parsed is None:
        parsed = datetime.now(UTC)

    return parsed.strftime("%Y%m%dT%H%M%S%f")[:-3]


def sanitize_query_id(query_id: str) -> str:
    """Sanitize *query_id* so it can be embedded in filenames."""

    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "-", query_id.strip())
    return cleaned or "query"


def resolve_log_path(base_dir: Path, query_id: str, timestamp: str | None = None) -> Path:
    """Return a cached, timestamp-prefixed path for the given query."""

    normalized_base = str(base_dir.expanduser().resolve())
    key = (normalized_base, query_id)
    if key in _FILENAME_CACHE:
        return _FILENAME_CACHE[key]

    slug = make_timestamp_slug(timestamp)
    filename = f"{slug}-{sanitize_query_id(query_id)}.jsonl"
    target = Path(normalized_base) / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    _FILENAME_CACHE[key] = target
    return target


def utc_now_iso() -> str:
    """Return the current UTC time in ISO-8601 with millisecond precision."""

    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def configure_logging(debug: bool = False) -> None:
    """Install a basic root handler unless one is already configured."""

    root_logger = logging.getLogger()
    if root_logger.handlers:
        if debug:
            root_logger.setLevel(logging.DEBUG)
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
