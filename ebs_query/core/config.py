"""Utilities for loading application settings from YAML configuration files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass(slots=True)
class OpenAISettings:
    api_key_env: str = "OPENAI_API_KEY"
    request_timeout_s: float = 60.0
    max_output_tokens: int = 2048


@dataclass(slots=True)
class MockDataSettings:
    seed: int | None = None
    sales_orders: int = 50
    work_orders: int = 40
    invoices: int = 35
    inventory_items: int = 30


@dataclass(slots=True)
class HistorySettings:
    context_queries: int = 5
    recent_limit: int = 5


@dataclass(slots=True)
class PathsSettings:
    query_logs_dir: str | None = None


@dataclass(slots=True)
class Settings:
    model_id: str
    openai: OpenAISettings = field(default_factory=OpenAISettings)
    mock_data: MockDataSettings = field(default_factory=MockDataSettings)
    history: HistorySettings = field(default_factory=HistorySettings)
    paths: PathsSettings | None = None


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_settings(path: str | Path) -> Settings:
    """Read configuration from *path* and return structured settings."""

    config_path = Path(path)
    raw = _load_yaml(config_path)

    openai_raw = raw.get("openai") or {}
    openai = OpenAISettings(
        api_key_env=str(openai_raw.get("api_key_env", "OPENAI_API_KEY")),
        request_timeout_s=float(openai_raw.get("request_timeout_s", 60)),
        max_output_tokens=int(openai_raw.get("max_output_tokens", 2048)),
    )

    mock_raw = raw.get("mock_data") or {}
    seed = mock_raw.get("seed")
    mock_data = MockDataSettings(
        seed=int(seed) if seed is not None else None,
        sales_orders=int(mock_raw.get("sales_orders", 50)),
        work_orders=int(mock_raw.get("work_orders", 40)),
        invoices=int(mock_raw.get("invoices", 35)),
        inventory_items=int(mock_raw.get("inventory_items", 30)),
    )

    history_raw = raw.get("history") or {}
    history = HistorySettings(
        context_queries=int(history_raw.get("context_queries", 5)),
        recent_limit=int(history_raw.get("recent_limit", 5)),
    )

    paths_raw: dict[str, Any] | None = raw.get("paths")
    paths = None
    if paths_raw:
        query_logs_dir = paths_raw.get("query_logs_dir")
        paths = PathsSettings(query_logs_dir=str(query_logs_dir) if query_logs_dir else None)

    return Settings(
        model_id=str(raw.get("model_id", "")),
        openai=openai,
        mock_data=mock_data,
        history=history,
        paths=paths,
    )
