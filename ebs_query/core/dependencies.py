"""Factory helpers for constructing application dependencies from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ebs_query.agents.sql_agent import SQLGenerationAgent
from ebs_query.core.clock import Clock, system_clock
from ebs_query.core.config import Settings
from ebs_query.core.mock_data import generate_mock_dataset
from ebs_query.core.observability import JSONLQueryLogger, QueryObservationSink
from ebs_query.core.store import RecordStore
from ebs_query.integrations.mock_sql_executor import MockSQLExecutor, SQLExecutor
from ebs_query.integrations.openai_models import (
    GPTResponseClient,
    OpenAIClientFactory,
    OpenAIError,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppDependencies:
    """Collaborators shared by the web frontend, the chat CLI and the pipeline."""

    store: RecordStore
    executor: SQLExecutor
    sql_agent: SQLGenerationAgent
    query_logger: QueryObservationSink | None = None
    context_queries: int = 5
    recent_limit: int = 5


def build_dependencies(settings: Settings, *, clock: Clock = system_clock) -> AppDependencies:
    """Create dependency instances based on *settings*."""

    mock = settings.mock_data
    dataset = generate_mock_dataset(
        seed=mock.seed,
        sales_orders=mock.sales_orders,
        work_orders=mock.work_orders,
        invoices=mock.invoices,
        inventory_items=mock.inventory_items,
    )
    store = RecordStore(dataset, clock=clock)
    executor = MockSQLExecutor.from_store(store, clock=clock)

    query_logger = JSONLQueryLogger(base_dir=_resolve_query_logs_dir(settings))
    sql_agent = SQLGenerationAgent(
        llm_client=_build_response_client(settings),
        logger=query_logger,
        max_output_tokens=settings.openai.max_output_tokens,
    )

    return AppDependencies(
        store=store,
        executor=executor,
        sql_agent=sql_agent,
        query_logger=query_logger,
        context_queries=settings.history.context_queries,
        recent_limit=settings.history.recent_limit,
    )


def _resolve_query_logs_dir(settings: Settings) -> Path:
    base = (
        settings.paths.query_logs_dir
        if settings.paths and settings.paths.query_logs_dir
        else "logs/query"
    )
    path = Path(base).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


def _build_response_client(settings: Settings) -> GPTResponseClient | None:
    if not settings.model_id:
        return None
    factory = OpenAIClientFactory(
        api_key_env=settings.openai.api_key_env,
        timeout_s=settings.openai.request_timeout_s,
    )
    client = GPTResponseClient(model=settings.model_id, client_factory=factory)
    try:
        # trigger lazy init to validate configuration early
        client.client
    except OpenAIError as exc:
        LOGGER.info("Language model unavailable (%s); using keyword SQL templates", exc)
        return None
    return client
