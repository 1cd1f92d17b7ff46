"""Question pipeline: generate SQL, execute it and complete the query record."""

from __future__ import annotations

import logging
import time
from typing import Any

from ebs_query.agents.sql_agent import SQLGenerationError
from ebs_query.core.dependencies import AppDependencies
from ebs_query.core.observability import QueryEvent
from ebs_query.core.records import QueryRecord, serialize_rows
from ebs_query.integrations.sql_errors import MockSQLError

LOGGER = logging.getLogger(__name__)


def process_question(dependencies: AppDependencies, query_id: str, question: str) -> QueryRecord:
    """Answer *question* and move the record *query_id* out of ``processing``.

    Generation failures and execution failures both end in ``error``; the
    generated SQL is kept on the record when execution is what failed.
    """

    started = time.perf_counter()
    store = dependencies.store
    _log_event(dependencies, query_id, "question_received", {"question": question})

    previous = [
        (record.user_question, record.generated_sql)
        for record in store.recent_queries(dependencies.context_queries)
        if record.generated_sql
    ]

    try:
        generation = dependencies.sql_agent.generate(
            query_id=query_id,
            question=question,
            previous=previous,
        )
    except SQLGenerationError as exc:
        LOGGER.error("SQL generation failed for query %s: %s", query_id, exc)
        _log_event(dependencies, query_id, "query_failed", {"stage": "generation", "error": str(exc)})
        return store.mark_error(
            query_id,
            error_message=str(exc),
            execution_time_ms=_elapsed_ms(started),
        )

    try:
        rows = dependencies.executor.execute(generation.sql)
    except MockSQLError as exc:
        LOGGER.warning("SQL execution failed for query %s: %s", query_id, exc)
        message = f"Failed to execute query: {exc}"
        _log_event(
            dependencies,
            query_id,
            "query_failed",
            {"stage": "execution", "sql": generation.sql, "error": message},
        )
        return store.mark_error(
            query_id,
            error_message=message,
            execution_time_ms=_elapsed_ms(started),
            generated_sql=generation.sql,
            ai_interpretation=generation.interpretation,
        )

    elapsed = _elapsed_ms(started)
    _log_event(
        dependencies,
        query_id,
        "query_executed",
        {"sql": generation.sql, "row_count": len(rows), "execution_time_ms": elapsed},
    )
    LOGGER.info("Query %s returned %d row(s) in %d ms", query_id, len(rows), elapsed)
    return store.mark_success(
        query_id,
        generated_sql=generation.sql,
        ai_interpretation=generation.interpretation,
        result_data=serialize_rows(rows),
        execution_time_ms=elapsed,
    )


def submit_question(dependencies: AppDependencies, question: str) -> QueryRecord:
    """Create a record for *question* and process it synchronously."""

    record = dependencies.store.create_query(question)
    return process_question(dependencies, record.id, question)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _log_event(
    dependencies: AppDependencies, query_id: str, event: QueryEvent, payload: dict[str, Any]
) -> None:
    sink = dependencies.query_logger
    if sink is None:
        return
    try:
        sink.log_event(query_id, event, payload)
    except Exception:
        # Observability failures must not impact question handling.
        LOGGER.warning("Failed to record %s event for query %s", event, query_id, exc_info=True)
