"""FastAPI-powered HTTP API for the natural-language EBS query assistant."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from typing import Any, Literal

import uvicorn
from fastapi import BackgroundTasks, FastAPI, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ebs_query.core.config import load_settings
from ebs_query.core.dependencies import AppDependencies, build_dependencies
from ebs_query.core.logging_utils import configure_logging
from ebs_query.core.records import QueryRecord
from ebs_query.core.runner import process_question
from ebs_query.core.store import QueryStateError


LOGGER = logging.getLogger(__name__)

EBS_TABLE_ROUTES: dict[str, str] = {
    "sales-orders": "sales_orders",
    "work-orders": "work_orders",
    "invoices": "invoices",
    "inventory": "inventory_items",
}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmitQueryRequest(CamelModel):
    user_question: str = Field(..., min_length=1)


class QueryRecordResponse(CamelModel):
    id: str
    user_question: str
    generated_sql: str | None = None
    ai_interpretation: str | None = None
    result_data: str | None = None
    status: Literal["processing", "success", "error"]
    error_message: str | None = None
    execution_time_ms: int | None = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: QueryRecord) -> "QueryRecordResponse":
        return cls(
            id=record.id,
            user_question=record.user_question,
            generated_sql=record.generated_sql,
            ai_interpretation=record.ai_interpretation,
            result_data=record.result_data,
            status=record.status,
            error_message=record.error_message,
            execution_time_ms=record.execution_time_ms,
            created_at=record.created_at,
        )


class DashboardMetricsResponse(CamelModel):
    total_sales: float
    pending_orders: int
    active_work_orders: int
    overdue_invoices: int


class QueryTemplateResponse(CamelModel):
    id: str
    category: str
    title: str
    description: str
    example_query: str
    icon: str


def create_app(
    config_path: str = "configs/dev.yaml",
    *,
    dependencies: AppDependencies | None = None,
) -> FastAPI:
    if dependencies is None:
        LOGGER.info("Initialising web application with config '%s'", config_path)
        dependencies = build_dependencies(load_settings(config_path))
    store = dependencies.store

    app = FastAPI(title="EBS Query Assistant", version="0.1.0")
    app.state.dependencies = dependencies

    @app.get("/api/health")
    def healthcheck() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.get("/api/dashboard/metrics", response_model=DashboardMetricsResponse)
    def dashboard_metrics() -> DashboardMetricsResponse:
        return DashboardMetricsResponse.model_validate(store.dashboard_metrics().to_dict())

    @app.get("/api/query-templates", response_model=list[QueryTemplateResponse])
    def query_templates() -> list[QueryTemplateResponse]:
        return [
            QueryTemplateResponse.model_validate(template.to_dict())
            for template in store.query_templates()
        ]

    @app.get("/api/queries/recent", response_model=list[QueryRecordResponse])
    def recent_queries() -> list[QueryRecordResponse]:
        return [
            QueryRecordResponse.from_record(record)
            for record in store.recent_queries(dependencies.recent_limit)
        ]

    @app.get("/api/queries/history", response_model=list[QueryRecordResponse])
    def query_history() -> list[QueryRecordResponse]:
        return [QueryRecordResponse.from_record(record) for record in store.query_history()]

    @app.get("/api/queries/{query_id}", response_model=QueryRecordResponse)
    def get_query(query_id: str) -> QueryRecordResponse:
        try:
            record = store.get_query(query_id)
        except KeyError:
            LOGGER.debug("Query %s requested but not found", query_id)
            raise HTTPException(status_code=404, detail="Query not found") from None
        return QueryRecordResponse.from_record(record)

    @app.post(
        "/api/queries",
        response_model=QueryRecordResponse,
        status_code=status.HTTP_200_OK,
    )
    def submit_query(
        payload: SubmitQueryRequest,
        background_tasks: BackgroundTasks,
    ) -> QueryRecordResponse:
        record = store.create_query(payload.user_question)
        LOGGER.info(
            "Dispatching query %s question=%s",
            record.id,
            _truncate_for_log(payload.user_question),
        )
        background_tasks.add_task(_process_in_background, dependencies, record.id, payload.user_question)
        return QueryRecordResponse.from_record(record)

    @app.get("/api/ebs/{table}", response_model=list[dict[str, Any]])
    def ebs_rows(table: str) -> list[dict[str, Any]]:
        table_name = EBS_TABLE_ROUTES.get(table)
        if table_name is None:
            raise HTTPException(status_code=404, detail=f"Unknown EBS table '{table}'")
        return store.rows(table_name)

    return app


def _truncate_for_log(value: str, limit: int = 200) -> str:
    text = value.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _process_in_background(dependencies: AppDependencies, query_id: str, question: str) -> None:
    try:
        record = process_question(dependencies, query_id, question)
    except QueryStateError:
        LOGGER.exception("Query %s was completed by another task", query_id)
        return
    except Exception as exc:  # pragma: no cover - defensive
        LOGGER.exception("Query %s failed during processing", query_id)
        dependencies.store.mark_error(
            query_id,
            error_message=str(exc) or "Failed to process query",
            execution_time_ms=0,
        )
        return
    LOGGER.info("Query %s completed with status=%s", query_id, record.status)


def main() -> None:
    parser = argparse.ArgumentParser(description="Launch the EBS query assistant API")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to configuration file")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind the server")
    parser.add_argument("--port", type=int, default=5000, help="Port to bind the server")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    configure_logging(debug=args.debug)
    app = create_app(config_path=args.config)

    LOGGER.info("Starting uvicorn on %s:%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
