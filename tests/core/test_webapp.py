"""Tests for the FastAPI frontend."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from ebs_query.agents.sql_agent import SQLGenerationAgent
from ebs_query.core.clock import FixedClock
from ebs_query.core.dependencies import AppDependencies
from ebs_query.core.mock_data import generate_mock_dataset
from ebs_query.core.store import RecordStore
from ebs_query.core.webapp import create_app
from ebs_query.integrations.mock_sql_executor import MockSQLExecutor

NOW = datetime(2024, 6, 15, tzinfo=UTC)


@pytest.fixture()
def dependencies() -> AppDependencies:
    clock = FixedClock(NOW)
    store = RecordStore(generate_mock_dataset(seed=13), clock=clock)
    return AppDependencies(
        store=store,
        executor=MockSQLExecutor.from_store(store, clock=clock),
        sql_agent=SQLGenerationAgent(),
    )


@pytest.fixture()
def client(dependencies: AppDependencies) -> TestClient:
    return TestClient(create_app(dependencies=dependencies))


def test_submit_query_returns_processing_record(client: TestClient) -> None:
    response = client.post("/api/queries", json={"userQuestion": "Show me all delayed work orders"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "processing"
    assert payload["userQuestion"] == "Show me all delayed work orders"
    assert payload["id"]


def test_submitted_query_completes_in_background(client: TestClient) -> None:
    created = client.post("/api/queries", json={"userQuestion": "Show me all delayed work orders"}).json()

    response = client.get(f"/api/queries/{created['id']}")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "success"
    assert payload["generatedSql"].startswith("SELECT * FROM work_orders")
    assert payload["executionTimeMs"] >= 0
    rows = json.loads(payload["resultData"])
    assert all(row["status"] == "delayed" for row in rows)


def test_submit_query_validates_question(client: TestClient) -> None:
    assert client.post("/api/queries", json={"userQuestion": ""}).status_code == 422
    assert client.post("/api/queries", json={}).status_code == 422


def test_unknown_query_returns_404(client: TestClient) -> None:
    response = client.get("/api/queries/does-not-exist")

    assert response.status_code == 404
    assert response.json()["detail"] == "Query not found"


def test_recent_and_history_endpoints(client: TestClient) -> None:
    for question in ("Show all pending invoices", "Show overdue invoices"):
        client.post("/api/queries", json={"userQuestion": question})

    recent = client.get("/api/queries/recent").json()
    history = client.get("/api/queries/history").json()

    assert len(recent) == 2
    assert {item["userQuestion"] for item in history} == {
        "Show all pending invoices",
        "Show overdue invoices",
    }


def test_dashboard_metrics(client: TestClient, dependencies: AppDependencies) -> None:
    payload = client.get("/api/dashboard/metrics").json()

    expected = dependencies.store.dashboard_metrics()
    assert payload["pendingOrders"] == expected.pending_orders
    assert payload["activeWorkOrders"] == expected.active_work_orders
    assert payload["overdueInvoices"] == expected.overdue_invoices
    assert payload["totalSales"] == pytest.approx(expected.total_sales)


def test_query_templates(client: TestClient) -> None:
    payload = client.get("/api/query-templates").json()

    assert len(payload) == 6
    assert payload[0]["exampleQuery"] == "What are our sales figures for the last quarter?"


def test_ebs_table_routes(client: TestClient) -> None:
    inventory = client.get("/api/ebs/inventory")
    unknown = client.get("/api/ebs/customers")

    assert inventory.status_code == 200
    assert len(inventory.json()) == 30
    assert inventory.json()[0]["itemCode"] == "ITEM-0001"
    assert unknown.status_code == 404


def test_create_app_from_config(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        f"""
model_id: ''
mock_data:
  seed: 1
  sales_orders: 3
paths:
  query_logs_dir: {tmp_path / 'logs' / 'query'}
""",
        encoding="utf-8",
    )

    with TestClient(create_app(config_path=str(config))) as client:
        response = client.get("/api/ebs/sales-orders")

    assert response.status_code == 200
    assert len(response.json()) == 3
