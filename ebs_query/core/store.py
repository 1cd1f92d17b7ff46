"""Process-lifetime store for the mock dataset and query records."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from ebs_query.core.clock import Clock, system_clock
from ebs_query.core.mock_data import MockDataset
from ebs_query.core.records import QueryRecord

TABLE_NAMES: tuple[str, ...] = ("sales_orders", "work_orders", "invoices", "inventory_items")


class QueryStateError(RuntimeError):
    """Raised when a query record is completed more than once."""


@dataclass(frozen=True, slots=True)
class DashboardMetrics:
    total_sales: float
    pending_orders: int
    active_work_orders: int
    overdue_invoices: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSales": self.total_sales,
            "pendingOrders": self.pending_orders,
            "activeWorkOrders": self.active_work_orders,
            "overdueInvoices": self.overdue_invoices,
        }


@dataclass(frozen=True, slots=True)
class QueryTemplate:
    id: str
    category: str
    title: str
    description: str
    example_query: str
    icon: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "exampleQuery": self.example_query,
            "icon": self.icon,
        }


QUERY_TEMPLATES: tuple[QueryTemplate, ...] = (
    QueryTemplate(
        id="sales-last-quarter",
        category="Sales Analytics",
        title="Last Quarter Sales",
        description="View sales performance for the previous quarter",
        example_query="What are our sales figures for the last quarter?",
        icon="chart",
    ),
    QueryTemplate(
        id="delayed-work-orders",
        category="Work Orders",
        title="Delayed Work Orders",
        description="Find all work orders that are behind schedule",
        example_query="Show me all delayed work orders",
        icon="alert",
    ),
    QueryTemplate(
        id="pending-invoices",
        category="Invoice Processing",
        title="Pending Invoices",
        description="List all invoices awaiting payment",
        example_query="Show all pending invoices",
        icon="file",
    ),
    QueryTemplate(
        id="low-inventory",
        category="Inventory Status",
        title="Low Stock Items",
        description="Items below reorder level",
        example_query="Which inventory items are running low?",
        icon="package",
    ),
    QueryTemplate(
        id="top-customers",
        category="Sales Analytics",
        title="Top Customers",
        description="Customers with highest order values",
        example_query="Who are our top 5 customers by total sales?",
        icon="users",
    ),
    QueryTemplate(
        id="overdue-invoices",
        category="Invoice Processing",
        title="Overdue Invoices",
        description="Invoices past their due date",
        example_query="Show overdue invoices",
        icon="alert-circle",
    ),
)


class RecordStore:
    """Thread-safe owner of the four mock collections and the query map.

    The collections are fixed at construction. Query records are created in
    ``processing`` state and completed exactly once by the task that owns them.
    """

    def __init__(self, dataset: MockDataset, clock: Clock = system_clock) -> None:
        self.dataset = dataset
        self._clock = clock
        self._queries: dict[str, QueryRecord] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Mock dataset access
    # ------------------------------------------------------------------

    def rows(self, table_name: str) -> list[dict[str, Any]]:
        """Return fresh row dictionaries for *table_name*."""

        collections = {
            "sales_orders": self.dataset.sales_orders,
            "work_orders": self.dataset.work_orders,
            "invoices": self.dataset.invoices,
            "inventory_items": self.dataset.inventory_items,
        }
        try:
            records = collections[table_name]
        except KeyError:
            raise KeyError(f"Unknown table '{table_name}'") from None
        return [record.to_row() for record in records]

    def tables(self) -> dict[str, list[dict[str, Any]]]:
        return {name: self.rows(name) for name in TABLE_NAMES}

    def dashboard_metrics(self, now: datetime | None = None) -> DashboardMetrics:
        current = now or self._clock()
        completed = [order for order in self.dataset.sales_orders if order.status == "completed"]
        total_sales = sum((Decimal(order.total_amount) for order in completed), Decimal("0"))
        return DashboardMetrics(
            total_sales=float(total_sales),
            pending_orders=sum(1 for order in self.dataset.sales_orders if order.status == "pending"),
            active_work_orders=sum(
                1 for order in self.dataset.work_orders if order.status == "in-progress"
            ),
            overdue_invoices=sum(
                1
                for invoice in self.dataset.invoices
                if invoice.status == "pending" and invoice.due_date < current
            ),
        )

    @staticmethod
    def query_templates() -> list[QueryTemplate]:
        return list(QUERY_TEMPLATES)

    # ------------------------------------------------------------------
    # Query records
    # ------------------------------------------------------------------

    def create_query(self, user_question: str) -> QueryRecord:
        created_at = self._clock()
        with self._lock:
            query_id = str(uuid4())
            while query_id in self._queries:
                query_id = str(uuid4())
            record = QueryRecord(id=query_id, user_question=user_question, created_at=created_at)
            self._queries[query_id] = record
        return record

    def get_query(self, query_id: str) -> QueryRecord:
        with self._lock:
            record = self._queries.get(query_id)
        if record is None:
            raise KeyError(query_id)
        return record

    def mark_success(
        self,
        query_id: str,
        *,
        generated_sql: str,
        ai_interpretation: str | None,
        result_data: str,
        execution_time_ms: int,
    ) -> QueryRecord:
        return self._complete(
            query_id,
            status="success",
            generated_sql=generated_sql,
            ai_interpretation=ai_interpretation,
            result_data=result_data,
            error_message=None,
            execution_time_ms=execution_time_ms,
        )

    def mark_error(
        self,
        query_id: str,
        *,
        error_message: str,
        execution_time_ms: int,
        generated_sql: str | None = None,
        ai_interpretation: str | None = None,
    ) -> QueryRecord:
        return self._complete(
            query_id,
            status="error",
            generated_sql=generated_sql,
            ai_interpretation=ai_interpretation,
            result_data=None,
            error_message=error_message,
            execution_time_ms=execution_time_ms,
        )

    def recent_queries(self, limit: int = 5) -> list[QueryRecord]:
        return self.query_history()[: max(limit, 0)]

    def query_history(self) -> list[QueryRecord]:
        with self._lock:
            records = list(self._queries.values())
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def _complete(self, query_id: str, **changes: Any) -> QueryRecord:
        with self._lock:
            record = self._queries.get(query_id)
            if record is None:
                raise KeyError(query_id)
            if record.status != "processing":
                raise QueryStateError(
                    f"Query '{query_id}' already finished with status '{record.status}'"
                )
            updated = replace(record, **changes)
            self._queries[query_id] = updated
        return updated


