"""Record types for the mock E-Business Suite dataset and query lifecycle."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

QueryStatus = Literal["processing", "success", "error"]

SALES_ORDER_STATUSES: tuple[str, ...] = ("pending", "completed", "cancelled", "processing")
SALES_REGIONS: tuple[str, ...] = ("North", "South", "East", "West")
WORK_ORDER_STATUSES: tuple[str, ...] = ("pending", "in-progress", "completed", "delayed", "cancelled")
WORK_ORDER_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")
INVOICE_STATUSES: tuple[str, ...] = ("pending", "paid", "overdue", "cancelled")


@dataclass(frozen=True, slots=True)
class SalesOrder:
    order_id: str
    order_number: str
    customer_name: str
    order_date: datetime
    total_amount: str
    status: str
    region: str | None
    sales_rep: str | None

    def to_row(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "orderNumber": self.order_number,
            "customerName": self.customer_name,
            "orderDate": self.order_date,
            "totalAmount": self.total_amount,
            "status": self.status,
            "region": self.region,
            "salesRep": self.sales_rep,
        }


@dataclass(frozen=True, slots=True)
class WorkOrder:
    work_order_id: str
    work_order_number: str
    description: str
    assigned_to: str | None
    status: str
    priority: str
    scheduled_date: datetime | None
    completion_date: datetime | None
    department: str | None

    def to_row(self) -> dict[str, Any]:
        return {
            "workOrderId": self.work_order_id,
            "workOrderNumber": self.work_order_number,
            "description": self.description,
            "assignedTo": self.assigned_to,
            "status": self.status,
            "priority": self.priority,
            "scheduledDate": self.scheduled_date,
            "completionDate": self.completion_date,
            "department": self.department,
        }


@dataclass(frozen=True, slots=True)
class Invoice:
    invoice_id: str
    invoice_number: str
    vendor_name: str
    invoice_date: datetime
    due_date: datetime
    amount: str
    status: str
    payment_terms: str | None

    def to_row(self) -> dict[str, Any]:
        return {
            "invoiceId": self.invoice_id,
            "invoiceNumber": self.invoice_number,
            "vendorName": self.vendor_name,
            "invoiceDate": self.invoice_date,
            "dueDate": self.due_date,
            "amount": self.amount,
            "status": self.status,
            "paymentTerms": self.payment_terms,
        }


@dataclass(frozen=True, slots=True)
class InventoryItem:
    item_id: str
    item_code: str
    item_name: str
    category: str | None
    quantity_on_hand: int
    unit_price: str
    reorder_level: int | None
    warehouse: str | None

    def to_row(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "itemCode": self.item_code,
            "itemName": self.item_name,
            "category": self.category,
            "quantityOnHand": self.quantity_on_hand,
            "unitPrice": self.unit_price,
            "reorderLevel": self.reorder_level,
            "warehouse": self.warehouse,
        }


@dataclass(frozen=True, slots=True)
class QueryRecord:
    """Lifecycle of one natural-language question.

    Instances are immutable; the store swaps in a new instance when the
    record moves out of ``processing``.
    """

    id: str
    user_question: str
    created_at: datetime
    status: QueryStatus = "processing"
    generated_sql: str | None = None
    ai_interpretation: str | None = None
    result_data: str | None = None
    error_message: str | None = None
    execution_time_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userQuestion": self.user_question,
            "generatedSql": self.generated_sql,
            "aiInterpretation": self.ai_interpretation,
            "resultData": self.result_data,
            "status": self.status,
            "errorMessage": self.error_message,
            "executionTimeMs": self.execution_time_ms,
            "createdAt": self.created_at.isoformat(),
        }


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_rows(rows: list[dict[str, Any]]) -> str:
    """Encode result rows as the JSON payload stored on a query record."""

    return json.dumps(rows, default=_json_default, ensure_ascii=False)


__all__ = [
    "INVOICE_STATUSES",
    "Invoice",
    "InventoryItem",
    "QueryRecord",
    "QueryStatus",
    "SALES_ORDER_STATUSES",
    "SALES_REGIONS",
    "SalesOrder",
    "WORK_ORDER_PRIORITIES",
    "WORK_ORDER_STATUSES",
    "WorkOrder",
    "serialize_rows",
]
