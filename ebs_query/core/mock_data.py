"""Seeded generator for the synthetic E-Business Suite dataset."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from ebs_query.core.records import (
    INVOICE_STATUSES,
    SALES_ORDER_STATUSES,
    SALES_REGIONS,
    WORK_ORDER_PRIORITIES,
    WORK_ORDER_STATUSES,
    InventoryItem,
    Invoice,
    SalesOrder,
    WorkOrder,
)

BASE_DATE = datetime(2024, 1, 1, tzinfo=UTC)

CUSTOMERS = (
    "Acme Corporation",
    "TechFlow Industries",
    "Global Solutions Inc",
    "Summit Enterprises",
    "Pinnacle Systems",
    "Vertex Group",
    "Horizon Technologies",
    "Meridian Corp",
    "Atlas Industries",
    "Zenith Solutions",
)
SALES_REPS = ("John Smith", "Sarah Johnson", "Mike Davis", "Emily Chen", "Robert Wilson")
DEPARTMENTS = ("Manufacturing", "Maintenance", "Quality Control", "Production", "Assembly")
ASSIGNEES = ("Team Alpha", "Team Beta", "Team Gamma", "Team Delta", "Team Epsilon")
VENDORS = (
    "Office Supplies Co",
    "Industrial Parts Ltd",
    "Tech Equipment Inc",
    "Building Materials Corp",
    "Energy Solutions",
    "Logistics Partners",
    "Manufacturing Tools Ltd",
    "Safety Equipment Co",
    "IT Services Inc",
)
PAYMENT_TERMS = ("Net 30", "Net 60", "Net 90", "Due on Receipt", "2/10 Net 30")
CATEGORIES = ("Raw Materials", "Finished Goods", "Components", "Tools", "Supplies")
WAREHOUSES = ("Warehouse A", "Warehouse B", "Warehouse C", "Distribution Center")


@dataclass(slots=True)
class MockDataset:
    sales_orders: tuple[SalesOrder, ...]
    work_orders: tuple[WorkOrder, ...]
    invoices: tuple[Invoice, ...]
    inventory_items: tuple[InventoryItem, ...]


def _days(rng: random.Random, span: int) -> timedelta:
    return timedelta(seconds=rng.random() * span * 24 * 60 * 60)


def _money(rng: random.Random, low: float, spread: float) -> str:
    return f"{rng.random() * spread + low:.2f}"


def generate_sales_orders(rng: random.Random, count: int) -> tuple[SalesOrder, ...]:
    return tuple(
        SalesOrder(
            order_id=f"SO-{1000 + i}",
            order_number=f"ORD-2024-{i:04d}",
            customer_name=rng.choice(CUSTOMERS),
            order_date=BASE_DATE + _days(rng, 365),
            total_amount=_money(rng, 5000, 50000),
            status=rng.choice(SALES_ORDER_STATUSES),
            region=rng.choice(SALES_REGIONS),
            sales_rep=rng.choice(SALES_REPS),
        )
        for i in range(1, count + 1)
    )


def generate_work_orders(rng: random.Random, count: int) -> tuple[WorkOrder, ...]:
    orders: list[WorkOrder] = []
    for i in range(1, count + 1):
        scheduled = BASE_DATE + _days(rng, 180)
        completed = scheduled + _days(rng, 30) if rng.random() > 0.5 else None
        orders.append(
            WorkOrder(
                work_order_id=f"WO-{2000 + i}",
                work_order_number=f"WRK-2024-{i:04d}",
                description=f"Work order for {rng.choice(DEPARTMENTS)} operations",
                assigned_to=rng.choice(ASSIGNEES),
                status=rng.choice(WORK_ORDER_STATUSES),
                priority=rng.choice(WORK_ORDER_PRIORITIES),
                scheduled_date=scheduled,
                completion_date=completed,
                department=rng.choice(DEPARTMENTS),
            )
        )
    return tuple(orders)


def generate_invoices(rng: random.Random, count: int) -> tuple[Invoice, ...]:
    invoices: list[Invoice] = []
    for i in range(1, count + 1):
        invoice_date = BASE_DATE + _days(rng, 300)
        term_days = 30 if rng.random() > 0.5 else 60
        invoices.append(
            Invoice(
                invoice_id=f"INV-{3000 + i}",
                invoice_number=f"IV-2024-{i:04d}",
                vendor_name=rng.choice(VENDORS),
                invoice_date=invoice_date,
                due_date=invoice_date + timedelta(days=term_days),
                amount=_money(rng, 1000, 25000),
                status=rng.choice(INVOICE_STATUSES),
                payment_terms=rng.choice(PAYMENT_TERMS),
            )
        )
    return tuple(invoices)


def generate_inventory_items(rng: random.Random, count: int) -> tuple[InventoryItem, ...]:
    return tuple(
        InventoryItem(
            item_id=f"ITM-{4000 + i}",
            item_code=f"ITEM-{i:04d}",
            item_name=f"Inventory Item {i}",
            category=rng.choice(CATEGORIES),
            quantity_on_hand=rng.randrange(1000),
            unit_price=_money(rng, 10, 500),
            reorder_level=rng.randrange(50, 250),
            warehouse=rng.choice(WAREHOUSES),
        )
        for i in range(1, count + 1)
    )


def generate_mock_dataset(
    *,
    seed: int | None = None,
    sales_orders: int = 50,
    work_orders: int = 40,
    invoices: int = 35,
    inventory_items: int = 30,
) -> MockDataset:
    """Build the four collections; the same *seed* yields the same data."""

    rng = random.Random(seed)
    return MockDataset(
        sales_orders=generate_sales_orders(rng, sales_orders),
        work_orders=generate_work_orders(rng, work_orders),
        invoices=generate_invoices(rng, invoices),
        inventory_items=generate_inventory_items(rng, inventory_items),
    )
