"""Tests for the seeded mock dataset generator."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from ebs_query.core.mock_data import BASE_DATE, generate_mock_dataset
from ebs_query.core.records import (
    INVOICE_STATUSES,
    SALES_ORDER_STATUSES,
    WORK_ORDER_PRIORITIES,
    WORK_ORDER_STATUSES,
)


def test_default_collection_sizes() -> None:
    dataset = generate_mock_dataset(seed=1)

    assert len(dataset.sales_orders) == 50
    assert len(dataset.work_orders) == 40
    assert len(dataset.invoices) == 35
    assert len(dataset.inventory_items) == 30


def test_same_seed_yields_same_data() -> None:
    assert generate_mock_dataset(seed=42) == generate_mock_dataset(seed=42)
    assert generate_mock_dataset(seed=42) != generate_mock_dataset(seed=43)


def test_identifiers_follow_ebs_numbering() -> None:
    dataset = generate_mock_dataset(seed=5, sales_orders=2, work_orders=2, invoices=2, inventory_items=2)

    assert [order.order_id for order in dataset.sales_orders] == ["SO-1001", "SO-1002"]
    assert dataset.sales_orders[0].order_number == "ORD-2024-0001"
    assert dataset.work_orders[1].work_order_id == "WO-2002"
    assert dataset.invoices[0].invoice_number == "IV-2024-0001"
    assert dataset.inventory_items[1].item_code == "ITEM-0002"


def test_values_stay_within_domains() -> None:
    dataset = generate_mock_dataset(seed=11)
    year_end = datetime(2025, 1, 1, tzinfo=UTC)

    for order in dataset.sales_orders:
        assert order.status in SALES_ORDER_STATUSES
        assert BASE_DATE <= order.order_date < year_end
        assert Decimal(order.total_amount) >= Decimal("5000")

    for work_order in dataset.work_orders:
        assert work_order.status in WORK_ORDER_STATUSES
        assert work_order.priority in WORK_ORDER_PRIORITIES
        if work_order.completion_date is not None:
            assert work_order.completion_date >= work_order.scheduled_date

    for invoice in dataset.invoices:
        assert invoice.status in INVOICE_STATUSES
        assert invoice.due_date - invoice.invoice_date in (timedelta(days=30), timedelta(days=60))

    for item in dataset.inventory_items:
        assert 0 <= item.quantity_on_hand < 1000
        assert 50 <= item.reorder_level < 250


def test_rows_keep_datetime_values() -> None:
    dataset = generate_mock_dataset(seed=2, sales_orders=1, work_orders=0, invoices=0, inventory_items=0)

    row = dataset.sales_orders[0].to_row()

    assert isinstance(row["orderDate"], datetime)
    assert row["orderDate"].tzinfo is not None
