"""Tests for recognizing WHERE, ORDER BY and LIMIT/TOP clauses."""

from __future__ import annotations

import pytest

from ebs_query.integrations.sql_clauses import (
    DateBeforeNow,
    DelayedOrOverdue,
    FieldEquals,
    LimitSpec,
    OrderedWithinLastQuarter,
    QuantityAtOrBelowReorder,
    QueryPlan,
    SortSpec,
    extract_where_clause,
    mask_literals,
    parse_limit,
    parse_order_by,
    parse_query_plan,
    parse_where_clause,
    resolve_column,
)
from ebs_query.integrations.sql_errors import LimitParseError


def test_resolve_column_maps_known_names() -> None:
    assert resolve_column("quantity_on_hand") == "quantityOnHand"
    assert resolve_column("DUE_DATE") == "dueDate"
    assert resolve_column("status") == "status"
    assert resolve_column("mystery") == "mystery"


def test_extract_where_clause_stops_at_trailing_clauses() -> None:
    statement = "SELECT * FROM invoices WHERE status = 'paid' ORDER BY amount DESC LIMIT 5"

    assert extract_where_clause(statement) == "status = 'paid'"
    assert extract_where_clause("SELECT * FROM invoices where status = 'paid';") == "status = 'paid'"
    assert extract_where_clause("SELECT * FROM invoices") is None


def test_parse_where_clause_combines_conjuncts() -> None:
    predicates = parse_where_clause(
        "SELECT * FROM invoices WHERE status = 'pending' AND due_date < GETDATE()"
    )

    assert predicates == [FieldEquals(field="status", value="pending"), DateBeforeNow(field="dueDate")]


@pytest.mark.parametrize("keyword", ["GETDATE()", "CURRENT_DATE", "CURRENT_TIMESTAMP", "NOW()"])
def test_parse_where_clause_accepts_now_keywords(keyword: str) -> None:
    predicates = parse_where_clause(f"SELECT * FROM work_orders WHERE scheduled_date < {keyword}")

    assert predicates == [DateBeforeNow(field="scheduledDate")]


def test_parse_where_clause_keeps_hyphenated_values() -> None:
    predicates = parse_where_clause("SELECT * FROM work_orders WHERE status = 'in-progress'")

    assert predicates == [FieldEquals(field="status", value="in-progress")]


def test_parse_where_clause_recognizes_stock_and_quarter() -> None:
    assert parse_where_clause(
        "SELECT * FROM inventory_items WHERE quantity_on_hand <= reorder_level"
    ) == [QuantityAtOrBelowReorder()]
    assert parse_where_clause(
        "SELECT * FROM sales_orders WHERE order_date >= DATEADD(quarter, -1, GETDATE())"
    ) == [OrderedWithinLastQuarter()]


def test_delayed_disjunction_becomes_single_predicate() -> None:
    predicates = parse_where_clause(
        "SELECT * FROM work_orders WHERE (status = 'delayed' OR "
        "(status = 'in-progress' AND scheduled_date < GETDATE())) ORDER BY scheduled_date"
    )

    assert predicates == [DelayedOrOverdue()]


def test_delayed_disjunction_combines_with_other_filters() -> None:
    predicates = parse_where_clause(
        "SELECT * FROM work_orders WHERE priority = 'urgent' AND "
        "(status = 'delayed' OR (status = 'in-progress' AND scheduled_date < GETDATE()))"
    )

    assert predicates == [FieldEquals(field="priority", value="urgent"), DelayedOrOverdue()]


def test_other_disjunctions_are_ignored() -> None:
    predicates = parse_where_clause(
        "SELECT * FROM invoices WHERE status = 'paid' OR status = 'pending'"
    )

    assert predicates == []


def test_separator_inside_quotes_is_not_split() -> None:
    predicates = parse_where_clause(
        "SELECT * FROM sales_orders WHERE region = 'North AND South'"
    )

    assert predicates == [FieldEquals(field="region", value="North AND South")]


def test_parse_order_by_direction() -> None:
    assert parse_order_by("SELECT * FROM invoices ORDER BY due_date DESC") == SortSpec(
        column="dueDate", descending=True
    )
    assert parse_order_by("SELECT * FROM invoices order by amount") == SortSpec(column="amount")
    assert parse_order_by("SELECT * FROM invoices") is None


def test_parse_limit_prefers_limit_over_top() -> None:
    assert parse_limit("SELECT TOP 3 * FROM invoices LIMIT 7") == LimitSpec(count=7, clause="LIMIT")
    assert parse_limit("SELECT TOP (4) * FROM invoices") == LimitSpec(count=4, clause="TOP")
    assert parse_limit("SELECT * FROM invoices LIMIT 20;") == LimitSpec(count=20)
    assert parse_limit("SELECT * FROM invoices") is None


@pytest.mark.parametrize("statement", ["SELECT * FROM invoices LIMIT x", "SELECT TOP -2 * FROM invoices"])
def test_parse_limit_rejects_malformed_values(statement: str) -> None:
    with pytest.raises(LimitParseError):
        parse_limit(statement)


def test_parse_query_plan_collects_every_clause() -> None:
    plan = parse_query_plan(
        "SELECT * FROM inventory_items WHERE quantity_on_hand <= reorder_level "
        "ORDER BY quantity_on_hand ASC LIMIT 20"
    )

    assert plan == QueryPlan(
        predicates=(QuantityAtOrBelowReorder(),),
        sort=SortSpec(column="quantityOnHand"),
        limit=LimitSpec(count=20),
    )


def test_clause_keywords_inside_literals_are_ignored() -> None:
    statement = (
        "SELECT * FROM inventory_items WHERE item_name = 'Limit 10 order by top' "
        "AND quantity_on_hand <= reorder_level ORDER BY unit_price DESC"
    )

    assert extract_where_clause(statement) == (
        "item_name = 'Limit 10 order by top' AND quantity_on_hand <= reorder_level"
    )
    assert parse_limit(statement) is None
    assert parse_order_by(statement) == SortSpec(column="unitPrice", descending=True)


def test_mask_literals_keeps_offsets() -> None:
    statement = "WHERE region = 'North' LIMIT 2"

    masked = mask_literals(statement)

    assert masked == "WHERE region = '_____' LIMIT 2"
    assert len(masked) == len(statement)
