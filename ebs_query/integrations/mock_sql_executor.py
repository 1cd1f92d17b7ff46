"""In-memory executor for SQL generated against the mock EBS tables.

The executor never parses SQL. It picks a table by substring match, turns the
statement into a `QueryPlan` (see `sql_clauses`) and applies the plan to a copy
of the table rows in a fixed order: filter, sort, limit.

Supported statements look like::

    SELECT * FROM work_orders
    WHERE status = 'delayed' OR (status = 'in-progress' AND scheduled_date < GETDATE())
    ORDER BY scheduled_date ASC LIMIT 20

Date predicates compare against ``now``, which comes from the injected clock
unless passed explicitly.
"""

from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol, Sequence

from ebs_query.core.clock import Clock, system_clock
from ebs_query.integrations.sql_clauses import (
    DateBeforeNow,
    DelayedOrOverdue,
    FieldEquals,
    LimitSpec,
    OrderedWithinLastQuarter,
    Predicate,
    QuantityAtOrBelowReorder,
    SortSpec,
    parse_query_plan,
)
from ebs_query.integrations.sql_errors import ExecutionError, UnknownTable, UnsupportedStatement

if TYPE_CHECKING:
    from ebs_query.core.store import RecordStore

LOGGER = logging.getLogger(__name__)

# Checked in order; the first table name found in the statement wins.
SUPPORTED_TABLES: tuple[str, ...] = ("sales_orders", "work_orders", "invoices", "inventory_items")

Row = dict[str, Any]

_ISO_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class SQLExecutor(Protocol):
    """Runs a generated statement and returns row dictionaries."""

    def execute(
        self, statement: str, *, now: datetime | None = None
    ) -> list[dict[str, Any]]:  # pragma: no cover - interface
        ...


@dataclass(slots=True)
class MockSQLExecutor:
    """Filters, sorts and limits in-memory tables according to generated SQL."""

    tables: Mapping[str, Sequence[Mapping[str, Any]]] = field(default_factory=dict)
    clock: Clock = system_clock

    @classmethod
    def from_store(cls, store: "RecordStore", clock: Clock | None = None) -> "MockSQLExecutor":
        return cls(tables=store.tables(), clock=clock or system_clock)

    def execute(self, statement: str, *, now: datetime | None = None) -> list[Row]:
        """Return the rows selected by *statement*.

        Raises `UnsupportedStatement` for anything but SELECT, `UnknownTable`
        when no supported table is referenced and `ExecutionError` when a
        pipeline stage fails.
        """

        if not statement.strip().lower().startswith("select"):
            raise UnsupportedStatement()

        table = select_table(statement)
        rows = [dict(row) for row in self.tables.get(table, ())]
        moment = _as_utc(now if now is not None else self.clock())

        try:
            plan = parse_query_plan(statement)
            rows = apply_where(rows, plan.predicates, moment)
            rows = apply_order_by(rows, plan.sort)
            rows = apply_limit(rows, plan.limit)
        except Exception as exc:
            raise ExecutionError(table, exc) from exc

        LOGGER.debug(
            "Executed statement on %s: %d predicate(s), sort=%s, limit=%s, rows=%d",
            table,
            len(plan.predicates),
            plan.sort,
            plan.limit,
            len(rows),
        )
        return rows


def select_table(statement: str) -> str:
    lowered = statement.lower()
    for table in SUPPORTED_TABLES:
        if table in lowered:
            return table
    raise UnknownTable(SUPPORTED_TABLES)


# ---------------------------------------------------------------------------
# Filter stage
# ---------------------------------------------------------------------------


def apply_where(rows: Iterable[Row], predicates: Sequence[Predicate], now: datetime) -> list[Row]:
    if not predicates:
        return list(rows)
    return [row for row in rows if all(matches(row, predicate, now) for predicate in predicates)]


def matches(row: Mapping[str, Any], predicate: Predicate, now: datetime) -> bool:
    """Evaluate one predicate; absent fields never exclude a row from date or stock checks."""

    if isinstance(predicate, FieldEquals):
        return row.get(predicate.field) == predicate.value

    if isinstance(predicate, DateBeforeNow):
        value = row.get(predicate.field)
        if value is None:
            return True
        moment = to_datetime(value)
        return moment is None or moment < now

    if isinstance(predicate, QuantityAtOrBelowReorder):
        quantity = row.get(predicate.quantity_field)
        reorder = row.get(predicate.reorder_field)
        if quantity is None or reorder is None:
            return True
        return quantity <= reorder

    if isinstance(predicate, OrderedWithinLastQuarter):
        value = row.get(predicate.field)
        if value is None:
            return True
        moment = to_datetime(value)
        return moment is None or moment >= months_before(now, predicate.months)

    if isinstance(predicate, DelayedOrOverdue):
        status = row.get(predicate.status_field)
        if status == "delayed":
            return True
        if status != "in-progress":
            return False
        scheduled = to_datetime(row.get(predicate.schedule_field))
        return scheduled is not None and scheduled < now

    raise TypeError(f"Unsupported predicate {predicate!r}")


def months_before(moment: datetime, months: int) -> datetime:
    """Shift *moment* back by calendar months, clamping to the month's last day."""

    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month_zero = divmod(month_index, 12)
    month = month_zero + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


# ---------------------------------------------------------------------------
# Sort stage
# ---------------------------------------------------------------------------


def apply_order_by(rows: Iterable[Row], sort: SortSpec | None) -> list[Row]:
    """Stable sort on one column; missing values go last in either direction."""

    items = list(rows)
    if sort is None:
        return items

    def compare(left: Row, right: Row) -> int:
        a = left.get(sort.column)
        b = right.get(sort.column)
        if a is None and b is None:
            return 0
        if a is None:
            return 1
        if b is None:
            return -1
        result = compare_values(a, b)
        return -result if sort.descending else result

    return sorted(items, key=cmp_to_key(compare))


def compare_values(a: Any, b: Any) -> int:
    """Compare as instants, then as numbers, then as case-folded text."""

    a_date, b_date = to_datetime(a), to_datetime(b)
    if a_date is not None and b_date is not None:
        return _sign(a_date, b_date)

    a_number, b_number = to_number(a), to_number(b)
    if a_number is not None and b_number is not None:
        return _sign(a_number, b_number)

    a_text, b_text = str(a), str(b)
    folded = _sign(a_text.casefold(), b_text.casefold())
    return folded or _sign(a_text, b_text)


def _as_utc(moment: datetime) -> datetime:
    """Read a naive instant as UTC, the same way row values are read."""

    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, str) and _ISO_DATE_PREFIX_RE.match(value.strip()):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        return _as_utc(parsed)
    return None


def to_number(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def _sign(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


# ---------------------------------------------------------------------------
# Limit stage
# ---------------------------------------------------------------------------


def apply_limit(rows: Iterable[Row], limit: LimitSpec | None) -> list[Row]:
    items = list(rows)
    if limit is None:
        return items
    return items[: limit.count]


__all__ = [
    "MockSQLExecutor",
    "SQLExecutor",
    "SUPPORTED_TABLES",
    "apply_limit",
    "apply_order_by",
    "apply_where",
    "compare_values",
    "matches",
    "months_before",
    "select_table",
    "to_datetime",
    "to_number",
]
