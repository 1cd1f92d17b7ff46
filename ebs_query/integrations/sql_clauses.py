"""Recognizes the fixed clause vocabulary emitted by the SQL generator.

Generated statements are not parsed as SQL. Instead the WHERE, ORDER BY and
LIMIT/TOP segments are matched against a small catalog of known shapes and
turned into a `QueryPlan` made of the variants below:

- `FieldEquals`: ``status|priority|region = '<value>'``
- `DateBeforeNow`: ``due_date|scheduled_date < GETDATE()`` (also
  ``CURRENT_DATE``, ``CURRENT_TIMESTAMP`` and ``NOW``)
- `QuantityAtOrBelowReorder`: ``quantity_on_hand <= reorder_level``
- `OrderedWithinLastQuarter`: ``order_date >= DATEADD(quarter, -1, ...)``
- `DelayedOrOverdue`: ``status = 'delayed' OR ...``
- `SortSpec` and `LimitSpec` for the trailing clauses.

Text that matches none of the shapes is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Union

from ebs_query.integrations.sql_errors import LimitParseError

COLUMN_NAME_MAP: dict[str, str] = {
    "order_id": "orderId",
    "order_number": "orderNumber",
    "customer_name": "customerName",
    "order_date": "orderDate",
    "total_amount": "totalAmount",
    "sales_rep": "salesRep",
    "work_order_id": "workOrderId",
    "work_order_number": "workOrderNumber",
    "assigned_to": "assignedTo",
    "scheduled_date": "scheduledDate",
    "completion_date": "completionDate",
    "invoice_id": "invoiceId",
    "invoice_number": "invoiceNumber",
    "vendor_name": "vendorName",
    "invoice_date": "invoiceDate",
    "due_date": "dueDate",
    "payment_terms": "paymentTerms",
    "item_id": "itemId",
    "item_code": "itemCode",
    "item_name": "itemName",
    "quantity_on_hand": "quantityOnHand",
    "unit_price": "unitPrice",
    "reorder_level": "reorderLevel",
}


def resolve_column(token: str) -> str:
    """Map a snake_case SQL column to its row field; unknown names pass through."""

    return COLUMN_NAME_MAP.get(token.lower(), token)


@dataclass(frozen=True, slots=True)
class FieldEquals:
    field: str
    value: str


@dataclass(frozen=True, slots=True)
class DateBeforeNow:
    field: str


@dataclass(frozen=True, slots=True)
class QuantityAtOrBelowReorder:
    quantity_field: str = "quantityOnHand"
    reorder_field: str = "reorderLevel"


@dataclass(frozen=True, slots=True)
class OrderedWithinLastQuarter:
    field: str = "orderDate"
    months: int = 3


@dataclass(frozen=True, slots=True)
class DelayedOrOverdue:
    """``status = 'delayed'`` or an in-progress order already past schedule."""

    status_field: str = "status"
    schedule_field: str = "scheduledDate"


Predicate = Union[
    FieldEquals,
    DateBeforeNow,
    QuantityAtOrBelowReorder,
    OrderedWithinLastQuarter,
    DelayedOrOverdue,
]


@dataclass(frozen=True, slots=True)
class SortSpec:
    column: str
    descending: bool = False


@dataclass(frozen=True, slots=True)
class LimitSpec:
    count: int
    clause: Literal["LIMIT", "TOP"] = "LIMIT"


@dataclass(frozen=True, slots=True)
class QueryPlan:
    predicates: tuple[Predicate, ...] = ()
    sort: SortSpec | None = None
    limit: LimitSpec | None = None


_FLAGS = re.IGNORECASE | re.DOTALL

_WHERE_RE = re.compile(
    r"\bWHERE\s+(?P<clause>.+?)(?=\bORDER\s+BY\b|\bLIMIT\b|\bTOP\b|$)",
    _FLAGS,
)
_ORDER_BY_RE = re.compile(
    r"\bORDER\s+BY\s+(?P<column>\w+)(?:\s+(?P<direction>\w+))?",
    _FLAGS,
)
_LIMIT_RE = re.compile(r"\bLIMIT\s+(?P<value>[^\s;,)]+)", _FLAGS)
_TOP_RE = re.compile(r"\bSELECT\s+TOP\s*\(?\s*(?P<value>[^\s;,)]+)", _FLAGS)
_NON_NEGATIVE_INT_RE = re.compile(r"\d+", re.ASCII)

_EQUALITY_RE = re.compile(
    r"\b(?P<column>status|priority|region)\s*=\s*['\"](?P<value>[^'\"]+)['\"]",
    _FLAGS,
)
_BEFORE_NOW_RE = re.compile(
    r"\b(?P<column>due_date|scheduled_date)\s*<\s*"
    r"(?:GETDATE|CURRENT_DATE|CURRENT_TIMESTAMP|NOW)\b",
    _FLAGS,
)
_LOW_STOCK_RE = re.compile(r"\bquantity_on_hand\s*<=\s*reorder_level\b", _FLAGS)
_LAST_QUARTER_RE = re.compile(
    r"\border_date\s*>=\s*DATEADD\s*\(\s*quarter\s*,\s*-1\b",
    _FLAGS,
)
_DELAYED_RE = re.compile(r"status\s*=\s*['\"]delayed['\"]", _FLAGS)


def parse_query_plan(statement: str) -> QueryPlan:
    """Extract the recognized predicates, sort and limit from *statement*."""

    return QueryPlan(
        predicates=tuple(parse_where_clause(statement)),
        sort=parse_order_by(statement),
        limit=parse_limit(statement),
    )


def extract_where_clause(statement: str) -> str | None:
    match = _WHERE_RE.search(mask_literals(statement))
    if not match:
        return None
    clause = statement[match.start("clause") : match.end("clause")]
    clause = clause.strip().rstrip(";").strip()
    return clause or None


def parse_where_clause(statement: str) -> list[Predicate]:
    clause = extract_where_clause(statement)
    if clause is None:
        return []
    return _parse_condition(clause)


def parse_order_by(statement: str) -> SortSpec | None:
    match = _ORDER_BY_RE.search(mask_literals(statement))
    if not match:
        return None
    direction = (match.group("direction") or "ASC").upper()
    return SortSpec(column=resolve_column(match.group("column")), descending=direction == "DESC")


def parse_limit(statement: str) -> LimitSpec | None:
    """Return the row cap from ``LIMIT n``, falling back to ``SELECT TOP n``."""

    masked = mask_literals(statement)
    for clause, pattern in (("LIMIT", _LIMIT_RE), ("TOP", _TOP_RE)):
        match = pattern.search(masked)
        if match is None:
            continue
        raw_value = statement[match.start("value") : match.end("value")]
        if not _NON_NEGATIVE_INT_RE.fullmatch(raw_value):
            raise LimitParseError(clause, raw_value)
        return LimitSpec(count=int(raw_value), clause=clause)  # type: ignore[arg-type]
    return None


def mask_literals(statement: str) -> str:
    """Blank out the inside of quoted literals, keeping offsets and quote marks."""

    chars = list(statement)
    quote: str | None = None
    for index, char in enumerate(statement):
        if quote is not None:
            if char == quote:
                quote = None
            else:
                chars[index] = "_"
        elif char in "'\"":
            quote = char
    return "".join(chars)


def _parse_condition(text: str) -> list[Predicate]:
    condition = _strip_enclosing_parens(text)
    if not condition:
        return []

    disjuncts = _split_top_level(condition, "OR")
    if len(disjuncts) > 1:
        # Only the delayed/overdue disjunction is understood; other ORs filter nothing.
        if _DELAYED_RE.fullmatch(_strip_enclosing_parens(disjuncts[0])):
            return [DelayedOrOverdue()]
        return []

    conjuncts = _split_top_level(condition, "AND")
    if len(conjuncts) > 1:
        predicates: list[Predicate] = []
        for conjunct in conjuncts:
            predicates.extend(_parse_condition(conjunct))
        return predicates

    return _match_term(condition)


def _match_term(term: str) -> list[Predicate]:
    predicates: list[Predicate] = []
    for match in _EQUALITY_RE.finditer(term):
        predicates.append(
            FieldEquals(field=resolve_column(match.group("column")), value=match.group("value"))
        )
    for match in _BEFORE_NOW_RE.finditer(term):
        predicates.append(DateBeforeNow(field=resolve_column(match.group("column"))))
    if _LOW_STOCK_RE.search(term):
        predicates.append(QuantityAtOrBelowReorder())
    if _LAST_QUARTER_RE.search(term):
        predicates.append(OrderedWithinLastQuarter())
    return predicates


def _split_top_level(text: str, keyword: str) -> list[str]:
    """Split *text* on *keyword* occurrences outside quotes and parentheses."""

    separator = re.compile(rf"\s+{keyword}\s+", re.IGNORECASE)
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    start = 0
    index = 0
    while index < len(text):
        char = text[index]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif depth == 0:
            match = separator.match(text, index)
            if match:
                parts.append(text[start:index])
                start = index = match.end()
                continue
        index += 1
    parts.append(text[start:])
    return [part.strip() for part in parts if part.strip()]


def _strip_enclosing_parens(text: str) -> str:
    stripped = text.strip()
    while stripped.startswith("(") and _closing_paren_index(stripped) == len(stripped) - 1:
        stripped = stripped[1:-1].strip()
    return stripped


def _closing_paren_index(text: str) -> int | None:
    depth = 0
    quote: str | None = None
    for index, char in enumerate(text):
        if quote is not None:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return None


__all__ = [
    "COLUMN_NAME_MAP",
    "DateBeforeNow",
    "DelayedOrOverdue",
    "FieldEquals",
    "LimitSpec",
    "OrderedWithinLastQuarter",
    "Predicate",
    "QuantityAtOrBelowReorder",
    "QueryPlan",
    "SortSpec",
    "extract_where_clause",
    "mask_literals",
    "parse_limit",
    "parse_order_by",
    "parse_query_plan",
    "parse_where_clause",
    "resolve_column",
]
