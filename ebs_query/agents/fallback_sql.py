"""Keyword-based SQL templates used when the language model is unavailable."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal


@dataclass(slots=True)
class SQLGenerationResult:
    sql: str
    interpretation: str
    confidence: float
    origin: Literal["llm", "fallback"] = "llm"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sql": self.sql,
            "interpretation": self.interpretation,
            "confidence": self.confidence,
            "origin": self.origin,
        }


@dataclass(frozen=True, slots=True)
class FallbackRule:
    keywords: tuple[str, ...]
    sql: str
    interpretation: str
    confidence: float


FALLBACK_RULES: tuple[FallbackRule, ...] = (
    FallbackRule(
        keywords=("pending", "sales"),
        sql="SELECT * FROM sales_orders WHERE status = 'pending' ORDER BY order_date DESC LIMIT 20",
        interpretation=(
            "Showing all pending sales orders, ordered by date (newest first), limited to 20 results"
        ),
        confidence=0.85,
    ),
    FallbackRule(
        keywords=("delayed", "work"),
        sql="SELECT * FROM work_orders WHERE status = 'delayed' ORDER BY scheduled_date ASC LIMIT 20",
        interpretation=(
            "Showing all delayed work orders, ordered by scheduled date (oldest first),"
            " limited to 20 results"
        ),
        confidence=0.85,
    ),
    FallbackRule(
        keywords=("overdue", "invoice"),
        sql=(
            "SELECT * FROM invoices WHERE status = 'pending' AND due_date < CURRENT_TIMESTAMP"
            " ORDER BY due_date ASC LIMIT 20"
        ),
        interpretation=(
            "Showing all overdue invoices (pending invoices past their due date), ordered by"
            " due date (oldest first), limited to 20 results"
        ),
        confidence=0.85,
    ),
    FallbackRule(
        keywords=("low", "inventory"),
        sql=(
            "SELECT * FROM inventory_items WHERE quantity_on_hand <= reorder_level"
            " ORDER BY quantity_on_hand ASC LIMIT 20"
        ),
        interpretation=(
            "Showing all inventory items below reorder level, ordered by quantity (lowest first),"
            " limited to 20 results"
        ),
        confidence=0.85,
    ),
    FallbackRule(
        keywords=("sales",),
        sql="SELECT * FROM sales_orders ORDER BY order_date DESC LIMIT 20",
        interpretation="Showing recent sales orders, ordered by date (newest first), limited to 20 results",
        confidence=0.7,
    ),
    FallbackRule(
        keywords=("work",),
        sql="SELECT * FROM work_orders ORDER BY scheduled_date DESC LIMIT 20",
        interpretation=(
            "Showing recent work orders, ordered by scheduled date (newest first), limited to 20 results"
        ),
        confidence=0.7,
    ),
    FallbackRule(
        keywords=("invoice",),
        sql="SELECT * FROM invoices ORDER BY invoice_date DESC LIMIT 20",
        interpretation="Showing recent invoices, ordered by date (newest first), limited to 20 results",
        confidence=0.7,
    ),
    FallbackRule(
        keywords=("inventory",),
        sql="SELECT * FROM inventory_items ORDER BY quantity_on_hand ASC LIMIT 20",
        interpretation=(
            "Showing inventory items, ordered by quantity (lowest first), limited to 20 results"
        ),
        confidence=0.7,
    ),
)

DEFAULT_RULE = FallbackRule(
    keywords=(),
    sql="SELECT * FROM sales_orders ORDER BY order_date DESC LIMIT 10",
    interpretation="Showing recent sales orders as a default query",
    confidence=0.5,
)


@dataclass(slots=True)
class FallbackSQLGenerator:
    """Maps question keywords onto canned statements, first matching rule wins."""

    rules: tuple[FallbackRule, ...] = FALLBACK_RULES
    default: FallbackRule = DEFAULT_RULE

    def generate(self, question: str) -> SQLGenerationResult:
        lowered = question.lower()
        rule = next(
            (rule for rule in self.rules if all(keyword in lowered for keyword in rule.keywords)),
            self.default,
        )
        return SQLGenerationResult(
            sql=rule.sql,
            interpretation=rule.interpretation,
            confidence=rule.confidence,
            origin="fallback",
        )
