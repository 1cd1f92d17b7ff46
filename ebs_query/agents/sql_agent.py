"""Turns natural-language questions into SQL over the mock EBS tables.

The `SQLGenerationAgent` is responsible for:
- Building a schema-aware prompt, enriched with recent question/SQL pairs.
- Calling the language model and decoding its JSON answer.
- Falling back to keyword templates when no model is configured or the API
  reports an exhausted quota.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from ebs_query.agents.fallback_sql import FallbackSQLGenerator, SQLGenerationResult
from ebs_query.core.observability import QueryEvent, QueryObservationSink
from ebs_query.integrations.openai_models import extract_response_text

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.7
MAX_CONTEXT_EXAMPLES = 3

EBS_SCHEMA_CONTEXT = """
You are an expert SQL generator for Oracle E-Business Suite (EBS) database queries.

Available Tables and Schemas:

1. sales_orders
   - order_id (VARCHAR, Primary Key)
   - order_number (VARCHAR)
   - customer_name (TEXT)
   - order_date (TIMESTAMP)
   - total_amount (DECIMAL)
   - status (VARCHAR) - values: 'pending', 'completed', 'cancelled', 'processing'
   - region (VARCHAR) - values: 'North', 'South', 'East', 'West'
   - sales_rep (TEXT)

2. work_orders
   - work_order_id (VARCHAR, Primary Key)
   - work_order_number (VARCHAR)
   - description (TEXT)
   - assigned_to (TEXT)
   - status (VARCHAR) - values: 'pending', 'in-progress', 'completed', 'delayed', 'cancelled'
   - priority (VARCHAR) - values: 'low', 'medium', 'high', 'urgent'
   - scheduled_date (TIMESTAMP)
   - completion_date (TIMESTAMP, nullable)
   - department (VARCHAR)

3. invoices
   - invoice_id (VARCHAR, Primary Key)
   - invoice_number (VARCHAR)
   - vendor_name (TEXT)
   - invoice_date (TIMESTAMP)
   - due_date (TIMESTAMP)
   - amount (DECIMAL)
   - status (VARCHAR) - values: 'pending', 'paid', 'overdue', 'cancelled'
   - payment_terms (VARCHAR)

4. inventory_items
   - item_id (VARCHAR, Primary Key)
   - item_code (VARCHAR)
   - item_name (TEXT)
   - category (VARCHAR)
   - quantity_on_hand (INTEGER)
   - unit_price (DECIMAL)
   - reorder_level (INTEGER)
   - warehouse (VARCHAR)

Rules:
- Return only SELECT queries (no INSERT, UPDATE, DELETE)
- Use appropriate WHERE clauses for filtering
- Use ORDER BY for sorting results
- Limit results to reasonable numbers (e.g., TOP 10, LIMIT 20)
- For "last quarter" use: WHERE order_date >= DATEADD(quarter, -1, GETDATE())
- For "delayed" work orders: WHERE status = 'delayed' OR (status = 'in-progress' AND scheduled_date < GETDATE())
- For "overdue" invoices: WHERE status = 'pending' AND due_date < GETDATE()
- For "low inventory": WHERE quantity_on_hand <= reorder_level
""".strip()

TASK_INSTRUCTIONS = """
Your task is to:
1. Understand the user's natural language question about Oracle EBS data
2. Generate an accurate SQL query using only the tables and rules above
3. Provide a clear, business-friendly interpretation of what the query does
4. Assess your confidence in the generated query

Return JSON format:
{
  "sql": "SELECT ... FROM ... WHERE ...",
  "interpretation": "Clear, business-friendly explanation",
  "confidence": 0.95
}
""".strip()

_QUOTA_MARKERS = ("429", "quota", "rate limit")


class SQLGenerationError(RuntimeError):
    """Raised when the language model cannot produce a usable SELECT statement."""


class ResponseClient(Protocol):
    """Minimal interface of the language-model client."""

    def generate(
        self,
        *,
        messages: Sequence[dict[str, str]],
        max_output_tokens: int | None = None,
        json_output: bool = False,
    ) -> Any:  # pragma: no cover - interface
        ...


@dataclass
class SQLGenerationAgent:
    """Coordinates prompt construction, model invocation and fallbacks."""

    llm_client: ResponseClient | None = None
    fallback: FallbackSQLGenerator = field(default_factory=FallbackSQLGenerator)
    logger: QueryObservationSink | None = None
    max_output_tokens: int = 2048

    def generate(
        self,
        *,
        query_id: str,
        question: str,
        previous: Sequence[tuple[str, str]] = (),
    ) -> SQLGenerationResult:
        """Return SQL and an interpretation for *question*."""

        if self.llm_client is None:
            return self._use_fallback(query_id, question, reason="no_client")

        messages = self.build_messages(question, previous)
        try:
            response = self.llm_client.generate(
                messages=messages,
                max_output_tokens=self.max_output_tokens,
                json_output=True,
            )
        except Exception as exc:
            if is_quota_error(exc):
                LOGGER.warning("Language model quota exhausted for query %s; using fallback", query_id)
                return self._use_fallback(query_id, question, reason="quota")
            raise SQLGenerationError(f"AI processing failed: {exc}") from exc

        result = self.parse_response(response)
        self._log_event(query_id, "sql_generated", result.to_dict())
        return result

    def build_messages(
        self, question: str, previous: Sequence[tuple[str, str]] = ()
    ) -> list[dict[str, str]]:
        context = EBS_SCHEMA_CONTEXT
        examples = [(q, sql) for q, sql in previous if sql][:MAX_CONTEXT_EXAMPLES]
        if examples:
            lines = ["", "Recent query patterns for context:"]
            for index, (past_question, past_sql) in enumerate(examples, start=1):
                lines.append(f'{index}. Question: "{past_question}"')
                lines.append(f"   SQL: {past_sql}")
            context = context + "\n" + "\n".join(lines)
        return [
            {"role": "system", "content": f"{context}\n\n{TASK_INSTRUCTIONS}"},
            {"role": "user", "content": question},
        ]

    @staticmethod
    def parse_response(response: Any) -> SQLGenerationResult:
        payload: dict[str, Any] = {}
        for text in extract_response_text(response):
            decoded = decode_json_objects(text)
            if decoded:
                payload = decoded[0]
                break

        sql = str(payload.get("sql") or "").strip()
        if not sql.upper().startswith("SELECT"):
            raise SQLGenerationError(
                "AI processing failed: Generated query must be a SELECT statement"
            )

        interpretation = payload.get("interpretation") or "Generated SQL query based on your question"
        return SQLGenerationResult(
            sql=sql,
            interpretation=str(interpretation),
            confidence=_clamp_confidence(payload.get("confidence")),
            origin="llm",
        )

    def _use_fallback(self, query_id: str, question: str, *, reason: str) -> SQLGenerationResult:
        result = self.fallback.generate(question)
        self._log_event(query_id, "sql_fallback_used", {"reason": reason, **result.to_dict()})
        return result

    def _log_event(self, query_id: str, event: QueryEvent, payload: dict[str, Any]) -> None:
        if self.logger is None:
            return
        try:
            self.logger.log_event(query_id, event, payload)
        except Exception:
            # Observability failures must not impact question handling.
            LOGGER.warning("Failed to record %s event for query %s", event, query_id, exc_info=True)


def is_quota_error(exc: BaseException) -> bool:
    if type(exc).__name__ == "RateLimitError":
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _QUOTA_MARKERS)


def decode_json_objects(text: str) -> list[dict[str, Any]]:
    """Return every JSON object embedded in *text*, tolerating code fences."""

    cleaned = text.strip()
    if not cleaned:
        return []

    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?\n", "", cleaned)
        cleaned = re.sub(r"```\s*$", "", cleaned)

    decoder = json.JSONDecoder()
    index = 0
    results: list[dict[str, Any]] = []
    length = len(cleaned)

    while index < length:
        if cleaned[index] != "{":
            index += 1
            continue
        try:
            value, offset = decoder.raw_decode(cleaned, index)
        except json.JSONDecodeError:
            index += 1
            continue
        index = offset
        if isinstance(value, dict):
            results.append(value)

    return results


def _clamp_confidence(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        return DEFAULT_CONFIDENCE
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(value):
        return DEFAULT_CONFIDENCE
    return min(max(value, 0.0), 1.0)
