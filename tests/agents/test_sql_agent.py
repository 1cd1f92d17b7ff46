"""Tests for the SQL generation agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Sequence

import pytest

from ebs_query.agents.sql_agent import (
    SQLGenerationAgent,
    SQLGenerationError,
    decode_json_objects,
    is_quota_error,
)


@dataclass
class _ClientStub:
    text: str = ""
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    def generate(
        self,
        *,
        messages: Sequence[dict[str, str]],
        max_output_tokens: int | None = None,
        json_output: bool = False,
    ) -> Any:
        self.calls.append(
            {"messages": list(messages), "max_output_tokens": max_output_tokens, "json_output": json_output}
        )
        if self.error is not None:
            raise self.error
        return SimpleNamespace(output_text=self.text)


@dataclass
class _SinkStub:
    events: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    def log_event(self, query_id: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append((query_id, event, payload))


class RateLimitError(Exception):
    pass


def test_generate_parses_model_json() -> None:
    client = _ClientStub(
        text='{"sql": "SELECT * FROM invoices WHERE status = \'pending\'", '
        '"interpretation": "Pending invoices", "confidence": 0.92}'
    )
    sink = _SinkStub()
    agent = SQLGenerationAgent(llm_client=client, logger=sink, max_output_tokens=300)

    result = agent.generate(query_id="Q-1", question="Show all pending invoices")

    assert result.sql == "SELECT * FROM invoices WHERE status = 'pending'"
    assert result.interpretation == "Pending invoices"
    assert result.confidence == pytest.approx(0.92)
    assert result.origin == "llm"
    assert client.calls[0]["json_output"] is True
    assert client.calls[0]["max_output_tokens"] == 300
    assert sink.events == [("Q-1", "sql_generated", result.to_dict())]


def test_generate_accepts_fenced_json_and_defaults() -> None:
    client = _ClientStub(text='```json\n{"sql": "select * from work_orders"}\n```')
    agent = SQLGenerationAgent(llm_client=client)

    result = agent.generate(query_id="Q-2", question="work orders")

    assert result.sql == "select * from work_orders"
    assert result.interpretation == "Generated SQL query based on your question"
    assert result.confidence == pytest.approx(0.7)


def test_generate_rejects_non_select() -> None:
    agent = SQLGenerationAgent(llm_client=_ClientStub(text='{"sql": "DELETE FROM invoices"}'))

    with pytest.raises(SQLGenerationError, match="must be a SELECT statement"):
        agent.generate(query_id="Q-3", question="delete invoices")


def test_generate_wraps_model_failures() -> None:
    agent = SQLGenerationAgent(llm_client=_ClientStub(error=RuntimeError("connection reset")))

    with pytest.raises(SQLGenerationError, match="AI processing failed: connection reset"):
        agent.generate(query_id="Q-4", question="anything")


@pytest.mark.parametrize(
    "error",
    [RateLimitError("slow down"), RuntimeError("Error code: 429"), RuntimeError("You exceeded your current quota")],
)
def test_quota_errors_use_fallback(error: Exception) -> None:
    sink = _SinkStub()
    agent = SQLGenerationAgent(llm_client=_ClientStub(error=error), logger=sink)

    result = agent.generate(query_id="Q-5", question="Show me all delayed work orders")

    assert result.origin == "fallback"
    assert "status = 'delayed'" in result.sql
    assert sink.events[0][1] == "sql_fallback_used"
    assert sink.events[0][2]["reason"] == "quota"


def test_missing_client_uses_fallback() -> None:
    sink = _SinkStub()
    agent = SQLGenerationAgent(logger=sink)

    result = agent.generate(query_id="Q-6", question="Show overdue invoices")

    assert result.origin == "fallback"
    assert sink.events[0][2]["reason"] == "no_client"


def test_build_messages_includes_recent_examples() -> None:
    agent = SQLGenerationAgent()
    previous = [(f"question {index}", f"SELECT {index} FROM invoices") for index in range(5)]

    messages = agent.build_messages("newest", previous)

    system = messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "newest"}
    assert "Recent query patterns for context:" in system
    assert 'Question: "question 2"' in system
    assert 'Question: "question 3"' not in system
    assert "sales_orders" in system


def test_build_messages_without_history() -> None:
    messages = SQLGenerationAgent().build_messages("hello")

    assert "Recent query patterns" not in messages[0]["content"]


def test_decode_json_objects_skips_noise() -> None:
    assert decode_json_objects('noise {"a": 1} more [1] {"b": 2}') == [{"a": 1}, {"b": 2}]
    assert decode_json_objects("   ") == []


def test_is_quota_error() -> None:
    assert is_quota_error(RateLimitError("x"))
    assert not is_quota_error(ValueError("bad json"))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0", 0.0),
        ("0.0", 0.0),
        ("1.7", 1.0),
        ("-3", 0.0),
        ('"nan"', 0.7),
        ('"Infinity"', 0.7),
        ("true", 0.7),
        ("null", 0.7),
        ('"high"', 0.7),
    ],
)
def test_confidence_is_clamped(raw: str, expected: float) -> None:
    client = _ClientStub(text=f'{{"sql": "SELECT * FROM invoices", "confidence": {raw}}}')

    result = SQLGenerationAgent(llm_client=client).generate(query_id="Q-7", question="invoices")

    assert result.confidence == pytest.approx(expected)
