"""Tests for the OpenAI Responses API helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

import pytest

from ebs_query.integrations.openai_models import (
    GPTResponseClient,
    OpenAIClientFactory,
    OpenAIError,
    extract_response_text,
)


@dataclass
class _ResponsesStub:
    calls: list[dict[str, Any]] = field(default_factory=list)

    def create(self, **payload: Any) -> Any:
        self.calls.append(payload)
        return SimpleNamespace(output_text='{"sql": "SELECT 1"}')


def test_factory_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    pytest.importorskip("openai")
    monkeypatch.delenv("EBS_TEST_OPENAI_KEY", raising=False)
    factory = OpenAIClientFactory(api_key_env="EBS_TEST_OPENAI_KEY")

    with pytest.raises(OpenAIError):
        factory.create()


def test_generate_builds_responses_payload() -> None:
    responses = _ResponsesStub()
    client = GPTResponseClient(model="gpt-5", _client=SimpleNamespace(responses=responses))

    client.generate(
        messages=[{"role": "system", "content": "schema"}, {"role": "user", "content": "question"}],
        max_output_tokens=256,
        json_output=True,
    )

    payload = responses.calls[0]
    assert payload["model"] == "gpt-5"
    assert payload["instructions"] == "schema"
    assert payload["input"] == [{"role": "user", "content": "question"}]
    assert payload["max_output_tokens"] == 256
    assert payload["text"] == {"format": {"type": "json_object"}}


def test_generate_omits_optional_fields() -> None:
    responses = _ResponsesStub()
    client = GPTResponseClient(model="gpt-5", _client=SimpleNamespace(responses=responses))

    client.generate(messages=[{"content": "hi"}])

    payload = responses.calls[0]
    assert payload["input"] == [{"role": "user", "content": "hi"}]
    assert "instructions" not in payload
    assert "max_output_tokens" not in payload
    assert "text" not in payload


def test_extract_response_text_deduplicates_blocks() -> None:
    response = SimpleNamespace(
        output=[
            SimpleNamespace(content=[SimpleNamespace(text=' {"sql": "SELECT 1"} ')]),
            SimpleNamespace(content={"output_text": "second"}),
            SimpleNamespace(content=None),
        ],
        output_text='{"sql": "SELECT 1"}',
    )

    assert extract_response_text(response) == ['{"sql": "SELECT 1"}', "second"]


def test_extract_response_text_handles_empty_response() -> None:
    assert extract_response_text(SimpleNamespace()) == []
