"""Shared OpenAI client utilities for SQL generation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Sequence


class OpenAIError(RuntimeError):
    """Raised when the OpenAI client cannot be initialised or invoked."""


def _import_openai() -> Any:
    try:
        from openai import OpenAI  # type: ignore
    except ModuleNotFoundError as exc:  # pragma: no cover - import guard
        raise OpenAIError(
            "openai package is required. Install openai>=1.0 to enable SQL generation."
        ) from exc
    return OpenAI


@dataclass(slots=True)
class OpenAIClientFactory:
    """Creates OpenAI client instances with shared configuration."""

    api_key_env: str = "OPENAI_API_KEY"
    timeout_s: float | None = None

    def create(self) -> Any:
        OpenAI = _import_openai()
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise OpenAIError(
                f"Environment variable '{self.api_key_env}' must be set for SQL generation"
            )
        if self.timeout_s is None:
            return OpenAI(api_key=api_key)
        return OpenAI(api_key=api_key, timeout=self.timeout_s)


@dataclass(slots=True)
class GPTResponseClient:
    """Thin wrapper around the OpenAI Responses API."""

    model: str
    client_factory: OpenAIClientFactory = field(default_factory=OpenAIClientFactory)
    _client: Any | None = None

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self.client_factory.create()
        return self._client

    def generate(
        self,
        *,
        messages: Sequence[dict[str, str]],
        max_output_tokens: int | None = None,
        json_output: bool = False,
    ) -> Any:
        """Send *messages* to the Responses API.

        System messages are joined into ``instructions``; the remaining turns
        become the ``input`` list.
        """

        instructions = [
            message.get("content", "") for message in messages if message.get("role") == "system"
        ]
        turns = [
            {"role": message.get("role") or "user", "content": message.get("content", "")}
            for message in messages
            if message.get("role") != "system"
        ]
        payload: dict[str, Any] = {"model": self.model, "input": turns}
        if instructions:
            payload["instructions"] = "\n\n".join(instructions)
        if max_output_tokens is not None:
            payload["max_output_tokens"] = max_output_tokens
        if json_output:
            payload["text"] = {"format": {"type": "json_object"}}
        return self.client.responses.create(**payload)


def extract_response_text(response: Any) -> list[str]:
    """Collect the distinct text blocks carried by a Responses API result."""

    seen: set[str] = set()
    texts: list[str] = []

    def remember(text: Any) -> None:
        if not isinstance(text, str):
            return
        normalized = text.strip()
        if normalized and normalized not in seen:
            seen.add(normalized)
            texts.append(normalized)

    for item in getattr(response, "output", None) or []:
        content = getattr(item, "content", None)
        if isinstance(content, list):
            for block in content:
                remember(getattr(block, "text", None))
        elif isinstance(content, dict):
            remember(content.get("text") or content.get("output_text"))
        elif content is not None:
            remember(getattr(content, "text", None))

    for attr in ("output_text", "text"):
        raw = getattr(response, attr, None)
        if isinstance(raw, (list, tuple)):
            for value in raw:
                remember(value)
        else:
            remember(raw)
    return texts
