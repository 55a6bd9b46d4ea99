"""Shared fixtures: a scripted model provider and an isolated settings object."""

import itertools
import json
from typing import (
    Any,
    Dict,
    List,
)

import pytest

from agentkit.agent.provider_interface import ModelProvider
from agentkit.config import settings
from agentkit.core.schema import (
    ModelRequest,
    ProviderResponse,
)

_ids = itertools.count(1)


def completion(
    content: str | None = None,
    finish_reason: str = "stop",
    tool_calls: List[Dict[str, Any]] | None = None,
) -> ProviderResponse:
    """Build a chat completion the way the OpenAI API returns it."""
    return ProviderResponse.model_validate(
        {
            "id": f"chatcmpl-{next(_ids)}",
            "model": "gpt-4",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content, "tool_calls": tool_calls},
                    "finish_reason": finish_reason,
                }
            ],
            "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
        }
    )


def tool_call(call_id: str, name: str, arguments: Any) -> Dict[str, Any]:
    """A tool-call entry; dict arguments are JSON-encoded."""
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


class StubProvider(ModelProvider):
    """Returns scripted responses in order and records every request."""

    name = "stub"

    def __init__(self, *responses: ProviderResponse):
        self._responses = list(responses)
        self.requests: List[ModelRequest] = []

    async def complete(self, request: ModelRequest) -> ProviderResponse:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError("provider called more times than scripted")
        return self._responses.pop(0)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep tests away from the real home directory and environment."""
    monkeypatch.setattr(settings, "CONFIG_DIR", tmp_path / ".agentage")
    monkeypatch.setattr(settings, "AGENTAGE_REGISTRY_URL", None)
    monkeypatch.setattr(settings, "AGENTAGE_AUTH_TOKEN", None)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "DEV_PANEL", False)
    monkeypatch.setattr(settings, "MAX_TOOL_ITERATIONS", 10)
    yield settings
