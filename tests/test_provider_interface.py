"""Tests for the provider registry and the OpenAI provider."""

import json

import httpx
import openai
import pytest

from agentkit.agent.provider_interface import (
    OpenAIProvider,
    is_supported_model,
    load_provider,
)
from agentkit.core.schema import (
    ModelRequest,
    UserMessage,
)
from agentkit.errors import (
    ConfigurationError,
    ProviderError,
)


def test_load_openai_provider() -> None:
    provider = load_provider("openai", api_key="sk-test")
    assert isinstance(provider, OpenAIProvider)


def test_unknown_provider() -> None:
    with pytest.raises(ConfigurationError, match="not registered"):
        load_provider("nope")


@pytest.mark.parametrize(
    "model, supported",
    [("gpt-4", True), ("gpt-4o-mini", True), ("gpt-3.5-turbo", False), ("claude-3", False)],
)
def test_supported_models(model, supported) -> None:
    assert is_supported_model(model) is supported
    assert is_supported_model(model, prefixes=["claude"]) is model.startswith("claude")


# ---------------------------------------------------------------------------
# OpenAI provider over an in-process transport
# ---------------------------------------------------------------------------
BASE_URL = "https://openai.test/v1"


def chat_completion(**overrides):
    body = {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "pong"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
    }
    body.update(overrides)
    return body


def make_provider(handler) -> OpenAIProvider:
    return OpenAIProvider(
        api_key="sk-test",
        base_url=BASE_URL,
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def ping_request(**kwargs) -> ModelRequest:
    return ModelRequest(model="gpt-4", messages=[UserMessage(content="ping")], **kwargs)


@pytest.mark.asyncio
async def test_openai_round_trip() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=chat_completion())

    response = await make_provider(handler).complete(ping_request(temperature=0.5))

    assert response.id == "chatcmpl-1"
    assert response.choices[0].message.content == "pong"
    assert response.choices[0].finish_reason == "stop"
    assert response.usage["total_tokens"] == 4

    request = seen[0]
    assert str(request.url) == f"{BASE_URL}/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-4"
    assert body["messages"] == [{"role": "user", "content": "ping"}]
    assert body["temperature"] == 0.5
    assert "tools" not in body
    assert "max_tokens" not in body


@pytest.mark.asyncio
async def test_openai_tool_calls_are_parsed() -> None:
    tool_calls = [
        {"id": "call_1", "type": "function", "function": {"name": "add", "arguments": '{"a": 1}'}}
    ]
    choices = [
        {
            "index": 0,
            "message": {"role": "assistant", "content": None, "tool_calls": tool_calls},
            "finish_reason": "tool_calls",
        }
    ]
    declaration = {"type": "function", "function": {"name": "add", "description": "", "parameters": {}}}
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=chat_completion(choices=choices))

    response = await make_provider(handler).complete(ping_request(tools=[declaration]))

    assert seen[0]["tools"] == [declaration]
    call = response.choices[0].message.tool_calls[0]
    assert (call.id, call.function.name, call.function.arguments) == ("call_1", "add", '{"a": 1}')


@pytest.mark.asyncio
async def test_openai_http_error_becomes_provider_error() -> None:
    provider = make_provider(
        lambda request: httpx.Response(500, json={"error": {"message": "upstream down", "type": "server_error"}})
    )

    with pytest.raises(ProviderError, match="Error calling OpenAI") as info:
        await provider.complete(ping_request())
    assert isinstance(info.value.__cause__, openai.OpenAIError)


@pytest.mark.asyncio
async def test_openai_malformed_body_becomes_provider_error() -> None:
    provider = make_provider(lambda request: httpx.Response(200, json=chat_completion(choices=[])))

    with pytest.raises(ProviderError, match="Malformed response"):
        await provider.complete(ping_request())
