"""
Tool-call orchestration loop for AgentKit.

One ``send()`` call owns one conversation:

    [system?, user, assistant(tool_calls), tool, tool, ..., assistant(tool_calls), tool, ...]

The loop keeps asking the provider for a completion while the reply finishes with
``"tool_calls"``; each requested tool runs in order and its result is appended with the matching
``tool_call_id``.  The first reply with any other finish reason becomes the response.
"""

from __future__ import annotations

import logging
from typing import (
    List,
    Sequence,
)

from agentkit.agent.devpanel import (
    DevPanel,
    get_dev_panel,
)
from agentkit.agent.provider_interface import (
    ModelProvider,
    is_supported_model,
    load_provider,
)
from agentkit.agent.tool_executor import run_tool_call
from agentkit.config import settings
from agentkit.core.agent_config import AgentConfig
from agentkit.core.schema import (
    TOOL_CALLS_FINISH_REASON,
    AgentResponse,
    AssistantMessage,
    Choice,
    Message,
    ModelRequest,
    ProviderResponse,
    ResponseMetadata,
    SystemMessage,
    UserMessage,
)
from agentkit.errors import (
    AgentKitError,
    MissingApiKeyError,
    TooManyToolIterationsError,
    UnsupportedModelError,
)
from agentkit.tools import to_openai_tool

logger = logging.getLogger(__name__)

API_KEY_NAME = "OPENAI_API_KEY"


# ---------------------------------------------------------------------------
# Request builder
# ---------------------------------------------------------------------------
def initial_conversation(config: AgentConfig, message: str) -> List[Message]:
    """Instructions (if any) followed by the user message."""
    conversation: List[Message] = []
    if config.instructions:
        conversation.append(SystemMessage(content=config.instructions))
    conversation.append(UserMessage(content=message))
    return conversation


def build_request(config: AgentConfig, conversation: Sequence[Message]) -> ModelRequest:
    """Assemble a provider request from the agent configuration and the conversation so far."""
    options = config.options
    return ModelRequest(
        model=config.model,
        messages=list(conversation),
        tools=[to_openai_tool(t) for t in config.tools] or None,
        temperature=options.temperature if options else None,
        max_tokens=options.max_tokens if options else None,
        top_p=options.top_p if options else None,
    )


# ---------------------------------------------------------------------------
# Response assembler
# ---------------------------------------------------------------------------
def assemble_response(response: ProviderResponse) -> AgentResponse:
    """Package the final provider reply for the caller."""
    choice = response.choices[0]
    return AgentResponse(
        content=choice.message.content or "",
        metadata=ResponseMetadata(
            id=response.id,
            model=response.model,
            usage=response.usage,
            finish_reason=choice.finish_reason,
        ),
    )


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------
def _wants_tools(choice: Choice) -> bool:
    return choice.finish_reason == TOOL_CALLS_FINISH_REASON and bool(choice.message.tool_calls)


def check_preconditions(config: AgentConfig) -> str:
    """
    Validate the configuration before any request is made.

    Returns
    -------
    str
        The API key to use.

    Raises
    ------
    UnsupportedModelError
        If the model name is not supported.
    MissingApiKeyError
        If no ``OPENAI_API_KEY`` entry is configured.
    """
    if not is_supported_model(config.model):
        raise UnsupportedModelError(config.model)
    api_key = config.config.get(API_KEY_NAME)
    if not api_key:
        raise MissingApiKeyError(API_KEY_NAME)
    return api_key


async def send(
    config: AgentConfig,
    message: str,
    *,
    provider: ModelProvider | None = None,
    max_tool_iterations: int | None = None,
    devpanel: DevPanel | None = None,
) -> AgentResponse:
    """
    Send *message* to the model and satisfy its tool calls until it produces an answer.

    Parameters
    ----------
    config:
        The agent configuration; it is only read.
    message:
        The user message.
    provider:
        Provider to call.  Defaults to ``load_provider()`` built from the agent's API key.
    max_tool_iterations:
        Maximum number of tool rounds before giving up (default: ``settings.MAX_TOOL_ITERATIONS``).
    devpanel:
        Event recorder (default: the process-wide panel).

    Raises
    ------
    AgentKitError
        Any configuration, tool, provider or iteration error.  Nothing is retried.
    """
    panel = devpanel or get_dev_panel()
    limit = settings.MAX_TOOL_ITERATIONS if max_tool_iterations is None else max_tool_iterations

    try:
        api_key = check_preconditions(config)
        if provider is None:
            timeout = config.options.timeout if config.options else None
            provider = load_provider(api_key=api_key, timeout=timeout)

        panel.log(
            "config",
            {
                "name": config.name,
                "model": config.model,
                "tools": [t.name for t in config.tools],
            },
        )
        panel.log("message", message)

        conversation = initial_conversation(config, message)
        response = await provider.complete(build_request(config, conversation))
        choice = response.choices[0]

        iterations = 0
        while _wants_tools(choice):
            if iterations >= limit:
                raise TooManyToolIterationsError(limit)
            iterations += 1

            tool_calls = choice.message.tool_calls or []
            logger.info(
                "Model requested %d tool call(s): %s",
                len(tool_calls),
                [call.function.name for call in tool_calls if call.function],
            )
            conversation.append(
                AssistantMessage(content=choice.message.content, tool_calls=tool_calls)
            )

            for call in tool_calls:
                if call.type != "function" or call.function is None:
                    logger.warning("Skipping unsupported tool call type '%s'", call.type)
                    continue
                panel.log(
                    "tool_call",
                    {"id": call.id, "name": call.function.name, "arguments": call.function.arguments},
                )
                conversation.append(await run_tool_call(config.tools, call))

            response = await provider.complete(build_request(config, conversation))
            choice = response.choices[0]

        result = assemble_response(response)
        panel.log("response", result.model_dump())
        return result
    except AgentKitError as exc:
        panel.log("error", str(exc))
        raise
