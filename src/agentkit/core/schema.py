"""
Schema definitions for agent <-> provider <-> tool messages.

These data models serve as the contract between the tool-call loop, the model provider and the
caller.  We keep them separate from runtime logic so they can be imported anywhere without
side-effects.
"""

from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Literal,
    Optional,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

TOOL_CALLS_FINISH_REASON = "tool_calls"


class ModelConfig(BaseModel):
    """Per-model generation options.  Unset values leave the provider defaults in effect."""

    model_config = ConfigDict(frozen=True)

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    timeout: Optional[float] = Field(None, description="Request timeout in seconds")


# ---------------------------------------------------------------------------
# Conversation entries
# ---------------------------------------------------------------------------
class FunctionCall(BaseModel):
    """Function name and JSON-encoded arguments requested by the model."""

    name: str
    arguments: str = "{}"


class ToolCallRequest(BaseModel):
    """A tool invocation emitted by the provider inside an assistant message."""

    id: str
    type: str = "function"
    function: Optional[FunctionCall] = None


class SystemMessage(BaseModel):
    """Instructions for the model."""

    role: Literal["system"] = "system"
    content: str


class UserMessage(BaseModel):
    """The caller's message."""

    role: Literal["user"] = "user"
    content: str


class AssistantMessage(BaseModel):
    """A model reply, optionally carrying tool calls."""

    role: Literal["assistant"] = "assistant"
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCallRequest]] = None

    def to_provider(self) -> Dict[str, Any]:
        # content stays in the payload even when null
        payload = self.model_dump(exclude_none=True)
        payload["content"] = self.content
        return payload


class ToolMessage(BaseModel):
    """The serialized result of one tool call."""

    role: Literal["tool"] = "tool"
    content: str
    tool_call_id: str


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]


def message_to_provider(message: Message) -> Dict[str, Any]:
    """Render a conversation entry in the chat-completions wire format."""
    if isinstance(message, AssistantMessage):
        return message.to_provider()
    return message.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Provider request / response
# ---------------------------------------------------------------------------
class ModelRequest(BaseModel):
    """Everything a provider needs for a single completion call."""

    model: str
    messages: List[Message]
    tools: Optional[List[Dict[str, Any]]] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        """Return keyword arguments for ``chat.completions.create`` with unset values omitted."""
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [message_to_provider(m) for m in self.messages],
        }
        if self.tools:
            payload["tools"] = self.tools
        for key in ("temperature", "max_tokens", "top_p"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


class Choice(BaseModel):
    """One completion choice."""

    index: int = 0
    message: AssistantMessage
    finish_reason: Optional[str] = None


class ProviderResponse(BaseModel):
    """Chat completion returned by a provider."""

    id: str
    model: str
    choices: List[Choice] = Field(..., min_length=1)
    usage: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Public response
# ---------------------------------------------------------------------------
class ResponseMetadata(BaseModel):
    """Bookkeeping copied from the final provider reply."""

    id: str
    model: str
    usage: Optional[Dict[str, Any]] = None
    finish_reason: Optional[str] = None


class AgentResponse(BaseModel):
    """What ``send()`` returns to the caller."""

    content: str
    metadata: ResponseMetadata
