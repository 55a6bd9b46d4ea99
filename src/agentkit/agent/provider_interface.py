"""
Model provider interface for AgentKit.

This module is the only place that *directly* calls an LLM.  Everything else (tool-call loop,
tools, CLI) stays model-agnostic and talks to a :class:`ModelProvider`.

Out of the box we ship the OpenAI chat-completions provider.  Additional providers can be added
by subclassing :class:`ModelProvider` and registering via :func:`register_provider`.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Sequence,
    Type,
)

from pydantic import ValidationError

from agentkit.config import settings
from agentkit.core.schema import (
    ModelRequest,
    ProviderResponse,
)
from agentkit.errors import (
    ConfigurationError,
    ProviderError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_PROVIDER_REGISTRY: Dict[str, Type["ModelProvider"]] = {}


def register_provider(name: str) -> Callable:
    """Decorator to register a provider class under *name*."""

    def wrapper(cls: Type["ModelProvider"]) -> Type["ModelProvider"]:
        _PROVIDER_REGISTRY[name] = cls
        return cls

    return wrapper


def load_provider(name: str | None = None, **kwargs: Any) -> "ModelProvider":
    """
    Factory that returns an instantiated provider.

    Fallback order:
    1. *name* arg
    2. ``settings.PROVIDER`` env option
    3. default: ``"openai"``

    Keyword arguments are forwarded to the provider constructor.
    """

    target = name or getattr(settings, "PROVIDER", "openai")
    cls = _PROVIDER_REGISTRY.get(target.lower())
    if cls is None:
        raise ConfigurationError(f"Provider '{target}' is not registered.")
    return cls(**kwargs)


def is_supported_model(model_name: str, prefixes: Sequence[str] | None = None) -> bool:
    """Return True if *model_name* starts with one of the supported prefixes."""
    if prefixes is None:
        prefixes = settings.SUPPORTED_MODEL_PREFIXES
    return any(model_name.startswith(prefix) for prefix in prefixes)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class ModelProvider(ABC):
    """Abstract provider that turns a :class:`ModelRequest` into a :class:`ProviderResponse`."""

    name: ClassVar[str] = ""

    @abstractmethod
    async def complete(self, request: ModelRequest) -> ProviderResponse:
        """Issue one completion call.  Failures raise :class:`ProviderError`."""


# ---------------------------------------------------------------------------
# Concrete providers
# ---------------------------------------------------------------------------
@register_provider("openai")
class OpenAIProvider(ModelProvider):
    """OpenAI chat-completions provider with pydantic validation of the reply."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        http_client: Any = None,
    ):
        """
        Parameters
        ----------
        api_key:
            OpenAI API key.
        base_url:
            API base URL (default: ``settings.OPENAI_BASE_URL`` or the OpenAI default).
        timeout, max_retries:
            Forwarded to ``openai.AsyncOpenAI`` when given.
        http_client:
            An ``httpx.AsyncClient`` to send requests with.
        """
        import openai  # pylint: disable=import-outside-toplevel

        client_kwargs: Dict[str, Any] = {"api_key": api_key}
        if base_url or settings.OPENAI_BASE_URL:
            client_kwargs["base_url"] = base_url or settings.OPENAI_BASE_URL
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        if max_retries is not None:
            client_kwargs["max_retries"] = max_retries
        if http_client is not None:
            client_kwargs["http_client"] = http_client
        self._client = openai.AsyncOpenAI(**client_kwargs)

    async def complete(self, request: ModelRequest) -> ProviderResponse:
        import openai  # pylint: disable=import-outside-toplevel

        payload = request.to_payload()
        logger.debug(
            "OpenAI request: model=%s messages=%d tools=%d",
            payload["model"],
            len(payload["messages"]),
            len(payload.get("tools", [])),
        )
        try:
            completion = await self._client.chat.completions.create(**payload)
        except openai.OpenAIError as e:
            logger.error("OpenAI provider error: %s", str(e))
            raise ProviderError(f"Error calling OpenAI: {e}") from e

        try:
            return ProviderResponse.model_validate(completion.model_dump())
        except ValidationError as e:
            logger.error("Malformed OpenAI response: %s", e)
            raise ProviderError(f"Malformed response from OpenAI: {e}") from e
