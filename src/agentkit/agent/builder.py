"""
Builder-style facade over :class:`AgentConfig`.

    assistant = (
        agent("assistant")
        .model("gpt-4", ModelConfig(temperature=0.2))
        .instructions("Be terse")
        .tools([add])
        .config({"OPENAI_API_KEY": key})
    )
    reply = await assistant.send("ping")

Every chaining method returns a *new* :class:`Agent`; the receiver is left untouched.
"""

from typing import (
    Any,
    Iterable,
    Mapping,
    NoReturn,
    Tuple,
)

from agentkit.agent import agent_loop
from agentkit.agent.devpanel import DevPanel
from agentkit.agent.provider_interface import ModelProvider
from agentkit.core.agent_config import AgentConfig
from agentkit.core.schema import (
    AgentResponse,
    ModelConfig,
)
from agentkit.errors import FeatureNotImplementedError
from agentkit.tools import Tool


class Agent:
    """An agent configuration plus the collaborators used to send messages with it."""

    def __init__(
        self,
        config: AgentConfig,
        provider: ModelProvider | None = None,
        devpanel: DevPanel | None = None,
    ):
        self._config = config
        self._provider = provider
        self._devpanel = devpanel

    def _derive(self, config: AgentConfig, **overrides: Any) -> "Agent":
        kwargs = {"provider": self._provider, "devpanel": self._devpanel}
        kwargs.update(overrides)
        return Agent(config, **kwargs)

    # -- builder ----------------------------------------------------------------
    def model(self, model_name: str, options: ModelConfig | Mapping[str, Any] | None = None) -> "Agent":
        if isinstance(options, Mapping):
            options = ModelConfig(**options)
        return self._derive(self._config.with_model(model_name, options))

    def instructions(self, text: str) -> "Agent":
        return self._derive(self._config.with_instructions(text))

    def tools(self, tool_list: Iterable[Tool]) -> "Agent":
        return self._derive(self._config.with_tools(tool_list))

    def config(self, entries: Mapping[str, str] | Iterable[Tuple[str, str]]) -> "Agent":
        return self._derive(self._config.with_config(entries))

    def provider(self, provider: ModelProvider) -> "Agent":
        return self._derive(self._config, provider=provider)

    def dev_mode(self, panel: DevPanel | bool = True) -> "Agent":
        """Record this agent's events on *panel* (or a fresh enabled panel when given ``True``)."""
        if isinstance(panel, bool):
            panel = DevPanel(enabled=panel)
        return self._derive(self._config, devpanel=panel)

    # -- execution --------------------------------------------------------------
    async def send(self, message: str) -> AgentResponse:
        return await agent_loop.send(
            self._config, message, provider=self._provider, devpanel=self._devpanel
        )

    def stream(self, message: str) -> NoReturn:
        """Streaming is not available; fails before any request is made."""
        raise FeatureNotImplementedError("Agent.stream()")

    def get_config(self) -> AgentConfig:
        return self._config

    def __repr__(self) -> str:
        return f"Agent(name={self._config.name!r}, model={self._config.model!r})"


def agent(name_or_config: str | AgentConfig) -> Agent:
    """Create an agent from a name (builder style) or from a complete :class:`AgentConfig`."""
    if isinstance(name_or_config, AgentConfig):
        return Agent(name_or_config)
    return Agent(AgentConfig(name=name_or_config))
