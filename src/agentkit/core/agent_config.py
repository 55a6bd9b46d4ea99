"""Immutable agent configuration record."""

from dataclasses import (
    dataclass,
    field,
    replace,
)
from types import MappingProxyType
from typing import (
    Iterable,
    Mapping,
    Tuple,
)

from agentkit.config import settings
from agentkit.core.schema import ModelConfig
from agentkit.errors import ConfigurationError
from agentkit.tools import Tool


def _default_model() -> str:
    return settings.DEFAULT_MODEL


@dataclass(frozen=True)
class AgentConfig:
    """
    Everything ``send()`` needs to know about an agent.

    Instances never change: the ``with_*`` helpers return updated copies, so a configuration can
    be shared by concurrent ``send()`` calls.
    """

    name: str
    model: str = field(default_factory=_default_model)
    options: ModelConfig | None = None
    instructions: str | None = None
    tools: Tuple[Tool, ...] = ()
    config: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tools", tuple(self.tools))
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

        seen = set()
        for t in self.tools:
            if t.name in seen:
                raise ConfigurationError(f"Tool '{t.name}' is registered more than once.")
            seen.add(t.name)

    def with_model(self, model: str, options: ModelConfig | None = None) -> "AgentConfig":
        return replace(self, model=model, options=options)

    def with_instructions(self, instructions: str) -> "AgentConfig":
        return replace(self, instructions=instructions)

    def with_tools(self, tools: Iterable[Tool]) -> "AgentConfig":
        return replace(self, tools=tuple(tools))

    def with_config(self, entries: Mapping[str, str] | Iterable[Tuple[str, str]]) -> "AgentConfig":
        """Replace the key-value config map (API keys and other secrets)."""
        return replace(self, config=dict(entries))
