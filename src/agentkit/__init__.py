"""AgentKit: compose agents from a model, instructions and tools, and run them."""

from agentkit.agent.agent_loop import send
from agentkit.agent.builder import (
    Agent,
    agent,
)
from agentkit.agent.devpanel import (
    DevPanel,
    get_dev_panel,
    init_dev_panel,
)
from agentkit.agent.provider_interface import (
    ModelProvider,
    OpenAIProvider,
    load_provider,
    register_provider,
)
from agentkit.core.agent_config import AgentConfig
from agentkit.core.schema import (
    AgentResponse,
    ModelConfig,
)
from agentkit.errors import (
    AgentKitError,
    ConfigurationError,
    FeatureNotImplementedError,
    MissingApiKeyError,
    ProviderError,
    SchemaConversionError,
    ToolArgumentError,
    ToolExecutionError,
    ToolNotFoundError,
    TooManyToolIterationsError,
    UnsupportedModelError,
)
from agentkit.tools import (
    RawFragment,
    Tool,
    TypedValidator,
    optional,
    param,
    tool,
)

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentKitError",
    "AgentResponse",
    "ConfigurationError",
    "DevPanel",
    "FeatureNotImplementedError",
    "MissingApiKeyError",
    "ModelConfig",
    "ModelProvider",
    "OpenAIProvider",
    "ProviderError",
    "RawFragment",
    "SchemaConversionError",
    "Tool",
    "ToolArgumentError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "TooManyToolIterationsError",
    "TypedValidator",
    "UnsupportedModelError",
    "agent",
    "get_dev_panel",
    "init_dev_panel",
    "load_provider",
    "optional",
    "param",
    "register_provider",
    "send",
    "tool",
]
