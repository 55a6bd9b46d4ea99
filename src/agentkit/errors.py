"""
Exception hierarchy for the AgentKit SDK.

Every error raised by :func:`agentkit.agent.agent_loop.send` derives from :class:`AgentKitError`, so
callers can catch the whole family with a single ``except`` clause.  None of these errors are
retried internally: each one aborts the in-flight ``send()`` call.
"""


class AgentKitError(Exception):
    """Base class for SDK errors."""


# ---------------------------------------------------------------------------
# Configuration errors (raised before the first provider request)
# ---------------------------------------------------------------------------
class ConfigurationError(AgentKitError):
    """The agent or one of its tools is configured incorrectly."""


class UnsupportedModelError(ConfigurationError):
    """Raised when the requested model name is not supported."""

    def __init__(self, model_name: str) -> None:
        super().__init__(f"Model {model_name} is not supported")
        self.model_name = model_name


class MissingApiKeyError(ConfigurationError):
    """Raised when no provider credential is configured on the agent."""

    def __init__(self, key: str = "OPENAI_API_KEY") -> None:
        super().__init__(f"API key is required. Use .config({{'{key}': '...'}})")
        self.key = key


class SchemaConversionError(ConfigurationError):
    """Raised when a tool parameter schema cannot be converted to JSON Schema."""


# ---------------------------------------------------------------------------
# Errors raised inside the tool-call loop
# ---------------------------------------------------------------------------
class ToolNotFoundError(AgentKitError):
    """Raised when the model requests a tool the agent does not have."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f'Tool "{tool_name}" not found')
        self.tool_name = tool_name


class ToolArgumentError(AgentKitError):
    """Raised when tool-call arguments cannot be parsed or validated."""

    def __init__(self, tool_name: str, raw_arguments: str, reason: str) -> None:
        super().__init__(f"Invalid arguments for tool '{tool_name}': {reason}")
        self.tool_name = tool_name
        self.raw_arguments = raw_arguments


class ToolExecutionError(AgentKitError):
    """Raised when a tool's own code fails; the original exception is the ``__cause__``."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"Tool '{tool_name}' raised an error: {message}")
        self.tool_name = tool_name


class TooManyToolIterationsError(AgentKitError):
    """Raised when the model keeps requesting tools past the iteration limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Exceeded the maximum of {limit} tool iterations")
        self.limit = limit


class ProviderError(AgentKitError):
    """Raised when the model provider call fails or returns a malformed body."""


class FeatureNotImplementedError(AgentKitError, NotImplementedError):
    """Raised by entry points that exist but are not available yet."""

    def __init__(self, feature: str) -> None:
        super().__init__(f"{feature} is not yet implemented")
        self.feature = feature
