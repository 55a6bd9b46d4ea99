"""Configuration settings for AgentKit."""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

DEFAULT_REGISTRY_URL = "https://dev.agentage.io"


class Settings(BaseSettings):
    """Pydantic settings class for the SDK and the CLI."""

    # Loaded from environment variables or a .env file if not provided
    LOG_LEVEL: str = "warning"  # Options: debug, info, warning, error, critical

    # LLM Configuration
    PROVIDER: str = "openai"
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    DEFAULT_MODEL: str = "gpt-4"
    SUPPORTED_MODEL_PREFIXES: List[str] = ["gpt-4"]
    MAX_TOOL_ITERATIONS: int = 10
    DEV_PANEL: bool = False

    # Local files
    AGENTS_DIR: str = "agents"
    CONFIG_DIR: Path = Path.home() / ".agentage"

    # Registry
    AGENTAGE_REGISTRY_URL: str | None = None
    AGENTAGE_AUTH_TOKEN: str | None = None
    HTTP_TIMEOUT: float = 30.0

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
