"""Persist CLI credentials and registry settings in ``~/.agentage/config.json``."""

import json
import logging
from pathlib import Path
from typing import (
    Any,
    Dict,
    Optional,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
)

from agentkit.config import (
    DEFAULT_REGISTRY_URL,
    settings,
)

logger = logging.getLogger(__name__)


class RegistrySettings(BaseModel):
    """Registry section of the config file."""

    url: Optional[str] = None


class AuthState(BaseModel):
    """Auth section of the config file."""

    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    expires_at: Optional[str] = Field(None, alias="expiresAt")


class UserConfig(BaseModel):
    """Everything stored in the user config file."""

    registry: Optional[RegistrySettings] = None
    auth: Optional[AuthState] = None


def get_config_path() -> Path:
    """Return the config file path."""
    return Path(settings.CONFIG_DIR).expanduser() / "config.json"


def load_config() -> UserConfig:
    """Load the config file; a missing or invalid file yields an empty config."""
    path = get_config_path()
    try:
        return UserConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return UserConfig()
    except (OSError, ValidationError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return UserConfig()


def save_config(config: UserConfig) -> None:
    """Write *config* to disk, creating the config directory if needed."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = config.model_dump(by_alias=True, exclude_none=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.debug("Saved config to %s", path)


def clear_config() -> None:
    """Delete stored credentials (logout)."""
    get_config_path().unlink(missing_ok=True)


def get_registry_url() -> str:
    """Registry URL: environment first, then the config file, then the default."""
    if settings.AGENTAGE_REGISTRY_URL:
        return settings.AGENTAGE_REGISTRY_URL
    config = load_config()
    if config.registry and config.registry.url:
        return config.registry.url
    return DEFAULT_REGISTRY_URL


def get_auth_token() -> str | None:
    """Auth token: environment first, then the config file."""
    if settings.AGENTAGE_AUTH_TOKEN:
        return settings.AGENTAGE_AUTH_TOKEN
    config = load_config()
    return config.auth.token if config.auth else None
