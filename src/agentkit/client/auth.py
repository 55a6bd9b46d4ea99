"""
OAuth device-code login against the agent registry.

Flow: :func:`request_device_code` returns a user code and a verification URL; the user approves
the device in a browser while :func:`poll_for_token` polls the token endpoint.
"""

import logging
import time
from contextlib import nullcontext
from typing import (
    Any,
    Callable,
    ContextManager,
    Dict,
    Optional,
    Type,
    TypeVar,
)

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
)

from agentkit.config import settings
from agentkit.storage.user_config import (
    get_auth_token,
    get_registry_url,
)

logger = logging.getLogger(__name__)

SLOW_DOWN_INCREMENT = 5


class AuthError(RuntimeError):
    """Raised when authentication fails; *code* is the server's error code."""

    def __init__(self, message: str, code: str = "auth_error"):
        super().__init__(message)
        self.code = code


class User(BaseModel):
    """Registry account."""

    model_config = ConfigDict(extra="allow")

    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class DeviceCodeResponse(BaseModel):
    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int = 5


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    user: Optional[User] = None


def _http(client: httpx.Client | None) -> ContextManager[httpx.Client]:
    if client is not None:
        return nullcontext(client)
    return httpx.Client(timeout=settings.HTTP_TIMEOUT)


def _json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.debug("Malformed %s from the registry: %s", model.__name__, exc)
        raise AuthError("Malformed response from the registry", "invalid_response") from exc


# ---------------------------------------------------------------------------
# Device-code flow
# ---------------------------------------------------------------------------
def request_device_code(client: httpx.Client | None = None) -> DeviceCodeResponse:
    """Start the device-code flow."""
    url = f"{get_registry_url()}/api/auth/device/code"
    with _http(client) as http:
        response = http.post(url)
    data = _json(response)
    if not response.is_success:
        raise AuthError(
            data.get("error_description") or "Failed to request device code",
            data.get("error", "request_failed"),
        )
    return _parse(DeviceCodeResponse, data)


def poll_for_token(
    device_code: str,
    interval: int,
    expires_in: int,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> TokenResponse:
    """
    Poll the token endpoint until the user approves, denies or the code expires.

    Parameters
    ----------
    device_code:
        Code returned by :func:`request_device_code`.
    interval:
        Seconds between polls; increased when the server answers ``slow_down``.
    expires_in:
        Seconds until the device code expires.
    sleep, clock:
        Injected for tests.

    Raises
    ------
    AuthError
        On denial, expiry or any unexpected error code.
    """
    url = f"{get_registry_url()}/api/auth/device/token"
    deadline = clock() + expires_in

    with _http(client) as http:
        while clock() < deadline:
            sleep(interval)
            response = http.post(url, json={"device_code": device_code})
            data = _json(response)
            if response.is_success:
                return _parse(TokenResponse, data)

            error = data.get("error", "unknown_error")
            if error == "authorization_pending":
                continue
            if error == "slow_down":
                interval += SLOW_DOWN_INCREMENT
                logger.debug("Server asked to slow down; polling every %ds", interval)
                continue
            if error == "access_denied":
                raise AuthError("Authorization was denied", error)
            if error == "expired_token":
                raise AuthError("The device code has expired. Please try again.", error)
            raise AuthError(data.get("error_description") or "Authentication failed", error)

    raise AuthError("The device code has expired. Please try again.", "expired_token")


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------
def get_me(client: httpx.Client | None = None) -> User:
    """Return the logged-in user."""
    token = get_auth_token()
    if not token:
        raise AuthError("Not authenticated. Run `agentkit login` first.", "not_authenticated")

    url = f"{get_registry_url()}/api/auth/me"
    with _http(client) as http:
        response = http.get(url, headers={"Authorization": f"Bearer {token}"})
    if response.status_code == 401:
        raise AuthError("Session expired. Please run `agentkit login` again.", "session_expired")
    data = _json(response)
    if not response.is_success:
        raise AuthError(data.get("message") or "Failed to fetch user", data.get("error", "request_failed"))
    return _parse(User, data)


def logout(client: httpx.Client | None = None) -> None:
    """Invalidate the token on the server.  Transport errors are ignored."""
    token = get_auth_token()
    if not token:
        return

    url = f"{get_registry_url()}/api/auth/logout"
    try:
        with _http(client) as http:
            http.post(url, headers={"Authorization": f"Bearer {token}"})
    except httpx.HTTPError as exc:
        logger.debug("Ignoring logout error: %s", exc)
