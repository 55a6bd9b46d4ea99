"""HTTP client for the agent registry (publish, fetch, search)."""

import logging
from contextlib import nullcontext
from typing import (
    Any,
    ContextManager,
    Dict,
    List,
    Literal,
    Optional,
    Type,
    TypeVar,
)

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
)

from agentkit.config import settings
from agentkit.storage.user_config import (
    get_auth_token,
    get_registry_url,
)

logger = logging.getLogger(__name__)


class RegistryApiError(RuntimeError):
    """Non-2xx answer from the registry."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.details = details


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class _RegistryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class PublishRequest(_RegistryModel):
    name: str
    visibility: Literal["public", "private"] = "public"
    version: str
    content: str
    description: Optional[str] = None


class PublishedAgent(_RegistryModel):
    name: str
    owner: str
    version: str
    visibility: Optional[str] = None
    published_at: Optional[str] = Field(None, alias="publishedAt")


class AgentDetails(_RegistryModel):
    name: str
    owner: str
    description: Optional[str] = None
    latest_version: Optional[str] = Field(None, alias="latestVersion")
    latest_content: Optional[str] = Field(None, alias="latestContent")


class AgentVersion(_RegistryModel):
    version: str
    content: str


class AgentSummary(_RegistryModel):
    name: str
    owner: str
    description: Optional[str] = None
    latest_version: Optional[str] = Field(None, alias="latestVersion")


class SearchResult(_RegistryModel):
    agents: List[AgentSummary] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    has_more: bool = Field(False, alias="hasMore")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _http(client: httpx.Client | None) -> ContextManager[httpx.Client]:
    if client is not None:
        return nullcontext(client)
    return httpx.Client(timeout=settings.HTTP_TIMEOUT)


ModelT = TypeVar("ModelT", bound=BaseModel)


def _request(
    method: str,
    path: str,
    response_model: Type[ModelT],
    *,
    envelope: str = "data",
    client: httpx.Client | None = None,
    require_auth: bool = False,
    json: Dict[str, Any] | None = None,
    params: Dict[str, Any] | None = None,
) -> ModelT:
    """
    Call the registry and validate the body as *response_model*.

    The payload is read from the *envelope* key when present, otherwise from the whole body.

    Raises
    ------
    RegistryApiError
        On a non-2xx answer, or a 2xx body that does not match *response_model*.
    """
    token = get_auth_token()
    if require_auth and not token:
        raise RegistryApiError("Not authenticated. Run `agentkit login` first.", "not_authenticated", 401)

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    url = f"{get_registry_url()}{path}"
    logger.debug("%s %s", method, url)
    with _http(client) as http:
        response = http.request(method, url, headers=headers, json=json, params=params)

    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    if not response.is_success:
        raise RegistryApiError(
            data.get("message") or data.get("error") or f"Registry request failed ({response.status_code})",
            data.get("error", "unknown_error"),
            response.status_code,
            data.get("details"),
        )

    try:
        return response_model.model_validate(data.get(envelope, data))
    except ValidationError as exc:
        logger.debug("Malformed registry response from %s: %s", url, exc)
        raise RegistryApiError(
            "Malformed registry response", "invalid_response", response.status_code
        ) from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def publish_agent(request: PublishRequest, client: httpx.Client | None = None) -> PublishedAgent:
    """Publish a new version of an agent."""
    return _request(
        "POST",
        "/api/agents",
        PublishedAgent,
        envelope="agent",
        client=client,
        require_auth=True,
        json=request.model_dump(exclude_none=True),
    )


def get_agent(owner: str, name: str, client: httpx.Client | None = None) -> AgentDetails:
    """Fetch an agent with its latest content."""
    return _request("GET", f"/api/agents/{owner}/{name}", AgentDetails, client=client)


def get_agent_version(
    owner: str, name: str, version: str, client: httpx.Client | None = None
) -> AgentVersion:
    """Fetch one specific version of an agent."""
    return _request(
        "GET", f"/api/agents/{owner}/{name}/versions/{version}", AgentVersion, client=client
    )


def search_agents(
    query: str, page: int = 1, limit: int = 10, client: httpx.Client | None = None
) -> SearchResult:
    """Full-text search over public agents."""
    return _request(
        "GET",
        "/api/agents/search",
        SearchResult,
        client=client,
        params={"q": query, "page": page, "limit": limit},
    )
