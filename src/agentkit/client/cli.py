"""CLI commands for AgentKit: local agent files, running agents, and the registry."""

from __future__ import annotations

import asyncio
import logging
import sys
import webbrowser
from datetime import date
from pathlib import Path
from typing import (
    NoReturn,
    Tuple,
)

import httpx

from agentkit.agent.builder import agent
from agentkit.agent.provider_interface import ModelProvider
from agentkit.client import (
    auth,
    registry,
)
from agentkit.common import (
    AnsiColors,
    colored_print,
)
from agentkit.config import settings
from agentkit.errors import AgentKitError
from agentkit.storage import (
    agent_files,
    user_config,
)

logger = logging.getLogger(__name__)

DEFAULT_AGENT_NAME = "my-agent"
DEFAULT_PROMPT = "Hello!"


def _fail(message: str) -> NoReturn:
    colored_print(f"❌ {message}", AnsiColors.RED, file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Local agents
# ---------------------------------------------------------------------------
def init_command(name: str | None = None) -> None:
    """Create ``agents/<name>.yml`` from the default template."""
    agent_name = name or DEFAULT_AGENT_NAME
    try:
        path = agent_files.write_agent_template(agent_name)
    except OSError as exc:
        _fail(f"Failed: {exc}")
    colored_print(f"✅ Created {path}", AnsiColors.GREEN)


def list_command() -> None:
    """Print every ``agents/*.yml`` file with its validation status."""
    files = agent_files.list_agent_files()
    if not files:
        print("No agents found. Run `agentkit init` to create one.")
        return

    print("\n📋 Available Agents:\n")
    for path in files:
        try:
            definition = agent_files.load_agent_file(path)
            print(f"  ✅ {definition.name} ({definition.model})")
        except agent_files.AgentFileError as exc:
            print(f"  ❌ {path.stem} - {exc}")
    print()


def run_command(name: str, prompt: str | None = None, provider: ModelProvider | None = None) -> None:
    """Load ``agents/<name>.yml``, send *prompt* and print the reply."""
    try:
        definition = agent_files.load_agent(name)
        assistant = agent(
            definition.to_agent_config({"OPENAI_API_KEY": settings.OPENAI_API_KEY or ""})
        )
        if provider is not None:
            assistant = assistant.provider(provider)

        colored_print(f"\n🤖 Running {definition.name}...\n", AnsiColors.BLUE)
        response = asyncio.run(assistant.send(prompt or DEFAULT_PROMPT))
    except (AgentKitError, agent_files.AgentFileError) as exc:
        logger.debug("Run failed", exc_info=True)
        _fail(f"Failed: {exc}")
    colored_print(f"💬 {response.content}\n", AnsiColors.YELLOW)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
def login_command(client: httpx.Client | None = None, open_browser: bool = True) -> None:
    """Log in with the device-code flow and store the token."""
    config = user_config.load_config()
    if config.auth and config.auth.token:
        user = config.auth.user or {}
        who = user.get("name") or user.get("email") or "unknown user"
        colored_print(f"Already logged in as {who}.", AnsiColors.YELLOW)
        print("Run `agentkit logout` first to switch accounts.")
        return

    try:
        device = auth.request_device_code(client=client)
        colored_print("\n🔐 Authenticate in your browser:", AnsiColors.BLUE)
        print(f"   {device.verification_uri}")
        colored_print(f"   Code: {device.user_code}\n", AnsiColors.CYAN)
        if open_browser:
            webbrowser.open(device.verification_uri)

        colored_print("Waiting for authorization...", AnsiColors.GRAY)
        token = auth.poll_for_token(
            device.device_code, device.interval, device.expires_in, client=client
        )
    except (auth.AuthError, httpx.HTTPError) as exc:
        _fail(f"Login failed: {exc}")

    config.auth = user_config.AuthState(
        token=token.access_token,
        user=token.user.model_dump() if token.user else None,
    )
    user_config.save_config(config)
    who = (token.user.name or token.user.email) if token.user else "unknown user"
    colored_print(f"✅ Logged in as {who}", AnsiColors.GREEN)


def logout_command(client: httpx.Client | None = None) -> None:
    """Invalidate the session and delete stored credentials."""
    if not user_config.get_auth_token():
        print("Not logged in.")
        return
    auth.logout(client=client)
    user_config.clear_config()
    colored_print("✅ Logged out", AnsiColors.GREEN)


def whoami_command(client: httpx.Client | None = None) -> None:
    """Show the logged-in user."""
    if not user_config.get_auth_token():
        print("Not logged in. Run `agentkit login` to authenticate.")
        return
    try:
        user = auth.get_me(client=client)
    except auth.AuthError as exc:
        if exc.code == "session_expired":
            print("Session expired. Run `agentkit login` again.")
            sys.exit(1)
        _fail(str(exc))
    except httpx.HTTPError as exc:
        _fail(f"Cannot reach registry: {exc}")
    print(f"Logged in to {user_config.get_registry_url()} as {user.name or user.email or user.id}")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
def publish_command(
    path: str | None = None,
    visibility: str = "public",
    version: str | None = None,
    dry_run: bool = False,
    client: httpx.Client | None = None,
) -> None:
    """Publish an ``.agent.md`` file to the registry."""
    if not dry_run and not user_config.get_auth_token():
        _fail("Not logged in. Run `agentkit login` first.")

    agent_path = Path(path) if path else agent_files.find_agent_markdown(".")
    if agent_path is None:
        _fail(f"No *{agent_files.AGENT_MD_SUFFIX} file found in the current directory.")

    try:
        content = agent_path.read_text(encoding="utf-8")
        definition = agent_files.parse_agent_markdown(content, source=str(agent_path))
    except (OSError, agent_files.AgentFileError) as exc:
        _fail(str(exc))

    if not agent_files.is_valid_agent_name(definition.name):
        _fail(
            f"Invalid agent name '{definition.name}': use lowercase letters, digits and hyphens."
        )

    request = registry.PublishRequest(
        name=definition.name,
        description=definition.description,
        visibility=visibility,
        version=version or definition.version or date.today().isoformat(),
        content=content,
    )

    if dry_run:
        colored_print(
            f"Dry run: would publish {request.name}@{request.version} ({request.visibility})",
            AnsiColors.YELLOW,
        )
        return

    try:
        published = registry.publish_agent(request, client=client)
    except (registry.RegistryApiError, httpx.HTTPError) as exc:
        _fail(f"Publish failed: {exc}")
    colored_print(
        f"✅ Published {published.owner}/{published.name}@{published.version}", AnsiColors.GREEN
    )


def parse_identifier(identifier: str) -> Tuple[str, str, str | None]:
    """Split ``owner/name[@version]``; raises ``ValueError`` on anything else."""
    ref, _, version = identifier.partition("@")
    owner, sep, name = ref.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Invalid format '{identifier}'. Use owner/name or owner/name@version")
    return owner, name, version or None


def install_command(
    identifier: str, force: bool = False, client: httpx.Client | None = None
) -> None:
    """Download an agent into the project's agents directory."""
    try:
        owner, name, version = parse_identifier(identifier)
    except ValueError as exc:
        _fail(str(exc))

    target = agent_files.get_install_dir(".") / f"{name}{agent_files.AGENT_MD_SUFFIX}"
    if target.exists() and not force:
        _fail(f"{target} already exists. Use --force to overwrite.")

    try:
        if version:
            content = registry.get_agent_version(owner, name, version, client=client).content
        else:
            details = registry.get_agent(owner, name, client=client)
            content = details.latest_content or ""
            version = details.latest_version
    except (registry.RegistryApiError, httpx.HTTPError) as exc:
        _fail(f"Install failed: {exc}")

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    colored_print(f"✅ Installed {owner}/{name}@{version} to {target}", AnsiColors.GREEN)


def search_command(
    query: str, page: int = 1, limit: int = 10, client: httpx.Client | None = None
) -> None:
    """Search the registry and print matching agents."""
    try:
        result = registry.search_agents(query, page=page, limit=limit, client=client)
    except (registry.RegistryApiError, httpx.HTTPError) as exc:
        _fail(f"Search failed: {exc}")

    if not result.agents:
        print(f"No agents found for '{query}'.")
        return
    print(f"\n🔎 {result.total} result(s) for '{query}':\n")
    for item in result.agents:
        description = f" - {item.description}" if item.description else ""
        print(f"  {item.owner}/{item.name}{description}")
    if result.has_more:
        colored_print(f"\n  More results: --page {result.page + 1}", AnsiColors.GRAY)
    print()
