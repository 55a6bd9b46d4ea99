"""End-to-end tests for the CLI commands."""

import json

import httpx
import pytest
from conftest import (
    StubProvider,
    completion,
)

from agentkit.client import cli
from agentkit.config import Settings
from agentkit.main import (
    build_parser,
    main,
)
from agentkit.storage import user_config

AGENT_MD = """\
---
name: helper
description: A helpful agent
---
Help the user.
"""


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def make_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Local agents
# ---------------------------------------------------------------------------
def test_init_and_list(workdir, capsys) -> None:
    cli.list_command()
    assert "No agents found" in capsys.readouterr().out

    cli.init_command()
    cli.init_command("writer")
    (workdir / "agents" / "broken.yml").write_text("name: broken\n")
    assert "Created agents/writer.yml" in capsys.readouterr().out

    cli.list_command()
    out = capsys.readouterr().out
    assert "✅ my-agent (gpt-4)" in out
    assert "✅ writer (gpt-4)" in out
    assert "❌ broken" in out


def test_run_agent(isolated_settings, capsys) -> None:
    isolated_settings.OPENAI_API_KEY = "sk-test"
    cli.init_command("helper")
    provider = StubProvider(completion("Hi there"))

    cli.run_command("helper", "Hello", provider=provider)

    assert "Hi there" in capsys.readouterr().out
    request = provider.requests[0]
    assert request.model == "gpt-4"
    assert request.messages[0].content.startswith("You are a helpful AI assistant.")
    assert request.messages[1].content == "Hello"


def test_run_uses_definition_file(isolated_settings, workdir) -> None:
    isolated_settings.OPENAI_API_KEY = "sk-test"
    (workdir / "agents").mkdir()
    (workdir / "agents" / "turbo.yml").write_text(
        "name: turbo\nmodel: gpt-4-turbo\ninstructions: Answer in one word.\n"
    )
    provider = StubProvider(completion("Yes"))

    cli.run_command("turbo", "Ready?", provider=provider)

    request = provider.requests[0]
    assert request.model == "gpt-4-turbo"
    assert request.messages[0].content == "Answer in one word."


def test_run_without_api_key_fails(capsys) -> None:
    cli.init_command("helper")

    with pytest.raises(SystemExit) as info:
        cli.run_command("helper", provider=StubProvider())
    assert info.value.code == 1
    assert "API key is required" in capsys.readouterr().err


def test_run_missing_agent_fails(capsys) -> None:
    with pytest.raises(SystemExit):
        cli.run_command("ghost")
    assert "Cannot read" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
def test_login_stores_token(capsys) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/auth/device/code":
            return httpx.Response(
                200,
                json={
                    "device_code": "dev-1",
                    "user_code": "WXYZ",
                    "verification_uri": "https://example.com/device",
                    "expires_in": 60,
                    "interval": 0,
                },
            )
        return httpx.Response(200, json={"access_token": "tok", "user": {"id": "u1", "name": "Ada"}})

    cli.login_command(client=make_client(handler), open_browser=False)

    assert "Code: WXYZ" in capsys.readouterr().out
    assert user_config.get_auth_token() == "tok"
    assert user_config.load_config().auth.user["name"] == "Ada"

    cli.login_command(client=make_client(handler), open_browser=False)
    assert "Already logged in as Ada" in capsys.readouterr().out


def test_whoami(isolated_settings, capsys) -> None:
    cli.whoami_command()
    assert "Not logged in" in capsys.readouterr().out

    isolated_settings.AGENTAGE_AUTH_TOKEN = "tok"
    client = make_client(lambda request: httpx.Response(200, json={"id": "u1", "name": "Ada"}))
    cli.whoami_command(client=client)
    assert "as Ada" in capsys.readouterr().out

    expired = make_client(lambda request: httpx.Response(401))
    with pytest.raises(SystemExit):
        cli.whoami_command(client=expired)
    assert "Session expired" in capsys.readouterr().out


def test_logout(capsys) -> None:
    user_config.save_config(user_config.UserConfig(auth=user_config.AuthState(token="tok")))
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={})

    cli.logout_command(client=make_client(handler))

    assert calls == ["/api/auth/logout"]
    assert not user_config.get_config_path().exists()
    assert "Logged out" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
def test_publish_dry_run(workdir, capsys) -> None:
    (workdir / "helper.agent.md").write_text(AGENT_MD)

    cli.publish_command(dry_run=True, version="1.0.0")

    assert "Dry run: would publish helper@1.0.0 (public)" in capsys.readouterr().out


def test_publish_rejects_invalid_name(isolated_settings, workdir, capsys) -> None:
    isolated_settings.AGENTAGE_AUTH_TOKEN = "tok"
    path = workdir / "bad.agent.md"
    path.write_text(AGENT_MD.replace("name: helper", "name: Bad_Name"))

    with pytest.raises(SystemExit):
        cli.publish_command(str(path))
    assert "Invalid agent name" in capsys.readouterr().err


def test_publish_requires_login(workdir, capsys) -> None:
    (workdir / "helper.agent.md").write_text(AGENT_MD)

    with pytest.raises(SystemExit):
        cli.publish_command()
    assert "Not logged in" in capsys.readouterr().err


def test_publish(isolated_settings, workdir, capsys) -> None:
    isolated_settings.AGENTAGE_AUTH_TOKEN = "tok"
    (workdir / "helper.agent.md").write_text(AGENT_MD)

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["content"] == AGENT_MD
        assert body["description"] == "A helpful agent"
        return httpx.Response(
            201, json={"agent": {"name": "helper", "owner": "ada", "version": body["version"]}}
        )

    cli.publish_command(version="2.0.0", client=make_client(handler))
    assert "Published ada/helper@2.0.0" in capsys.readouterr().out


@pytest.mark.parametrize("identifier", ["helper", "/helper", "ada/", "a/b/c"])
def test_parse_identifier_rejects(identifier) -> None:
    with pytest.raises(ValueError, match="Invalid format"):
        cli.parse_identifier(identifier)


def test_parse_identifier() -> None:
    assert cli.parse_identifier("ada/helper") == ("ada", "helper", None)
    assert cli.parse_identifier("ada/helper@1.0.0") == ("ada", "helper", "1.0.0")


def test_install(workdir, capsys) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/versions/1.0.0"):
            return httpx.Response(200, json={"data": {"version": "1.0.0", "content": "old"}})
        return httpx.Response(
            200,
            json={"data": {"name": "helper", "owner": "ada", "latestVersion": "2.0.0", "latestContent": "new"}},
        )

    client = make_client(handler)
    target = workdir / "agents" / "helper.agent.md"

    cli.install_command("ada/helper", client=client)
    assert target.read_text() == "new"
    assert "Installed ada/helper@2.0.0" in capsys.readouterr().out

    with pytest.raises(SystemExit):
        cli.install_command("ada/helper@1.0.0", client=client)
    assert "Use --force to overwrite" in capsys.readouterr().err

    cli.install_command("ada/helper@1.0.0", force=True, client=client)
    assert target.read_text() == "old"


def test_search(capsys) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "data": {
                    "agents": [{"name": "reviewer", "owner": "ada", "description": "Reviews code"}],
                    "total": 11,
                    "page": 1,
                    "limit": 10,
                    "hasMore": True,
                }
            },
        )

    cli.search_command("review", client=make_client(handler))
    out = capsys.readouterr().out
    assert "ada/reviewer - Reviews code" in out
    assert "--page 2" in out


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def test_parser_options() -> None:
    args = build_parser().parse_args(["publish", "--version", "1.2.3", "--dry-run"])
    assert args.agent_version == "1.2.3"
    assert args.dry_run is True

    args = build_parser().parse_args(["--log-level", "DEBUG", "search", "bots", "--limit", "3"])
    assert args.log_level == "debug"
    assert args.limit == 3


def test_main_dispatches(workdir) -> None:
    main(["init", "from-main"])
    assert (workdir / "agents" / "from-main.yml").exists()


# ---------------------------------------------------------------------------
# Malformed registry answers
# ---------------------------------------------------------------------------
def test_search_malformed_response_exits(capsys) -> None:
    client = make_client(lambda request: httpx.Response(200, json={"data": {"agents": [{"name": "x"}]}}))

    with pytest.raises(SystemExit) as info:
        cli.search_command("x", client=client)
    assert info.value.code == 1
    assert "Malformed registry response" in capsys.readouterr().err


def test_install_malformed_response_exits(workdir, capsys) -> None:
    client = make_client(lambda request: httpx.Response(200, json={"data": {"name": "helper"}}))

    with pytest.raises(SystemExit):
        cli.install_command("ada/helper", client=client)
    assert "Install failed" in capsys.readouterr().err
    assert not (workdir / "agents" / "helper.agent.md").exists()


def test_whoami_malformed_response_exits(isolated_settings, capsys) -> None:
    isolated_settings.AGENTAGE_AUTH_TOKEN = "tok"
    client = make_client(lambda request: httpx.Response(200, json={"name": "Ada"}))

    with pytest.raises(SystemExit) as info:
        cli.whoami_command(client=client)
    assert info.value.code == 1
    assert "Malformed response" in capsys.readouterr().err


def test_login_malformed_response_exits(capsys) -> None:
    client = make_client(lambda request: httpx.Response(200, json={"unexpected": True}))

    with pytest.raises(SystemExit):
        cli.login_command(client=client, open_browser=False)
    assert "Login failed" in capsys.readouterr().err
    assert user_config.get_auth_token() is None


def test_default_log_level_is_warning() -> None:
    assert Settings.model_fields["LOG_LEVEL"].default == "warning"
