"""
AgentKit entry point.

This file handles startup concerns (arg-parsing, logging) and dispatches to the command
implementations in :mod:`agentkit.client.cli`.
"""

import argparse
import logging
import sys

from agentkit import __version__
from agentkit.client import cli
from agentkit.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )
    # Keep HTTP client chatter out of command output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """Create the ``agentkit`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="agentkit", description="CLI tool for creating and running AI agents locally"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init", help="Initialize a new agent")
    init.add_argument("name", nargs="?", help="Agent name")

    run = commands.add_parser("run", help="Run an agent")
    run.add_argument("name", help="Agent name")
    run.add_argument("prompt", nargs="?", help="Prompt to send to the agent")

    commands.add_parser("list", help="List all agents")
    commands.add_parser("login", help="Login to the agent registry")
    commands.add_parser("logout", help="Logout from the agent registry")
    commands.add_parser("whoami", help="Display the currently logged in user")

    publish = commands.add_parser("publish", help="Publish an agent to the registry")
    publish.add_argument("path", nargs="?", help="Path to an .agent.md file")
    publish.add_argument("--visibility", choices=["public", "private"], default="public")
    publish.add_argument("--version", dest="agent_version", help="Version label (default: today)")
    publish.add_argument("--dry-run", action="store_true", help="Validate without publishing")

    install = commands.add_parser("install", help="Install an agent from the registry")
    install.add_argument("identifier", help="owner/name or owner/name@version")
    install.add_argument("--force", action="store_true", help="Overwrite an existing file")

    search = commands.add_parser("search", help="Search the registry")
    search.add_argument("query")
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--limit", type=int, default=10)

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """Parse *argv* and run the selected command."""
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_args(argv)

    # Override log level setting with command-line argument
    settings.LOG_LEVEL = args.log_level
    _init_logging(settings.LOG_LEVEL)
    logger.debug("Running command '%s'", args.command)

    if args.command == "init":
        cli.init_command(args.name)
    elif args.command == "run":
        cli.run_command(args.name, args.prompt)
    elif args.command == "list":
        cli.list_command()
    elif args.command == "login":
        cli.login_command()
    elif args.command == "logout":
        cli.logout_command()
    elif args.command == "whoami":
        cli.whoami_command()
    elif args.command == "publish":
        cli.publish_command(
            args.path,
            visibility=args.visibility,
            version=args.agent_version,
            dry_run=args.dry_run,
        )
    elif args.command == "install":
        cli.install_command(args.identifier, force=args.force)
    elif args.command == "search":
        cli.search_command(args.query, page=args.page, limit=args.limit)


if __name__ == "__main__":
    main()
