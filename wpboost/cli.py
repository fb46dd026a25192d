"""wordpress-boost CLI.

Usage:
    wp-boost mcp                      # Start MCP server on stdio
    wp-boost mcp --path /var/www/html --debug
    wp-boost info                     # Show version and available tools

Register with an MCP client, e.g.::

    claude mcp add wordpress-boost -- wp-boost mcp --path /var/www/html
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from wpboost import __version__
from wpboost.config.settings import Settings
from wpboost.exceptions import BoostError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="wp-boost",
        description="wordpress-boost: MCP server for WordPress codebases",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    # mcp
    srv = subparsers.add_parser("mcp", help="Start the MCP server on stdio")
    _add_common_options(srv)
    srv.add_argument("--debug", action="store_true", help="Debug logging to stderr")

    # info
    info = subparsers.add_parser("info", help="Show version and available tools")
    _add_common_options(info)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = _settings_from_args(args)

    # Logging goes to stderr; stdout belongs to the protocol
    level = logging.DEBUG if getattr(args, "debug", False) else getattr(logging, settings.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    try:
        if args.command == "mcp":
            _cmd_mcp(settings)
        elif args.command == "info":
            _cmd_info(settings)
    except KeyboardInterrupt:
        sys.exit(130)
    except BoostError as exc:
        logger.error("Error: %s", exc)
        sys.exit(1)


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--path", help="WordPress root (or any directory inside it)")
    parser.add_argument("--config", help="Path to a boost.json configuration file")


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.path:
        overrides["PATH"] = args.path
    if args.config:
        overrides["CONFIG_FILE"] = args.config
    return Settings(**overrides)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_mcp(settings: Settings) -> None:
    """Start MCP server."""
    from wpboost.mcp.server import create_server
    from wpboost.mcp.transport import StdioTransport

    server = create_server(settings)
    asyncio.run(server.run(StdioTransport()))


def _cmd_info(settings: Settings) -> None:
    """Show version and the tools available for the detected installation."""
    from wpboost.mcp.server import create_server

    server = create_server(settings)

    print(f"wordpress-boost v{__version__}")
    print()
    print("An MCP server that provides AI agents with deep context about WordPress codebases.")
    print()
    print("Tool groups:")
    for key, tool in zip(server.registry.keys(), server.registry):
        names = ", ".join(d.name for d in tool.get_tool_definitions())
        print(f"  {key:15s} {names}")
    print()
    print("Quick setup:")
    print("  claude mcp add wordpress-boost -- wp-boost mcp --path /path/to/wordpress")
