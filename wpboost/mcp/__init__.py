"""MCP (Model Context Protocol) server for wordpress-boost.

Architecture:
  - ``StdioTransport``: newline-delimited JSON-RPC 2.0 on stdin/stdout
  - ``ToolRegistry``: ordered tool groups, built once at startup
  - ``BoostMCPServer``: routes each message and formats the response

Usage::

    from wpboost.mcp.server import create_server

    server = create_server(settings)
    await server.run(StdioTransport())
"""

from wpboost.mcp.registry import ToolRegistry, build_registry
from wpboost.mcp.server import BoostMCPServer, create_server
from wpboost.mcp.transport import StdioTransport

__all__ = [
    "BoostMCPServer",
    "StdioTransport",
    "ToolRegistry",
    "build_registry",
    "create_server",
]
