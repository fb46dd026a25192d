"""MCP server for wordpress-boost.

Implements the Model Context Protocol over stdio using JSON-RPC 2.0.
This is a thin protocol layer: every ``tools/call`` is routed to the
registered tool that owns the name, and the tool's return value is
wrapped into a single text content block.

Usage::

    server = create_server(Settings())
    await server.run(StdioTransport())
"""

from __future__ import annotations

import enum
import json
import logging
from typing import Any, Awaitable, Callable

from wpboost import __version__
from wpboost.config.settings import BoostConfig, Settings, load_boost_config
from wpboost.exceptions import (
    BoostError,
    InvalidParamsError,
    MissingToolNameError,
    UnknownMethodError,
)
from wpboost.mcp.registry import ToolRegistry, build_registry
from wpboost.mcp.transport import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    StdioTransport,
    jsonrpc_error,
    jsonrpc_response,
)
from wpboost.tools.base import BaseTool
from wpboost.wordpress.install import WordPressInstall

logger = logging.getLogger(__name__)

# MCP protocol version
MCP_PROTOCOL_VERSION = "2024-11-05"

# Server info
SERVER_INFO = {
    "name": "wordpress-boost",
    "version": __version__,
}

# Server capabilities
SERVER_CAPABILITIES = {
    "tools": {"listChanged": False},
}


class Method(str, enum.Enum):
    """The complete set of methods this server answers."""
    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    PING = "ping"

    @classmethod
    def parse(cls, method: str) -> Method:
        try:
            return cls(method)
        except ValueError:
            raise UnknownMethodError(method) from None


# Methods that never get a response, even when sent with an id
NO_RESPONSE = frozenset({Method.INITIALIZED.value})


# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------


class BoostMCPServer:
    """MCP server exposing WordPress introspection tools.

    Handles the MCP protocol lifecycle:
      1. initialize → capabilities exchange
      2. tools/list → enumerate available tools
      3. tools/call → execute a tool
      4. ping → liveness check

    ``initialize`` is not required before the other methods.
    """

    def __init__(self, registry: ToolRegistry, config: BoostConfig | None = None) -> None:
        self.registry = registry
        self.config = config or BoostConfig()

        # Method dispatch table
        self._methods: dict[Method, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            Method.INITIALIZE: self._handle_initialize,
            Method.INITIALIZED: self._handle_initialized,
            Method.TOOLS_LIST: self._handle_tools_list,
            Method.TOOLS_CALL: self._handle_tools_call,
            Method.PING: self._handle_ping,
        }

    # --- Protocol handlers ---

    async def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client_info = params.get("clientInfo") or {}
        if isinstance(client_info, dict):
            logger.info(
                "MCP client connecting: %s %s",
                client_info.get("name", "unknown"),
                client_info.get("version", ""),
            )
        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": SERVER_CAPABILITIES,
            "serverInfo": SERVER_INFO,
        }

    async def _handle_initialized(self, params: dict[str, Any]) -> None:
        logger.info("MCP session initialized")
        return None

    async def _handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"pong": True}

    async def _handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [d.to_dict() for d in self.registry.definitions()]}

    async def _handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if name is None:
            raise MissingToolNameError()

        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("Tool arguments must be an object")

        tool = self.resolve_tool(name)
        logger.info("MCP tool call: %s", name)
        result = await tool.execute(name, arguments)
        return format_tool_result(result)

    # --- Routing ---

    def resolve_tool(self, name: str) -> BaseTool:
        return self.registry.resolve(name)

    async def dispatch(self, method: str, params: Any = None) -> Any:
        """Run the handler for ``method``; raises on unknown methods."""
        handler = self._methods[Method.parse(method)]
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidParamsError("Invalid params: expected an object")
        return await handler(params)

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Route a JSON-RPC 2.0 message; returns the response, or ``None`` for notifications."""
        method = message.get("method")
        params = message.get("params")
        msg_id = message.get("id")

        if method is None:
            if msg_id is not None:
                return jsonrpc_error(msg_id, INVALID_REQUEST, "Invalid Request: missing method")
            return None

        try:
            result = await self.dispatch(str(method), params)
        except BoostError as exc:
            logger.warning("%s failed: %s", method, exc)
            if msg_id is not None:
                return jsonrpc_error(msg_id, INTERNAL_ERROR, str(exc))
            return None
        except Exception as exc:
            logger.exception("Error handling %s", method)
            if msg_id is not None:
                return jsonrpc_error(msg_id, INTERNAL_ERROR, str(exc) or "Internal error")
            return None

        if msg_id is None or method in NO_RESPONSE:
            return None
        return jsonrpc_response(msg_id, result)

    # --- stdio loop ---

    async def run(self, transport: StdioTransport) -> None:
        """Serve messages one at a time until the transport reaches EOF."""
        logger.info("wordpress-boost MCP server starting on stdio")
        while transport.is_open:
            message = await transport.read()
            if message is None:
                continue

            response = await self.handle_message(message)
            if response is not None:
                transport.write(response)
        logger.info("stdin closed, MCP server stopping")


# ---------------------------------------------------------------------------
# Result formatting
# ---------------------------------------------------------------------------


def format_tool_result(result: Any) -> dict[str, Any]:
    """Wrap a tool's return value in a single MCP text content block."""
    if isinstance(result, str):
        text = result
    elif isinstance(result, (dict, list, tuple)):
        text = json.dumps(result, indent=4, ensure_ascii=False, default=str)
    elif result is None:
        text = ""
    elif isinstance(result, bool):
        text = "true" if result else "false"
    else:
        text = str(result)

    return {"content": [{"type": "text", "text": text}]}


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def create_server(settings: Settings) -> BoostMCPServer:
    """Load config, locate WordPress and build the registry."""
    config = load_boost_config(settings.CONFIG_FILE)
    install = WordPressInstall.locate(settings.PATH)
    logger.debug("WordPress %s at %s", install.version or "(unknown version)", install.root)
    registry = build_registry(install, config, settings)
    return BoostMCPServer(registry, config)
