"""Tool capability interface.

Every introspection domain (site info, debug log, ACF, ...) is one
``BaseTool`` subclass.  The dispatcher only ever talks to tools through
``get_tool_definitions()``, ``handles()`` and ``execute()``; it knows
nothing about what a tool reads.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.wordpress.install import WordPressInstall

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Coroutine[Any, Any, Any]]


# ---------------------------------------------------------------------------
# Tool definition schema (MCP-compatible)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolDefinition:
    """MCP tool definition with JSON Schema input."""
    name: str
    description: str
    properties: dict[str, Any] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @property
    def input_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "object", "properties": dict(self.properties)}
        if self.required:
            schema["required"] = list(self.required)
        return schema

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


# ---------------------------------------------------------------------------
# Base tool
# ---------------------------------------------------------------------------


class BaseTool(ABC):
    """Base class for all wordpress-boost tools.

    Subclasses fill ``self._tool_map`` with ``tool name -> coroutine``
    entries; each handler receives the raw ``arguments`` mapping.
    """

    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        self.install = install
        self.config = config
        self._tool_map: dict[str, ToolHandler] = {}

    @abstractmethod
    def get_tool_definitions(self) -> list[ToolDefinition]:
        """Definitions advertised through ``tools/list``."""

    def handles(self, name: str) -> bool:
        return any(d.name == name for d in self.get_tool_definitions())

    async def execute(self, name: str, arguments: dict[str, Any]) -> Any:
        handler = self._tool_map.get(name)
        if handler is None:
            raise ToolError(f"Unknown tool: {name}")
        return await handler(arguments)

    # --- Helpers for subclasses ---

    @staticmethod
    def create_tool_definition(
        name: str,
        description: str,
        properties: dict[str, Any] | None = None,
        required: list[str] | None = None,
    ) -> ToolDefinition:
        return ToolDefinition(
            name=name,
            description=description,
            properties=properties or {},
            required=tuple(required or ()),
        )

    @staticmethod
    def require(arguments: dict[str, Any], key: str, kind: type = str) -> Any:
        """Fetch a required argument, raising ``ToolError`` if absent or mistyped."""
        value = arguments.get(key)
        if value is None or value == "":
            raise ToolError(f"Missing required argument: {key}")
        if not isinstance(value, kind):
            raise ToolError(f"Argument '{key}' must be of type {kind.__name__}")
        return value

    @staticmethod
    def int_argument(arguments: dict[str, Any], key: str, default: int) -> int:
        value = arguments.get(key, default)
        if value is None:
            return default
        if isinstance(value, bool):
            raise ToolError(f"Argument '{key}' must be an integer")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ToolError(f"Argument '{key}' must be an integer") from exc

    @staticmethod
    def format_bytes(size: int) -> str:
        """Format a byte count the way wp-admin does (``1.5 MB``)."""
        units = ["B", "KB", "MB", "GB"]
        value = float(size)
        i = 0
        while value >= 1024 and i < len(units) - 1:
            value /= 1024
            i += 1
        return f"{round(value, 2):g} {units[i]}"

    def is_debug_mode(self) -> bool:
        return self.install.constant("WP_DEBUG") is True
