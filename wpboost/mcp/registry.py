"""Tool registry.

An insertion-ordered ``registry key -> tool`` mapping, filled once at
startup and read-only afterwards.  Keys are category labels
(``site_info``, ``debug_log``, ...), not tool names; one tool advertises
several tool names.
"""

from __future__ import annotations

import logging
from typing import Iterator

from wpboost.config.settings import BoostConfig, Settings
from wpboost.exceptions import DuplicateToolError, UnknownToolError
from wpboost.tools.acf import Acf
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.tools.debug_log import DebugLog
from wpboost.tools.documentation import Documentation
from wpboost.tools.environment import Environment
from wpboost.tools.security import Security
from wpboost.tools.site_info import SiteInfo
from wpboost.tools.templates import TemplateHierarchy
from wpboost.tools.woocommerce import WooCommerce
from wpboost.wordpress.install import WordPressInstall

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Ordered collection of tools with first-match name resolution."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._owners: dict[str, str] = {}

    def register(self, key: str, tool: BaseTool) -> ToolRegistry:
        """Add ``tool`` under ``key``.

        Raises ``DuplicateToolError`` if the key is taken or if the tool
        advertises a name another registered tool already owns.
        """
        if key in self._tools:
            raise DuplicateToolError(f"Registry key already in use: {key}")

        names = [d.name for d in tool.get_tool_definitions()]
        for name in names:
            owner = self._owners.get(name)
            if owner is not None:
                raise DuplicateToolError(
                    f"Tool name '{name}' from '{key}' is already provided by '{owner}'"
                )
        if len(names) != len(set(names)):
            raise DuplicateToolError(f"'{key}' advertises the same tool name twice")

        self._tools[key] = tool
        for name in names:
            self._owners[name] = key
        logger.debug("Registered %s (%d tools)", key, len(names))
        return self

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, key: object) -> bool:
        return key in self._tools

    def keys(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        """Every definition, in registry order then per-tool order."""
        return [d for tool in self._tools.values() for d in tool.get_tool_definitions()]

    def resolve(self, name: str) -> BaseTool:
        """First tool, in registration order, whose ``handles(name)`` is true."""
        for tool in self._tools.values():
            if tool.handles(name):
                return tool
        raise UnknownToolError(name)


def build_registry(
    install: WordPressInstall,
    config: BoostConfig,
    settings: Settings | None = None,
) -> ToolRegistry:
    """Register the core tools, then plugin tools whose plugin is installed."""
    settings = settings or Settings()
    registry = ToolRegistry()

    # Core tools - always available
    registry.register("site_info", SiteInfo(install, config))
    registry.register("template_hierarchy", TemplateHierarchy(install, config))
    registry.register("debug_log", DebugLog(install, config))
    registry.register(
        "documentation",
        Documentation(
            install,
            config,
            api_url=settings.DOCS_API_URL,
            timeout=settings.HTTP_TIMEOUT,
        ),
    )
    registry.register("environment", Environment(install, config))
    registry.register("security", Security(install, config))

    # Conditional tools based on installed plugins
    if config.integrations.acf and Acf.is_available(install):
        registry.register("acf", Acf(install, config))

    if config.integrations.woocommerce and WooCommerce.is_available(install):
        registry.register("woocommerce", WooCommerce(install, config))

    logger.info("Registered tool groups: %s", ", ".join(registry.keys()))
    return registry
