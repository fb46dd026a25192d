"""Site information tools: core version, plugins and themes."""

from __future__ import annotations

import platform
from typing import Any

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall

PLUGIN_STATUSES = ["all", "standard", "must-use", "drop-in"]

DEBUG_CONSTANTS = ["WP_DEBUG", "WP_DEBUG_LOG", "WP_DEBUG_DISPLAY", "SCRIPT_DEBUG"]


class SiteInfo(BaseTool):
    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        super().__init__(install, config)
        self._tool_map = {
            "site_info": self._site_info,
            "list_plugins": self._list_plugins,
            "list_themes": self._list_themes,
        }

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return [
            self.create_tool_definition(
                "site_info",
                "Get WordPress site information including version, paths, "
                "debug constants, table prefix, and plugin/theme counts",
            ),
            self.create_tool_definition(
                "list_plugins",
                "List installed plugins with versions and type (standard, must-use, drop-in)",
                {
                    "status": {
                        "type": "string",
                        "description": "Filter by type: standard, must-use, drop-in, or all",
                        "enum": PLUGIN_STATUSES,
                    },
                },
            ),
            self.create_tool_definition(
                "list_themes",
                "List all available themes with versions and parent/child relationships",
            ),
        ]

    async def _site_info(self, arguments: dict[str, Any]) -> dict[str, Any]:
        install = self.install
        version = install.version_info
        themes = install.themes()

        return {
            "wordpress": {
                "version": version["wp_version"],
                "db_version": version["wp_db_version"],
                "required_php_version": version["required_php_version"],
                "is_multisite": install.is_multisite,
            },
            "database": {
                "name": install.constant("DB_NAME"),
                "host": install.constant("DB_HOST"),
                "prefix": install.table_prefix,
                "charset": install.constant("DB_CHARSET"),
                "collate": install.constant("DB_COLLATE"),
            },
            "plugins": {
                "total": len(install.plugins()),
                "must_use": len(install.mu_plugins()),
                "dropins": len(install.dropins()),
            },
            "themes": {
                "total": len(themes),
                "child_themes": sum(1 for t in themes if t["is_child_theme"]),
            },
            "debug": {
                name.lower(): install.constant(name, False)
                for name in DEBUG_CONSTANTS
            },
            "paths": {
                "ABSPATH": str(install.root),
                "WP_CONTENT_DIR": str(install.content_dir),
                "WP_PLUGIN_DIR": str(install.plugin_dir),
                "WPMU_PLUGIN_DIR": str(install.mu_plugin_dir),
                "wp_config": str(install.config_file) if install.config_file else None,
            },
            "server": {
                "python_version": platform.python_version(),
                "platform": platform.system(),
            },
        }

    async def _list_plugins(self, arguments: dict[str, Any]) -> dict[str, Any]:
        status = arguments.get("status") or "all"
        if status not in PLUGIN_STATUSES:
            raise ToolError(
                f"Invalid status '{status}'. Expected one of: {', '.join(PLUGIN_STATUSES)}"
            )

        result: list[dict[str, Any]] = []

        if status in ("all", "standard"):
            for plugin in self.install.plugins():
                result.append({
                    "file": plugin["file"],
                    "name": plugin.get("Name"),
                    "version": plugin.get("Version"),
                    "description": plugin.get("Description"),
                    "author": plugin.get("Author"),
                    "plugin_uri": plugin.get("PluginURI"),
                    "text_domain": plugin.get("TextDomain"),
                    "requires_wp": plugin.get("RequiresWP"),
                    "requires_php": plugin.get("RequiresPHP"),
                    "type": "standard",
                })

        if status in ("all", "must-use"):
            for plugin in self.install.mu_plugins():
                result.append({
                    "file": plugin["file"],
                    "name": plugin.get("Name"),
                    "version": plugin.get("Version"),
                    "description": plugin.get("Description"),
                    "author": plugin.get("Author"),
                    "type": "must-use",
                })

        if status in ("all", "drop-in"):
            for dropin in self.install.dropins():
                result.append({
                    "file": dropin["file"],
                    "name": dropin["file"],
                    "description": dropin["description"],
                    "type": "drop-in",
                })

        return {
            "count": len(result),
            "plugins": result,
        }

    async def _list_themes(self, arguments: dict[str, Any]) -> dict[str, Any]:
        themes = self.install.themes()
        names = {t["stylesheet"]: t["Name"] for t in themes}

        result = []
        for theme in themes:
            template = theme.get("Template") or theme["stylesheet"]
            result.append({
                "stylesheet": theme["stylesheet"],
                "name": theme["Name"],
                "version": theme.get("Version"),
                "description": theme.get("Description"),
                "author": theme.get("Author"),
                "theme_uri": theme.get("ThemeURI"),
                "template": template,
                "is_child_theme": theme["is_child_theme"],
                "parent_theme": names.get(template) if theme["is_child_theme"] else None,
                "parent_missing": theme["is_child_theme"] and template not in names,
            })

        return {
            "count": len(result),
            "themes": result,
        }
