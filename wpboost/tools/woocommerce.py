"""WooCommerce tools.

Registered only when WooCommerce is installed.  Template override checks
follow WooCommerce's own System Status report: a theme file under
``<theme>/woocommerce/`` overrides ``woocommerce/templates/<same path>``,
and is outdated when its ``@version`` tag is lower than core's.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from wpboost.config.settings import BoostConfig
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall, read_file_headers

WOO_PLUGIN_SLUG = "woocommerce"

WOO_HEADERS = {
    "Version": "Version",
    "RequiresWP": "Requires at least",
    "RequiresPHP": "Requires PHP",
    "TestedWP": "Tested up to",
}

_VERSION_TAG_RE = re.compile(r"@version\s+([0-9][0-9A-Za-z.\-]*)")


class WooCommerce(BaseTool):
    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        super().__init__(install, config)
        self._tool_map = {
            "woo_info": self._woo_info,
            "list_woo_template_overrides": self._list_template_overrides,
        }

    @staticmethod
    def is_available(install: WordPressInstall) -> bool:
        return install.has_plugin(WOO_PLUGIN_SLUG)

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return [
            self.create_tool_definition(
                "woo_info",
                "Get WooCommerce version, requirements, and template override summary",
            ),
            self.create_tool_definition(
                "list_woo_template_overrides",
                "List WooCommerce template overrides in themes and flag outdated copies",
                {
                    "outdated_only": {
                        "type": "boolean",
                        "description": "Only return overrides older than the core template",
                    },
                },
            ),
        ]

    @property
    def plugin_path(self) -> Path:
        return self.install.plugin_dir / WOO_PLUGIN_SLUG

    async def _woo_info(self, arguments: dict[str, Any]) -> dict[str, Any]:
        main_file = self.plugin_path / "woocommerce.php"
        headers = read_file_headers(main_file, WOO_HEADERS) if main_file.is_file() else {}
        overrides = self.template_overrides()

        return {
            "version": headers.get("Version"),
            "requires_wp": headers.get("RequiresWP"),
            "requires_php": headers.get("RequiresPHP"),
            "tested_up_to": headers.get("TestedWP"),
            "wordpress_version": self.install.version,
            "plugin_path": str(self.plugin_path),
            "template_overrides": {
                "total": len(overrides),
                "outdated": sum(1 for o in overrides if o["outdated"]),
            },
        }

    async def _list_template_overrides(self, arguments: dict[str, Any]) -> dict[str, Any]:
        overrides = self.template_overrides()
        if arguments.get("outdated_only"):
            overrides = [o for o in overrides if o["outdated"]]
        return {
            "count": len(overrides),
            "overrides": overrides,
        }

    def template_overrides(self) -> list[dict[str, Any]]:
        core_templates = self.plugin_path / "templates"
        overrides = []

        for theme in self.install.themes():
            override_dir = Path(theme["path"]) / "woocommerce"
            if not override_dir.is_dir():
                continue
            for override in sorted(override_dir.rglob("*.php")):
                template = override.relative_to(override_dir).as_posix()
                core_file = core_templates / template
                theme_version = template_version(override)
                core_version = template_version(core_file) if core_file.is_file() else None
                overrides.append({
                    "theme": theme["stylesheet"],
                    "template": template,
                    "theme_version": theme_version,
                    "core_version": core_version,
                    "core_exists": core_file.is_file(),
                    "outdated": is_outdated(theme_version, core_version),
                })
        return overrides


def template_version(path: Path) -> str | None:
    match = _VERSION_TAG_RE.search(path.read_text(encoding="utf-8", errors="replace"))
    return match.group(1) if match else None


def is_outdated(theme_version: str | None, core_version: str | None) -> bool:
    """Overrides with no ``@version`` tag count as outdated, like WooCommerce does."""
    if core_version is None:
        return False
    if theme_version is None:
        return True
    return _version_key(theme_version) < _version_key(core_version)


def _version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", version))
