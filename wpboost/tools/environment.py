"""WordPress constants, read from wp-config.php.

Constants WordPress derives at load time (``ABSPATH``, ``WPINC``, the
content and plugin directories) are reported from the installation's
layout when wp-config.php does not define them.  Keys, salts and
passwords are never returned.
"""

from __future__ import annotations

from typing import Any

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall

HIDDEN = "[HIDDEN]"

CONSTANT_CATEGORIES: dict[str, dict[str, str]] = {
    "core": {
        "ABSPATH": "Absolute path to WordPress directory",
        "WPINC": "WordPress includes directory name",
        "WP_LANG_DIR": "Languages directory path",
        "EMPTY_TRASH_DAYS": "Days before trash is emptied",
        "AUTOSAVE_INTERVAL": "Post autosave interval in seconds",
        "WP_POST_REVISIONS": "Number of post revisions to keep",
        "MEDIA_TRASH": "Whether media can be trashed",
        "SHORTINIT": "Whether to load minimal WordPress",
    },
    "paths": {
        "ABSPATH": "Absolute path to WordPress directory",
        "WP_CONTENT_DIR": "Content directory path",
        "WP_CONTENT_URL": "Content directory URL",
        "WP_PLUGIN_DIR": "Plugins directory path",
        "WP_PLUGIN_URL": "Plugins directory URL",
        "WPMU_PLUGIN_DIR": "Must-use plugins directory path",
        "WPMU_PLUGIN_URL": "Must-use plugins directory URL",
        "UPLOADS": "Uploads directory relative path",
        "WP_TEMP_DIR": "Temporary directory path",
    },
    "database": {
        "DB_NAME": "Database name",
        "DB_USER": "Database username",
        "DB_PASSWORD": "Database password (hidden)",
        "DB_HOST": "Database host",
        "DB_CHARSET": "Database character set",
        "DB_COLLATE": "Database collation",
        "WP_ALLOW_REPAIR": "Allow database repair",
        "DO_NOT_UPGRADE_GLOBAL_TABLES": "Skip global table upgrades",
        "CUSTOM_USER_TABLE": "Custom users table name",
        "CUSTOM_USER_META_TABLE": "Custom usermeta table name",
    },
    "debug": {
        "WP_DEBUG": "Enable debug mode",
        "WP_DEBUG_LOG": "Log errors to wp-content/debug.log",
        "WP_DEBUG_DISPLAY": "Display errors on screen",
        "SCRIPT_DEBUG": "Use unminified scripts",
        "SAVEQUERIES": "Save database queries for analysis",
        "WP_DISABLE_FATAL_ERROR_HANDLER": "Disable fatal error handler",
        "WP_ENVIRONMENT_TYPE": "Environment type (local, development, staging, production)",
        "WP_DEVELOPMENT_MODE": "Development mode settings",
    },
    "multisite": {
        "WP_ALLOW_MULTISITE": "Allow multisite feature",
        "MULTISITE": "Multisite is enabled",
        "SUBDOMAIN_INSTALL": "Subdomain installation",
        "DOMAIN_CURRENT_SITE": "Current site domain",
        "PATH_CURRENT_SITE": "Current site path",
        "SITE_ID_CURRENT_SITE": "Current site ID",
        "BLOG_ID_CURRENT_SITE": "Current blog ID",
        "NOBLOGREDIRECT": "Redirect non-existent blogs URL",
    },
    "security": {
        "AUTH_KEY": "Authentication key (hidden)",
        "SECURE_AUTH_KEY": "Secure authentication key (hidden)",
        "LOGGED_IN_KEY": "Logged in key (hidden)",
        "NONCE_KEY": "Nonce key (hidden)",
        "AUTH_SALT": "Authentication salt (hidden)",
        "SECURE_AUTH_SALT": "Secure authentication salt (hidden)",
        "LOGGED_IN_SALT": "Logged in salt (hidden)",
        "NONCE_SALT": "Nonce salt (hidden)",
        "DISALLOW_FILE_EDIT": "Disable theme/plugin editor",
        "DISALLOW_FILE_MODS": "Disable theme/plugin updates",
        "DISALLOW_UNFILTERED_HTML": "Disable unfiltered HTML",
        "ALLOW_UNFILTERED_UPLOADS": "Allow unfiltered uploads",
        "FORCE_SSL_ADMIN": "Force SSL for admin",
    },
    "performance": {
        "WP_MEMORY_LIMIT": "PHP memory limit for WordPress",
        "WP_MAX_MEMORY_LIMIT": "Maximum memory limit (admin)",
        "WP_CACHE": "Enable advanced caching",
        "COMPRESS_CSS": "Compress CSS files",
        "COMPRESS_SCRIPTS": "Compress JavaScript files",
        "CONCATENATE_SCRIPTS": "Concatenate scripts",
        "ENFORCE_GZIP": "Enforce gzip compression",
        "DISABLE_WP_CRON": "Disable WordPress cron",
        "ALTERNATE_WP_CRON": "Use alternate cron method",
        "WP_CRON_LOCK_TIMEOUT": "Cron lock timeout",
        "FS_METHOD": "Filesystem access method",
        "IMAGE_EDIT_OVERWRITE": "Overwrite original images",
    },
}

CATEGORIES = [*CONSTANT_CATEGORIES, "custom", "all"]

_KNOWN_CONSTANTS = {name for table in CONSTANT_CATEGORIES.values() for name in table}

# Substrings that mark a constant as a credential
_SENSITIVE_MARKERS = ("KEY", "SECRET", "PASSWORD", "SALT", "TOKEN")


def is_sensitive(name: str) -> bool:
    upper = name.upper()
    return any(marker in upper for marker in _SENSITIVE_MARKERS)


def php_type(value: Any) -> str:
    """The name ``gettype()`` would report for a parsed define value."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "double"
    return "string"


class Environment(BaseTool):
    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        super().__init__(install, config)
        self._tool_map = {
            "list_constants": self._list_constants,
            "get_constant": self._get_constant,
        }

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return [
            self.create_tool_definition(
                "list_constants",
                "List WordPress constants by category: core, paths, database, debug, "
                "multisite, security, performance, custom, or all",
                {
                    "category": {
                        "type": "string",
                        "description": "Filter by category (default: all)",
                        "enum": CATEGORIES,
                    },
                },
            ),
            self.create_tool_definition(
                "get_constant",
                "Get the value of a specific WordPress constant",
                {
                    "name": {
                        "type": "string",
                        "description": "The constant name (e.g., WP_DEBUG, ABSPATH, DB_NAME)",
                    },
                },
                ["name"],
            ),
        ]

    async def _list_constants(self, arguments: dict[str, Any]) -> dict[str, Any]:
        category = arguments.get("category") or "all"
        if category not in CATEGORIES:
            raise ToolError(f"Invalid category '{category}'. Expected one of: {', '.join(CATEGORIES)}")

        constants: dict[str, list[dict[str, Any]]] = {}
        for name, table in CONSTANT_CATEGORIES.items():
            if category in (name, "all"):
                constants[name] = [self.describe(const, description) for const, description in table.items()]
        if category in ("custom", "all"):
            constants["custom"] = self.custom_constants()

        return {"category": category, "constants": constants}

    async def _get_constant(self, arguments: dict[str, Any]) -> dict[str, Any]:
        name = self.require(arguments, "name")
        defined, value, source = self.lookup(name)
        if not defined:
            return {
                "name": name,
                "defined": False,
                "value": None,
                "message": f"Constant '{name}' is not defined in wp-config.php",
            }
        return {
            "name": name,
            "defined": True,
            "value": HIDDEN if is_sensitive(name) else value,
            "type": php_type(value),
            "source": source,
        }

    # --- Lookups ---

    def derived_constants(self) -> dict[str, str]:
        """Constants WordPress computes from the install layout."""
        install = self.install
        return {
            "ABSPATH": f"{install.root}/",
            "WPINC": "wp-includes",
            "WP_CONTENT_DIR": str(install.content_dir),
            "WP_PLUGIN_DIR": str(install.plugin_dir),
            "WPMU_PLUGIN_DIR": str(install.mu_plugin_dir),
            "WP_LANG_DIR": str(install.content_dir / "languages"),
        }

    def lookup(self, name: str) -> tuple[bool, Any, str | None]:
        """``(defined, value, source)`` where source is ``wp-config`` or ``derived``."""
        constants = self.install.constants
        if name in constants:
            return True, constants[name], "wp-config"
        derived = self.derived_constants()
        if name in derived:
            return True, derived[name], "derived"
        return False, None, None

    def describe(self, name: str, description: str) -> dict[str, Any]:
        defined, value, _ = self.lookup(name)
        return {
            "name": name,
            "description": description,
            "defined": defined,
            "value": HIDDEN if defined and is_sensitive(name) else value,
            "type": php_type(value) if defined else None,
        }

    def custom_constants(self) -> list[dict[str, Any]]:
        """wp-config.php defines that are not standard WordPress constants."""
        custom = []
        for name, value in self.install.constants.items():
            if name in _KNOWN_CONSTANTS or "COOKIE" in name:
                continue
            if name.startswith(("WP_", "WPMU_")):
                continue
            custom.append({
                "name": name,
                "value": HIDDEN if is_sensitive(name) else value,
                "type": php_type(value),
            })
        return custom
