"""WordPress developer documentation tools.

Lookups go, in order, to:
  - the installation's own core source (``wp-includes``, ``wp-admin/includes``)
    for function signatures and docblock summaries
  - a small built-in reference table for the most common functions and hooks
  - the developer.wordpress.org REST search endpoint

Reference: https://developer.wordpress.org/reference/
"""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import Any

import httpx

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://developer.wordpress.org/wp-json/wp/v2"
REFERENCE_URL = "https://developer.wordpress.org/reference"

DOC_TYPES = {
    "all": None,
    "functions": "wp-parser-function",
    "hooks": "wp-parser-hook",
    "classes": "wp-parser-class",
    "methods": "wp-parser-method",
}

CORE_SOURCE_DIRS = ("wp-includes", "wp-admin/includes")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


COMMON_FUNCTIONS: dict[str, dict[str, Any]] = {
    "wp_insert_post": {
        "description": "Insert or update a post.",
        "parameters": {
            "postarr": "array - An array of elements that make up a post.",
            "wp_error": "bool - Whether to return a WP_Error on failure. Default false.",
            "fire_after_hooks": "bool - Whether to fire the after insert hooks. Default true.",
        },
        "returns": "int|WP_Error - The post ID on success, WP_Error on failure.",
    },
    "get_posts": {
        "description": "Retrieves an array of the latest posts, or posts matching the given criteria.",
        "parameters": {"args": "array - Arguments to retrieve posts."},
        "returns": "WP_Post[]|int[] - Array of post objects or post IDs.",
    },
    "add_action": {
        "description": "Hooks a function on to a specific action.",
        "parameters": {
            "hook_name": "string - The name of the action to add the callback to.",
            "callback": "callable - The callback to be run when the action is called.",
            "priority": "int - Used to specify the order. Default 10.",
            "accepted_args": "int - The number of arguments the callback accepts. Default 1.",
        },
        "returns": "true - Always returns true.",
    },
    "add_filter": {
        "description": "Hooks a function to a specific filter action.",
        "parameters": {
            "hook_name": "string - The name of the filter to add the callback to.",
            "callback": "callable - The callback to be run when the filter is applied.",
            "priority": "int - Used to specify the order. Default 10.",
            "accepted_args": "int - The number of arguments the callback accepts. Default 1.",
        },
        "returns": "true - Always returns true.",
    },
    "register_post_type": {
        "description": "Registers a post type.",
        "parameters": {
            "post_type": "string - Post type key. Must not exceed 20 characters.",
            "args": "array|string - Array or string of arguments for registering a post type.",
        },
        "returns": "WP_Post_Type|WP_Error - The registered post type object or error.",
    },
    "register_taxonomy": {
        "description": "Creates or modifies a taxonomy object.",
        "parameters": {
            "taxonomy": "string - Taxonomy key. Must not exceed 32 characters.",
            "object_type": "array|string - Object type(s) the taxonomy is associated with.",
            "args": "array|string - Array or query string of arguments for registering a taxonomy.",
        },
        "returns": "WP_Taxonomy|WP_Error - The registered taxonomy object or error.",
    },
    "get_option": {
        "description": "Retrieves an option value based on an option name.",
        "parameters": {
            "option": "string - Name of the option to retrieve.",
            "default": "mixed - Default value to return if the option does not exist.",
        },
        "returns": "mixed - Value of the option or default.",
    },
    "update_option": {
        "description": "Updates the value of an option that was already added.",
        "parameters": {
            "option": "string - Name of the option to update.",
            "value": "mixed - Option value.",
            "autoload": "string|bool - Whether to load the option when WordPress starts.",
        },
        "returns": "bool - True if the value was updated, false otherwise.",
    },
}

COMMON_HOOKS: dict[str, dict[str, str]] = {
    "init": {
        "description": "Fires after WordPress has finished loading but before any headers are sent.",
        "type": "action",
        "parameters": "None",
        "common_uses": "Register post types, taxonomies, and shortcodes.",
    },
    "wp_enqueue_scripts": {
        "description": "Fires when scripts and styles are enqueued for the frontend.",
        "type": "action",
        "parameters": "None",
        "common_uses": "Enqueue styles and scripts for the theme.",
    },
    "admin_enqueue_scripts": {
        "description": "Fires when scripts and styles are enqueued for all admin pages.",
        "type": "action",
        "parameters": "$hook_suffix - The current admin page.",
        "common_uses": "Enqueue styles and scripts for admin pages.",
    },
    "the_content": {
        "description": "Filters the post content.",
        "type": "filter",
        "parameters": "$content - The post content.",
        "common_uses": "Modify post content before display.",
    },
    "the_title": {
        "description": "Filters the post title.",
        "type": "filter",
        "parameters": "$title, $id - The post title and post ID.",
        "common_uses": "Modify post title before display.",
    },
    "wp_head": {
        "description": "Fires in the head section of the page.",
        "type": "action",
        "parameters": "None",
        "common_uses": "Add meta tags, styles, or scripts to head.",
    },
    "wp_footer": {
        "description": "Fires before the closing body tag.",
        "type": "action",
        "parameters": "None",
        "common_uses": "Add scripts before the closing body tag.",
    },
    "save_post": {
        "description": "Fires once a post has been saved.",
        "type": "action",
        "parameters": "$post_id, $post, $update - Post ID, post object, whether this is an update.",
        "common_uses": "Perform actions when a post is saved.",
    },
    "pre_get_posts": {
        "description": "Fires after the query variable object is created, but before the query is run.",
        "type": "action",
        "parameters": "$query - The WP_Query instance.",
        "common_uses": "Modify the main query or custom queries.",
    },
    "template_redirect": {
        "description": "Fires before determining which template to load.",
        "type": "action",
        "parameters": "None",
        "common_uses": "Redirect based on conditions, output custom content.",
    },
}


class Documentation(BaseTool):
    def __init__(
        self,
        install: WordPressInstall,
        config: BoostConfig,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(install, config)
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._tool_map = {
            "search_docs": self._search_docs,
            "get_function_reference": self._get_function_reference,
            "get_hook_reference": self._get_hook_reference,
            "list_function_parameters": self._list_function_parameters,
        }

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return [
            self.create_tool_definition(
                "search_docs",
                "Search WordPress developer documentation (developer.wordpress.org)",
                {
                    "query": {
                        "type": "string",
                        "description": 'Search query (e.g., "wp_query", "custom post type", "rest api")',
                    },
                    "type": {
                        "type": "string",
                        "description": "Filter by documentation type",
                        "enum": list(DOC_TYPES),
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum results to return (default: 10)",
                    },
                },
                ["query"],
            ),
            self.create_tool_definition(
                "get_function_reference",
                "Get reference documentation for a WordPress function",
                {
                    "function": {
                        "type": "string",
                        "description": 'Function name (e.g., "wp_insert_post", "get_posts")',
                    },
                },
                ["function"],
            ),
            self.create_tool_definition(
                "get_hook_reference",
                "Get reference documentation for a WordPress hook",
                {
                    "hook": {
                        "type": "string",
                        "description": 'Hook name (e.g., "init", "the_content")',
                    },
                },
                ["hook"],
            ),
            self.create_tool_definition(
                "list_function_parameters",
                "Get parameter names, types, defaults and return type for a WordPress function",
                {
                    "function": {
                        "type": "string",
                        "description": "Function name",
                    },
                },
                ["function"],
            ),
        ]

    # --- Handlers ---

    async def _search_docs(self, arguments: dict[str, Any]) -> dict[str, Any]:
        query = self.require(arguments, "query")
        doc_type = arguments.get("type") or "all"
        limit = self.int_argument(arguments, "limit", 10)
        if doc_type not in DOC_TYPES:
            raise ToolError(f"Invalid type '{doc_type}'. Expected one of: {', '.join(DOC_TYPES)}")

        if _IDENTIFIER_RE.match(query):
            local = self.find_core_function(query)
            if local is not None:
                return {"query": query, "source": "local", "results": [local]}

        results = await self.search_online(query, doc_type, limit)
        return {
            "query": query,
            "type": doc_type,
            "source": "online",
            "count": len(results),
            "results": results,
        }

    async def _get_function_reference(self, arguments: dict[str, Any]) -> dict[str, Any]:
        function = self.require(arguments, "function")

        local = self.find_core_function(function)
        if local is not None:
            return local

        known = COMMON_FUNCTIONS.get(function.lower())
        if known is not None:
            return {
                "function": function,
                "found": True,
                "source": "reference",
                **known,
                "docs_url": f"{REFERENCE_URL}/functions/{function.lower()}/",
            }

        results = await self.search_online(function, "functions", 1)
        if results:
            return {
                "function": function,
                "found": True,
                "source": "online",
                "result": results[0],
            }

        return {
            "function": function,
            "found": False,
            "suggestion": "Function may not be a core WordPress function, or may be provided by a plugin/theme.",
            "docs_url": f"{REFERENCE_URL}/functions/{function.lower()}/",
        }

    async def _get_hook_reference(self, arguments: dict[str, Any]) -> dict[str, Any]:
        hook = self.require(arguments, "hook")
        result: dict[str, Any] = {"hook": hook}

        known = COMMON_HOOKS.get(hook)
        if known is not None:
            result.update(known)
            result["found"] = True
        else:
            result["found"] = False

        result["docs_url"] = f"{REFERENCE_URL}/hooks/{hook.lower()}/"
        return result

    async def _list_function_parameters(self, arguments: dict[str, Any]) -> dict[str, Any]:
        function = self.require(arguments, "function")

        located = self._locate_core_function(function)
        if located is not None:
            php_file, _, match = located
            return {
                "function": function,
                "found": True,
                "source": "local",
                "file": php_file.relative_to(self.install.root).as_posix(),
                "parameters": parse_php_params(match.group("params")),
                "return_type": match.group("returns"),
            }

        known = COMMON_FUNCTIONS.get(function.lower())
        if known is not None:
            return {
                "function": function,
                "found": True,
                "source": "reference",
                "parameters": [
                    {"name": name, "position": position, "description": description}
                    for position, (name, description) in enumerate(known["parameters"].items())
                ],
                "returns": known["returns"],
            }

        return {
            "function": function,
            "found": False,
            "suggestion": "Function not found in core source; it may be provided by a plugin or theme.",
        }

    # --- Lookups ---

    async def search_online(self, query: str, doc_type: str, limit: int) -> list[dict[str, Any]]:
        """Query the developer.wordpress.org search endpoint."""
        params: dict[str, Any] = {
            "search": query,
            "per_page": max(1, min(limit, 100)),
            "type": "post",
        }
        subtype = DOC_TYPES.get(doc_type)
        if subtype:
            params["subtype"] = subtype

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            ) as client:
                response = await client.get(f"{self._api_url}/search", params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Documentation search failed for %r: %s", query, exc)
            raise ToolError(f"Documentation search failed: {exc}") from exc

        if not isinstance(data, list):
            return []

        return [
            {
                "title": html.unescape(item.get("title", "")),
                "type": item.get("subtype", "unknown"),
                "url": item.get("url", ""),
            }
            for item in data
            if isinstance(item, dict)
        ]

    def find_core_function(self, name: str) -> dict[str, Any] | None:
        """Locate ``function name(...)`` in the installation's core source."""
        located = self._locate_core_function(name)
        if located is None:
            return None

        php_file, source, match = located
        params = " ".join(match.group("params").split())
        return {
            "function": name,
            "found": True,
            "source": "local",
            "signature": f"{name}({params})",
            "description": _docblock_summary(source, match.start()),
            "file": php_file.relative_to(self.install.root).as_posix(),
            "line": source.count("\n", 0, match.start()) + 1,
            "docs_url": f"{REFERENCE_URL}/functions/{name.lower()}/",
        }

    def _locate_core_function(self, name: str) -> tuple[Path, str, re.Match[str]] | None:
        if not _IDENTIFIER_RE.match(name):
            return None

        pattern = re.compile(
            rf"^[ \t]*function\s+&?{re.escape(name)}\s*\((?P<params>[^{{;]*?)\)"
            rf"\s*(?::\s*(?P<returns>[\w\\|?]+)\s*)?\{{",
            re.MULTILINE | re.IGNORECASE,
        )

        for source_dir in CORE_SOURCE_DIRS:
            directory = self.install.root / source_dir
            if not directory.is_dir():
                continue
            for php_file in sorted(directory.rglob("*.php")):
                source = php_file.read_text(encoding="utf-8", errors="replace")
                match = pattern.search(source)
                if match is not None:
                    return php_file, source, match
        return None


# ---------------------------------------------------------------------------
# PHP signature parsing
# ---------------------------------------------------------------------------


_PARAM_RE = re.compile(
    r"""^(?P<type>\??[\w\\|]+\s+)?(?P<ref>&)?\s*(?P<variadic>\.\.\.)?\s*\$(?P<name>\w+)
        (?:\s*=\s*(?P<default>.+))?$""",
    re.VERBOSE | re.DOTALL,
)


def split_php_params(params: str) -> list[str]:
    """Split a parameter list on top-level commas (not inside ``array(...)`` or strings)."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    for char in params:
        if quote:
            current.append(char)
            if char == quote and (len(current) < 2 or current[-2] != "\\"):
                quote = None
            continue
        if char in "'\"":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def parse_php_params(params: str) -> list[dict[str, Any]]:
    parsed = []
    for position, raw in enumerate(split_php_params(params)):
        match = _PARAM_RE.match(" ".join(raw.split()))
        if match is None:
            parsed.append({"name": raw, "position": position, "optional": False})
            continue

        info: dict[str, Any] = {
            "name": match.group("name"),
            "position": position,
            "optional": match.group("default") is not None or bool(match.group("variadic")),
        }
        if match.group("type"):
            php_type = match.group("type").strip()
            info["type"] = php_type.lstrip("?")
            info["nullable"] = php_type.startswith("?") or "null" in php_type.lower().split("|")
        if match.group("default") is not None:
            info["default"] = match.group("default").strip()
        if match.group("variadic"):
            info["variadic"] = True
        if match.group("ref"):
            info["by_reference"] = True
        parsed.append(info)
    return parsed


def _docblock_summary(source: str, position: int) -> str:
    """First description line of the docblock ending right before ``position``."""
    head = source[:position].rstrip()
    if not head.endswith("*/"):
        return ""
    start = head.rfind("/**")
    if start == -1:
        return ""
    for line in head[start + 3:-2].splitlines():
        text = line.strip().lstrip("*").strip()
        if text and not text.startswith("@"):
            return text
    return ""
