"""Advanced Custom Fields tools.

Reads ACF "local JSON" field groups (``acf-json/*.json``) saved in the
installed themes.  Registered only when ACF is installed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall

logger = logging.getLogger(__name__)

ACF_PLUGIN_SLUGS = ("advanced-custom-fields", "advanced-custom-fields-pro")

GROUP_STATUSES = ["all", "active", "inactive"]

# Settings worth surfacing per field type
TYPE_SETTINGS: dict[str, tuple[str, ...]] = {
    "text": ("placeholder", "maxlength"),
    "textarea": ("placeholder", "maxlength"),
    "email": ("placeholder",),
    "url": ("placeholder",),
    "password": ("placeholder",),
    "number": ("min", "max", "step"),
    "range": ("min", "max", "step"),
    "select": ("choices", "multiple"),
    "checkbox": ("choices",),
    "radio": ("choices",),
    "button_group": ("choices",),
    "image": ("return_format", "mime_types"),
    "file": ("return_format", "mime_types"),
    "gallery": ("return_format", "mime_types"),
    "post_object": ("post_type", "taxonomy"),
    "relationship": ("post_type", "taxonomy"),
    "taxonomy": ("taxonomy", "field_type"),
    "repeater": ("min", "max"),
}

# Keys that get_acf_field already reports or that ACF uses internally
_DETAIL_SKIP = {
    "key", "name", "label", "type", "instructions", "required",
    "conditional_logic", "wrapper", "default_value", "parent",
    "ID", "prefix", "menu_order", "_name", "_valid", "sub_fields", "layouts",
}


class Acf(BaseTool):
    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        super().__init__(install, config)
        self._tool_map = {
            "list_acf_field_groups": self._list_field_groups,
            "list_acf_fields": self._list_fields,
            "get_acf_field_group": self._get_field_group,
            "get_acf_schema": self._get_schema,
            "get_acf_field": self._get_field,
        }

    @staticmethod
    def is_available(install: WordPressInstall) -> bool:
        return install.has_plugin(*ACF_PLUGIN_SLUGS)

    def get_tool_definitions(self) -> list[ToolDefinition]:
        group_property = {
            "type": "string",
            "description": "Field group key (group_...) or title",
        }
        return [
            self.create_tool_definition(
                "list_acf_field_groups",
                "List ACF field groups saved as local JSON, with field counts and location rules",
                {
                    "status": {
                        "type": "string",
                        "description": "Filter by group status: active, inactive, or all",
                        "enum": GROUP_STATUSES,
                    },
                },
            ),
            self.create_tool_definition(
                "list_acf_fields",
                "List the top-level fields of an ACF field group",
                {"group": group_property},
                ["group"],
            ),
            self.create_tool_definition(
                "get_acf_field_group",
                "Get the full definition of an ACF field group, including nested fields",
                {"group": group_property},
                ["group"],
            ),
            self.create_tool_definition(
                "get_acf_schema",
                "Get the ACF schema for code generation: one group, or every active group",
                {
                    "group": {
                        "type": "string",
                        "description": "Field group key or title (optional, all active groups if omitted)",
                    },
                    "include_locations": {
                        "type": "boolean",
                        "description": "Include location rules in output (default: true)",
                    },
                },
            ),
            self.create_tool_definition(
                "get_acf_field",
                "Find an ACF field by name or key across all field groups",
                {
                    "field": {
                        "type": "string",
                        "description": "Field name or key (field_...)",
                    },
                },
                ["field"],
            ),
        ]

    # --- Handlers ---

    async def _list_field_groups(self, arguments: dict[str, Any]) -> dict[str, Any]:
        status = arguments.get("status") or "all"
        if status not in GROUP_STATUSES:
            raise ToolError(
                f"Invalid status '{status}'. Expected one of: {', '.join(GROUP_STATUSES)}"
            )

        groups = []
        for source, group in self.field_groups():
            active = bool(group.get("active", True))
            if status == "active" and not active:
                continue
            if status == "inactive" and active:
                continue
            groups.append({
                "key": group.get("key"),
                "title": group.get("title"),
                "active": active,
                "field_count": len(group.get("fields", [])),
                "location_summary": location_summary(group.get("location", [])),
                "source": source,
            })

        return {
            "count": len(groups),
            "field_groups": groups,
        }

    async def _list_fields(self, arguments: dict[str, Any]) -> dict[str, Any]:
        _, group = self.find_group(self.require(arguments, "group"))
        fields = [summarize_field(f) for f in group.get("fields", [])]
        return {
            "group": group.get("title"),
            "key": group.get("key"),
            "count": len(fields),
            "fields": fields,
        }

    async def _get_field_group(self, arguments: dict[str, Any]) -> dict[str, Any]:
        source, group = self.find_group(self.require(arguments, "group"))
        return {
            **group_schema(group, include_locations=True),
            "source": source,
        }

    async def _get_schema(self, arguments: dict[str, Any]) -> dict[str, Any]:
        include_locations = arguments.get("include_locations", True) is not False
        wanted = arguments.get("group")
        if wanted:
            _, group = self.find_group(str(wanted))
            return group_schema(group, include_locations)

        schema = [
            group_schema(group, include_locations)
            for _, group in self.field_groups()
            if group.get("active", True)
        ]
        return {
            "count": len(schema),
            "schema": schema,
        }

    async def _get_field(self, arguments: dict[str, Any]) -> dict[str, Any]:
        wanted = self.require(arguments, "field")
        for _, group in self.field_groups():
            for field_def in _walk_fields(group.get("fields", [])):
                if wanted in (field_def.get("key"), field_def.get("name")):
                    return {
                        **summarize_field(field_def),
                        "instructions": field_def.get("instructions", ""),
                        "default_value": field_def.get("default_value"),
                        "conditional_logic": field_def.get("conditional_logic") or False,
                        "group": {"key": group.get("key"), "title": group.get("title")},
                        "settings": {
                            k: v for k, v in field_def.items()
                            if k not in _DETAIL_SKIP and v not in (None, "", [], {})
                        },
                        "usage": usage_examples(field_def),
                    }
        raise ToolError(f"Field not found: {wanted}")

    # --- Helpers ---

    def json_dirs(self) -> list[Path]:
        return [
            Path(theme["path"]) / "acf-json"
            for theme in self.install.themes()
            if (Path(theme["path"]) / "acf-json").is_dir()
        ]

    def field_groups(self) -> list[tuple[str, dict[str, Any]]]:
        """All ``(relative source path, group)`` pairs from local JSON.

        Files that cannot be read or parsed are logged and skipped.
        """
        groups = []
        for directory in self.json_dirs():
            for json_file in sorted(directory.glob("*.json")):
                try:
                    data = json.loads(json_file.read_text(encoding="utf-8"))
                except (OSError, ValueError) as exc:
                    logger.warning("Skipping unreadable ACF JSON %s: %s", json_file, exc)
                    continue
                if isinstance(data, dict) and str(data.get("key", "")).startswith("group_"):
                    source = json_file.relative_to(self.install.theme_dir).as_posix()
                    groups.append((source, data))
        return groups

    def find_group(self, identifier: str) -> tuple[str, dict[str, Any]]:
        """Match by exact key, then by case-insensitive title."""
        lowered = identifier.lower()
        for source, group in self.field_groups():
            if group.get("key") == identifier or str(group.get("title", "")).lower() == lowered:
                return source, group
        raise ToolError(
            f"Field group not found: {identifier}. "
            "Use list_acf_field_groups to see available groups"
        )


def group_schema(group: dict[str, Any], include_locations: bool) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "key": group.get("key"),
        "title": group.get("title"),
        "active": bool(group.get("active", True)),
        "style": group.get("style"),
        "position": group.get("position"),
    }
    if include_locations:
        schema["location"] = group.get("location", [])
        schema["location_summary"] = location_summary(group.get("location", []))
    schema["fields"] = [summarize_field(f) for f in group.get("fields", [])]
    return schema


def summarize_field(field_def: dict[str, Any]) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "key": field_def.get("key"),
        "name": field_def.get("name"),
        "label": field_def.get("label"),
        "type": field_def.get("type"),
        "required": bool(field_def.get("required", False)),
    }
    for setting in TYPE_SETTINGS.get(field_def.get("type", ""), ()):
        value = field_def.get(setting)
        if value not in (None, "", [], {}):
            summary[setting] = value
    if field_def.get("sub_fields"):
        summary["sub_fields"] = [summarize_field(f) for f in field_def["sub_fields"]]
    if field_def.get("layouts"):
        summary["layouts"] = [
            {
                "key": layout.get("key"),
                "name": layout.get("name"),
                "label": layout.get("label"),
                "sub_fields": [summarize_field(f) for f in layout.get("sub_fields", [])],
            }
            for layout in _layouts(field_def)
        ]
    return summary


def usage_examples(field_def: dict[str, Any]) -> dict[str, str]:
    """Template snippets for reading the field in a theme."""
    name = field_def.get("name", "")
    examples = {
        "get_field": f"get_field('{name}')",
        "the_field": f"the_field('{name}')",
    }
    field_type = field_def.get("type")
    if field_type in ("repeater", "flexible_content"):
        examples["loop"] = (
            f"if (have_rows('{name}')) {{\n"
            f"    while (have_rows('{name}')) {{\n"
            "        the_row();\n"
            "        // get_sub_field('sub_field_name');\n"
            "    }\n"
            "}"
        )
    elif field_type == "group":
        examples["group_access"] = f"$group = get_field('{name}');\n// Access: $group['sub_field_name']"
    elif field_type == "image":
        examples["image_array"] = (
            f"$image = get_field('{name}');\n"
            "if ($image) {\n"
            "    echo wp_get_attachment_image($image['ID'], 'full');\n"
            "}"
        )
    elif field_type in ("relationship", "post_object"):
        examples["posts"] = (
            f"$posts = get_field('{name}');\n"
            "foreach ((array) $posts as $post) {\n"
            "    setup_postdata($post);\n"
            "    the_title();\n"
            "}\n"
            "wp_reset_postdata();"
        )
    return examples


def location_summary(location: list[list[dict[str, Any]]]) -> list[str]:
    """Human readable location rules: OR-groups of AND-ed conditions."""
    summary = []
    for rule_group in location:
        parts = [
            f"{rule.get('param')} {rule.get('operator')} {rule.get('value')}"
            for rule in rule_group
        ]
        if parts:
            summary.append(" AND ".join(parts))
    return summary


def _layouts(field_def: dict[str, Any]) -> list[dict[str, Any]]:
    layouts = field_def.get("layouts") or []
    if isinstance(layouts, dict):
        layouts = list(layouts.values())
    return layouts


def _walk_fields(fields: list[dict[str, Any]]) -> Iterator[dict[str, Any]]:
    for field_def in fields:
        yield field_def
        yield from _walk_fields(field_def.get("sub_fields", []))
        for layout in _layouts(field_def):
            yield from _walk_fields(layout.get("sub_fields", []))
