"""Template hierarchy tools.

The active theme is stored in the database, which is never read, so
the theme is resolved from files:

  1. the ``theme`` argument (a directory name under ``wp-content/themes``)
  2. ``WP_DEFAULT_THEME`` from wp-config.php, if that theme exists
  3. the first child theme, since a child theme only exists to be activated
  4. the first theme alphabetically
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall

PAGE_TYPES = [
    "home", "front_page", "single", "page", "archive", "category", "tag",
    "author", "date", "search", "404", "attachment", "taxonomy",
]

PART_DIRS = ("template-parts", "partials")

# First match wins
TEMPLATE_TYPES: list[tuple[str, re.Pattern[str]]] = [
    (name, re.compile(pattern))
    for name, pattern in [
        ("template-part", r"^(?:template-parts|partials)/"),
        ("single", r"^single(?:-|$)"),
        ("page", r"^page(?:-|$)"),
        ("archive", r"^archive(?:-|$)"),
        ("category", r"^category(?:-|$)"),
        ("tag", r"^tag(?:-|$)"),
        ("taxonomy", r"^taxonomy(?:-|$)"),
        ("author", r"^author(?:-|$)"),
        ("search", r"^search"),
        ("404", r"^404"),
        ("home", r"^home"),
        ("front-page", r"^front-page"),
        ("header", r"^header(?:-|$)"),
        ("footer", r"^footer(?:-|$)"),
        ("sidebar", r"^sidebar(?:-|$)"),
        ("comments", r"^comments"),
    ]
]


def hierarchy(page_type: str, context: str | None = None) -> dict[str, Any]:
    """Candidate templates WordPress tries for ``page_type``, most specific first."""
    templates: list[str] = []

    if page_type == "home":
        return {
            "description": "Blog posts index (when front page displays latest posts)",
            "templates": ["home.php", "index.php"],
        }
    if page_type == "front_page":
        return {
            "description": "Static front page",
            "templates": ["front-page.php", "page.php (if using a page)", "index.php"],
        }
    if page_type == "single":
        post_type = context or "post"
        if post_type != "post":
            templates += [f"single-{post_type}-{{slug}}.php", f"single-{post_type}.php"]
        else:
            templates.append("single-post-{slug}.php")
        return {
            "description": f"Single post/custom post type display (post_type: {post_type})",
            "templates": templates + ["single.php", "singular.php", "index.php"],
        }
    if page_type == "page":
        if context:
            templates.append(f"page-{context}.php")
        return {
            "description": "Static page display",
            "templates": templates + ["page-{slug}.php", "page-{id}.php", "page.php", "singular.php", "index.php"],
        }
    if page_type == "archive":
        if context:
            templates.append(f"archive-{context}.php")
        return {
            "description": "Post type archive display",
            "templates": templates + ["archive-{post_type}.php", "archive.php", "index.php"],
        }
    if page_type in ("category", "tag"):
        if context:
            templates.append(f"{page_type}-{context}.php")
        return {
            "description": f"{page_type.capitalize()} archive display",
            "templates": templates + [
                f"{page_type}-{{slug}}.php",
                f"{page_type}-{{id}}.php",
                f"{page_type}.php",
                "archive.php",
                "index.php",
            ],
        }
    if page_type == "author":
        return {
            "description": "Author archive display",
            "templates": ["author-{nicename}.php", "author-{id}.php", "author.php", "archive.php", "index.php"],
        }
    if page_type == "date":
        return {
            "description": "Date-based archive display",
            "templates": ["date.php", "archive.php", "index.php"],
        }
    if page_type == "search":
        return {"description": "Search results display", "templates": ["search.php", "index.php"]}
    if page_type == "404":
        return {"description": "404 error page display", "templates": ["404.php", "index.php"]}
    if page_type == "attachment":
        if context and "/" in context:
            mime_type, subtype = context.split("/", 1)
            templates += [f"{mime_type}-{subtype}.php", f"{subtype}.php", f"{mime_type}.php"]
        return {
            "description": "Attachment page display",
            "templates": templates + [
                "{mimetype}.php",
                "{subtype}.php",
                "{type}.php",
                "attachment.php",
                "single.php",
                "singular.php",
                "index.php",
            ],
        }
    if page_type == "taxonomy":
        if context:
            templates += [f"taxonomy-{context}-{{term}}.php", f"taxonomy-{context}.php"]
        return {
            "description": "Custom taxonomy archive display",
            "templates": templates + [
                "taxonomy-{taxonomy}-{term}.php",
                "taxonomy-{taxonomy}.php",
                "taxonomy.php",
                "archive.php",
                "index.php",
            ],
        }
    raise ToolError(f"Unknown template type: {page_type}. Available types: {', '.join(PAGE_TYPES)}")


def identify_template_type(relative_path: str) -> str:
    name = Path(relative_path).stem
    for template_type, pattern in TEMPLATE_TYPES:
        if pattern.search(relative_path) or pattern.search(name):
            return template_type
    return "other"


class TemplateHierarchy(BaseTool):
    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        super().__init__(install, config)
        self._tool_map = {
            "template_hierarchy": self._template_hierarchy,
            "list_theme_templates": self._list_theme_templates,
            "get_template_parts": self._get_template_parts,
        }

    def get_tool_definitions(self) -> list[ToolDefinition]:
        theme = {
            "type": "string",
            "description": "Theme directory name (default: guessed from wp-config.php and installed themes)",
        }
        return [
            self.create_tool_definition(
                "template_hierarchy",
                "Get template hierarchy information for different page types",
                {
                    "type": {
                        "type": "string",
                        "description": "Page type: home, front_page, single, page, archive, category, tag, "
                                       "author, date, search, 404, attachment, taxonomy, or all",
                    },
                    "context": {
                        "type": "string",
                        "description": "Additional context (post type for single, slug for page, "
                                       "taxonomy for taxonomy, mime type for attachment)",
                    },
                    "theme": theme,
                },
            ),
            self.create_tool_definition(
                "list_theme_templates",
                "List all template files in the theme and its parent",
                {
                    "type": {
                        "type": "string",
                        "description": "Filter by template type: single, page, archive, header, template-part, ...",
                    },
                    "theme": theme,
                },
            ),
            self.create_tool_definition(
                "get_template_parts",
                "List template parts (template-parts/ and partials/) used by the theme",
                {"theme": theme},
            ),
        ]

    async def _template_hierarchy(self, arguments: dict[str, Any]) -> dict[str, Any]:
        page_type = arguments.get("type") or "all"
        context = arguments.get("context") or None

        if page_type != "all":
            return {"type": page_type, "context": context, "hierarchy": hierarchy(page_type, context)}

        theme = self.resolve_theme(arguments.get("theme"), required=False)
        result: dict[str, Any] = {
            "theme": None,
            "template_directory": None,
            "stylesheet_directory": None,
            "is_child_theme": False,
        }
        if theme is not None:
            template_dir, stylesheet_dir = self.theme_dirs(theme)
            result.update({
                "theme": theme["stylesheet"],
                "template_directory": str(template_dir),
                "stylesheet_directory": str(stylesheet_dir),
                "is_child_theme": theme["is_child_theme"],
            })
        result["hierarchies"] = {name: hierarchy(name, context) for name in PAGE_TYPES}
        return result

    async def _list_theme_templates(self, arguments: dict[str, Any]) -> dict[str, Any]:
        wanted = arguments.get("type") or None
        theme = self.resolve_theme(arguments.get("theme"))
        template_dir, stylesheet_dir = self.theme_dirs(theme)

        roots = [(template_dir, False)]
        if stylesheet_dir != template_dir:
            roots.append((stylesheet_dir, True))

        templates = []
        for root, from_child in roots:
            for php_file in _php_files(root):
                relative = php_file.relative_to(root).as_posix()
                template_type = identify_template_type(relative)
                if wanted is not None and template_type != wanted:
                    continue
                templates.append({
                    "file": relative,
                    "path": str(php_file),
                    "type": template_type,
                    "is_child_theme": from_child,
                })

        templates.sort(key=lambda t: t["file"])
        return {"theme": theme["Name"], "count": len(templates), "templates": templates}

    async def _get_template_parts(self, arguments: dict[str, Any]) -> dict[str, Any]:
        theme = self.resolve_theme(arguments.get("theme"))
        template_dir, stylesheet_dir = self.theme_dirs(theme)

        roots = [(template_dir, False)]
        if stylesheet_dir != template_dir:
            roots.append((stylesheet_dir, True))

        parts = []
        for root, from_child in roots:
            for part_dir in PART_DIRS:
                for php_file in _php_files(root / part_dir):
                    slug = php_file.relative_to(root).with_suffix("").as_posix()
                    part: dict[str, Any] = {
                        "file": php_file.relative_to(root).as_posix(),
                        "name": php_file.stem,
                        "usage": f"get_template_part('{slug}')",
                    }
                    if from_child:
                        part["is_child_theme"] = True
                    parts.append(part)

        return {"theme": theme["Name"], "count": len(parts), "parts": parts}

    # --- Theme resolution ---

    def resolve_theme(self, name: str | None, required: bool = True) -> dict[str, Any] | None:
        themes = {t["stylesheet"]: t for t in self.install.themes()}

        if name:
            if name not in themes:
                raise ToolError(f"Theme not found: {name}. Use list_themes to see installed themes")
            return themes[name]

        default = self.install.constant("WP_DEFAULT_THEME")
        if isinstance(default, str) and default in themes:
            return themes[default]

        children = [t for t in themes.values() if t["is_child_theme"]]
        if children:
            return children[0]
        if themes:
            return next(iter(themes.values()))

        if required:
            raise ToolError("No themes found in wp-content/themes")
        return None

    def theme_dirs(self, theme: dict[str, Any]) -> tuple[Path, Path]:
        """``(template_directory, stylesheet_directory)`` for ``theme``."""
        stylesheet_dir = Path(theme["path"])
        parent = theme.get("Template")
        if parent and (self.install.theme_dir / parent).is_dir():
            return self.install.theme_dir / parent, stylesheet_dir
        return stylesheet_dir, stylesheet_dir


def _php_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob("*.php") if p.is_file())
