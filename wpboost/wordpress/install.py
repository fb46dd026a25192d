"""File-based view of a WordPress installation.

wordpress-boost does not boot WordPress.  Everything the tools report is
read from the installation's files: ``wp-includes/version.php`` for the
core version, ``wp-config.php`` for ``define()`` constants, and plugin /
theme file headers parsed the way ``get_file_data()`` parses them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from wpboost.exceptions import InstallNotFoundError

logger = logging.getLogger(__name__)

# How far up the tree to look for wp-load.php (run from a plugin dir, etc.)
MAX_LOCATE_DEPTH = 10

# get_file_data() only reads the first 8 KiB of a file
HEADER_READ_BYTES = 8192

PLUGIN_HEADERS = {
    "Name": "Plugin Name",
    "PluginURI": "Plugin URI",
    "Version": "Version",
    "Description": "Description",
    "Author": "Author",
    "TextDomain": "Text Domain",
    "RequiresWP": "Requires at least",
    "RequiresPHP": "Requires PHP",
}

THEME_HEADERS = {
    "Name": "Theme Name",
    "ThemeURI": "Theme URI",
    "Version": "Version",
    "Description": "Description",
    "Author": "Author",
    "Template": "Template",
    "TextDomain": "Text Domain",
    "RequiresWP": "Requires at least",
    "RequiresPHP": "Requires PHP",
}

# Drop-in files WordPress loads from wp-content when present
DROPINS = {
    "advanced-cache.php": "Advanced caching plugin",
    "db.php": "Custom database class",
    "db-error.php": "Custom database error message",
    "install.php": "Custom installation script",
    "maintenance.php": "Custom maintenance message",
    "object-cache.php": "External object cache",
    "php-error.php": "Custom PHP error message",
    "fatal-error-handler.php": "Custom PHP fatal error handler",
    "sunrise.php": "Executed before Multisite is loaded",
    "blog-deleted.php": "Custom site deleted message",
    "blog-inactive.php": "Custom site inactive message",
    "blog-suspended.php": "Custom site suspended message",
}

_DEFINE_RE = re.compile(
    r"""define\s*\(\s*['"](?P<name>[A-Za-z_][A-Za-z0-9_]*)['"]\s*,\s*(?P<value>.+?)\s*\)\s*;""",
)
_VAR_RE = r"""\${name}\s*=\s*['"]?(?P<value>[^'";]*)['"]?\s*;"""


@dataclass
class WordPressInstall:
    """A WordPress installation rooted at ``root`` (the ``ABSPATH``)."""
    root: Path
    _constants: dict[str, Any] | None = field(default=None, repr=False)
    _version_info: dict[str, str] | None = field(default=None, repr=False)

    @classmethod
    def locate(cls, path: Path | str = ".") -> WordPressInstall:
        """Find the installation containing ``path``.

        Walks upward from ``path`` looking for ``wp-load.php`` so the
        server can be started from inside ``wp-content/plugins/...``.
        """
        current = Path(path).expanduser().resolve()
        for _ in range(MAX_LOCATE_DEPTH):
            if (current / "wp-load.php").is_file():
                logger.debug("WordPress found at %s", current)
                return cls(root=current)
            if current.parent == current:
                break
            current = current.parent

        raise InstallNotFoundError(
            f"Could not find wp-load.php at or above {path}. Run from a "
            "WordPress installation directory or pass --path=/path/to/wordpress"
        )

    # --- Core files ---

    @property
    def config_file(self) -> Path | None:
        """``wp-config.php``, which may live one level above ABSPATH."""
        for candidate in (self.root / "wp-config.php", self.root.parent / "wp-config.php"):
            if candidate.is_file():
                return candidate
        return None

    @property
    def version_info(self) -> dict[str, str]:
        if self._version_info is None:
            version_file = self.root / "wp-includes" / "version.php"
            source = _read_text(version_file)
            self._version_info = {
                key: _php_string_var(source, key) or ""
                for key in ("wp_version", "wp_db_version", "required_php_version", "required_mysql_version")
            }
        return self._version_info

    @property
    def version(self) -> str:
        return self.version_info["wp_version"]

    @property
    def constants(self) -> dict[str, Any]:
        """``define()`` constants from wp-config.php, first definition wins."""
        if self._constants is None:
            self._constants = {}
            if self.config_file is not None:
                self._constants = parse_php_defines(_read_text(self.config_file))
        return self._constants

    def constant(self, name: str, default: Any = None) -> Any:
        return self.constants.get(name, default)

    @property
    def table_prefix(self) -> str:
        if self.config_file is None:
            return "wp_"
        return _php_string_var(_read_text(self.config_file), "table_prefix") or "wp_"

    @property
    def is_multisite(self) -> bool:
        return bool(self.constant("MULTISITE", False))

    # --- Directories ---

    @property
    def content_dir(self) -> Path:
        custom = self.constant("WP_CONTENT_DIR")
        if isinstance(custom, str) and custom:
            return Path(custom)
        return self.root / "wp-content"

    @property
    def plugin_dir(self) -> Path:
        custom = self.constant("WP_PLUGIN_DIR")
        if isinstance(custom, str) and custom:
            return Path(custom)
        return self.content_dir / "plugins"

    @property
    def mu_plugin_dir(self) -> Path:
        custom = self.constant("WPMU_PLUGIN_DIR")
        if isinstance(custom, str) and custom:
            return Path(custom)
        return self.content_dir / "mu-plugins"

    @property
    def theme_dir(self) -> Path:
        return self.content_dir / "themes"

    # --- Plugins ---

    def plugins(self) -> list[dict[str, Any]]:
        """Regular plugins, keyed by WordPress's ``dir/file.php`` form."""
        if not self.plugin_dir.is_dir():
            return []

        found: list[dict[str, Any]] = []
        for entry in sorted(self.plugin_dir.iterdir()):
            if entry.is_file() and entry.suffix == ".php":
                candidates = [entry]
            elif entry.is_dir():
                candidates = sorted(entry.glob("*.php"))
            else:
                continue

            for php_file in candidates:
                headers = read_file_headers(php_file, PLUGIN_HEADERS)
                if not headers.get("Name"):
                    continue
                found.append({
                    "file": php_file.relative_to(self.plugin_dir).as_posix(),
                    "slug": entry.stem if entry.is_file() else entry.name,
                    **headers,
                })
        return found

    def mu_plugins(self) -> list[dict[str, Any]]:
        if not self.mu_plugin_dir.is_dir():
            return []
        found = []
        for php_file in sorted(self.mu_plugin_dir.glob("*.php")):
            headers = read_file_headers(php_file, PLUGIN_HEADERS)
            found.append({
                "file": php_file.name,
                **headers,
                "Name": headers.get("Name") or php_file.name,
            })
        return found

    def dropins(self) -> list[dict[str, Any]]:
        return [
            {"file": filename, "description": description}
            for filename, description in DROPINS.items()
            if (self.content_dir / filename).is_file()
        ]

    def has_plugin(self, *slugs: str) -> bool:
        """True when any of ``slugs`` is installed as a plugin directory or file."""
        for slug in slugs:
            if (self.plugin_dir / slug).is_dir() or (self.plugin_dir / f"{slug}.php").is_file():
                return True
        return False

    def plugin(self, slug: str) -> dict[str, Any] | None:
        for plugin in self.plugins():
            if plugin["slug"] == slug:
                return plugin
        return None

    # --- Themes ---

    def themes(self) -> list[dict[str, Any]]:
        if not self.theme_dir.is_dir():
            return []

        themes: list[dict[str, Any]] = []
        for theme_path in sorted(p for p in self.theme_dir.iterdir() if p.is_dir()):
            stylesheet = theme_path / "style.css"
            if not stylesheet.is_file():
                continue
            headers = read_file_headers(stylesheet, THEME_HEADERS)
            themes.append({
                "stylesheet": theme_path.name,
                "path": str(theme_path),
                **headers,
                "Name": headers.get("Name") or theme_path.name,
                "is_child_theme": bool(headers.get("Template")),
            })
        return themes


# ---------------------------------------------------------------------------
# PHP source helpers
# ---------------------------------------------------------------------------


def read_file_headers(path: Path, headers: dict[str, str]) -> dict[str, str]:
    """Parse WordPress-style ``Header Name: value`` comments.

    Mirrors ``get_file_data()``: only the first 8 KiB are read, matching
    is case-insensitive, and a trailing ``*/`` is stripped.
    """
    with path.open("rb") as fh:
        chunk = fh.read(HEADER_READ_BYTES)
    text = chunk.decode("utf-8", errors="replace").replace("\r", "\n")

    values: dict[str, str] = {}
    for key, label in headers.items():
        match = re.search(
            rf"^(?:[ \t]*<\?php)?[ \t/*#@]*{re.escape(label)}:(.*)$",
            text,
            re.IGNORECASE | re.MULTILINE,
        )
        if match:
            value = re.sub(r"\s*(?:\*/|\?>).*", "", match.group(1)).strip()
            if value:
                values[key] = value
    return values


def parse_php_defines(source: str) -> dict[str, Any]:
    """Extract ``define('NAME', literal)`` constants from PHP source.

    Non-literal values (function calls, concatenation, ``__DIR__``) are
    kept as their raw source text.
    """
    constants: dict[str, Any] = {}
    for match in _DEFINE_RE.finditer(_strip_php_comments(source)):
        name = match.group("name")
        if name not in constants:
            constants[name] = _php_literal(match.group("value"))
    return constants


def _strip_php_comments(source: str) -> str:
    source = re.sub(r"/\*.*?\*/", "", source, flags=re.DOTALL)
    return re.sub(r"(?m)^\s*(?://|#).*$", "", source)


def _php_literal(raw: str) -> Any:
    raw = raw.strip()
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"":
        return raw[1:-1].replace("\\" + raw[0], raw[0])
    if re.fullmatch(r"-?\d+", raw):
        return int(raw)
    if re.fullmatch(r"-?\d*\.\d+", raw):
        return float(raw)
    return raw


def _php_string_var(source: str, name: str) -> str | None:
    match = re.search(_VAR_RE.format(name=name), source)
    return match.group("value") if match else None


def _read_text(path: Path) -> str:
    if not path.is_file():
        return ""
    return path.read_text(encoding="utf-8", errors="replace")
