"""Debug log tools.

Reads WordPress's ``debug.log`` backwards so large logs stay cheap, groups
continuation lines (stack traces) with the entry they belong to, and
explains individual PHP error messages.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall

logger = logging.getLogger(__name__)

LEVELS = ["error", "warning", "notice", "deprecated", "all"]

DEFAULT_LINES = 50
CHUNK_SIZE = 4096

# [18-Oct-2026 10:12:01 UTC] or [2026-10-18 10:12:01]
_ENTRY_RE = [
    re.compile(r"^\[(\d{2}-\w{3}-\d{4}\s+\d{2}:\d{2}:\d{2}\s+\w+)\]"),
    re.compile(r"^\[(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\]"),
]
_PHP_PREFIX_RE = re.compile(r"^PHP\s+([\w\s]+):")
_FILE_RE = re.compile(r"\s+in\s+(.+\.php)")
_LINE_RE = re.compile(r"on\s+line\s+(\d+)")

_PHP_ERROR_RE = re.compile(r"PHP\s+([\w\s]+):\s+(.+)\s+in\s+(.+)\s+on\s+line\s+(\d+)")
_PLAIN_ERROR_RE = re.compile(
    r"(Fatal error|Warning|Notice|Deprecated):\s+(.+)\s+in\s+(.+)\s+on\s+line\s+(\d+)",
    re.IGNORECASE,
)

_SUGGESTIONS: list[tuple[tuple[str, ...], list[str]]] = [
    (("undefined variable",), [
        "Check if the variable is defined before use",
        "Use isset() or the null coalescing operator (??)",
    ]),
    (("undefined index", "undefined array key"), [
        "Check if the array key exists with isset() or array_key_exists()",
        'Use the null coalescing operator: $array["key"] ?? "default"',
    ]),
    (("call to undefined function",), [
        "Check if the function name is spelled correctly",
        "Verify the plugin/theme providing this function is active",
        "Check if the function is loaded before being called",
    ]),
    (("class not found", "class \""), [
        "Check if the class file is included/required",
        "Verify the autoloader is properly configured",
        "Check namespace declarations",
    ]),
    (("memory",), [
        "Increase memory_limit in php.ini or WP_MEMORY_LIMIT in wp-config.php",
        "Check for memory leaks in loops or recursion",
        "Optimize queries to use less memory",
    ]),
]


class DebugLog(BaseTool):
    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        super().__init__(install, config)
        self._tool_map = {
            "last_error": self._last_error,
            "debug_log_info": self._debug_log_info,
            "parse_error": self._parse_error,
        }

    def get_tool_definitions(self) -> list[ToolDefinition]:
        max_lines = self.config.tools.max_log_lines
        return [
            self.create_tool_definition(
                "last_error",
                "Read the last entries from WordPress debug.log",
                {
                    "lines": {
                        "type": "integer",
                        "description": (
                            f"Number of lines to read from the end "
                            f"(default: {DEFAULT_LINES}, max: {max_lines})"
                        ),
                    },
                    "search": {
                        "type": "string",
                        "description": "Filter entries containing this string",
                    },
                    "level": {
                        "type": "string",
                        "description": "Filter by error level: error, warning, notice, deprecated, all",
                        "enum": LEVELS,
                    },
                },
            ),
            self.create_tool_definition(
                "debug_log_info",
                "Get information about the debug.log file",
            ),
            self.create_tool_definition(
                "parse_error",
                "Parse and explain a specific PHP error message",
                {
                    "error": {
                        "type": "string",
                        "description": "The error message to parse",
                    },
                },
                ["error"],
            ),
        ]

    # --- Handlers ---

    async def _last_error(self, arguments: dict[str, Any]) -> dict[str, Any]:
        lines = self.int_argument(arguments, "lines", DEFAULT_LINES)
        search = arguments.get("search")
        level = arguments.get("level") or "all"
        if level not in LEVELS:
            raise ToolError(f"Invalid level '{level}'. Expected one of: {', '.join(LEVELS)}")

        log_file = self.log_file_path()
        if log_file is None or not log_file.is_file():
            return {
                "error": "Debug log file not found.",
                "wp_debug": self.is_debug_mode(),
                "wp_debug_log": bool(self.install.constant("WP_DEBUG_LOG", False)),
                "expected_path": str(self.install.content_dir / "debug.log"),
            }

        lines = max(1, min(lines, self.config.tools.max_log_lines))

        # Read extra so filtering still leaves enough entries
        entries = parse_log_entries(read_last_lines(log_file, lines * 2))

        if search:
            needle = str(search).lower()
            entries = [
                e for e in entries
                if needle in e["message"].lower() or needle in (e["file"] or "").lower()
            ]

        if level != "all":
            entries = [e for e in entries if e["level"] == level]

        entries = entries[-lines:]

        stats = {"errors": 0, "warnings": 0, "notices": 0, "deprecated": 0}
        stat_keys = {"error": "errors", "warning": "warnings", "notice": "notices", "deprecated": "deprecated"}
        for entry in entries:
            key = stat_keys.get(entry["level"])
            if key:
                stats[key] += 1

        return {
            "file": str(log_file),
            "count": len(entries),
            "stats": stats,
            "entries": entries,
        }

    async def _debug_log_info(self, arguments: dict[str, Any]) -> dict[str, Any]:
        install = self.install
        info: dict[str, Any] = {
            "wp_debug": self.is_debug_mode(),
            "wp_debug_log": install.constant("WP_DEBUG_LOG", False),
            "wp_debug_display": install.constant("WP_DEBUG_DISPLAY", False),
        }

        log_file = self.log_file_path()
        if log_file is not None and log_file.is_file():
            stat = log_file.stat()
            info.update({
                "file": str(log_file),
                "exists": True,
                "size": self.format_bytes(stat.st_size),
                "size_bytes": stat.st_size,
                "modified": datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S"),
            })
        else:
            info.update({
                "file": str(install.content_dir / "debug.log"),
                "exists": False,
            })

        return info

    async def _parse_error(self, arguments: dict[str, Any]) -> dict[str, Any]:
        return parse_error_message(self.require(arguments, "error"))

    # --- Helpers ---

    def log_file_path(self) -> Path | None:
        """Where WordPress writes its debug log, or ``None`` if unknown."""
        debug_log = self.install.constant("WP_DEBUG_LOG")
        default_path = self.install.content_dir / "debug.log"

        if isinstance(debug_log, str) and debug_log:
            path = Path(debug_log)
            return path if path.is_absolute() else self.install.root / path
        if debug_log is True:
            return default_path
        if default_path.is_file():
            return default_path
        return None


# ---------------------------------------------------------------------------
# Log parsing
# ---------------------------------------------------------------------------


def read_last_lines(path: Path, count: int) -> list[str]:
    """Return the last ``count`` lines of ``path`` without reading it all."""
    with path.open("rb") as fh:
        fh.seek(0, 2)
        position = fh.tell()
        if position == 0:
            return []

        buffer = b""
        while position > 0 and buffer.count(b"\n") < count + 1:
            read_size = min(CHUNK_SIZE, position)
            position -= read_size
            fh.seek(position)
            buffer = fh.read(read_size) + buffer

    lines = buffer.decode("utf-8", errors="replace").strip().split("\n")
    return lines[-count:]


def parse_log_entries(lines: list[str]) -> list[dict[str, Any]]:
    """Group raw log lines into entries; unprefixed lines continue the previous one."""
    entries: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    for raw in lines:
        line = raw.rstrip("\r")
        if not line.strip():
            continue

        timestamp_match = next((m for m in (r.match(line) for r in _ENTRY_RE) if m), None)
        if timestamp_match:
            if current is not None:
                entries.append(current)
            current = _entry(
                line,
                timestamp=timestamp_match.group(1),
                message=line[len(timestamp_match.group(0)):].strip(),
            )
        elif _PHP_PREFIX_RE.match(line):
            if current is not None:
                entries.append(current)
            current = _entry(line, timestamp=None, message=line)
        elif current is not None:
            current["message"] += "\n" + line

    if current is not None:
        entries.append(current)

    return entries


def _entry(line: str, timestamp: str | None, message: str) -> dict[str, Any]:
    file_match = _FILE_RE.search(line)
    line_match = _LINE_RE.search(line)
    return {
        "timestamp": timestamp,
        "message": message,
        "level": detect_level(line),
        "file": file_match.group(1).strip() if file_match else None,
        "line_number": int(line_match.group(1)) if line_match else None,
    }


def detect_level(line: str) -> str:
    lowered = line.lower()
    if "fatal" in lowered or "error" in lowered:
        return "error"
    if "warning" in lowered:
        return "warning"
    if "notice" in lowered:
        return "notice"
    if "deprecated" in lowered:
        return "deprecated"
    return "unknown"


def parse_error_message(error: str) -> dict[str, Any]:
    """Split a PHP error line into level/message/file/line with suggestions."""
    result: dict[str, Any] = {"original": error}

    match = _PHP_ERROR_RE.search(error) or _PLAIN_ERROR_RE.search(error)
    if match:
        result.update({
            "level": match.group(1).strip(),
            "message": match.group(2).strip(),
            "file": match.group(3).strip(),
            "line": int(match.group(4)),
        })
        result["suggestions"] = suggestions_for(result["message"])

    return result


def suggestions_for(message: str) -> list[str]:
    lowered = message.lower()
    suggestions: list[str] = []
    for needles, hints in _SUGGESTIONS:
        if any(n in lowered for n in needles):
            suggestions.extend(hints)
    return suggestions
