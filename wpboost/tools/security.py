"""Pattern-based security review of PHP source.

The checks are regular expressions, not a PHP parser.  They flag lines
worth a human look (unsanitized superglobals, unprepared queries,
unescaped output, shell execution, hardcoded secrets) and skip the most
common false positives, such as a superglobal read that is wrapped in a
``sanitize_*()`` call on the same line.

Paths are resolved against the WordPress root and may not leave it.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from wpboost.config.settings import BoostConfig
from wpboost.exceptions import ToolError
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall

logger = logging.getLogger(__name__)

NOTE = "This scan uses pattern matching and may produce false positives. Manual review recommended."

SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


@dataclass(frozen=True)
class SecurityCheck:
    name: str
    pattern: re.Pattern[str]
    severity: str
    message: str
    recommendation: str

    @property
    def whole_file(self) -> bool:
        """Patterns compiled with DOTALL span lines and run over the whole file."""
        return bool(self.pattern.flags & re.DOTALL)


_SANITIZE = "Use sanitize_text_field(), absint(), or appropriate sanitization function"
_ESCAPE = "Use esc_html(), esc_attr(), or esc_url() before output"
_PREPARE = "Use $wpdb->prepare() for all queries with variables"
_SHELL = "Avoid shell execution or use escapeshellarg() and escapeshellcmd()"


def _check(name: str, pattern: str, severity: str, message: str, recommendation: str, flags: int = 0) -> SecurityCheck:
    return SecurityCheck(name, re.compile(pattern, flags), severity, message, recommendation)


CHECKS: dict[str, SecurityCheck] = {c.name: c for c in [
    _check("unsanitized_get", r"\$_GET\s*\[", "high", "Direct $_GET access without sanitization", _SANITIZE),
    _check("unsanitized_post", r"\$_POST\s*\[", "high", "Direct $_POST access without sanitization", _SANITIZE),
    _check("unsanitized_request", r"\$_REQUEST\s*\[", "high", "Direct $_REQUEST access without sanitization", _SANITIZE),
    _check(
        "unsanitized_server",
        r"""\$_SERVER\s*\[\s*['"](?!REQUEST_METHOD|HTTPS|HTTP_HOST)[^\]]+['"]\s*\]""",
        "medium",
        "Direct $_SERVER access - some values are user-controlled",
        "Sanitize $_SERVER values appropriately",
    ),
    _check("unsanitized_cookie", r"\$_COOKIE\s*\[", "high", "Direct $_COOKIE access without sanitization",
           "Sanitize cookie values before use"),
    _check(
        "unsanitized_files",
        r"""\$_FILES\s*\[.*\]\s*\[['"](?:name|type)['"]""",
        "high",
        "Using $_FILES name/type directly - can be spoofed",
        "Use wp_check_filetype_and_ext() for validation",
    ),
    _check("missing_prepare_query", r"""\$wpdb\s*->\s*query\s*\(\s*["'][^"']*\$""", "critical",
           "SQL query with variable - possible SQL injection", _PREPARE),
    _check("missing_prepare_get", r"""\$wpdb\s*->\s*get_(?:var|row|col|results)\s*\(\s*["'][^"']*\$""", "critical",
           "Database query with variable - possible SQL injection", _PREPARE),
    _check(
        "concat_in_query",
        r"\$wpdb\s*->\s*(?:query|get_var|get_row|get_col|get_results)\s*\([^)]*\.\s*\$",
        "critical",
        "String concatenation in database query - possible SQL injection",
        "Use $wpdb->prepare() instead of string concatenation",
    ),
    _check("unescaped_echo", r"echo\s+\$(?!this\b|wpdb\b)", "medium", "Unescaped variable in echo statement", _ESCAPE),
    _check("unescaped_print", r"print\s+\$(?!this\b|wpdb\b)", "medium", "Unescaped variable in print statement", _ESCAPE),
    _check("unescaped_short_echo", r"<\?=\s*\$(?!this\b)", "medium", "Unescaped variable in short echo tag", _ESCAPE),
    _check("eval_usage", r"\beval\s*\(", "critical", "eval() usage detected - extremely dangerous",
           "Avoid eval() entirely - find alternative approach"),
    _check("exec_usage", r"\bexec\s*\(", "critical", "exec() usage detected - potential command injection", _SHELL),
    _check("system_usage", r"\bsystem\s*\(", "critical", "system() usage detected - potential command injection", _SHELL),
    _check("passthru_usage", r"\bpassthru\s*\(", "critical",
           "passthru() usage detected - potential command injection", _SHELL),
    _check("shell_exec_usage", r"\bshell_exec\s*\(", "critical",
           "shell_exec() usage detected - potential command injection", _SHELL),
    _check("backtick_exec", r"`[^`]*\$[^`]*`", "critical",
           "Backtick execution with variable - potential command injection", "Avoid shell execution with user input"),
    _check("unserialize_usage", r"\bunserialize\s*\(\s*\$", "high",
           "unserialize() with variable - potential object injection",
           "Use json_decode() instead, or unserialize with allowed_classes: false"),
    _check("file_get_contents_url", r"file_get_contents\s*\(\s*\$", "medium",
           "file_get_contents() with variable - potential SSRF or path traversal",
           "Use wp_remote_get() for URLs, validate paths for files"),
    _check("include_variable", r"\b(?:include|include_once|require|require_once)\s*[(\s]+\$", "critical",
           "Dynamic file inclusion - potential Local/Remote File Inclusion",
           "Use whitelist approach for file inclusion"),
    _check("extract_usage", r"\bextract\s*\(\s*\$_(?:GET|POST|REQUEST|COOKIE)", "critical",
           "extract() with superglobal - variable injection vulnerability", "Never use extract() with user input"),
    _check(
        "missing_nonce_form",
        r"""<form[^>]*method=["']post["'][^>]*>(?:(?!wp_nonce_field|_wpnonce).)*</form>""",
        "high",
        "POST form without nonce field",
        "Add wp_nonce_field() inside the form",
        re.IGNORECASE | re.DOTALL,
    ),
    _check(
        "ajax_no_nonce",
        r"wp_ajax_(?:nopriv_)?(\w+).*?function\s+\w+.*?\{(?:(?!check_ajax_referer|wp_verify_nonce).)*?\}",
        "high",
        "AJAX handler without nonce verification",
        "Add check_ajax_referer() at the start of handler",
        re.DOTALL,
    ),
    _check(
        "missing_capability_check",
        r"""add_menu_page\s*\([^)]+["']manage_options["']\s*,\s*["'](\w+)["']""",
        "medium",
        "Admin menu callback - verify capability check exists in callback",
        "Ensure current_user_can() check in callback function",
        re.IGNORECASE,
    ),
    _check("md5_password", r"md5\s*\(\s*\$.*password", "high", "MD5 used for password hashing - insecure",
           "Use wp_hash_password() for WordPress passwords", re.IGNORECASE),
    _check("hardcoded_password", r"""["']password["']\s*=>\s*["'][^"']+["']""", "high",
           "Possible hardcoded password detected",
           "Store credentials in wp-config.php or environment variables"),
    _check(
        "hardcoded_api_key",
        r"""(?:api[_-]?key|apikey|secret[_-]?key|access[_-]?token)\s*[=:]\s*["'][a-zA-Z0-9]{20,}["']""",
        "high",
        "Possible hardcoded API key or secret detected",
        "Store secrets in wp-config.php or environment variables",
        re.IGNORECASE,
    ),
    _check("debug_enabled", r"""define\s*\(\s*["']WP_DEBUG["']\s*,\s*true\s*\)""", "medium",
           "WP_DEBUG enabled - should be disabled in production", "Set WP_DEBUG to false in production"),
    _check("display_errors", r"""define\s*\(\s*["']WP_DEBUG_DISPLAY["']\s*,\s*true\s*\)""", "high",
           "WP_DEBUG_DISPLAY enabled - exposes errors publicly", "Set WP_DEBUG_DISPLAY to false in production"),
    _check("preg_replace_e", r"""preg_replace\s*\(\s*["'][^"']*/e["']""", "critical",
           "preg_replace with /e modifier - code execution vulnerability", "Use preg_replace_callback() instead"),
    _check("create_function", r"\bcreate_function\s*\(", "high",
           "create_function() usage - deprecated and potentially dangerous",
           "Use anonymous functions (closures) instead"),
]}

CHECK_GROUPS: dict[str, list[str]] = {
    "unsanitized_input": [
        "unsanitized_get", "unsanitized_post", "unsanitized_request",
        "unsanitized_server", "unsanitized_cookie", "unsanitized_files",
    ],
    "sql_injection": ["missing_prepare_query", "missing_prepare_get", "concat_in_query"],
    "xss": ["unescaped_echo", "unescaped_print", "unescaped_short_echo"],
    "nonce": ["missing_nonce_form", "ajax_no_nonce"],
    "capability": ["missing_capability_check"],
    "file_operations": ["file_get_contents_url", "include_variable"],
    "credentials": ["hardcoded_password", "hardcoded_api_key"],
    "dangerous_functions": [
        "eval_usage", "exec_usage", "system_usage", "passthru_usage", "shell_exec_usage",
        "backtick_exec", "unserialize_usage", "preg_replace_e", "create_function", "extract_usage",
    ],
}

# A check hit is dropped when one of these appears on the same line
_SANITIZED_MARKERS = (
    "sanitize_", "esc_", "absint", "intval", "floatval", "wp_kses",
    "wp_verify_nonce", "check_ajax_referer", "isset",
)
_ESCAPED_MARKERS = ("esc_html", "esc_attr", "esc_url", "esc_js", "wp_kses", "wp_json_encode")

SECURITY_FUNCTIONS: dict[str, dict[str, str]] = {
    "sanitization": {
        "sanitize_text_field": "Sanitizes a string for safe database/output use. Removes tags, octets, encodes.",
        "sanitize_textarea_field": "Like sanitize_text_field but preserves newlines.",
        "sanitize_email": "Strips out all characters not allowed in an email.",
        "sanitize_file_name": "Sanitizes a filename, replacing whitespace with dashes.",
        "sanitize_html_class": "Sanitizes an HTML classname to ensure it only contains valid characters.",
        "sanitize_key": "Sanitizes a string key. Lowercase alphanumeric, dashes, underscores.",
        "sanitize_meta": "Sanitizes meta value based on meta key.",
        "sanitize_mime_type": "Sanitizes a MIME type string.",
        "sanitize_option": "Sanitizes various option values based on the option name.",
        "sanitize_sql_orderby": "Sanitizes an ORDER BY clause.",
        "sanitize_title": "Sanitizes a string into a valid title.",
        "sanitize_title_with_dashes": "Sanitizes a title, replacing whitespace with dashes.",
        "sanitize_user": "Sanitizes a username, stripping unsafe characters.",
        "sanitize_url": "Sanitizes a URL for database/redirect use.",
        "absint": "Returns the absolute integer value (positive).",
        "intval": "Returns integer value (can be negative).",
        "floatval": "Returns float value.",
        "wp_kses": "Filters content and keeps only allowed HTML elements.",
        "wp_kses_post": "Sanitizes content for allowed HTML tags for post content.",
        "wp_kses_data": "Sanitizes content with basic allowed HTML tags.",
        "wp_filter_nohtml_kses": "Strips all HTML from a text string.",
        "wp_strip_all_tags": "Properly strips all HTML tags including script and style.",
    },
    "escaping": {
        "esc_html": "Escapes for safe output in HTML context. Use for plain text.",
        "esc_attr": "Escapes for safe output in HTML attributes.",
        "esc_url": "Escapes a URL for safe output in href, src, etc.",
        "esc_url_raw": "Escapes a URL for database storage (no HTML entities).",
        "esc_js": "Escapes for safe output in JavaScript strings.",
        "esc_textarea": "Escapes for safe output in textarea elements.",
        "esc_sql": "Escapes data for use in SQL (prefer $wpdb->prepare()).",
        "esc_html__": "Retrieves translated string and escapes for HTML.",
        "esc_html_e": "Displays translated string escaped for HTML.",
        "esc_attr__": "Retrieves translated string and escapes for attributes.",
        "esc_attr_e": "Displays translated string escaped for attributes.",
        "wp_json_encode": "Encodes a variable into JSON with proper escaping.",
        "wp_specialchars_decode": "Converts HTML entities back to characters.",
    },
    "nonces": {
        "wp_create_nonce": "Creates a cryptographic nonce token.",
        "wp_verify_nonce": "Verifies that a nonce is correct and not expired.",
        "wp_nonce_field": "Outputs hidden nonce field for forms.",
        "wp_nonce_url": "Adds nonce to a URL.",
        "check_admin_referer": "Verifies nonce for admin screens.",
        "check_ajax_referer": "Verifies nonce for AJAX requests.",
        "wp_referer_field": "Outputs hidden referer field for forms.",
    },
    "capabilities": {
        "current_user_can": "Checks if current user has a specific capability.",
        "user_can": "Checks if a specific user has a capability.",
        "author_can": "Checks if post author has a capability.",
        "map_meta_cap": "Maps a capability to the primitive capabilities required.",
        "has_cap": "Checks if user has capability (method on WP_User).",
        "get_role": "Gets a role object by name.",
        "add_cap": "Adds a capability to a role.",
        "remove_cap": "Removes a capability from a role.",
    },
    "database": {
        "$wpdb->prepare": "Prepares a SQL query for safe execution with placeholders.",
        "$wpdb->insert": "Safely inserts a row into a table.",
        "$wpdb->update": "Safely updates a row in a table.",
        "$wpdb->delete": "Safely deletes a row from a table.",
        "$wpdb->replace": "Safely replaces a row in a table.",
        "$wpdb->esc_like": "Escapes special characters for use in LIKE clause.",
    },
    "validation": {
        "is_email": "Validates whether an email address is valid.",
        "wp_http_validate_url": "Validates a URL for safe HTTP requests.",
        "is_serialized": "Checks if data is serialized.",
        "is_serialized_string": "Checks if a string is serialized.",
        "wp_validate_boolean": "Validates and converts to boolean.",
        "validate_file": "Validates a file name and path.",
    },
}


class Security(BaseTool):
    def __init__(self, install: WordPressInstall, config: BoostConfig) -> None:
        super().__init__(install, config)
        self._tool_map = {
            "security_audit": self._security_audit,
            "security_check_file": self._security_check_file,
            "list_security_functions": self._list_security_functions,
        }

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return [
            self.create_tool_definition(
                "security_audit",
                "Scan a file or directory for common WordPress security issues. Returns potential "
                "vulnerabilities with severity, location, and recommendations. Uses pattern "
                "matching and may have false positives.",
                {
                    "path": {
                        "type": "string",
                        "description": "File or directory path to audit (relative to WordPress root)",
                    },
                    "checks": {
                        "type": "array",
                        "description": "Check groups to run (default: all). Available: " + ", ".join(CHECK_GROUPS),
                        "items": {"type": "string"},
                    },
                },
                ["path"],
            ),
            self.create_tool_definition(
                "security_check_file",
                "Check a specific file for security issues. Returns findings with line numbers.",
                {
                    "file_path": {
                        "type": "string",
                        "description": "Path to the file to check (relative to WordPress root)",
                    },
                },
                ["file_path"],
            ),
            self.create_tool_definition(
                "list_security_functions",
                "List WordPress security functions with descriptions, by category "
                "(sanitization, escaping, nonces, capabilities, database, validation)",
                {
                    "category": {
                        "type": "string",
                        "description": "Filter by category (default: all)",
                        "enum": ["all", *SECURITY_FUNCTIONS],
                    },
                },
            ),
        ]

    # --- Handlers ---

    async def _security_audit(self, arguments: dict[str, Any]) -> dict[str, Any]:
        path = self.require(arguments, "path")
        groups = arguments.get("checks") or []
        if not isinstance(groups, list):
            raise ToolError("Argument 'checks' must be an array of strings")

        target = self.resolve_path(path)
        checks = select_checks(groups)

        if target.is_file():
            files = [target]
        else:
            files = self.php_files(target)

        issues: list[dict[str, Any]] = []
        for php_file in files:
            issues.extend(self.scan_file(php_file, checks))
        issues.sort(key=lambda issue: SEVERITY_ORDER.get(issue["severity"], len(SEVERITY_ORDER)))

        max_issues = self.config.security.max_reported_issues
        return {
            "path": path,
            "files_scanned": len(files),
            "total_issues": len(issues),
            "summary": summarize_issues(issues),
            "issues": issues[:max_issues],
            "truncated": len(issues) > max_issues,
            "note": NOTE,
        }

    async def _security_check_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_path = self.require(arguments, "file_path")
        target = self.resolve_path(file_path)
        if not target.is_file():
            raise ToolError(f"File not found: {file_path}")

        issues = sorted(self.scan_file(target, list(CHECKS.values())), key=lambda issue: issue["line"])
        return {
            "file": file_path,
            "total_issues": len(issues),
            "issues": issues,
            "note": NOTE,
        }

    async def _list_security_functions(self, arguments: dict[str, Any]) -> dict[str, Any]:
        category = arguments.get("category") or "all"
        if category == "all":
            return {"categories": list(SECURITY_FUNCTIONS), "functions": SECURITY_FUNCTIONS}
        if category not in SECURITY_FUNCTIONS:
            raise ToolError(
                f"Invalid category '{category}'. Expected one of: all, {', '.join(SECURITY_FUNCTIONS)}"
            )
        return {"category": category, "functions": SECURITY_FUNCTIONS[category]}

    # --- Scanning ---

    def resolve_path(self, path: str) -> Path:
        """Resolve ``path`` against the WordPress root, refusing anything outside it."""
        root = self.install.root.resolve()
        target = (root / path).resolve()
        if target != root and root not in target.parents:
            raise ToolError(f"Path is outside the WordPress installation: {path}")
        if not target.exists():
            raise ToolError(f"Path not found: {path}")
        return target

    def php_files(self, directory: Path) -> list[Path]:
        """PHP files under ``directory``, skipping vendored code, capped by config."""
        skip = set(self.config.security.skip_dirs)
        limit = self.config.security.max_scan_files
        files = []
        for php_file in sorted(directory.rglob("*.php")):
            if skip.intersection(php_file.relative_to(directory).parts[:-1]):
                continue
            if not php_file.is_file():
                continue
            files.append(php_file)
            if len(files) >= limit:
                logger.info("Security scan stopped at %d files under %s", limit, directory)
                break
        return files

    def scan_file(self, php_file: Path, checks: list[SecurityCheck]) -> list[dict[str, Any]]:
        if php_file.suffix != ".php":
            return []
        try:
            content = php_file.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", php_file, exc)
            return []

        lines = content.split("\n")
        relative = self._relative(php_file)
        issues = []

        def issue(check: SecurityCheck, line_number: int) -> dict[str, Any]:
            return {
                "file": relative,
                "line": line_number,
                "check": check.name,
                "severity": check.severity,
                "message": check.message,
                "recommendation": check.recommendation,
                "code": lines[line_number - 1].strip() if line_number <= len(lines) else "",
            }

        for check in checks:
            if check.whole_file:
                for match in check.pattern.finditer(content):
                    issues.append(issue(check, content.count("\n", 0, match.start()) + 1))
                continue

            for index, line in enumerate(lines):
                if not check.pattern.search(line):
                    continue
                if line.strip().startswith(("//", "*", "#")):
                    continue
                if is_false_positive(check.name, line):
                    continue
                issues.append(issue(check, index + 1))

        return issues

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.install.root.resolve()).as_posix()
        except ValueError:
            return str(path)


def select_checks(groups: list[str]) -> list[SecurityCheck]:
    """Checks for the named groups; unknown or empty selections mean every check."""
    names: dict[str, None] = {}
    for group in groups:
        for name in CHECK_GROUPS.get(group, []):
            names[name] = None
    if not names:
        return list(CHECKS.values())
    return [CHECKS[name] for name in names]


def is_false_positive(check_name: str, line: str) -> bool:
    if check_name in ("unsanitized_get", "unsanitized_post", "unsanitized_request", "unsanitized_cookie"):
        return any(marker in line for marker in _SANITIZED_MARKERS)
    if check_name in CHECK_GROUPS["xss"]:
        return any(marker in line for marker in _ESCAPED_MARKERS)
    return False


def summarize_issues(issues: list[dict[str, Any]]) -> dict[str, Any]:
    by_severity = {severity: 0 for severity in SEVERITY_ORDER}
    by_type: Counter[str] = Counter()
    for issue in issues:
        by_severity[issue["severity"]] = by_severity.get(issue["severity"], 0) + 1
        by_type[issue["check"]] += 1
    return {
        "by_severity": by_severity,
        "by_type": dict(by_type.most_common(10)),
        "files_with_issues": len({issue["file"] for issue in issues}),
    }
