"""Tests for the debug log tools and log parsing helpers."""

from __future__ import annotations

import pytest

from wpboost.exceptions import ToolError
from wpboost.tools.debug_log import (
    CHUNK_SIZE,
    DebugLog,
    detect_level,
    parse_error_message,
    parse_log_entries,
    read_last_lines,
)


@pytest.fixture
def debug_log(install, config):
    return DebugLog(install, config)


# ===========================================================================
# last_error
# ===========================================================================


class TestLastError:
    @pytest.mark.asyncio
    async def test_reads_all_entries(self, debug_log):
        result = await debug_log.execute("last_error", {})
        assert result["count"] == 4
        assert [e["level"] for e in result["entries"]] == [
            "notice", "warning", "error", "deprecated",
        ]
        assert result["stats"] == {"errors": 1, "warnings": 1, "notices": 1, "deprecated": 1}

    @pytest.mark.asyncio
    async def test_stack_trace_joins_entry(self, debug_log):
        result = await debug_log.execute("last_error", {"level": "error"})
        assert result["count"] == 1
        fatal = result["entries"][0]
        assert fatal["timestamp"] == "18-Oct-2026 09:02:00 UTC"
        assert "Stack trace:" in fatal["message"]
        assert fatal["file"].endswith("themes/child/functions.php")

    @pytest.mark.asyncio
    async def test_search(self, debug_log):
        result = await debug_log.execute("last_error", {"search": "AKISMET"})
        assert result["count"] == 1
        assert result["entries"][0]["line_number"] == 40

    @pytest.mark.asyncio
    async def test_lines_limit(self, debug_log):
        result = await debug_log.execute("last_error", {"lines": 2})
        assert 1 <= result["count"] <= 2
        assert result["entries"][-1]["level"] == "deprecated"

    @pytest.mark.asyncio
    async def test_lines_capped_by_config(self, install):
        from wpboost.config.settings import BoostConfig

        config = BoostConfig.model_validate({"tools": {"max_log_lines": 1}})
        result = await DebugLog(install, config).execute("last_error", {"lines": 100})
        assert result["count"] == 1

    @pytest.mark.asyncio
    async def test_invalid_level(self, debug_log):
        with pytest.raises(ToolError, match="Invalid level"):
            await debug_log.execute("last_error", {"level": "fatal"})

    @pytest.mark.asyncio
    async def test_invalid_lines(self, debug_log):
        with pytest.raises(ToolError, match="integer"):
            await debug_log.execute("last_error", {"lines": "many"})

    @pytest.mark.asyncio
    async def test_missing_log(self, debug_log, wp_root):
        (wp_root / "wp-content" / "debug.log").unlink()
        result = await debug_log.execute("last_error", {})
        assert result["error"] == "Debug log file not found."
        assert result["wp_debug"] is True
        assert result["expected_path"].endswith("debug.log")


# ===========================================================================
# debug_log_info / log location
# ===========================================================================


class TestDebugLogInfo:
    @pytest.mark.asyncio
    async def test_existing_log(self, debug_log):
        info = await debug_log.execute("debug_log_info", {})
        assert info["exists"] is True
        assert info["wp_debug_display"] is False
        assert info["size_bytes"] > 0
        assert info["size"].endswith("B")

    def test_custom_relative_path(self, wp_root):
        from wpboost.config.settings import BoostConfig
        from wpboost.wordpress.install import WordPressInstall

        (wp_root / "wp-config.php").write_text("<?php\ndefine('WP_DEBUG_LOG', 'logs/wp.log');\n")
        tool = DebugLog(WordPressInstall.locate(wp_root), BoostConfig())
        assert tool.log_file_path() == wp_root.resolve() / "logs" / "wp.log"

    def test_disabled_without_default_file(self, wp_root):
        from wpboost.config.settings import BoostConfig
        from wpboost.wordpress.install import WordPressInstall

        (wp_root / "wp-config.php").write_text("<?php\ndefine('WP_DEBUG_LOG', false);\n")
        (wp_root / "wp-content" / "debug.log").unlink()
        tool = DebugLog(WordPressInstall.locate(wp_root), BoostConfig())
        assert tool.log_file_path() is None


# ===========================================================================
# parse_error
# ===========================================================================


class TestParseError:
    @pytest.mark.asyncio
    async def test_php_error(self, debug_log):
        result = await debug_log.execute("parse_error", {
            "error": "PHP Fatal error:  Uncaught Error: Call to undefined function bar() "
                     "in /srv/wp-content/themes/child/functions.php on line 20",
        })
        assert result["level"] == "Fatal error"
        assert result["message"] == "Uncaught Error: Call to undefined function bar()"
        assert result["file"] == "/srv/wp-content/themes/child/functions.php"
        assert result["line"] == 20
        assert "Check if the function name is spelled correctly" in result["suggestions"]

    def test_plain_warning(self):
        result = parse_error_message(
            "Warning: Undefined array key \"id\" in /srv/index.php on line 3"
        )
        assert result["level"] == "Warning"
        assert result["line"] == 3
        assert result["suggestions"][0].startswith("Check if the array key exists")

    def test_unrecognised(self):
        assert parse_error_message("something odd") == {"original": "something odd"}

    @pytest.mark.asyncio
    async def test_requires_error(self, debug_log):
        with pytest.raises(ToolError, match="Missing required argument: error"):
            await debug_log.execute("parse_error", {})


# ===========================================================================
# Helpers
# ===========================================================================


class TestHelpers:
    def test_read_last_lines(self, tmp_path):
        path = tmp_path / "big.log"
        path.write_text("".join(f"line {i}\n" for i in range(2000)))
        assert read_last_lines(path, 3) == ["line 1997", "line 1998", "line 1999"]

    def test_read_last_lines_chunk_aligned(self, tmp_path):
        # every line is exactly one chunk, so the tail starts on a chunk boundary
        lines = [str(i).ljust(CHUNK_SIZE - 1, "x") for i in range(5)]
        path = tmp_path / "aligned.log"
        path.write_bytes("".join(f"{line}\n" for line in lines).encode())
        assert path.stat().st_size == 5 * CHUNK_SIZE
        assert read_last_lines(path, 1) == lines[-1:]
        assert read_last_lines(path, 2) == lines[-2:]
        assert read_last_lines(path, 10) == lines

    def test_read_last_lines_multibyte_across_chunks(self, tmp_path):
        path = tmp_path / "utf8.log"
        long_line = "\u00e9" * 3000
        path.write_text(f"{long_line}\ntail!\n", encoding="utf-8")
        # the last chunk starts in the middle of a two-byte character
        assert (path.stat().st_size - CHUNK_SIZE) % 2 == 1
        assert read_last_lines(path, 2) == [long_line, "tail!"]

    def test_read_last_lines_empty(self, tmp_path):
        path = tmp_path / "empty.log"
        path.write_text("")
        assert read_last_lines(path, 10) == []

    def test_iso_timestamp_and_bare_php_prefix(self):
        entries = parse_log_entries([
            "[2026-10-18 10:00:00] PHP Warning:  foo in /a.php on line 1",
            "PHP Notice:  bar in /b.php on line 2",
            "orphan continuation",
        ])
        assert [e["timestamp"] for e in entries] == ["2026-10-18 10:00:00", None]
        assert entries[1]["message"].endswith("orphan continuation")

    def test_leading_continuation_dropped(self):
        entries = parse_log_entries(["#0 {main}", "[2026-10-18 10:00:00] PHP Notice:  x"])
        assert len(entries) == 1

    def test_detect_level(self):
        assert detect_level("PHP Parse error: syntax") == "error"
        assert detect_level("PHP Deprecated: foo") == "deprecated"
        assert detect_level("random") == "unknown"
