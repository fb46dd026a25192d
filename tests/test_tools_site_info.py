"""Tests for the site information tools."""

from __future__ import annotations

import pytest

from wpboost.exceptions import ToolError
from wpboost.tools.site_info import SiteInfo


@pytest.fixture
def site_info(install, config):
    return SiteInfo(install, config)


class TestDefinitions:
    def test_names(self, site_info):
        names = [d.name for d in site_info.get_tool_definitions()]
        assert names == ["site_info", "list_plugins", "list_themes"]
        assert site_info.handles("list_plugins")
        assert not site_info.handles("last_error")

    def test_status_enum(self, site_info):
        definition = site_info.get_tool_definitions()[1]
        status = definition.input_schema["properties"]["status"]
        assert status["enum"] == ["all", "standard", "must-use", "drop-in"]
        assert "required" not in definition.input_schema


class TestSiteInfo:
    @pytest.mark.asyncio
    async def test_overview(self, site_info, install):
        info = await site_info.execute("site_info", {})
        assert info["wordpress"]["version"] == "6.4.2"
        assert info["wordpress"]["is_multisite"] is False
        assert info["database"]["name"] == "wordpress"
        assert info["database"]["prefix"] == "wpx_"
        assert info["plugins"] == {"total": 2, "must_use": 1, "dropins": 1}
        assert info["themes"] == {"total": 2, "child_themes": 1}
        assert info["debug"]["wp_debug"] is True
        assert info["debug"]["script_debug"] is False
        assert info["paths"]["ABSPATH"] == str(install.root)


class TestListPlugins:
    @pytest.mark.asyncio
    async def test_all(self, site_info):
        result = await site_info.execute("list_plugins", {})
        assert result["count"] == 4
        types = [p["type"] for p in result["plugins"]]
        assert types == ["standard", "standard", "must-use", "drop-in"]

    @pytest.mark.asyncio
    async def test_filter_standard(self, site_info):
        result = await site_info.execute("list_plugins", {"status": "standard"})
        names = {p["name"] for p in result["plugins"]}
        assert names == {"Akismet Anti-spam", "Hello Dolly"}
        akismet = next(p for p in result["plugins"] if p["file"] == "akismet/akismet.php")
        assert akismet["version"] == "5.3"
        assert akismet["requires_php"] == "7.2"

    @pytest.mark.asyncio
    async def test_filter_dropin(self, site_info):
        result = await site_info.execute("list_plugins", {"status": "drop-in"})
        assert result["plugins"] == [{
            "file": "object-cache.php",
            "name": "object-cache.php",
            "description": "External object cache",
            "type": "drop-in",
        }]

    @pytest.mark.asyncio
    async def test_invalid_status(self, site_info):
        with pytest.raises(ToolError, match="Invalid status"):
            await site_info.execute("list_plugins", {"status": "active"})


class TestListThemes:
    @pytest.mark.asyncio
    async def test_parent_child(self, site_info):
        result = await site_info.execute("list_themes", {})
        themes = {t["stylesheet"]: t for t in result["themes"]}
        assert result["count"] == 2
        assert themes["child"]["parent_theme"] == "Twenty Twenty-Four"
        assert themes["child"]["parent_missing"] is False
        assert themes["twentytwentyfour"]["parent_theme"] is None
        assert themes["twentytwentyfour"]["template"] == "twentytwentyfour"

    @pytest.mark.asyncio
    async def test_missing_parent(self, site_info, wp_root):
        (wp_root / "wp-content" / "themes" / "twentytwentyfour" / "style.css").unlink()
        result = await site_info.execute("list_themes", {})
        child = result["themes"][0]
        assert child["stylesheet"] == "child"
        assert child["parent_theme"] is None
        assert child["parent_missing"] is True
