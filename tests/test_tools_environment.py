"""Tests for the wp-config.php constant tools."""

from __future__ import annotations

import pytest

from wpboost.exceptions import ToolError
from wpboost.tools.environment import HIDDEN, Environment, is_sensitive, php_type


@pytest.fixture
def environment(install, config):
    return Environment(install, config)


def _by_name(entries):
    return {entry["name"]: entry for entry in entries}


class TestDefinitions:
    def test_names(self, environment):
        names = [d.name for d in environment.get_tool_definitions()]
        assert names == ["list_constants", "get_constant"]

    def test_category_enum(self, environment):
        schema = environment.get_tool_definitions()[0].input_schema
        assert schema["properties"]["category"]["enum"][-2:] == ["custom", "all"]


# ===========================================================================
# list_constants
# ===========================================================================


class TestListConstants:
    @pytest.mark.asyncio
    async def test_all_categories(self, environment):
        result = await environment.execute("list_constants", {})
        assert result["category"] == "all"
        assert list(result["constants"]) == [
            "core", "paths", "database", "debug", "multisite", "security", "performance", "custom",
        ]

    @pytest.mark.asyncio
    async def test_database_password_masked(self, environment):
        result = await environment.execute("list_constants", {"category": "database"})
        assert list(result["constants"]) == ["database"]
        database = _by_name(result["constants"]["database"])
        assert database["DB_NAME"]["value"] == "wordpress"
        assert database["DB_PASSWORD"]["value"] == HIDDEN
        assert database["DB_PASSWORD"]["defined"] is True
        assert "s3cret" not in str(result)

    @pytest.mark.asyncio
    async def test_undefined_constant(self, environment):
        result = await environment.execute("list_constants", {"category": "multisite"})
        multisite = _by_name(result["constants"]["multisite"])
        assert multisite["MULTISITE"] == {
            "name": "MULTISITE",
            "description": "Multisite is enabled",
            "defined": False,
            "value": None,
            "type": None,
        }

    @pytest.mark.asyncio
    async def test_types(self, environment):
        result = await environment.execute("list_constants", {"category": "debug"})
        debug = _by_name(result["constants"]["debug"])
        assert debug["WP_DEBUG"]["value"] is True
        assert debug["WP_DEBUG"]["type"] == "boolean"

        result = await environment.execute("list_constants", {"category": "performance"})
        assert _by_name(result["constants"]["performance"])["WP_MEMORY_LIMIT"]["type"] == "integer"

    @pytest.mark.asyncio
    async def test_derived_paths(self, environment, install):
        result = await environment.execute("list_constants", {"category": "paths"})
        paths = _by_name(result["constants"]["paths"])
        assert paths["ABSPATH"]["value"] == f"{install.root}/"
        assert paths["WP_PLUGIN_DIR"]["value"] == str(install.root / "wp-content" / "plugins")
        assert paths["WP_CONTENT_URL"]["defined"] is False

    @pytest.mark.asyncio
    async def test_custom(self, environment):
        result = await environment.execute("list_constants", {"category": "custom"})
        custom = _by_name(result["constants"]["custom"])
        assert set(custom) == {"MY_API_KEY", "MY_FLAG"}
        assert custom["MY_API_KEY"]["value"] == HIDDEN
        assert custom["MY_FLAG"] == {"name": "MY_FLAG", "value": True, "type": "boolean"}

    @pytest.mark.asyncio
    async def test_invalid_category(self, environment):
        with pytest.raises(ToolError, match="Invalid category"):
            await environment.execute("list_constants", {"category": "nope"})


# ===========================================================================
# get_constant
# ===========================================================================


class TestGetConstant:
    @pytest.mark.asyncio
    async def test_defined(self, environment):
        result = await environment.execute("get_constant", {"name": "DB_HOST"})
        assert result == {
            "name": "DB_HOST",
            "defined": True,
            "value": "localhost:3306",
            "type": "string",
            "source": "wp-config",
        }

    @pytest.mark.asyncio
    async def test_sensitive_masked(self, environment):
        for name in ("DB_PASSWORD", "AUTH_KEY", "MY_API_KEY"):
            result = await environment.execute("get_constant", {"name": name})
            assert result["defined"] is True
            assert result["value"] == HIDDEN

    @pytest.mark.asyncio
    async def test_derived(self, environment):
        result = await environment.execute("get_constant", {"name": "WPINC"})
        assert result["value"] == "wp-includes"
        assert result["source"] == "derived"

    @pytest.mark.asyncio
    async def test_not_defined(self, environment):
        result = await environment.execute("get_constant", {"name": "NOPE"})
        assert result["defined"] is False
        assert result["value"] is None

    @pytest.mark.asyncio
    async def test_name_required(self, environment):
        with pytest.raises(ToolError, match="Missing required argument: name"):
            await environment.execute("get_constant", {})


class TestHelpers:
    def test_is_sensitive(self):
        assert is_sensitive("NONCE_SALT")
        assert is_sensitive("stripe_secret")
        assert not is_sensitive("WP_DEBUG")

    def test_php_type(self):
        assert php_type(None) == "NULL"
        assert php_type(False) == "boolean"
        assert php_type(3) == "integer"
        assert php_type(1.5) == "double"
        assert php_type("x") == "string"
