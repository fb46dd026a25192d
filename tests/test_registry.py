"""Tests for the tool registry and startup registration."""

from __future__ import annotations

import pytest

from wpboost.config.settings import BoostConfig, IntegrationsConfig, Settings
from wpboost.exceptions import DuplicateToolError, UnknownToolError
from wpboost.mcp.registry import ToolRegistry, build_registry
from wpboost.tools.base import BaseTool, ToolDefinition
from wpboost.wordpress.install import WordPressInstall


class NamedTool(BaseTool):
    def __init__(self, *names: str) -> None:
        super().__init__(install=None, config=BoostConfig())
        self.names = names

    def get_tool_definitions(self) -> list[ToolDefinition]:
        return [self.create_tool_definition(n, n) for n in self.names]


class GreedyTool(NamedTool):
    """Claims every name, regardless of what it advertises."""

    def handles(self, name: str) -> bool:
        return True


# ===========================================================================
# ToolRegistry
# ===========================================================================


class TestToolRegistry:
    def test_preserves_insertion_order(self):
        registry = ToolRegistry()
        registry.register("b", NamedTool("b1", "b2")).register("a", NamedTool("a1"))
        assert registry.keys() == ["b", "a"]
        assert [d.name for d in registry.definitions()] == ["b1", "b2", "a1"]
        assert len(registry) == 2
        assert "a" in registry

    def test_resolve(self):
        first, second = NamedTool("one"), NamedTool("two")
        registry = ToolRegistry().register("first", first).register("second", second)
        assert registry.resolve("two") is second
        assert registry.resolve("one") is first

    def test_resolve_unknown(self):
        registry = ToolRegistry().register("first", NamedTool("one"))
        with pytest.raises(UnknownToolError, match="Unknown tool: nope"):
            registry.resolve("nope")

    def test_resolve_first_match_wins(self):
        greedy = GreedyTool("anything")
        registry = ToolRegistry().register("greedy", greedy).register("other", NamedTool("two"))
        assert registry.resolve("two") is greedy

    def test_duplicate_tool_name_rejected(self):
        registry = ToolRegistry().register("first", NamedTool("shared"))
        with pytest.raises(DuplicateToolError, match="shared"):
            registry.register("second", NamedTool("other", "shared"))
        assert registry.keys() == ["first"]

    def test_duplicate_within_tool_rejected(self):
        with pytest.raises(DuplicateToolError):
            ToolRegistry().register("dup", NamedTool("x", "x"))

    def test_duplicate_key_rejected(self):
        registry = ToolRegistry().register("first", NamedTool("one"))
        with pytest.raises(DuplicateToolError, match="key"):
            registry.register("first", NamedTool("two"))


# ===========================================================================
# build_registry
# ===========================================================================


CORE_KEYS = ["site_info", "template_hierarchy", "debug_log", "documentation", "environment", "security"]


class TestBuildRegistry:
    def test_core_tools_only(self, install, config):
        registry = build_registry(install, config, Settings())
        assert registry.keys() == CORE_KEYS

    def test_plugin_tools_registered_after_core(self, wp_root_with_plugins, config):
        install = WordPressInstall.locate(wp_root_with_plugins)
        registry = build_registry(install, config, Settings())
        assert registry.keys() == CORE_KEYS + ["acf", "woocommerce"]

    def test_file_based_tools_always_registered(self, install, config):
        registry = build_registry(install, config, Settings())
        for name in ("list_constants", "template_hierarchy", "security_audit", "list_function_parameters"):
            assert registry.resolve(name) is not None

    def test_integration_toggle(self, wp_root_with_plugins):
        install = WordPressInstall.locate(wp_root_with_plugins)
        config = BoostConfig(integrations=IntegrationsConfig(acf=False))
        registry = build_registry(install, config, Settings())
        assert "acf" not in registry
        assert "woocommerce" in registry

    def test_tool_names_unique(self, wp_root_with_plugins, config):
        install = WordPressInstall.locate(wp_root_with_plugins)
        names = [d.name for d in build_registry(install, config).definitions()]
        assert len(names) == len(set(names))

    def test_every_advertised_name_is_handled_by_its_tool(self, wp_root_with_plugins, config):
        install = WordPressInstall.locate(wp_root_with_plugins)
        registry = build_registry(install, config)
        for tool in registry:
            for definition in tool.get_tool_definitions():
                assert tool.handles(definition.name)
                assert registry.resolve(definition.name) is tool

    def test_required_fields_are_declared(self, wp_root_with_plugins, config):
        install = WordPressInstall.locate(wp_root_with_plugins)
        for definition in build_registry(install, config).definitions():
            schema = definition.input_schema
            assert schema["type"] == "object"
            for field_name in schema.get("required", []):
                assert field_name in schema["properties"], (
                    f"Tool {definition.name}: required field '{field_name}' not in properties"
                )
