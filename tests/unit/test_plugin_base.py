"""Unit tests for the tool contract and the Plugin base class."""

from typing import Any

import pytest

from moxie_server.plugins import (
    ConfigFieldBuilder,
    ConfigFieldType,
    InvalidParametersError,
    Plugin,
    PluginManifest,
    ToolDefinition,
    ToolResult,
    require_argument,
)
from moxie_server.plugins.types import default_parameters


class GreeterPlugin(Plugin):
    def manifest(self) -> PluginManifest:
        return (
            PluginManifest("test.greeter", "Greeter", "Greets people")
            .with_config_field(
                ConfigFieldBuilder("greeting", ConfigFieldType.STRING).required().build()
            )
            .with_config_field(ConfigFieldBuilder("loud", ConfigFieldType.BOOLEAN).build())
        )

    def tools(self) -> list[ToolDefinition]:
        return [ToolDefinition("greet", "Greet someone")]

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        return ToolResult.ok(f"Hello, {require_argument(arguments, 'name')}")


def test_tool_definition_defaults():
    """Test that a tool without parameters gets an empty object schema."""
    tool = ToolDefinition("ping", "Ping")

    assert tool.parameters == default_parameters()
    assert tool.requires_confirmation is False
    assert tool.plugin_id is None


def test_tool_definition_copies():
    """Test that the with_* helpers return modified copies."""
    tool = ToolDefinition("ping", "Ping")
    schema = {"type": "object", "properties": {"host": {"type": "string"}}, "required": ["host"]}

    changed = tool.with_parameters(schema).with_confirmation().from_plugin("test.net")

    assert changed.parameters == schema
    assert changed.requires_confirmation is True
    assert changed.plugin_id == "test.net"
    assert tool.parameters == default_parameters()
    assert tool.requires_confirmation is False


def test_tool_result_constructors():
    """Test successful and failed results."""
    ok = ToolResult.ok({"value": 1})
    failed = ToolResult.failure("boom")

    assert ok.success is True
    assert ok.output == {"value": 1}
    assert ok.error is None
    assert failed.success is False
    assert failed.output is None
    assert failed.error == "boom"


def test_tool_result_to_dict():
    """Test the JSON form of a result with metadata."""
    result = ToolResult.ok("done").with_duration(12).with_plugin("test.x")

    assert result.to_dict() == {
        "success": True,
        "output": "done",
        "error": None,
        "metadata": {"duration_ms": 12, "plugin_id": "test.x"},
    }


def test_plugin_id_and_tool_lookup():
    """Test id, has_tool and get_tool."""
    plugin = GreeterPlugin()

    assert plugin.id == "test.greeter"
    assert plugin.has_tool("greet")
    assert not plugin.has_tool("wave")
    assert plugin.get_tool("greet").description == "Greet someone"
    assert plugin.get_tool("wave") is None


def test_validate_config_reports_missing_required_fields():
    """Test that only missing required fields are reported."""
    plugin = GreeterPlugin()

    assert plugin.validate_config({}) == ["Missing required field: greeting"]
    assert plugin.validate_config({"greeting": "Hi"}) == []


@pytest.mark.asyncio
async def test_default_hooks_do_nothing():
    """Test that lifecycle hooks are optional."""
    plugin = GreeterPlugin()

    await plugin.on_shutdown()
    await plugin.on_enable()
    await plugin.on_disable()
    await plugin.before_execute("greet", {})
    await plugin.after_execute("greet", ToolResult.ok(None))


def test_require_argument():
    """Test fetching required tool arguments."""
    assert require_argument({"name": "Ada"}, "name") == "Ada"
    assert require_argument({"count": 3}, "count", int) == 3

    with pytest.raises(InvalidParametersError, match="Invalid parameters: name is required"):
        require_argument({}, "name")
    with pytest.raises(InvalidParametersError, match="name must be of type str"):
        require_argument({"name": 42}, "name")
