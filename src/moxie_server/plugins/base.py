"""Plugin base class and lifecycle types.

Every capability the assistant can use is a Plugin subclass. A plugin
publishes a manifest and a list of tools, executes tool calls, and may
react to lifecycle events through the async hooks below, all of which
default to doing nothing.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from moxie_server.plugins.errors import InvalidParametersError
from moxie_server.plugins.manifest import PluginManifest
from moxie_server.plugins.types import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)


class PluginState(str, Enum):
    """Lifecycle state of a registered plugin."""

    REGISTERED = "registered"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    DISABLED = "disabled"
    ERROR = "error"
    SHUTTING_DOWN = "shutting_down"


@dataclass
class PluginContext:
    """Context handed to a plugin when it is initialized.

    Attributes:
        config: Plugin-specific configuration
        data_dir: Directory the plugin may use for its own files
        debug: Whether the server runs in debug mode
    """

    config: dict[str, Any] = field(default_factory=dict)
    data_dir: Path = field(default_factory=lambda: Path("."))
    debug: bool = False


class Plugin(ABC):
    """Base class for all plugins."""

    @abstractmethod
    def manifest(self) -> PluginManifest:
        """Return the plugin manifest."""

    @abstractmethod
    def tools(self) -> list[ToolDefinition]:
        """Return the tools currently offered by this plugin."""

    @abstractmethod
    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute one of this plugin's tools.

        Args:
            tool_name: Name of the tool to run
            arguments: Arguments supplied by the model

        Returns:
            ToolResult: Successful or failed outcome of the call

        Raises:
            ToolNotFoundError: If the plugin does not offer the tool
            InvalidParametersError: If required arguments are missing
        """

    async def on_init(self, ctx: PluginContext) -> None:
        """Called once when the plugin is initialized."""

    async def on_shutdown(self) -> None:
        """Called when the plugin is shut down."""

    async def on_enable(self) -> None:
        """Called when a disabled plugin is enabled again."""

    async def on_disable(self) -> None:
        """Called when an active plugin is disabled."""

    async def before_execute(self, tool_name: str, arguments: dict[str, Any]) -> None:
        """Called before each tool execution. Raising aborts the call."""

    async def after_execute(self, tool_name: str, result: ToolResult) -> None:
        """Called after each tool execution with its result."""

    @property
    def id(self) -> str:
        """Unique id of the plugin, taken from its manifest."""
        return self.manifest().id

    def has_tool(self, name: str) -> bool:
        """Check whether the plugin currently offers a tool by name."""
        return any(tool.name == name for tool in self.tools())

    def get_tool(self, name: str) -> ToolDefinition | None:
        """Get one of the plugin's tool definitions by name."""
        for tool in self.tools():
            if tool.name == name:
                return tool
        return None

    def validate_config(self, config: dict[str, Any]) -> list[str]:
        """Check a configuration against the manifest's config schema.

        Args:
            config: Configuration to check

        Returns:
            list[str]: One message per required field that is missing
        """
        errors = []
        for config_field in self.manifest().config_schema:
            if config_field.required and config_field.name not in config:
                errors.append(f"Missing required field: {config_field.name}")
        return errors


def require_argument(
    arguments: dict[str, Any], name: str, expected_type: type = str
) -> Any:
    """Fetch a required tool argument.

    Args:
        arguments: Arguments passed to Plugin.execute
        name: Name of the argument
        expected_type: Type the value must have

    Returns:
        The argument value

    Raises:
        InvalidParametersError: If the argument is missing or has the wrong type
    """
    value = arguments.get(name)
    if value is None:
        raise InvalidParametersError(f"{name} is required")
    if not isinstance(value, expected_type):
        raise InvalidParametersError(
            f"{name} must be of type {expected_type.__name__}"
        )
    return value
