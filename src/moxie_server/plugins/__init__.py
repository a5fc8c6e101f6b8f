"""Plugin system: tool contract, plugin base class and registry.

Plugins publish tools the assistant can call. The PluginRegistry manages
their lifecycle and dispatches tool calls to the plugin that owns them.
"""

from moxie_server.plugins.base import (
    Plugin,
    PluginContext,
    PluginState,
    require_argument,
)
from moxie_server.plugins.errors import (
    ConfigError,
    DependencyError,
    DuplicatePluginError,
    ExecutionFailedError,
    InitFailedError,
    InvalidParametersError,
    ManifestValidationError,
    PluginDisabledError,
    PluginError,
    PluginNotFoundError,
    ToolNotFoundError,
)
from moxie_server.plugins.manifest import (
    ConfigField,
    ConfigFieldBuilder,
    ConfigFieldType,
    PlatformRequirements,
    PluginCategory,
    PluginManifest,
    Version,
)
from moxie_server.plugins.registry import LoadedPlugin, PluginRegistry
from moxie_server.plugins.types import ToolDefinition, ToolResult, ToolResultMetadata

__all__ = [
    "ConfigError",
    "ConfigField",
    "ConfigFieldBuilder",
    "ConfigFieldType",
    "DependencyError",
    "DuplicatePluginError",
    "ExecutionFailedError",
    "InitFailedError",
    "InvalidParametersError",
    "LoadedPlugin",
    "ManifestValidationError",
    "PlatformRequirements",
    "Plugin",
    "PluginCategory",
    "PluginContext",
    "PluginDisabledError",
    "PluginError",
    "PluginManifest",
    "PluginNotFoundError",
    "PluginRegistry",
    "PluginState",
    "ToolDefinition",
    "ToolNotFoundError",
    "ToolResult",
    "ToolResultMetadata",
    "Version",
    "require_argument",
]
