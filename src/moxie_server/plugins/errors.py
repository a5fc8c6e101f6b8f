"""Exceptions raised by plugins and the plugin registry."""


class PluginError(Exception):
    """Base class for all plugin-related errors."""


class ToolNotFoundError(PluginError):
    """Raised when no active plugin provides the requested tool."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class InvalidParametersError(PluginError):
    """Raised when tool arguments are missing or of the wrong type."""

    def __init__(self, message: str):
        super().__init__(f"Invalid parameters: {message}")


class ExecutionFailedError(PluginError):
    """Raised when a tool fails in a way that is not a normal failed result."""

    def __init__(self, message: str):
        super().__init__(f"Execution failed: {message}")


class PluginNotFoundError(PluginError):
    """Raised when a plugin id is not registered."""

    def __init__(self, plugin_id: str):
        self.plugin_id = plugin_id
        super().__init__(f"Plugin not found: {plugin_id}")


class PluginDisabledError(PluginError):
    """Raised when an operation needs an active plugin but it is disabled."""

    def __init__(self, plugin_id: str):
        self.plugin_id = plugin_id
        super().__init__(f"Plugin disabled: {plugin_id}")


class InitFailedError(PluginError):
    """Raised when a plugin's initialization hook fails."""

    def __init__(self, plugin_id: str, reason: str):
        self.plugin_id = plugin_id
        super().__init__(f"Initialization failed for {plugin_id}: {reason}")


class ConfigError(PluginError):
    """Raised when plugin configuration is missing or invalid."""

    def __init__(self, message: str):
        super().__init__(f"Configuration error: {message}")


class ManifestValidationError(InvalidParametersError):
    """Raised when a plugin manifest fails validation at registration."""


class DuplicatePluginError(PluginError):
    """Raised when registering a plugin id that is already registered."""

    def __init__(self, plugin_id: str):
        self.plugin_id = plugin_id
        super().__init__(f"Plugin {plugin_id} is already registered")


class DependencyError(PluginError):
    """Raised when a plugin dependency is missing or incompatible."""
