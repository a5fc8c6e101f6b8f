"""Data types shared between plugins, the registry and the chat engine.

This module defines the tool contract: the description a plugin publishes
for each tool it offers (ToolDefinition) and the outcome of running one
(ToolResult).
"""

from dataclasses import dataclass, field, replace
from typing import Any


def default_parameters() -> dict[str, Any]:
    """Return the parameter schema used when a tool declares none."""
    return {"type": "object", "properties": {}, "required": []}


@dataclass
class ToolDefinition:
    """Description of a callable tool offered by a plugin.

    Attributes:
        name: Unique tool name (e.g. "read_file")
        description: Human-readable description shown to the model
        parameters: JSON-Schema-like description of the arguments
        requires_confirmation: Whether the tool is flagged as sensitive
        plugin_id: Id of the owning plugin, if known
    """

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=default_parameters)
    requires_confirmation: bool = False
    plugin_id: str | None = None

    def with_parameters(self, parameters: dict[str, Any]) -> "ToolDefinition":
        """Return a copy of this definition with a new parameter schema."""
        return replace(self, parameters=parameters)

    def with_confirmation(self) -> "ToolDefinition":
        """Return a copy of this definition flagged as requiring confirmation."""
        return replace(self, requires_confirmation=True)

    def from_plugin(self, plugin_id: str) -> "ToolDefinition":
        """Return a copy of this definition attributed to a plugin."""
        return replace(self, plugin_id=plugin_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert the definition to its JSON representation."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "requires_confirmation": self.requires_confirmation,
            "plugin_id": self.plugin_id,
        }


@dataclass
class ToolResultMetadata:
    """Execution metadata attached to a ToolResult."""

    duration_ms: int | None = None
    plugin_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"duration_ms": self.duration_ms, "plugin_id": self.plugin_id}


@dataclass
class ToolResult:
    """Outcome of a tool execution.

    A successful result carries an output value; a failed one carries an
    error message and no output.
    """

    success: bool
    output: Any = None
    error: str | None = None
    metadata: ToolResultMetadata = field(default_factory=ToolResultMetadata)

    @classmethod
    def ok(cls, output: Any) -> "ToolResult":
        """Create a successful result.

        Args:
            output: Any JSON-serializable value

        Returns:
            ToolResult: A result with success=True
        """
        return cls(success=True, output=output)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        """Create a failed result.

        Args:
            error: Description of what went wrong

        Returns:
            ToolResult: A result with success=False and no output
        """
        return cls(success=False, output=None, error=error)

    def with_duration(self, duration_ms: int) -> "ToolResult":
        """Attach the execution duration in milliseconds."""
        self.metadata.duration_ms = duration_ms
        return self

    def with_plugin(self, plugin_id: str) -> "ToolResult":
        """Attach the id of the plugin that produced this result."""
        self.metadata.plugin_id = plugin_id
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to its JSON representation."""
        return {
            "success": self.success,
            "output": self.output,
            "error": self.error,
            "metadata": self.metadata.to_dict(),
        }
