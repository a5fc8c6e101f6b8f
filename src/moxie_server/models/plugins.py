"""Pydantic models for plugin and tool API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolInfo(BaseModel):
    """A tool offered by an active plugin."""

    name: str = Field(description="Unique tool name")
    description: str = Field(description="Description shown to the model")
    parameters: dict[str, Any] = Field(description="JSON-Schema-like argument schema")
    requires_confirmation: bool = Field(
        default=False, description="Whether the tool is flagged as sensitive"
    )
    plugin_id: str | None = Field(default=None, description="Owning plugin")

    model_config = ConfigDict(from_attributes=True)


class ToolListResponse(BaseModel):
    """Response for GET /api/v1/tools."""

    tools: list[ToolInfo]


class ToolExecuteRequest(BaseModel):
    """Request body for POST /api/v1/tools/{name}/execute."""

    arguments: dict[str, Any] = Field(
        default_factory=dict, description="Arguments passed to the tool"
    )

    model_config = ConfigDict(
        json_schema_extra={"example": {"arguments": {"path": "/srv/data/report.txt"}}}
    )


class ToolResultMetadataResponse(BaseModel):
    duration_ms: int | None = None
    plugin_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ToolExecuteResponse(BaseModel):
    """Outcome of a direct tool execution."""

    success: bool
    output: Any = None
    error: str | None = None
    metadata: ToolResultMetadataResponse = Field(
        default_factory=ToolResultMetadataResponse
    )

    model_config = ConfigDict(from_attributes=True)


class PluginInfo(BaseModel):
    """A registered plugin with its lifecycle state."""

    id: str = Field(description="Plugin identifier")
    state: str = Field(description="Lifecycle state, e.g. 'active' or 'error'")
    load_order: int = Field(description="Registration order, starting at 1")
    manifest: dict[str, Any] = Field(description="Full plugin manifest")
    tools: list[ToolInfo] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "moxie.filesystem",
                "state": "active",
                "load_order": 1,
                "manifest": {"id": "moxie.filesystem", "name": "File System"},
                "tools": [],
            }
        }
    )


class PluginListResponse(BaseModel):
    """Response for GET /api/v1/plugins."""

    plugins: list[PluginInfo]


class PluginStateResponse(BaseModel):
    """Response for plugin lifecycle actions."""

    id: str
    state: str
