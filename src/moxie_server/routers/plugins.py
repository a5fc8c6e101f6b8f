"""Plugin and tool API endpoints.

This module provides endpoints to inspect registered plugins, drive their
lifecycle (init, enable, disable, shutdown, retry) and to list and execute
the tools offered by active plugins.
"""

import logging
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException

from moxie_server.dependencies import get_plugin_registry
from moxie_server.models.plugins import (
    PluginInfo,
    PluginListResponse,
    PluginStateResponse,
    ToolExecuteRequest,
    ToolExecuteResponse,
    ToolInfo,
    ToolListResponse,
)
from moxie_server.plugins import (
    PluginError,
    PluginNotFoundError,
    PluginRegistry,
    ToolNotFoundError,
    ToolResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/plugins", tags=["plugins"])
tools_router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


def _not_found(plugin_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={
            "error": {
                "code": "plugin_not_found",
                "message": f"Plugin not found: {plugin_id}",
                "details": {"plugin_id": plugin_id},
            }
        },
    )


def _plugin_info(entry: dict[str, Any]) -> PluginInfo:
    manifest = entry["manifest"]
    return PluginInfo(
        id=manifest.id,
        state=entry["state"].value,
        load_order=entry["load_order"],
        manifest=manifest.to_dict(),
        tools=[ToolInfo.model_validate(tool) for tool in entry["tools"]],
    )


@router.get("", response_model=PluginListResponse)
async def list_plugins(
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginListResponse:
    """List all registered plugins in load order."""
    entries = await registry.describe()
    return PluginListResponse(plugins=[_plugin_info(entry) for entry in entries])


@router.get("/{plugin_id}", response_model=PluginInfo)
async def get_plugin(
    plugin_id: str,
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginInfo:
    """Get a single plugin with its manifest, state and tools.

    Raises:
        HTTPException: 404 if the plugin is not registered
    """
    for entry in await registry.describe():
        if entry["manifest"].id == plugin_id:
            return _plugin_info(entry)
    raise _not_found(plugin_id)


async def _lifecycle(
    registry: PluginRegistry,
    plugin_id: str,
    action: str,
    operation: Callable[[str], Awaitable[None]],
) -> PluginStateResponse:
    """Run a lifecycle operation and report the resulting state.

    Raises:
        HTTPException: 404 if the plugin is unknown, 409 if the operation
            fails with a plugin error, 500 if a plugin hook fails otherwise
    """
    try:
        await operation(plugin_id)
    except PluginNotFoundError:
        raise _not_found(plugin_id)
    except PluginError as e:
        logger.error(f"Plugin {action} failed for {plugin_id}: {e}")
        raise HTTPException(
            status_code=409,
            detail={
                "error": {
                    "code": f"plugin_{action}_failed",
                    "message": str(e),
                    "details": {"plugin_id": plugin_id},
                }
            },
        )
    except Exception as e:
        logger.error(f"Plugin hook failed during {action} of {plugin_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail={
                "error": {
                    "code": "plugin_hook_error",
                    "message": f"Failed to {action} plugin: {str(e)}",
                    "details": {"plugin_id": plugin_id},
                }
            },
        )

    state = await registry.get_state(plugin_id)
    return PluginStateResponse(id=plugin_id, state=state.value if state else "unknown")


@router.post("/{plugin_id}/init", response_model=PluginStateResponse)
async def init_plugin(
    plugin_id: str,
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginStateResponse:
    """Initialize a registered plugin."""
    return await _lifecycle(registry, plugin_id, "init", registry.init_plugin)


@router.post("/{plugin_id}/enable", response_model=PluginStateResponse)
async def enable_plugin(
    plugin_id: str,
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginStateResponse:
    """Enable a disabled plugin."""
    return await _lifecycle(registry, plugin_id, "enable", registry.enable_plugin)


@router.post("/{plugin_id}/disable", response_model=PluginStateResponse)
async def disable_plugin(
    plugin_id: str,
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginStateResponse:
    """Disable an active plugin; its tools are no longer offered."""
    return await _lifecycle(registry, plugin_id, "disable", registry.disable_plugin)


@router.post("/{plugin_id}/shutdown", response_model=PluginStateResponse)
async def shutdown_plugin(
    plugin_id: str,
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginStateResponse:
    """Shut down a plugin, returning it to the registered state."""
    return await _lifecycle(registry, plugin_id, "shutdown", registry.shutdown_plugin)


@router.post("/{plugin_id}/retry", response_model=PluginStateResponse)
async def retry_plugin(
    plugin_id: str,
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> PluginStateResponse:
    """Reset a failed plugin so it can be initialized again."""
    return await _lifecycle(registry, plugin_id, "retry", registry.retry_plugin)


@tools_router.get("", response_model=ToolListResponse)
async def list_tools(
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> ToolListResponse:
    """List the tools of all active plugins."""
    tools = await registry.all_tools()
    return ToolListResponse(tools=[ToolInfo.model_validate(tool) for tool in tools])


@tools_router.post("/{tool_name}/execute", response_model=ToolExecuteResponse)
async def execute_tool(
    tool_name: str,
    body: ToolExecuteRequest,
    registry: PluginRegistry = Depends(get_plugin_registry),
) -> ToolExecuteResponse:
    """Execute a tool directly, bypassing the language model.

    Errors raised while executing are reported as a failed result.

    Raises:
        HTTPException: 404 if no active plugin offers the tool
    """
    try:
        result = await registry.execute(tool_name, body.arguments)
    except ToolNotFoundError as e:
        raise HTTPException(
            status_code=404,
            detail={
                "error": {
                    "code": "tool_not_found",
                    "message": str(e),
                    "details": {"tool_name": tool_name},
                }
            },
        )
    except Exception as e:
        logger.warning(f"Tool {tool_name} failed: {e}")
        result = ToolResult.failure(str(e))

    return ToolExecuteResponse.model_validate(result)
