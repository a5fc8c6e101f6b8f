"""Plugin registry: registration, lifecycle management and tool dispatch.

The registry owns every registered plugin together with its lifecycle
state. One instance is created at application startup and shared by all
requests; structural changes (register, init, shutdown, enable, disable)
take an exclusive lock while tool listing and execution only take a
shared one, so concurrent chat requests can run tools side by side.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, TypeVar

from moxie_server.plugins.base import Plugin, PluginContext, PluginState
from moxie_server.plugins.errors import (
    DependencyError,
    DuplicatePluginError,
    InitFailedError,
    PluginNotFoundError,
    ToolNotFoundError,
)
from moxie_server.plugins.manifest import PluginManifest
from moxie_server.plugins.types import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Plugin)


class _ReadWriteLock:
    """Asyncio lock allowing many readers or a single writer.

    New readers wait while a writer is queued.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass
class LoadedPlugin:
    """A registered plugin together with its registry-managed state."""

    plugin: Plugin
    state: PluginState = PluginState.REGISTERED
    config: dict[str, Any] = field(default_factory=dict)
    load_order: int = 0


class PluginRegistry:
    """Registry of plugins and their lifecycle.

    Attributes:
        data_dir: Base directory; each plugin gets its own subdirectory
        debug: Debug flag passed on to plugins
    """

    def __init__(self, data_dir: Path | None = None, debug: bool = False) -> None:
        """Initialize an empty registry.

        Args:
            data_dir: Base directory for per-plugin data (default: ./plugins)
            debug: Whether plugins should run in debug mode
        """
        self.data_dir = data_dir or Path("plugins")
        self.debug = debug
        self._plugins: dict[str, LoadedPlugin] = {}
        self._load_counter = 0
        self._lock = _ReadWriteLock()

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins

    # --- Registration ---

    async def register(
        self, plugin: Plugin, config: dict[str, Any] | None = None
    ) -> None:
        """Register a plugin.

        The manifest is validated, the id must be new, and every declared
        dependency must already be registered with a compatible version.
        Nothing is stored unless all checks pass.

        Args:
            plugin: The plugin instance to register
            config: Plugin-specific configuration passed to on_init

        Raises:
            ManifestValidationError: If the manifest is malformed
            DuplicatePluginError: If a plugin with the same id exists
            DependencyError: If a dependency is missing or incompatible
        """
        manifest = plugin.manifest()
        manifest.validate()

        async with self._lock.write():
            if manifest.id in self._plugins:
                raise DuplicatePluginError(manifest.id)

            for dep_id, required in manifest.dependencies.items():
                dep = self._plugins.get(dep_id)
                if dep is None:
                    raise DependencyError(
                        f"Plugin '{manifest.id}' requires '{dep_id}' which is not loaded"
                    )
                dep_version = dep.plugin.manifest().version
                if not dep_version.is_compatible_with(required):
                    raise DependencyError(
                        f"Plugin '{manifest.id}' requires {dep_id} version "
                        f"{required}, but {dep_version} is loaded"
                    )

            self._load_counter += 1
            self._plugins[manifest.id] = LoadedPlugin(
                plugin=plugin,
                config=dict(config or {}),
                load_order=self._load_counter,
            )

        logger.info(f"Registered plugin: {manifest.id} v{manifest.version}")

    # --- Lifecycle ---

    async def init_plugin(self, plugin_id: str) -> None:
        """Initialize a single registered plugin.

        Plugins that are not in the Registered state are left alone.

        Raises:
            PluginNotFoundError: If the plugin id is unknown
            InitFailedError: If the plugin's on_init hook fails
        """
        async with self._lock.write():
            await self._init_locked(plugin_id)

    async def init_all(self) -> None:
        """Initialize all registered plugins in load order.

        Stops at the first plugin that fails to initialize; plugins after
        it stay Registered.

        Raises:
            InitFailedError: If a plugin's on_init hook fails
        """
        async with self._lock.write():
            for loaded in self._ordered():
                await self._init_locked(loaded.plugin.id)

    async def _init_locked(self, plugin_id: str) -> None:
        loaded = self._require(plugin_id)
        if loaded.state is not PluginState.REGISTERED:
            return

        loaded.state = PluginState.INITIALIZING
        ctx = PluginContext(
            config=dict(loaded.config),
            data_dir=self.data_dir / plugin_id,
            debug=self.debug,
        )

        try:
            ctx.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Failed to create plugin data dir {ctx.data_dir}: {e}")

        try:
            await loaded.plugin.on_init(ctx)
        except Exception as e:
            loaded.state = PluginState.ERROR
            logger.error(f"Failed to initialize plugin {plugin_id}: {e}")
            raise InitFailedError(plugin_id, str(e)) from e

        loaded.state = PluginState.ACTIVE
        logger.info(f"Initialized plugin: {plugin_id}")

    async def shutdown_plugin(self, plugin_id: str) -> None:
        """Shut down an active or disabled plugin.

        Errors raised by the plugin's on_shutdown hook are logged and the
        plugin still returns to the Registered state.

        Raises:
            PluginNotFoundError: If the plugin id is unknown
        """
        async with self._lock.write():
            await self._shutdown_locked(plugin_id)

    async def shutdown_all(self) -> None:
        """Shut down all plugins in reverse load order, best effort."""
        async with self._lock.write():
            for loaded in reversed(self._ordered()):
                await self._shutdown_locked(loaded.plugin.id)

    async def _shutdown_locked(self, plugin_id: str) -> None:
        loaded = self._require(plugin_id)
        if loaded.state not in (PluginState.ACTIVE, PluginState.DISABLED):
            return

        loaded.state = PluginState.SHUTTING_DOWN
        try:
            await loaded.plugin.on_shutdown()
        except Exception as e:
            logger.error(f"Error shutting down plugin {plugin_id}: {e}")

        loaded.state = PluginState.REGISTERED
        logger.info(f"Shutdown plugin: {plugin_id}")

    async def enable_plugin(self, plugin_id: str) -> None:
        """Enable a disabled plugin. Other states are left unchanged.

        Raises:
            PluginNotFoundError: If the plugin id is unknown
            Exception: Whatever the plugin's on_enable hook raises
        """
        async with self._lock.write():
            loaded = self._require(plugin_id)
            if loaded.state is not PluginState.DISABLED:
                return
            await loaded.plugin.on_enable()
            loaded.state = PluginState.ACTIVE
        logger.info(f"Enabled plugin: {plugin_id}")

    async def disable_plugin(self, plugin_id: str) -> None:
        """Disable an active plugin. Other states are left unchanged.

        Raises:
            PluginNotFoundError: If the plugin id is unknown
            Exception: Whatever the plugin's on_disable hook raises
        """
        async with self._lock.write():
            loaded = self._require(plugin_id)
            if loaded.state is not PluginState.ACTIVE:
                return
            await loaded.plugin.on_disable()
            loaded.state = PluginState.DISABLED
        logger.info(f"Disabled plugin: {plugin_id}")

    async def retry_plugin(self, plugin_id: str) -> None:
        """Move a plugin from Error back to Registered so it can be re-initialized.

        Raises:
            PluginNotFoundError: If the plugin id is unknown
        """
        async with self._lock.write():
            loaded = self._require(plugin_id)
            if loaded.state is not PluginState.ERROR:
                return
            loaded.state = PluginState.REGISTERED
        logger.info(f"Reset plugin {plugin_id} for another initialization attempt")

    # --- Lookup ---

    def get(self, plugin_id: str) -> Plugin | None:
        """Get a registered plugin instance by id."""
        loaded = self._plugins.get(plugin_id)
        return loaded.plugin if loaded else None

    def get_typed(self, plugin_id: str, plugin_type: type[P]) -> P | None:
        """Get a registered plugin by id if it is an instance of plugin_type.

        Args:
            plugin_id: Id of the plugin
            plugin_type: Expected concrete plugin class

        Returns:
            The plugin, or None if it is missing or of another type
        """
        plugin = self.get(plugin_id)
        if isinstance(plugin, plugin_type):
            return plugin
        return None

    async def get_state(self, plugin_id: str) -> PluginState | None:
        """Get the lifecycle state of a plugin, or None if unknown."""
        async with self._lock.read():
            loaded = self._plugins.get(plugin_id)
            return loaded.state if loaded else None

    async def list_manifests(self) -> list[PluginManifest]:
        """List the manifests of all registered plugins in load order."""
        async with self._lock.read():
            return [loaded.plugin.manifest() for loaded in self._ordered()]

    async def list_active(self) -> list[str]:
        """List the ids of all active plugins in load order."""
        async with self._lock.read():
            return [
                loaded.plugin.id
                for loaded in self._ordered()
                if loaded.state is PluginState.ACTIVE
            ]

    async def describe(self) -> list[dict[str, Any]]:
        """Describe every plugin: manifest, state, load order and tools."""
        async with self._lock.read():
            return [
                {
                    "manifest": loaded.plugin.manifest(),
                    "state": loaded.state,
                    "load_order": loaded.load_order,
                    "tools": self._tools_of(loaded),
                }
                for loaded in self._ordered()
            ]

    # --- Tools ---

    async def all_tools(self) -> list[ToolDefinition]:
        """Get the tools of all active plugins, in load order."""
        async with self._lock.read():
            tools: list[ToolDefinition] = []
            for loaded in self._ordered():
                if loaded.state is PluginState.ACTIVE:
                    tools.extend(self._tools_of(loaded))
            return tools

    async def find_plugin_for_tool(self, tool_name: str) -> str | None:
        """Get the id of the active plugin providing a tool.

        When several active plugins offer the same tool name, the one
        registered first wins.
        """
        async with self._lock.read():
            loaded = self._resolve_tool(tool_name)
            return loaded.plugin.id if loaded else None

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool on the active plugin that provides it.

        Confirmation flags are advisory: a warning is logged and the tool
        still runs.

        Args:
            tool_name: Name of the tool to execute
            arguments: Arguments for the tool

        Returns:
            ToolResult: The plugin's result with duration and plugin id set

        Raises:
            ToolNotFoundError: If no active plugin offers the tool
            PluginError: Whatever the plugin or its hooks raise
        """
        async with self._lock.read():
            loaded = self._resolve_tool(tool_name)
            if loaded is None:
                raise ToolNotFoundError(tool_name)

            plugin = loaded.plugin
            tool = plugin.get_tool(tool_name)
            if plugin.manifest().requires_confirmation or (
                tool is not None and tool.requires_confirmation
            ):
                logger.warning(
                    f"Tool '{tool_name}' from plugin '{plugin.id}' requires confirmation"
                )

            start = time.perf_counter()
            await plugin.before_execute(tool_name, arguments)
            result = await plugin.execute(tool_name, arguments)
            await plugin.after_execute(tool_name, result)

            if result.metadata.duration_ms is None:
                result.with_duration(int((time.perf_counter() - start) * 1000))
            if result.metadata.plugin_id is None:
                result.with_plugin(plugin.id)

            logger.debug(
                f"Executed tool {tool_name} via {plugin.id}: success={result.success}"
            )
            return result

    # --- Internals ---

    def _require(self, plugin_id: str) -> LoadedPlugin:
        loaded = self._plugins.get(plugin_id)
        if loaded is None:
            raise PluginNotFoundError(plugin_id)
        return loaded

    def _ordered(self) -> list[LoadedPlugin]:
        return sorted(self._plugins.values(), key=lambda loaded: loaded.load_order)

    def _resolve_tool(self, tool_name: str) -> LoadedPlugin | None:
        for loaded in self._ordered():
            if loaded.state is PluginState.ACTIVE and loaded.plugin.has_tool(tool_name):
                return loaded
        return None

    @staticmethod
    def _tools_of(loaded: LoadedPlugin) -> list[ToolDefinition]:
        plugin_id = loaded.plugin.id
        return [
            tool if tool.plugin_id else tool.from_plugin(plugin_id)
            for tool in loaded.plugin.tools()
        ]
