"""Filesystem plugin for local file operations.

Provides tools for reading, writing and listing files. Access is limited
to the configured allowed paths and writing must be switched on
explicitly:

    {
        "allowed_paths": ["/srv/data", "/home/me/reports"],
        "allow_write": false,
        "max_file_size": 10485760
    }
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from moxie_server.plugins.base import Plugin, PluginContext, require_argument
from moxie_server.plugins.errors import ConfigError, ToolNotFoundError
from moxie_server.plugins.manifest import (
    ConfigFieldBuilder,
    ConfigFieldType,
    PluginCategory,
    PluginManifest,
)
from moxie_server.plugins.types import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


class FilesystemConfig(BaseModel):
    """Configuration for the filesystem plugin."""

    allowed_paths: list[Path] = Field(default_factory=list)
    allow_write: bool = False
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0)


def _resolve(path: Path) -> Path | None:
    """Resolve a path, falling back to its nearest existing ancestor.

    Symlinks and '..' segments are resolved on the part of the path that
    exists; the missing tail is appended unchanged.

    Returns:
        The resolved path, or None if no ancestor can be resolved
    """
    missing: list[str] = []
    current = path.absolute()
    while True:
        try:
            resolved = current.resolve(strict=True)
            break
        except (FileNotFoundError, NotADirectoryError):
            if current.parent == current:
                return None
            missing.append(current.name)
            current = current.parent
        except (OSError, RuntimeError, ValueError):
            return None
    if any(part == ".." for part in missing):
        return None
    for part in reversed(missing):
        resolved = resolved / part
    return resolved


class FilesystemPlugin(Plugin):
    """Plugin giving the assistant restricted access to local files."""

    ID = "moxie.filesystem"

    def __init__(self, config: FilesystemConfig | None = None) -> None:
        self.config = config or FilesystemConfig()

    def manifest(self) -> PluginManifest:
        return (
            PluginManifest(
                self.ID,
                "Filesystem",
                "Read, write, and list files on the local filesystem",
            )
            .with_version(1, 0, 0)
            .with_author("Moxie AI")
            .with_category(PluginCategory.FILESYSTEM)
            .with_keywords(["files", "filesystem", "read", "write", "directory"])
            .with_config_field(
                ConfigFieldBuilder("allowed_paths", ConfigFieldType.PATH_ARRAY)
                .label("Allowed Paths")
                .description("Directories the plugin can access")
                .required()
                .build()
            )
            .with_config_field(
                ConfigFieldBuilder("allow_write", ConfigFieldType.BOOLEAN)
                .label("Allow Write")
                .description("Enable file write operations")
                .default_value(False)
                .build()
            )
            .with_config_field(
                ConfigFieldBuilder("max_file_size", ConfigFieldType.NUMBER)
                .label("Max File Size")
                .description("Maximum file size to read (in bytes)")
                .default_value(DEFAULT_MAX_FILE_SIZE)
                .build()
            )
        )

    def tools(self) -> list[ToolDefinition]:
        tools = [
            ToolDefinition(
                name="read_file",
                description="Read the contents of a file",
                parameters=_path_schema("The path to the file to read"),
                plugin_id=self.ID,
            ),
            ToolDefinition(
                name="list_directory",
                description="List files and directories in a path",
                parameters=_path_schema("The directory path to list"),
                plugin_id=self.ID,
            ),
        ]

        if self.config.allow_write:
            tools.append(
                ToolDefinition(
                    name="write_file",
                    description="Write content to a file",
                    parameters={
                        "type": "object",
                        "properties": {
                            "path": {
                                "type": "string",
                                "description": "The path to write to",
                            },
                            "content": {
                                "type": "string",
                                "description": "The content to write",
                            },
                        },
                        "required": ["path", "content"],
                    },
                    plugin_id=self.ID,
                ).with_confirmation()
            )

        return tools

    async def on_init(self, ctx: PluginContext) -> None:
        """Load the configuration passed by the registry, if any.

        Raises:
            ConfigError: If the configuration is incomplete or invalid
        """
        if ctx.config:
            errors = self.validate_config(ctx.config)
            if errors:
                raise ConfigError("; ".join(errors))
            try:
                self.config = FilesystemConfig.model_validate(ctx.config)
            except ValidationError as e:
                raise ConfigError(str(e)) from e

        logger.info(
            f"Filesystem plugin initialized with {len(self.config.allowed_paths)} allowed paths"
        )

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        if tool_name == "read_file":
            return await self.read_file(require_argument(arguments, "path"))
        if tool_name == "write_file":
            path = require_argument(arguments, "path")
            content = require_argument(arguments, "content")
            return await self.write_file(path, content)
        if tool_name == "list_directory":
            return await self.list_directory(require_argument(arguments, "path"))
        raise ToolNotFoundError(tool_name)

    def is_path_allowed(self, path: Path) -> bool:
        """Check whether a path lies inside one of the allowed paths.

        Args:
            path: The requested path, which need not exist yet

        Returns:
            bool: False when no allowed paths are configured
        """
        if not self.config.allowed_paths:
            return False

        resolved = _resolve(path)
        if resolved is None:
            return False

        for allowed in self.config.allowed_paths:
            try:
                root = allowed.resolve(strict=True)
            except (OSError, RuntimeError):
                continue
            if resolved == root or resolved.is_relative_to(root):
                return True
        return False

    async def read_file(self, path: str) -> ToolResult:
        """Read a text file.

        Returns:
            ToolResult: {path, content, size} on success
        """
        target = Path(path)
        if not self.is_path_allowed(target):
            return _access_denied(path)

        if not target.exists():
            return ToolResult.failure(f"File not found: {path}")

        size = (await asyncio.to_thread(target.stat)).st_size
        if size > self.config.max_file_size:
            return ToolResult.failure(
                f"File too large: {size} bytes (max: {self.config.max_file_size} bytes)"
            )

        try:
            content = await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return ToolResult.failure(f"Failed to read file: {e}")

        return ToolResult.ok({"path": path, "content": content, "size": size})

    async def write_file(self, path: str, content: str) -> ToolResult:
        """Write a text file, creating parent directories as needed.

        Returns:
            ToolResult: {path, bytes_written} on success
        """
        if not self.config.allow_write:
            return ToolResult.failure("Write operations are disabled for this plugin")

        target = Path(path)
        if not self.is_path_allowed(target):
            return _access_denied(path)

        def _write() -> int:
            target.parent.mkdir(parents=True, exist_ok=True)
            data = content.encode("utf-8")
            target.write_bytes(data)
            return len(data)

        try:
            bytes_written = await asyncio.to_thread(_write)
        except OSError as e:
            return ToolResult.failure(f"Failed to write file: {e}")

        logger.info(f"Wrote {bytes_written} bytes to {path}")
        return ToolResult.ok({"path": path, "bytes_written": bytes_written})

    async def list_directory(self, path: str) -> ToolResult:
        """List the entries of a directory.

        Returns:
            ToolResult: {path, count, entries} on success
        """
        target = Path(path)
        if not self.is_path_allowed(target):
            return _access_denied(path)

        if not target.is_dir():
            return ToolResult.failure(f"Directory not found: {path}")

        def _scan() -> list[dict[str, Any]]:
            entries = []
            for entry in sorted(target.iterdir(), key=lambda p: p.name):
                stat = entry.stat()
                entries.append(
                    {
                        "name": entry.name,
                        "path": str(entry),
                        "is_file": entry.is_file(),
                        "is_dir": entry.is_dir(),
                        "size": stat.st_size,
                    }
                )
            return entries

        try:
            entries = await asyncio.to_thread(_scan)
        except OSError as e:
            return ToolResult.failure(f"Failed to list directory: {e}")

        return ToolResult.ok({"path": path, "count": len(entries), "entries": entries})


def _path_schema(description: str) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {"path": {"type": "string", "description": description}},
        "required": ["path"],
    }


def _access_denied(path: str) -> ToolResult:
    return ToolResult.failure(f"Access denied: path '{path}' is not in allowed paths")
