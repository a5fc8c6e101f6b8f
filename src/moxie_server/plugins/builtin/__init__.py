"""Plugins shipped with moxie-server."""

from moxie_server.plugins.builtin.api import ApiPlugin, ApiPluginConfig
from moxie_server.plugins.builtin.filesystem import FilesystemConfig, FilesystemPlugin

BUILTIN_PLUGINS = {
    FilesystemPlugin.ID: FilesystemPlugin,
    ApiPlugin.ID: ApiPlugin,
}

__all__ = [
    "ApiPlugin",
    "ApiPluginConfig",
    "BUILTIN_PLUGINS",
    "FilesystemConfig",
    "FilesystemPlugin",
]
