"""Configuration module for moxie-server using pydantic-settings."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class MoxieServerSettings(BaseSettings):
    """Main configuration settings for moxie-server.

    All settings can be overridden via environment variables with the MOXIE_ prefix.
    For example, MOXIE_OLLAMA_HOST will override the ollama_host setting.
    Dict and list settings are read from JSON, e.g.
    MOXIE_PLUGIN_CONFIGS='{"moxie.filesystem": {"allowed_paths": ["/srv/data"]}}'.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Language model providers
    ollama_host: str = "http://localhost:11434"
    openai_base_url: str | None = None
    openai_api_key: str | None = None
    default_provider: str = "ollama"
    default_model: str = "llama3.2"

    # Chat
    system_prompt: str | None = None
    max_tool_iterations: int = Field(default=10, ge=1)

    # Data directories (relative to data_dir)
    data_dir: str = "."
    conversations_dir: str = "conversations"
    plugins_data_dir: str = "plugins"
    personas_dir: str = "personas"

    # Plugins
    enabled_plugins: list[str] = Field(
        default_factory=lambda: ["moxie.filesystem", "moxie.api"]
    )
    plugin_configs: dict[str, dict[str, Any]] = Field(default_factory=dict)
    plugins_config_file: str | None = None

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="MOXIE_")

    # --- Resolved paths (computed from data_dir + relative dirs) ---

    @property
    def resolved_conversations_dir(self) -> Path:
        """Get the full path to the conversations directory."""
        return Path(self.data_dir) / self.conversations_dir

    @property
    def resolved_plugins_data_dir(self) -> Path:
        """Get the full path to the per-plugin data directory."""
        return Path(self.data_dir) / self.plugins_data_dir

    @property
    def resolved_personas_dir(self) -> Path:
        """Get the full path to the custom personas directory."""
        return Path(self.data_dir) / self.personas_dir

    @property
    def resolved_plugins_config_file(self) -> Path | None:
        """Get the full path to the plugins config file, if one is set."""
        if self.plugins_config_file is None:
            return None
        return Path(self.data_dir) / self.plugins_config_file

    def load_plugin_configs(self) -> dict[str, dict[str, Any]]:
        """Get the configuration of every plugin.

        Entries from plugins_config_file (a JSON object mapping plugin ids
        to configs) are loaded first; plugin_configs overrides them per id.

        Returns:
            dict: Plugin id mapped to its configuration

        Raises:
            ValueError: If the config file is not a JSON object
        """
        configs: dict[str, dict[str, Any]] = {}

        path = self.resolved_plugins_config_file
        if path is not None:
            if path.exists():
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError(f"Plugin config file {path} must contain a JSON object")
                configs.update(data)
                logger.info(f"Loaded plugin configs for {len(data)} plugin(s) from {path}")
            else:
                logger.warning(f"Plugin config file not found: {path}")

        configs.update(self.plugin_configs)
        return configs
