"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moxie_server.config import MoxieServerSettings
from moxie_server.conversations import ConversationStore
from moxie_server.ollama import OllamaClient
from moxie_server.plugins import PluginError, PluginRegistry
from moxie_server.plugins.builtin import BUILTIN_PLUGINS
from moxie_server.providers import ProviderFactory
from moxie_server.routers import chat, conversations, health, personas, plugins
from moxie_server.services import ChatEngine, PersonaService
from moxie_server.services.personas import DEFAULT

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


async def register_builtin_plugins(
    registry: PluginRegistry, settings: MoxieServerSettings
) -> None:
    """Register the built-in plugins enabled in the settings.

    Args:
        registry: The registry to register into
        settings: Settings naming the enabled plugins and their configs
    """
    configs = settings.load_plugin_configs()

    for plugin_id in settings.enabled_plugins:
        plugin_class = BUILTIN_PLUGINS.get(plugin_id)
        if plugin_class is None:
            logger.warning(f"Unknown plugin in enabled_plugins: {plugin_id}")
            continue
        await registry.register(plugin_class(), config=configs.get(plugin_id))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    Creates the Ollama client, the plugin registry and the chat engine once
    at startup and stores them in app.state for reuse across all requests.
    Plugins are initialized at startup and shut down in reverse order when
    the application stops.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: MoxieServerSettings = app.state.settings

    # Startup: Initialize Ollama client
    app.state.ollama_client = OllamaClient(host=settings.ollama_host)
    logger.info(f"Initialized Ollama client with host: {settings.ollama_host}")

    connected = await app.state.ollama_client.check_connection()
    if connected:
        logger.info("Successfully connected to Ollama")
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    # Plugins
    registry = PluginRegistry(
        data_dir=settings.resolved_plugins_data_dir, debug=settings.debug
    )
    app.state.plugin_registry = registry
    await register_builtin_plugins(registry, settings)
    try:
        await registry.init_all()
    except PluginError as e:
        logger.error(f"Plugin initialization stopped: {e}")
    logger.info(f"Active plugins: {await registry.list_active()}")

    # Conversations and chat
    app.state.conversation_store = ConversationStore(settings.resolved_conversations_dir)
    app.state.persona_service = PersonaService(settings.resolved_personas_dir)
    app.state.provider_factory = ProviderFactory(
        ollama_client=app.state.ollama_client,
        openai_base_url=settings.openai_base_url,
        openai_api_key=settings.openai_api_key,
    )
    app.state.chat_engine = ChatEngine(
        registry=registry,
        memory=app.state.conversation_store,
        providers=app.state.provider_factory,
        personas=app.state.persona_service,
        system_prompt=settings.system_prompt or DEFAULT,
        max_iterations=settings.max_tool_iterations,
    )

    yield

    # Shutdown: Clean up resources
    await registry.shutdown_all()
    logger.info("Plugins shut down")

    if hasattr(app.state, "ollama_client"):
        await app.state.ollama_client.close()
        logger.info("Ollama client closed")


def create_app(settings: MoxieServerSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a FastAPI instance with all routers,
    middleware, and configuration applied. It can accept an optional
    settings object for testing or explicit configuration.

    Args:
        settings: Optional MoxieServerSettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from moxie_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="moxie-server",
        description="AI assistant server with plugin-based tool calling",
        version=VERSION,
        lifespan=lifespan,
    )

    # Store settings in app.state for lifespan access
    app.state.settings = settings

    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(chat.router)
    app.include_router(plugins.router)
    app.include_router(plugins.tools_router)
    app.include_router(conversations.router)
    app.include_router(personas.router)

    return app
