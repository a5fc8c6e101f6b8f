"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject the shared objects created at startup.
"""

from functools import lru_cache
from typing import Any

from fastapi import HTTPException, Request

from moxie_server.config import MoxieServerSettings
from moxie_server.conversations import ConversationStore
from moxie_server.plugins import PluginRegistry
from moxie_server.services import ChatEngine, PersonaService


@lru_cache
def get_settings() -> MoxieServerSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the MOXIE_ prefix.

    Returns:
        MoxieServerSettings: The application configuration settings.
    """
    return MoxieServerSettings()


def _from_state(request: Request, name: str, label: str) -> Any:
    if not hasattr(request.app.state, name):
        raise HTTPException(
            status_code=503,
            detail={
                "error": {
                    "code": "service_unavailable",
                    "message": f"{label} not initialized",
                    "details": {},
                }
            },
        )
    return getattr(request.app.state, name)


def get_plugin_registry(request: Request) -> PluginRegistry:
    """Get the plugin registry created during application startup.

    Args:
        request: The FastAPI request object.

    Returns:
        PluginRegistry: The shared plugin registry.

    Raises:
        HTTPException: If the registry is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "plugin_registry", "Plugin registry")


def get_conversation_store(request: Request) -> ConversationStore:
    """Get the conversation store from app state.

    Raises:
        HTTPException: If the store is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "conversation_store", "Conversation store")


def get_chat_engine(request: Request) -> ChatEngine:
    """Get the chat engine from app state.

    Raises:
        HTTPException: If the engine is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "chat_engine", "Chat engine")


def get_persona_service(request: Request) -> PersonaService:
    """Get a PersonaService for the configured personas directory.

    Uses the settings from app.state so tests can use their own isolated
    settings.

    Args:
        request: The FastAPI request object.

    Returns:
        PersonaService: A persona service instance.
    """
    settings = request.app.state.settings
    return PersonaService(personas_dir=settings.resolved_personas_dir)
