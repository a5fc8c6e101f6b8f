"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from moxie_server.models.health import HealthResponse
from moxie_server.ollama import OllamaClient
from moxie_server.plugins import PluginRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current health status and version of moxie-server.
    Also checks connectivity to the Ollama server and counts the
    registered and active plugins if they are initialized.

    Args:
        request: The FastAPI request object.

    Returns:
        HealthResponse: Health status and version information.
    """
    from moxie_server.app import VERSION

    ollama_connected = None
    ollama_host = None
    plugins_registered = 0
    plugins_active = 0

    if hasattr(request.app.state, "ollama_client"):
        ollama_client: OllamaClient = request.app.state.ollama_client
        ollama_host = ollama_client.host

        try:
            ollama_connected = await ollama_client.check_connection()
            logger.debug(f"Ollama connectivity check: {ollama_connected}")
        except Exception as e:
            logger.warning(f"Ollama connectivity check failed: {e}")
            ollama_connected = False

    if hasattr(request.app.state, "plugin_registry"):
        registry: PluginRegistry = request.app.state.plugin_registry
        plugins_registered = len(registry)
        plugins_active = len(await registry.list_active())

    return HealthResponse(
        status="ok",
        version=VERSION,
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
        plugins_registered=plugins_registered,
        plugins_active=plugins_active,
    )
