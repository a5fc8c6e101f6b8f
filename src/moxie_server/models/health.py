"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status indicator ("ok" or "error").
        version: The version of moxie-server.
        ollama_connected: Whether the Ollama server is reachable.
        ollama_host: The Ollama host URL.
        plugins_registered: Number of registered plugins.
        plugins_active: Number of active plugins.
    """

    status: str = Field(..., description="Health status of the service")
    version: str = Field(..., description="Version of moxie-server")
    ollama_connected: bool | None = Field(
        default=None,
        description="Whether Ollama is connected",
    )
    ollama_host: str | None = Field(
        default=None,
        description="Ollama host URL",
    )
    plugins_registered: int = Field(default=0, description="Registered plugins")
    plugins_active: int = Field(default=0, description="Active plugins")
