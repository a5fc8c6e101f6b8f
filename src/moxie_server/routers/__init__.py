"""FastAPI routers for API endpoints.

This package contains all route handlers organized by resource type.
Each router module defines endpoints for a specific domain (health, chat,
plugins and tools, conversations, personas).
"""

from moxie_server.routers import chat, conversations, health, personas, plugins

__all__ = [
    "chat",
    "conversations",
    "health",
    "personas",
    "plugins",
]
