"""Business logic services for moxie-server.

This package contains the chat engine that runs tool-calling turns, the
tool call text protocol and persona management.
"""

from moxie_server.services.chat_engine import (
    MAX_TOOL_ITERATIONS,
    ChatEngine,
    ChatRequest,
    ChatResponse,
    ToolCallEvent,
    ToolCallSummary,
)
from moxie_server.services.errors import (
    ChatError,
    ChatProviderError,
    ConversationMemoryError,
    MaxIterationsExceededError,
)
from moxie_server.services.personas import PersonaService, resolve_persona
from moxie_server.services.tool_calls import (
    ToolCall,
    build_system_prompt,
    extract_tool_calls,
)

__all__ = [
    "MAX_TOOL_ITERATIONS",
    "ChatEngine",
    "ChatError",
    "ChatProviderError",
    "ChatRequest",
    "ChatResponse",
    "ConversationMemoryError",
    "MaxIterationsExceededError",
    "PersonaService",
    "ToolCall",
    "ToolCallEvent",
    "ToolCallSummary",
    "build_system_prompt",
    "extract_tool_calls",
    "resolve_persona",
]
