"""Pydantic models for API requests and responses."""

from moxie_server.models.chat import (
    ChatRequest,
    ChatResponse,
    DoneEvent,
    ErrorEvent,
    MessageCompleteEvent,
    ToolCallEventData,
    ToolCallSummaryResponse,
)
from moxie_server.models.conversations import (
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationSummaryResponse,
    SearchResponse,
    StoredMessageResponse,
)
from moxie_server.models.health import HealthResponse
from moxie_server.models.personas import PersonaListResponse, PersonaResponse
from moxie_server.models.plugins import (
    PluginInfo,
    PluginListResponse,
    PluginStateResponse,
    ToolExecuteRequest,
    ToolExecuteResponse,
    ToolInfo,
    ToolListResponse,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ConversationListResponse",
    "ConversationMessagesResponse",
    "ConversationSummaryResponse",
    "DoneEvent",
    "ErrorEvent",
    "HealthResponse",
    "MessageCompleteEvent",
    "PersonaListResponse",
    "PersonaResponse",
    "PluginInfo",
    "PluginListResponse",
    "PluginStateResponse",
    "SearchResponse",
    "StoredMessageResponse",
    "ToolCallEventData",
    "ToolCallSummaryResponse",
    "ToolExecuteRequest",
    "ToolExecuteResponse",
    "ToolInfo",
    "ToolListResponse",
]
