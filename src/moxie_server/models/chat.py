"""Pydantic models for chat API requests and responses.

This module defines the request and response schemas for the chat endpoints,
including the events emitted by the streaming endpoint.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from moxie_server.conversations import CONVERSATION_ID_PATTERN


class ChatRequest(BaseModel):
    """Request body for POST /api/v1/chat and POST /api/v1/chat/stream."""

    message: str = Field(min_length=1, description="The user message to send")
    conversation_id: str | None = Field(
        default=None,
        pattern=CONVERSATION_ID_PATTERN,
        description="Conversation to continue. A new one is started if omitted.",
    )
    system_prompt: str | None = Field(
        default=None,
        description="Explicit system prompt; takes precedence over persona",
    )
    persona: str | None = Field(
        default=None,
        description="Persona name, e.g. 'analyst' or 'support'",
    )
    provider: str | None = Field(
        default=None,
        description="Language model provider (default from server settings)",
    )
    model: str | None = Field(
        default=None,
        description="Model name (default from server settings)",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"message": "What files are in my reports folder?"},
                {
                    "message": "Summarize last week's sales",
                    "conversation_id": "3f2b8c1e-5d4a-4e8b-9c1f-2a3b4c5d6e7f",
                    "persona": "analyst",
                    "provider": "ollama",
                    "model": "llama3.2",
                },
            ]
        }
    )


class ToolCallSummaryResponse(BaseModel):
    """Name and outcome of a tool call made while answering."""

    name: str = Field(description="Tool name")
    success: bool = Field(description="Whether the tool call succeeded")

    model_config = ConfigDict(from_attributes=True)


class ChatResponse(BaseModel):
    """Response body for the non-streaming chat endpoint."""

    message: str = Field(description="The assistant's final reply")
    conversation_id: str = Field(description="Conversation identifier")
    tool_calls: list[ToolCallSummaryResponse] = Field(
        default_factory=list,
        description="Tools called while producing the reply, in order",
    )

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "message": "Your reports folder contains 3 files.",
                "conversation_id": "3f2b8c1e-5d4a-4e8b-9c1f-2a3b4c5d6e7f",
                "tool_calls": [{"name": "list_directory", "success": True}],
            }
        },
    )


class ToolCallEventData(BaseModel):
    """SSE event emitted after each tool call."""

    conversation_id: str
    iteration: int
    call_id: str
    name: str
    arguments: dict[str, Any]
    success: bool
    error: str | None = None


class MessageCompleteEvent(BaseModel):
    """SSE event carrying the final reply."""

    conversation_id: str
    message: str
    tool_calls: list[ToolCallSummaryResponse] = Field(default_factory=list)


class ErrorEvent(BaseModel):
    """SSE event emitted when the turn fails."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class DoneEvent(BaseModel):
    """SSE event marking the end of the stream."""

    conversation_id: str
