"""Pydantic models for conversation API responses."""

from pydantic import BaseModel, ConfigDict, Field


class ConversationSummaryResponse(BaseModel):
    """Listing entry for a stored conversation."""

    conversation_id: str
    created_at: str = Field(description="ISO 8601 timestamp of the first message")
    updated_at: str = Field(description="ISO 8601 timestamp of the last message")
    message_count: int
    preview: str = Field(default="", description="Start of the first user message")

    model_config = ConfigDict(from_attributes=True)


class ConversationListResponse(BaseModel):
    """Response for GET /api/v1/conversations."""

    conversations: list[ConversationSummaryResponse]


class StoredMessageResponse(BaseModel):
    """A persisted message."""

    id: int
    conversation_id: str
    role: str
    content: str
    created_at: str

    model_config = ConfigDict(from_attributes=True)


class ConversationMessagesResponse(BaseModel):
    """Response for GET /api/v1/conversations/{conversation_id}/messages."""

    conversation_id: str
    messages: list[StoredMessageResponse]


class SearchResponse(BaseModel):
    """Response for GET /api/v1/conversations/search."""

    query: str
    results: list[StoredMessageResponse]
