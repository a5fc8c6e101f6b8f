"""Conversation history API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from moxie_server.conversations import (
    ConversationStore,
    StoredMessage,
    is_valid_conversation_id,
)
from moxie_server.dependencies import get_conversation_store
from moxie_server.models.conversations import (
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationSummaryResponse,
    SearchResponse,
    StoredMessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


def _message_response(message: StoredMessage) -> StoredMessageResponse:
    return StoredMessageResponse(
        conversation_id=message.conversation_id, **message.to_dict()
    )


def _conversation_not_found(conversation_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={
            "error": {
                "code": "conversation_not_found",
                "message": f"Conversation {conversation_id} not found",
                "details": {"conversation_id": conversation_id},
            }
        },
    )


def _invalid_id(conversation_id: str) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={
            "error": {
                "code": "invalid_conversation_id",
                "message": f"Invalid conversation id: {conversation_id}",
                "details": {"conversation_id": conversation_id},
            }
        },
    )


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    store: ConversationStore = Depends(get_conversation_store),
) -> ConversationListResponse:
    """List stored conversations, most recently updated first."""
    summaries = await store.list_conversations()
    return ConversationListResponse(
        conversations=[
            ConversationSummaryResponse.model_validate(summary) for summary in summaries
        ]
    )


@router.get("/search", response_model=SearchResponse)
async def search_messages(
    q: str = Query(..., min_length=1, description="Text to search for"),
    limit: int = Query(default=20, ge=1, le=200, description="Maximum results"),
    store: ConversationStore = Depends(get_conversation_store),
) -> SearchResponse:
    """Search all conversations for messages containing a text.

    The match is case-insensitive; results are ordered newest first.
    """
    results = await store.search_messages(q, limit=limit)
    logger.debug(f"Search for {q!r} returned {len(results)} message(s)")
    return SearchResponse(query=q, results=[_message_response(m) for m in results])


@router.get("/{conversation_id}/messages", response_model=ConversationMessagesResponse)
async def get_messages(
    conversation_id: str,
    store: ConversationStore = Depends(get_conversation_store),
) -> ConversationMessagesResponse:
    """Get all stored messages of a conversation in order.

    Raises:
        HTTPException: 400 if the id is invalid, 404 if the conversation
            doesn't exist
    """
    if not is_valid_conversation_id(conversation_id):
        raise _invalid_id(conversation_id)

    try:
        messages = await store.get_messages(conversation_id)
    except FileNotFoundError:
        raise _conversation_not_found(conversation_id)

    return ConversationMessagesResponse(
        conversation_id=conversation_id,
        messages=[_message_response(m) for m in messages],
    )


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: str,
    store: ConversationStore = Depends(get_conversation_store),
) -> None:
    """Delete a conversation and all its messages.

    Raises:
        HTTPException: 400 if the id is invalid, 404 if the conversation
            doesn't exist
    """
    if not is_valid_conversation_id(conversation_id):
        raise _invalid_id(conversation_id)

    try:
        await store.delete_conversation(conversation_id)
    except FileNotFoundError:
        raise _conversation_not_found(conversation_id)
