"""Conversation memory for moxie-server.

This package provides the message types exchanged with the language model
and the stores that persist conversations between turns.
"""

from moxie_server.conversations.store import (
    ConversationMemory,
    ConversationStore,
    InMemoryConversationStore,
)
from moxie_server.conversations.types import (
    CONVERSATION_ID_PATTERN,
    ConversationSummary,
    Message,
    Role,
    StoredMessage,
    is_valid_conversation_id,
)

__all__ = [
    # Stores
    "ConversationMemory",
    "ConversationStore",
    "InMemoryConversationStore",
    # Types
    "CONVERSATION_ID_PATTERN",
    "ConversationSummary",
    "Message",
    "Role",
    "StoredMessage",
    "is_valid_conversation_id",
]
