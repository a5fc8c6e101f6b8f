"""Data types for conversation memory.

This module defines the messages exchanged with the language model and
the records the conversation store keeps for them.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

CONVERSATION_ID_PATTERN = r"^[A-Za-z0-9_-][A-Za-z0-9._-]{0,127}$"
_CONVERSATION_ID_RE = re.compile(CONVERSATION_ID_PATTERN)


def utc_timestamp() -> str:
    """Current time as an ISO 8601 UTC string with a trailing Z."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def is_valid_conversation_id(conversation_id: str) -> bool:
    """Check that a conversation id is safe to use as a file name."""
    return bool(_CONVERSATION_ID_RE.fullmatch(conversation_id))


class Role(str, Enum):
    """Role of a message author."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Parse a stored role, treating unknown values as user messages."""
        try:
            return cls(value)
        except ValueError:
            return cls.USER


@dataclass
class Message:
    """A message in a conversation."""

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(Role.ASSISTANT, content)

    def to_dict(self) -> dict[str, str]:
        """Convert to the {"role", "content"} shape used by LLM APIs."""
        return {"role": self.role.value, "content": self.content}


@dataclass
class StoredMessage:
    """A message as persisted by a conversation store."""

    id: int
    conversation_id: str
    role: Role
    content: str
    created_at: str

    def to_message(self) -> Message:
        return Message(self.role, self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "created_at": self.created_at,
        }


@dataclass
class ConversationSummary:
    """Listing entry for a stored conversation."""

    conversation_id: str
    created_at: str
    updated_at: str
    message_count: int
    preview: str = ""
