"""Conversation persistence.

A conversation is stored as one JSON file named after its id:
{
    "metadata": {"conversation_id": ..., "created_at": ..., "updated_at": ...,
                 "message_count": ..., "next_id": ...},
    "messages": [{"id": 1, "role": "user", "content": "...", "created_at": ...}, ...]
}

Writes to the same conversation are serialized within the process; file
I/O runs in a worker thread so the event loop is never blocked.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Protocol

from moxie_server.conversations.types import (
    ConversationSummary,
    Message,
    Role,
    StoredMessage,
    is_valid_conversation_id,
    utc_timestamp,
)

logger = logging.getLogger(__name__)


class ConversationMemory(Protocol):
    """Interface the chat engine needs from a conversation store."""

    async def get_conversation(self, conversation_id: str) -> list[Message]:
        """Get all messages of a conversation in order (empty if unknown)."""
        ...

    async def save_message(self, conversation_id: str, message: Message) -> int:
        """Append a message, creating the conversation if needed.

        Returns:
            The id of the stored record
        """
        ...


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def _preview(messages: list[StoredMessage], max_length: int = 100) -> str:
    for message in messages:
        if message.role is Role.USER:
            content = message.content
            if len(content) > max_length:
                return content[: max_length - 3] + "..."
            return content
    return ""


class ConversationStore:
    """JSON-file backed conversation store.

    Attributes:
        conversations_dir: Directory holding one JSON file per conversation
    """

    def __init__(self, conversations_dir: Path):
        """Initialize the store.

        Args:
            conversations_dir: Directory for conversation files, created if missing
        """
        self.conversations_dir = conversations_dir
        self.conversations_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, _LockEntry] = {}

    # --- ConversationMemory ---

    async def get_conversation(self, conversation_id: str) -> list[Message]:
        data = await self._load(conversation_id)
        if data is None:
            return []
        return [m.to_message() for m in self._parse_messages(conversation_id, data)]

    async def save_message(self, conversation_id: str, message: Message) -> int:
        async with self._locked(conversation_id):
            now = utc_timestamp()
            data = await self._load(conversation_id)
            if data is None:
                data = {
                    "metadata": {
                        "conversation_id": conversation_id,
                        "created_at": now,
                        "updated_at": now,
                        "message_count": 0,
                        "next_id": 1,
                    },
                    "messages": [],
                }
                logger.info(f"Created conversation {conversation_id}")

            metadata = data["metadata"]
            record_id = metadata.get("next_id", len(data["messages"]) + 1)
            data["messages"].append(
                {
                    "id": record_id,
                    "role": message.role.value,
                    "content": message.content,
                    "created_at": now,
                }
            )
            metadata["next_id"] = record_id + 1
            metadata["message_count"] = len(data["messages"])
            metadata["updated_at"] = now

            await asyncio.to_thread(self._write, conversation_id, data)
            logger.debug(
                f"Saved {message.role.value} message {record_id} to conversation {conversation_id}"
            )
            return record_id

    # --- Additional queries ---

    async def get_messages(self, conversation_id: str) -> list[StoredMessage]:
        """Get the stored records of a conversation.

        Raises:
            FileNotFoundError: If the conversation doesn't exist
        """
        data = await self._load(conversation_id)
        if data is None:
            raise FileNotFoundError(f"Conversation {conversation_id} not found")
        return self._parse_messages(conversation_id, data)

    async def get_recent_messages(
        self, conversation_id: str, limit: int
    ) -> list[Message]:
        """Get the last `limit` messages of a conversation, oldest first."""
        if limit <= 0:
            return []
        messages = await self.get_conversation(conversation_id)
        return messages[-limit:]

    async def search_messages(self, query: str, limit: int = 20) -> list[StoredMessage]:
        """Search all conversations for messages containing a text.

        The match is case-insensitive. Results are ordered newest first.
        """
        needle = query.lower()
        matches: list[StoredMessage] = []
        for conversation_id in await asyncio.to_thread(self._conversation_ids):
            try:
                data = await self._load(conversation_id)
            except ValueError as e:
                logger.warning(f"Skipping unreadable conversation {conversation_id}: {e}")
                continue
            if data is None:
                continue
            matches.extend(
                m
                for m in self._parse_messages(conversation_id, data)
                if needle in m.content.lower()
            )
        matches.sort(key=lambda m: (m.created_at, m.id), reverse=True)
        return matches[:limit]

    async def list_conversations(self) -> list[ConversationSummary]:
        """List all conversations, most recently updated first."""
        summaries = []
        for conversation_id in await asyncio.to_thread(self._conversation_ids):
            try:
                data = await self._load(conversation_id)
            except ValueError as e:
                logger.warning(f"Skipping unreadable conversation {conversation_id}: {e}")
                continue
            if data is None:
                continue
            metadata = data["metadata"]
            summaries.append(
                ConversationSummary(
                    conversation_id=conversation_id,
                    created_at=metadata["created_at"],
                    updated_at=metadata["updated_at"],
                    message_count=metadata.get("message_count", len(data["messages"])),
                    preview=_preview(self._parse_messages(conversation_id, data)),
                )
            )
        summaries.sort(key=lambda s: s.updated_at, reverse=True)
        return summaries

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation and all its messages.

        Raises:
            FileNotFoundError: If the conversation doesn't exist
        """
        async with self._locked(conversation_id):
            path = self._path(conversation_id)
            if not path.exists():
                raise FileNotFoundError(f"Conversation {conversation_id} not found")
            await asyncio.to_thread(path.unlink)
        logger.info(f"Deleted conversation {conversation_id}")

    # --- Internals ---

    @asynccontextmanager
    async def _locked(self, conversation_id: str) -> AsyncIterator[None]:
        """Hold the conversation's lock; the entry is dropped once unused."""
        entry = self._locks.get(conversation_id)
        if entry is None:
            entry = self._locks[conversation_id] = _LockEntry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[conversation_id]

    def _path(self, conversation_id: str) -> Path:
        if not is_valid_conversation_id(conversation_id):
            raise ValueError(f"Invalid conversation id: {conversation_id!r}")
        return self.conversations_dir / f"{conversation_id}.json"

    def _conversation_ids(self) -> list[str]:
        return sorted(
            p.stem
            for p in self.conversations_dir.glob("*.json")
            if is_valid_conversation_id(p.stem)
        )

    async def _load(self, conversation_id: str) -> dict[str, Any] | None:
        path = self._path(conversation_id)
        return await asyncio.to_thread(self._read, path)

    @staticmethod
    def _read(path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, conversation_id: str, data: dict[str, Any]) -> None:
        path = self._path(conversation_id)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)

    @staticmethod
    def _parse_messages(
        conversation_id: str, data: dict[str, Any]
    ) -> list[StoredMessage]:
        return [
            StoredMessage(
                id=m["id"],
                conversation_id=conversation_id,
                role=Role.parse(m["role"]),
                content=m["content"],
                created_at=m["created_at"],
            )
            for m in data.get("messages", [])
        ]


class InMemoryConversationStore:
    """Conversation memory kept in a dict, for tests and ephemeral use."""

    def __init__(self) -> None:
        self._conversations: dict[str, list[StoredMessage]] = {}
        self._next_id = 1

    async def get_conversation(self, conversation_id: str) -> list[Message]:
        return [m.to_message() for m in self._conversations.get(conversation_id, [])]

    async def save_message(self, conversation_id: str, message: Message) -> int:
        record_id = self._next_id
        self._next_id += 1
        self._conversations.setdefault(conversation_id, []).append(
            StoredMessage(
                id=record_id,
                conversation_id=conversation_id,
                role=message.role,
                content=message.content,
                created_at=utc_timestamp(),
            )
        )
        return record_id
